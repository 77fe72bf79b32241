"""Configuration model for the music library."""

import os
from pathlib import Path
from typing import Dict, Any, List, Optional, Mapping
import json
from dataclasses import dataclass, field

from ..exceptions import ConfigurationError
from ..utils.security import SecurityUtils

ROOT_ENV = "MUSIC_LIBRARY_ROOT"
FAVORITES_ENV = "MUSIC_LIBRARY_FAVORITES"
WORKERS_ENV = "MUSIC_LIBRARY_WORKERS"

DEFAULT_AUDIO_EXTENSIONS = sorted(SecurityUtils.ALLOWED_EXTENSIONS)


def _default_favorites_path() -> Path:
    return Path.home() / ".config" / "music-library" / "favorites.json"


@dataclass
class LibraryConfig:
    """Main configuration model."""
    library_root: Path = field(default_factory=lambda: Path("downloads"))
    favorites_path: Path = field(default_factory=_default_favorites_path)
    max_concurrency: int = 10
    audio_extensions: List[str] = field(default_factory=lambda: list(DEFAULT_AUDIO_EXTENSIONS))

    def __post_init__(self):
        self.library_root = Path(self.library_root)
        self.favorites_path = Path(self.favorites_path)
        self.audio_extensions = [_normalize_extension(ext) for ext in self.audio_extensions]
        self.validate()

    def validate(self) -> None:
        """Raise ConfigurationError for values the library cannot work with."""
        if not isinstance(self.max_concurrency, int) or self.max_concurrency < 1:
            raise ConfigurationError(
                f"max_concurrency must be a positive integer, got {self.max_concurrency!r}"
            )
        if not self.audio_extensions:
            raise ConfigurationError("audio_extensions cannot be empty")

    @classmethod
    def default(cls) -> "LibraryConfig":
        """Create a default configuration."""
        return cls()

    def with_overrides(self,
                       library_root: Optional[Path] = None,
                       favorites_path: Optional[Path] = None,
                       max_concurrency: Optional[int] = None) -> "LibraryConfig":
        """Return a copy with the given values replaced."""
        return LibraryConfig(
            library_root=library_root if library_root is not None else self.library_root,
            favorites_path=favorites_path if favorites_path is not None else self.favorites_path,
            max_concurrency=max_concurrency if max_concurrency is not None else self.max_concurrency,
            audio_extensions=list(self.audio_extensions),
        )

    def apply_environment(self, environ: Optional[Mapping[str, str]] = None) -> "LibraryConfig":
        """Return a copy with environment overrides applied."""
        environ = os.environ if environ is None else environ

        workers = None
        if environ.get(WORKERS_ENV):
            try:
                workers = int(environ[WORKERS_ENV])
            except ValueError:
                raise ConfigurationError(
                    f"{WORKERS_ENV} must be an integer, got {environ[WORKERS_ENV]!r}"
                )

        return self.with_overrides(
            library_root=Path(environ[ROOT_ENV]) if environ.get(ROOT_ENV) else None,
            favorites_path=Path(environ[FAVORITES_ENV]) if environ.get(FAVORITES_ENV) else None,
            max_concurrency=workers,
        )


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


def _config_to_dict(config: LibraryConfig) -> Dict[str, Any]:
    return {
        "library_root": str(config.library_root),
        "favorites_path": str(config.favorites_path),
        "max_concurrency": config.max_concurrency,
        "audio_extensions": list(config.audio_extensions),
    }


def load_config(config_path: Path) -> LibraryConfig:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {e}")

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration {config_path} must contain a JSON object")

    known = {"library_root", "favorites_path", "max_concurrency", "audio_extensions"}
    kwargs = {key: value for key, value in config_data.items() if key in known}
    try:
        return LibraryConfig(**kwargs)
    except (TypeError, AttributeError) as e:
        raise ConfigurationError(f"Invalid configuration {config_path}: {e}")


def save_config(config: LibraryConfig, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w') as f:
        json.dump(_config_to_dict(config), f, indent=2)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    save_config(LibraryConfig.default(), config_path)
