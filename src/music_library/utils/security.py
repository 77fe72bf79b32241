"""
Security utilities for file operations.

Provides the containment check that keeps every identifier-driven file
operation inside the library root.
"""

from pathlib import Path
from typing import Iterable, Optional, Set

from ..exceptions import PathEscapeError


class SecurityUtils:
    """Security utilities for file operations."""

    # Allowed audio file extensions
    ALLOWED_EXTENSIONS: Set[str] = {
        '.flac', '.mp3', '.wav', '.m4a', '.mp4',
        '.ogg', '.opus', '.aiff', '.aif'
    }

    @staticmethod
    def is_within(path: Path, base_path: Path) -> bool:
        """
        Check that an already resolved path lies strictly inside base_path.

        Args:
            path: Resolved path to check
            base_path: Resolved base directory

        Returns:
            True if path is a descendant of base_path (and not base_path itself)
        """
        return path != base_path and path.is_relative_to(base_path)

    @staticmethod
    def resolve_within(base_path: Path, relative_path: str) -> Path:
        """
        Join a relative path onto base_path and ensure it cannot escape.

        Args:
            base_path: Library root
            relative_path: Path relative to the root, as decoded from an identifier

        Returns:
            The resolved absolute path

        Raises:
            PathEscapeError: If the path contains null bytes or resolves outside base_path
        """
        # Null bytes would be rejected by the OS anyway; treat them as an attack
        if '\x00' in relative_path:
            raise PathEscapeError("Path contains null bytes")

        try:
            base_resolved = base_path.resolve()
            path_resolved = (base_resolved / relative_path).resolve()
        except (OSError, RuntimeError) as e:
            raise PathEscapeError(f"Cannot resolve path: {e}")

        if not SecurityUtils.is_within(path_resolved, base_resolved):
            raise PathEscapeError("Path escapes library root")

        return path_resolved

    @staticmethod
    def is_allowed_file_type(file_path: Path,
                             extensions: Optional[Iterable[str]] = None) -> bool:
        """
        Check if file extension is in allowed types.

        Args:
            file_path: Path to check
            extensions: Optional override of the allowed extension set

        Returns:
            True if file type is allowed
        """
        allowed = SecurityUtils.ALLOWED_EXTENSIONS if extensions is None else extensions
        return file_path.suffix.lower() in allowed
