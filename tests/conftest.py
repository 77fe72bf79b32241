"""Shared fixtures for music library tests."""

import threading
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

from music_library.core.favorites import FavoritesStore
from music_library.core.library import MusicLibrary
from music_library.exceptions import MetadataError, WriteFailedError
from music_library.models.config import LibraryConfig
from music_library.models.library_entry import ArtworkImage, MetadataUpdate, TrackTags

# One MPEG-1 Layer III frame: 128 kbps, 44.1 kHz, joint stereo, 417 bytes
MP3_FRAME = b"\xff\xfb\x90\x64" + b"\x00" * 413


def make_mp3(path: Path, frames: int = 40) -> Path:
    """Write a tiny but valid MP3 stream (about a second of silence)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(MP3_FRAME * frames)
    return path


class FakeTagHandler:
    """In-memory tag handler keyed by file name."""

    def __init__(self):
        self.tags: Dict[str, TrackTags] = {}
        self.artwork: Dict[str, ArtworkImage] = {}
        self.unreadable: Set[str] = set()
        self.fail_writes = False
        self.writes: List[Tuple[str, MetadataUpdate]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.read_delay: Optional[threading.Event] = None
        self._lock = threading.Lock()

    def read_tags(self, file_path: Path) -> TrackTags:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.read_delay is not None:
                self.read_delay.wait(timeout=5)
            if file_path.name in self.unreadable:
                raise MetadataError(f"Failed to read {file_path.name}")
            if not file_path.exists():
                raise MetadataError(f"Failed to read {file_path.name}")
            return self.tags.get(file_path.name, TrackTags())
        finally:
            with self._lock:
                self.in_flight -= 1

    def read_artwork(self, file_path: Path) -> Optional[ArtworkImage]:
        if file_path.name in self.unreadable or not file_path.exists():
            raise MetadataError(f"Failed to read {file_path.name}")
        return self.artwork.get(file_path.name)

    def write_tags(self, file_path: Path, update: MetadataUpdate) -> None:
        if self.fail_writes:
            raise WriteFailedError(f"Failed to write tags to {file_path.name}")
        self.writes.append((file_path.name, update))
        current = self.tags.setdefault(file_path.name, TrackTags())
        for key, value in update.provided_fields().items():
            setattr(current, key, value)


@pytest.fixture
def library_root(tmp_path):
    """An artist/album tree with three tracks and one non-audio file."""
    root = tmp_path / "library"
    for relative in (
        "Artist A/Album One/01 First.mp3",
        "Artist A/Album One/02 Second.mp3",
        "Artist B/Album Two/01 Only.flac",
    ):
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"fake audio data")
    (root / "Artist A" / "Album One" / "cover.jpg").write_bytes(b"jpeg")
    return root


@pytest.fixture
def tag_handler():
    handler = FakeTagHandler()
    handler.tags["01 First.mp3"] = TrackTags(
        title="First", artist="Artist A", album="Album One", year=2001, duration_seconds=180.5
    )
    handler.tags["02 Second.mp3"] = TrackTags(title="Second", artist="Artist A", album="Album One")
    return handler


@pytest.fixture
def config(library_root, tmp_path):
    return LibraryConfig(
        library_root=library_root,
        favorites_path=tmp_path / "state" / "favorites.json",
        max_concurrency=4,
    )


@pytest.fixture
def library(config, tag_handler):
    return MusicLibrary(config, tag_handler=tag_handler,
                        favorites=FavoritesStore(config.favorites_path))


@pytest.fixture
def entry_id(library):
    """Map a relative path to its identifier."""
    return library.codec.encode


@pytest.fixture
def mp3_file():
    """Factory writing a minimal valid MP3 at the given path."""
    return make_mp3
