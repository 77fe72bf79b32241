"""Library entry model representing cataloged tracks."""

from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"


@dataclass(slots=True)
class TrackTags:
    """Raw tag values read from an audio file. Anything may be missing."""
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    track_number: Optional[int] = None
    duration_seconds: float = 0.0
    has_artwork: bool = False


@dataclass(frozen=True, slots=True)
class LibraryEntry:
    """One discovered audio file in the catalog.

    The favorite flag is not part of the entry; it is merged in at read time
    by ``to_dict``.
    """

    id: str
    relative_path: str
    title: str
    artist: str = UNKNOWN_ARTIST
    album: str = UNKNOWN_ALBUM
    duration_seconds: float = 0.0
    year: Optional[int] = None
    track_number: Optional[int] = None
    has_artwork: bool = False

    @property
    def filename(self) -> str:
        """Get the filename without directories."""
        return self.relative_path.rsplit("/", 1)[-1]

    @classmethod
    def from_tags(cls, entry_id: str, relative_path: str, tags: TrackTags) -> "LibraryEntry":
        """Build an entry, synthesizing defaults for blank or missing tags."""
        filename = relative_path.rsplit("/", 1)[-1]
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename

        duration = tags.duration_seconds or 0.0
        if duration < 0:
            duration = 0.0

        return cls(
            id=entry_id,
            relative_path=relative_path,
            title=_clean(tags.title) or stem,
            artist=_clean(tags.artist) or UNKNOWN_ARTIST,
            album=_clean(tags.album) or UNKNOWN_ALBUM,
            duration_seconds=float(duration),
            year=tags.year,
            track_number=tags.track_number,
            has_artwork=tags.has_artwork,
        )

    def to_dict(self, is_liked: bool = False) -> Dict[str, Any]:
        """Serialize for callers. The relative path is never included."""
        return {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration_seconds": self.duration_seconds,
            "year": self.year,
            "track_number": self.track_number,
            "has_artwork": self.has_artwork,
            "is_liked": is_liked,
        }


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(slots=True)
class MetadataUpdate:
    """Tag values to write. ``None`` means leave the existing value alone."""
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    track_number: Optional[int] = None

    def provided_fields(self) -> Dict[str, Any]:
        """Return only the fields that should be written."""
        values = {
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "year": self.year,
            "track_number": self.track_number,
        }
        return {key: value for key, value in values.items() if value is not None}

    def is_empty(self) -> bool:
        return not self.provided_fields()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetadataUpdate":
        """Create an update from a request payload, ignoring unknown keys."""
        def _int(key: str) -> Optional[int]:
            value = data.get(key)
            if value is None or value == "":
                return None
            try:
                return int(value)
            except (TypeError, ValueError):
                raise ValueError(f"{key} must be an integer, got {value!r}")

        return cls(
            title=data.get("title"),
            artist=data.get("artist"),
            album=data.get("album"),
            year=_int("year"),
            track_number=_int("track_number"),
        )


@dataclass(slots=True)
class ArtworkImage:
    """Embedded cover art read from an audio file."""
    data: bytes
    mime_type: str

    @property
    def extension(self) -> str:
        """Get a file extension matching the image type."""
        if self.mime_type == "image/png":
            return ".png"
        if self.mime_type == "image/gif":
            return ".gif"
        return ".jpg"


@dataclass(slots=True)
class BulkFailure:
    """A single identifier that a bulk operation could not process."""
    id: str
    reason: str
    error_type: str


@dataclass
class BulkDeleteResult:
    """Per-identifier outcome of a bulk delete."""
    success: List[str] = field(default_factory=list)
    failed: List[BulkFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.success) + len(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": list(self.success),
            "failed": [
                {"id": f.id, "reason": f.reason, "error_type": f.error_type}
                for f in self.failed
            ],
        }
