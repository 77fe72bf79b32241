"""Data models for the music library."""

from .config import LibraryConfig, load_config, save_config, create_default_config
from .library_entry import (
    ArtworkImage,
    BulkDeleteResult,
    BulkFailure,
    LibraryEntry,
    MetadataUpdate,
    TrackTags,
)

__all__ = [
    "ArtworkImage",
    "BulkDeleteResult",
    "BulkFailure",
    "LibraryConfig",
    "LibraryEntry",
    "MetadataUpdate",
    "TrackTags",
    "create_default_config",
    "load_config",
    "save_config",
]
