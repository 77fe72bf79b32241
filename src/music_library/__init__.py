"""Music Library

An in-memory catalog of an audio folder with persisted favorites and
consistent delete, like and tag-editing operations.
"""

__version__ = "0.1.0"

from .core.favorites import FavoritesStore
from .core.identifiers import IdentifierCodec
from .core.library import MusicLibrary
from .core.metadata import TagHandler
from .core.scanner import CatalogScanner
from .exceptions import (
    ConfigurationError,
    EntryNotFoundError,
    FileOperationError,
    MalformedIdentifierError,
    MetadataError,
    MusicLibraryError,
    PathEscapeError,
    PermissionDeniedError,
    ScanIOError,
    WriteFailedError,
)
from .models.config import LibraryConfig, load_config
from .models.library_entry import (
    ArtworkImage,
    BulkDeleteResult,
    LibraryEntry,
    MetadataUpdate,
)

__all__ = [
    # Core components
    "MusicLibrary",
    "CatalogScanner",
    "FavoritesStore",
    "IdentifierCodec",
    "TagHandler",

    # Models
    "LibraryConfig",
    "LibraryEntry",
    "MetadataUpdate",
    "ArtworkImage",
    "BulkDeleteResult",

    # Errors
    "MusicLibraryError",
    "MalformedIdentifierError",
    "PathEscapeError",
    "FileOperationError",
    "EntryNotFoundError",
    "PermissionDeniedError",
    "WriteFailedError",
    "MetadataError",
    "ScanIOError",
    "ConfigurationError",

    # Utilities
    "load_config",
]
