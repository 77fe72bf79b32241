"""Core library components: identifiers, tags, scanning, favorites and mutations."""

from .favorites import FavoritesStore
from .identifiers import IdentifierCodec
from .library import MusicLibrary
from .metadata import TagHandler
from .scanner import CatalogScanner

__all__ = [
    "CatalogScanner",
    "FavoritesStore",
    "IdentifierCodec",
    "MusicLibrary",
    "TagHandler",
]
