"""The music library: catalog cache, favorites and mutation operations.

``MusicLibrary`` owns all shared state. The catalog cache is an immutable
tuple that is only ever swapped under ``_cache_lock``, so a reader sees either
the previous complete catalog or the new one.
"""

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from ..exceptions import (
    MalformedIdentifierError,
    MetadataError,
    MusicLibraryError,
    WriteFailedError,
)
from ..models.config import LibraryConfig
from ..models.library_entry import (
    ArtworkImage,
    BulkDeleteResult,
    BulkFailure,
    LibraryEntry,
    MetadataUpdate,
)
from ..utils.security import SecurityUtils
from .favorites import FavoritesStore
from .file_ops import prune_empty_parents_async, remove_file
from .identifiers import IdentifierCodec
from .metadata import TagHandler
from .scanner import CatalogScanner

logger = logging.getLogger(__name__)


class MusicLibrary:
    """In-memory catalog of a library root with consistent mutations."""

    def __init__(self,
                 config: LibraryConfig,
                 tag_handler: Optional[TagHandler] = None,
                 favorites: Optional[FavoritesStore] = None,
                 codec: Optional[IdentifierCodec] = None):
        """
        Initialize the library.

        Args:
            config: Library configuration
            tag_handler: Tag reader/writer (default: mutagen-backed TagHandler)
            favorites: Favorites store (default: loaded from config.favorites_path)
            codec: Identifier codec (default: IdentifierCodec)
        """
        self.config = config
        self.root = config.library_root
        self.codec = codec or IdentifierCodec()
        self.tag_handler = tag_handler or TagHandler()
        self.favorites = favorites or FavoritesStore(config.favorites_path)
        self.scanner = CatalogScanner(
            tag_handler=self.tag_handler,
            codec=self.codec,
            audio_extensions=config.audio_extensions,
            max_concurrency=config.max_concurrency,
        )

        # None means "not built"; an empty tuple is a scanned, empty library
        self._entries: Optional[Tuple[LibraryEntry, ...]] = None
        self._cache_lock = asyncio.Lock()
        self._scan_task: Optional[asyncio.Task] = None
        self._deleted_during_scan: Set[str] = set()
        self._invalidated_during_scan = False

    @property
    def is_scanning(self) -> bool:
        return self._scan_task is not None and not self._scan_task.done()

    # ---------------------------------------------------------------- reads

    async def get_catalog(self) -> List[Dict[str, Any]]:
        """Return the catalog, scanning first if the cache is not built."""
        entries = self._entries
        if entries is None:
            # Join a running scan rather than answering with an empty catalog
            if not self.is_scanning:
                self._start_scan()
            entries = await asyncio.shield(self._scan_task)
        return self._annotate(entries)

    async def refresh(self) -> List[Dict[str, Any]]:
        """Rescan the library root.

        If a scan is already running, the current (possibly stale) catalog is
        returned immediately instead of starting a second walk.
        """
        if self.is_scanning:
            logger.debug("Scan already in progress, serving cached catalog")
            return self._annotate(self._entries or ())

        self._start_scan()
        entries = await asyncio.shield(self._scan_task)
        return self._annotate(entries)

    async def get_art(self, entry_id: str) -> Optional[ArtworkImage]:
        """Read embedded art for an entry on demand.

        Returns None if the file has no image or cannot be read.
        """
        path = self.resolve(entry_id)
        try:
            return await asyncio.get_running_loop().run_in_executor(
                None, self.tag_handler.read_artwork, path
            )
        except MetadataError as e:
            logger.error(f"Error extracting art for {entry_id}: {e}")
            return None

    def resolve(self, entry_id: str) -> Path:
        """Decode an identifier and check it stays inside the library root.

        Raises:
            MalformedIdentifierError: If the identifier does not decode.
            PathEscapeError: If the decoded path leaves the library root.
        """
        relative_path = self.codec.decode(entry_id)
        try:
            path = SecurityUtils.resolve_within(self.root, relative_path)
        except MusicLibraryError:
            logger.warning(f"Rejected identifier outside library root: {entry_id!r}")
            raise

        # "./", "//" or a trailing "/" would name a cached file under another id
        if path.relative_to(self.root.resolve()).as_posix() != relative_path:
            raise MalformedIdentifierError(
                f"Identifier is not the canonical path of its file: {entry_id!r}"
            )
        return path

    # ------------------------------------------------------------ mutations

    async def delete_entry(self, entry_id: str) -> None:
        """Delete one entry's file, drop it from the cache, tidy empty folders."""
        path = self.resolve(entry_id)

        await remove_file(path)
        logger.info(f"Deleted {path.relative_to(self.root.resolve()).as_posix()}")

        async with self._cache_lock:
            if self._entries is not None:
                self._entries = tuple(e for e in self._entries if e.id != entry_id)
            if self.is_scanning:
                self._deleted_during_scan.add(entry_id)

        removed = await prune_empty_parents_async(path, self.root)
        for directory in removed:
            logger.info(f"Removed empty directory {directory.name}")

    async def bulk_delete(self, entry_ids: Iterable[str]) -> BulkDeleteResult:
        """Delete every id independently and report per-id outcomes."""
        result = BulkDeleteResult()
        for entry_id in entry_ids:
            try:
                await self.delete_entry(entry_id)
                result.success.append(entry_id)
            except MusicLibraryError as e:
                result.failed.append(BulkFailure(
                    id=entry_id, reason=str(e), error_type=type(e).__name__
                ))

        if result.failed:
            logger.warning(
                f"Bulk delete finished with {len(result.failed)} of {result.total} failures"
            )
        return result

    async def toggle_favorite(self, entry_id: str) -> bool:
        return await self.favorites.toggle(entry_id)

    async def bulk_favorite(self, entry_ids: Iterable[str], should_like: bool) -> None:
        await self.favorites.set_many(entry_ids, should_like)

    async def update_metadata(self, entry_id: str, update: MetadataUpdate) -> None:
        """Write the provided tag fields in place, then invalidate the cache.

        Raises:
            WriteFailedError: If the tags cannot be written; the cache is kept.
        """
        path = self.resolve(entry_id)
        if update.is_empty():
            return

        try:
            await asyncio.get_running_loop().run_in_executor(
                None, self.tag_handler.write_tags, path, update
            )
        except WriteFailedError:
            raise
        except (MusicLibraryError, OSError) as e:
            raise WriteFailedError(f"Failed to update metadata: {e}") from e

        await self.invalidate()
        logger.info(f"Updated tags ({', '.join(update.provided_fields())}) for {entry_id}")

    async def invalidate(self) -> None:
        """Clear the catalog so the next read rescans."""
        async with self._cache_lock:
            self._entries = None
            if self.is_scanning:
                self._invalidated_during_scan = True

    # -------------------------------------------------------------- helpers

    def _start_scan(self) -> None:
        self._deleted_during_scan = set()
        self._invalidated_during_scan = False
        self._scan_task = asyncio.ensure_future(self._run_scan())

    async def _run_scan(self) -> Tuple[LibraryEntry, ...]:
        entries = await self.scanner.scan(self.root)

        async with self._cache_lock:
            published = tuple(e for e in entries if e.id not in self._deleted_during_scan)
            # Tags changed mid-scan: hand this result to the waiting caller
            # but force the next read to rescan
            self._entries = None if self._invalidated_during_scan else published
            self._deleted_during_scan = set()
            self._invalidated_during_scan = False
        return published

    def _annotate(self, entries: Iterable[LibraryEntry]) -> List[Dict[str, Any]]:
        liked = self.favorites.snapshot()
        return [entry.to_dict(is_liked=entry.id in liked) for entry in entries]
