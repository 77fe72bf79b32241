"""Catalog scanning with bounded-concurrency tag extraction."""

import asyncio
import logging
import os
import time
from pathlib import Path
from typing import Iterable, List, Optional

from ..exceptions import ScanIOError
from ..models.library_entry import LibraryEntry
from ..utils.security import SecurityUtils
from .identifiers import IdentifierCodec
from .metadata import TagHandler

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 10


class CatalogScanner:
    """Walk a library root and build catalog entries from embedded tags."""

    def __init__(self,
                 tag_handler: Optional[TagHandler] = None,
                 codec: Optional[IdentifierCodec] = None,
                 audio_extensions: Optional[Iterable[str]] = None,
                 max_concurrency: int = DEFAULT_MAX_CONCURRENCY):
        """
        Initialize the scanner.

        Args:
            tag_handler: Tag reader (default: mutagen-backed TagHandler)
            codec: Identifier codec (default: IdentifierCodec)
            audio_extensions: Eligible file suffixes (default: SecurityUtils.ALLOWED_EXTENSIONS)
            max_concurrency: Maximum tag reads in flight (default: 10)
        """
        self.tag_handler = tag_handler or TagHandler()
        self.codec = codec or IdentifierCodec()
        self.audio_extensions = {
            ext.lower() for ext in (audio_extensions or SecurityUtils.ALLOWED_EXTENSIONS)
        }
        self.max_concurrency = max(1, max_concurrency)

    def discover_files(self, root: Path) -> List[Path]:
        """Recursively list eligible audio files under root.

        A missing root yields an empty list. Unreadable subdirectories are
        logged and skipped.

        Raises:
            ScanIOError: If root exists but is not a listable directory.
        """
        if not root.exists():
            logger.info(f"Library root {root} does not exist, nothing to scan")
            return []

        if not root.is_dir():
            raise ScanIOError(f"Library root is not a directory: {root}")

        try:
            with os.scandir(root) as it:
                top_level = list(it)
        except OSError as e:
            raise ScanIOError(f"Cannot read library root {root}: {e}") from e

        files: List[Path] = []
        self._collect(top_level, files)
        return files

    def _collect(self, entries: List[os.DirEntry], files: List[Path]) -> None:
        for entry in entries:
            try:
                # Symlinks could lead out of the root or into a loop
                if entry.is_symlink():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    self._collect(self._list_directory(entry.path), files)
                elif entry.is_file(follow_symlinks=False):
                    path = Path(entry.path)
                    if SecurityUtils.is_allowed_file_type(path, self.audio_extensions):
                        files.append(path)
            except OSError as e:
                logger.error(f"Error inspecting {entry.path}: {e}")

    @staticmethod
    def _list_directory(directory: str) -> List[os.DirEntry]:
        try:
            with os.scandir(directory) as it:
                return list(it)
        except OSError as e:
            logger.error(f"Error scanning {directory}: {e}")
            return []

    async def scan(self, root: Path) -> List[LibraryEntry]:
        """Build catalog entries for every readable audio file under root."""
        started = time.perf_counter()
        logger.info(f"Starting library scan of {root}")

        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, self.discover_files, root)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def build_with_semaphore(file_path: Path) -> LibraryEntry:
            async with semaphore:
                return await loop.run_in_executor(None, self._build_entry, root, file_path)

        tasks = [build_with_semaphore(file_path) for file_path in files]
        results = await asyncio.gather(*tasks, return_exceptions=True)

        entries: List[LibraryEntry] = []
        seen = set()
        for file_path, result in zip(files, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to parse metadata for {file_path}: {result}")
                continue
            if result.id in seen:
                continue
            seen.add(result.id)
            entries.append(result)

        elapsed = time.perf_counter() - started
        logger.info(
            f"Library scan complete. Found {len(entries)} entries "
            f"({len(files) - len(entries)} skipped) in {elapsed:.2f}s"
        )
        return entries

    def _build_entry(self, root: Path, file_path: Path) -> LibraryEntry:
        tags = self.tag_handler.read_tags(file_path)
        relative_path = file_path.relative_to(root).as_posix()
        return LibraryEntry.from_tags(self.codec.encode(relative_path), relative_path, tags)
