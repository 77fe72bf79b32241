"""Persisted set of liked entry identifiers.

The set lives in memory and is rewritten in full as a JSON array after every
mutation. A failed write is logged and the in-memory state is kept, so the
next successful write catches the file up.
"""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import FrozenSet, Iterable, List, Set

logger = logging.getLogger(__name__)


class FavoritesStore:
    """Liked identifiers, independent of the catalog and merged in on read."""

    def __init__(self, path: Path, autoload: bool = True) -> None:
        self.path = Path(path)
        self._ids: Set[str] = set()
        self._lock = asyncio.Lock()
        if autoload:
            self._ids = self.load()

    def load(self) -> Set[str]:
        """Read the persisted set, falling back to empty on any failure."""
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"No favorites file at {self.path}, starting empty")
            return set()
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read favorites from {self.path}: {e}")
            return set()

        if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
            logger.warning(f"Favorites file {self.path} is not a JSON array of strings, ignoring it")
            return set()

        logger.debug(f"Loaded {len(data)} favorites from {self.path}")
        return set(data)

    def is_favorite(self, entry_id: str) -> bool:
        return entry_id in self._ids

    def snapshot(self) -> FrozenSet[str]:
        """Return an immutable copy for annotating a catalog read."""
        return frozenset(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    async def toggle(self, entry_id: str) -> bool:
        """Flip membership of one id, persist, and return the new state."""
        async with self._lock:
            if entry_id in self._ids:
                self._ids.discard(entry_id)
            else:
                self._ids.add(entry_id)
            liked = entry_id in self._ids
            await self._persist()
        return liked

    async def set_many(self, entry_ids: Iterable[str], should_like: bool) -> None:
        """Like or unlike every id in the batch, persisting once."""
        async with self._lock:
            ids = list(entry_ids)
            if should_like:
                self._ids.update(ids)
            else:
                self._ids.difference_update(ids)
            await self._persist()

    async def _persist(self) -> None:
        payload = sorted(self._ids)
        try:
            await asyncio.get_running_loop().run_in_executor(None, self._write, payload)
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Error saving favorites to {self.path}: {e}")

    def _write(self, payload: List[str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)
