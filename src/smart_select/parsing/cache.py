"""Per-file cache of extracted imports.

Entries are keyed by path and validated against the file's modification
time, so an edited file is always re-extracted.
"""

import asyncio
from collections import OrderedDict

from smart_select.parsing.models import ImportStatement
from smart_select.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_MAX_SIZE = 2000


class ImportCache:
    """Async-safe LRU import cache with mtime validation.

    Shared by every analysis run on one analyzer. Concurrent first
    population of the same path is harmless: both writers store the same
    value.
    """

    def __init__(self, max_size: int = _DEFAULT_MAX_SIZE) -> None:
        self._cache: OrderedDict[str, tuple[float, list[ImportStatement]]] = OrderedDict()
        self._max_size = max_size
        self._hits = 0
        self._misses = 0
        self._lock = asyncio.Lock()

    async def get(self, file_path: str, mtime: float) -> list[ImportStatement] | None:
        """Look up cached imports for a file.

        Args:
            file_path: Normalized file path.
            mtime: Modification time observed at read time.

        Returns:
            Cached statements, or None on a miss. A stale entry is dropped.
        """
        async with self._lock:
            entry = self._cache.get(file_path)
            if entry is not None:
                cached_mtime, statements = entry
                if cached_mtime == mtime:
                    self._hits += 1
                    self._cache.move_to_end(file_path)
                    return list(statements)
                del self._cache[file_path]
                logger.debug("Dropped stale import cache entry", file_path=file_path)
            self._misses += 1
            return None

    async def put(
        self,
        file_path: str,
        mtime: float,
        statements: list[ImportStatement],
    ) -> None:
        """Store extracted imports for a file at a given mtime."""
        async with self._lock:
            if file_path not in self._cache and len(self._cache) >= self._max_size:
                # Remove ~10% of entries, least recently used first
                for _ in range(max(1, self._max_size // 10)):
                    self._cache.popitem(last=False)
            self._cache[file_path] = (mtime, list(statements))
            self._cache.move_to_end(file_path)

    def invalidate(self, file_path: str) -> bool:
        """Invalidate a specific file.

        Returns:
            True if the file was cached.
        """
        return self._cache.pop(file_path, None) is not None

    def clear(self) -> None:
        """Clear the cache and its counters."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> dict:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._cache),
            "max_size": self._max_size,
            "hit_ratio": self._hits / total if total > 0 else 0.0,
        }

    def __len__(self) -> int:
        return len(self._cache)
