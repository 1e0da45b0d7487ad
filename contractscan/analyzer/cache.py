"""
Result Cache

Keeps analysis output for fingerprints that were already analyzed, so an
identical resubmission skips the sandbox and the engine entirely.

Usage:
    cache = ResultCache()

    entry = cache.lookup(key)
    if entry is None:
        # Analyze normally...
        cache.store(key, result.to_entry())

Entries live for the lifetime of the process and are never evicted or
persisted.
"""

import threading
from typing import Dict, Optional

from loguru import logger

from ..core.models import CacheEntry


class ResultCache:
    """
    In-memory fingerprint -> CacheEntry map.

    The lock only guards single dict operations, never an analysis, so
    requests for different fingerprints do not wait on each other. Racing
    stores for one fingerprint are last-writer-wins; both writers analyzed
    identical input.
    """

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def lookup(self, key: str) -> Optional[CacheEntry]:
        """
        Find the entry for a fingerprint.

        Args:
            key: Fingerprint

        Returns:
            CacheEntry if present, None otherwise
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
            else:
                self.hits += 1

        if entry is not None:
            logger.debug(f"[Cache] Hit: {key[:12]}")
        return entry

    def store(self, key: str, entry: CacheEntry) -> None:
        """Store an entry (overwrites any previous entry for the key)."""
        with self._lock:
            self._entries[key] = entry
            size = len(self._entries)

        logger.debug(f"[Cache] Stored {key[:12]} ({size} entries)")

    def stats(self) -> dict:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
            }

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries
