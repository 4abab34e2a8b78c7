"""
Bounded LRU cache of per-document page geometry.

Keyed by the SHA-256 of the PDF bytes, so the same document uploaded twice
is read once. Owned by the application instance, not a module global.
"""
import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, List, Optional

from sigplace.pdf.placement import PageDescriptor
from sigplace.utils.security import compute_bytes_hash

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    def to_dict(self) -> dict:
        return {"hits": self.hits, "misses": self.misses, "evictions": self.evictions}


class PageGeometryCache:
    """
    Thread-safe LRU of document hash -> list of PageDescriptor.

    Page descriptors are immutable, so cached lists are handed out as copies
    of the list only.
    """

    def __init__(self, max_entries: int = 32):
        if max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, List[PageDescriptor]]" = OrderedDict()
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, document_hash: str) -> Optional[List[PageDescriptor]]:
        with self._lock:
            pages = self._entries.get(document_hash)
            if pages is None:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(document_hash)
            self._stats.hits += 1
            return list(pages)

    def put(self, document_hash: str, pages: List[PageDescriptor]) -> None:
        with self._lock:
            self._entries[document_hash] = list(pages)
            self._entries.move_to_end(document_hash)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self._stats.evictions += 1
                logger.debug(f"Evicted page geometry for doc {evicted[:8]}")

    def get_or_load(
        self,
        pdf_bytes: bytes,
        loader: Callable[[bytes], List[PageDescriptor]],
    ) -> List[PageDescriptor]:
        """
        Return cached pages for pdf_bytes, calling loader on a miss.

        loader runs outside the lock; two concurrent misses on the same
        document both load and the last one wins.
        """
        document_hash = compute_bytes_hash(pdf_bytes)
        pages = self.get(document_hash)
        if pages is not None:
            return pages

        pages = loader(pdf_bytes)
        self.put(document_hash, pages)
        return list(pages)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
            )
