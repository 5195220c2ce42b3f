"""Bounded insight cache, keyed by a hash of the analysis content."""

import hashlib
import json
import logging
from collections import OrderedDict
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10

T = TypeVar("T")


def make_cache_key(url: str, payload: Any) -> str:
    """``<url>-<16 hex chars>`` from the JSON form of ``payload``."""
    blob = json.dumps(payload, sort_keys=True, default=str)
    return f"{url}-{hashlib.sha256(blob.encode()).hexdigest()[:16]}"


class InsightsCache(Generic[T]):
    """
    Keeps the most recently stored ``max_entries`` values.

    Reads do not refresh an entry; eviction is by insertion order.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._entries: "OrderedDict[str, T]" = OrderedDict()

    def get(self, key: str) -> Optional[T]:
        return self._entries.get(key)

    def set(self, key: str, value: T):
        self._entries.pop(key, None)
        self._entries[key] = value
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Evicted insights for {evicted}")

    def clear(self):
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
