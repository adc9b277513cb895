"""In-memory cache for extracted workflow metadata.

Extraction is deterministic for a given workflow version, so results are keyed
by (workflow id, version) where the version is n8n's ``versionId`` or, failing
that, ``updatedAt``. Saving a workflow in n8n changes both, which is the only
invalidation the cache needs.

Entries are never mutated in place: values are copied on the way in and on the
way out, so callers can freely modify what they get back.
"""

import logging
import threading
from collections import OrderedDict
from typing import Any, Optional

from stickyforms.core.models import RawMetadataResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 256

CacheKey = tuple[str, str]


def make_cache_key(workflow: Any) -> CacheKey:
    """Build the cache key for a workflow definition.

    Examples:
        >>> make_cache_key({"id": "42", "versionId": "abc"})
        ('42', 'abc')
        >>> make_cache_key({"id": 7, "updatedAt": "2024-05-01T10:00:00Z"})
        ('7', '2024-05-01T10:00:00Z')
        >>> make_cache_key({})
        ('no-id', 'no-version')
    """
    if not isinstance(workflow, dict):
        return ("no-id", "no-version")
    workflow_id = workflow.get("id")
    version = workflow.get("versionId") or workflow.get("updatedAt")
    return (
        str(workflow_id) if workflow_id not in (None, "") else "no-id",
        str(version) if version else "no-version",
    )


class MetadataCache:
    """Bounded LRU cache of RawMetadataResult values."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self.max_entries = max_entries
        self._entries: OrderedDict[CacheKey, RawMetadataResult] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: CacheKey) -> Optional[RawMetadataResult]:
        """Return a copy of the cached result, or None on a miss."""
        with self._lock:
            result = self._entries.get(key)
            if result is None:
                return None
            self._entries.move_to_end(key)
        logger.debug("Metadata cache hit", extra={"phase": "cache", "cache_key": key})
        return result.model_copy(deep=True)

    def put(self, key: CacheKey, result: RawMetadataResult) -> None:
        """Store a result, evicting the least recently used entry when full."""
        with self._lock:
            self._entries[key] = result.model_copy(deep=True)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Metadata cache eviction", extra={"phase": "cache", "cache_key": evicted})

    def invalidate(self, workflow_id: str) -> int:
        """Drop every cached version of a workflow.

        Returns:
            Number of entries removed
        """
        with self._lock:
            keys = [key for key in self._entries if key[0] == str(workflow_id)]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
