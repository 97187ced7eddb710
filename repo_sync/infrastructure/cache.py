"""In-memory response cache with a fixed time-to-live."""

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class ResponseCache:
    """
    Process-lifetime cache of parsed API responses.

    Entries are written only after a successful request and are treated as
    fresh while younger than the TTL. Stale entries are never evicted, only
    ignored on read and overwritten on the next successful fetch.
    """

    DEFAULT_TTL_SECONDS = 4 * 60

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Initialize the cache.

        Args:
            ttl_seconds: How long an entry stays fresh
            clock: Time source in seconds, injectable for tests
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}

    @staticmethod
    def make_key(url: str, params: Optional[Dict[str, Any]] = None) -> str:
        """Build a cache key from the URL and a stable serialization of the params."""
        return f"{url}{json.dumps(params or {}, sort_keys=True)}"

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload for key if it is still fresh."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        data, timestamp = entry
        if self._clock() - timestamp < self.ttl_seconds:
            logger.debug(f"Cache hit for {key}")
            return data
        return None

    def set(self, key: str, data: Any):
        self._entries[key] = (data, self._clock())

    def __len__(self) -> int:
        return len(self._entries)
