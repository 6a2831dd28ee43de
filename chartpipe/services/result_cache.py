import hashlib
import re
import time
from typing import Callable, Optional

from cachetools import TTLCache

from chartpipe.config.settings import settings
from chartpipe.schemas.charts import ChartRows


def cache_key(
    chart_id: str,
    database_connection_id: str,
    query: str,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
) -> str:
    normalized_query = re.sub(r"\s+", " ", query.strip())
    raw = "|".join([chart_id, database_connection_id, normalized_query, from_date or "", to_date or ""])
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class ChartResultCache:
    """Query results kept for ``ttl_seconds``; least recently used evicted when full."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self.max_entries = max_entries if max_entries is not None else settings.cache_max_entries
        self._entries: TTLCache = TTLCache(maxsize=self.max_entries, ttl=self.ttl_seconds, timer=clock)

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def get(self, key: str) -> Optional[ChartRows]:
        return self._entries.get(key)

    def set(self, key: str, rows: ChartRows) -> None:
        self._entries[key] = rows

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()
