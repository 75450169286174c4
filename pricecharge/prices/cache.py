"""Per-user price timeline cache with a publication-aware TTL."""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Hashable, Optional
from zoneinfo import ZoneInfo

from ..models import CacheConfig, PriceTimeline

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _Entry:
    timeline: PriceTimeline
    fetched_at: datetime
    expires_at: datetime


class PriceCache:
    """In-process cache of fetched price timelines, keyed by user.

    The TTL is fixed when an entry is stored:

    - 15 minutes by default;
    - 2 minutes within 30 minutes either side of the day-ahead publication
      hour (13:00 local), so newly published prices are picked up quickly;
    - at most 2 minutes at or after the publication hour while tomorrow's
      prices are still missing.

    Entries expire lazily on read. All access goes through one lock, the
    cache is shared by overlapping requests.
    """

    def __init__(self, config: Optional[CacheConfig] = None, clock: Clock = utc_now):
        self.config = config or CacheConfig()
        self.clock = clock
        self.tz = ZoneInfo(self.config.timezone)
        self._entries: Dict[Hashable, _Entry] = {}
        self._lock = threading.Lock()

    def ttl_for(self, timeline: PriceTimeline, fetched_at: datetime) -> timedelta:
        """TTL for a timeline fetched at the given instant."""
        base = timedelta(minutes=self.config.base_ttl_minutes)
        short = timedelta(minutes=self.config.short_ttl_minutes)

        local = fetched_at.astimezone(self.tz)
        publication = local.replace(hour=self.config.publication_hour, minute=0, second=0, microsecond=0)
        window = timedelta(minutes=self.config.publication_window_minutes)

        ttl = base
        if abs(local - publication) <= window:
            ttl = short

        if local >= publication and not timeline.has_tomorrow:
            ttl = min(ttl, short)

        return ttl

    def get(self, user_key: Hashable) -> Optional[PriceTimeline]:
        """Return the cached timeline, or None on a miss or expiry."""
        now = self.clock()
        with self._lock:
            entry = self._entries.get(user_key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[user_key]
                logger.debug(f"Price cache expired for user {user_key}")
                return None
            return entry.timeline

    def put(self, user_key: Hashable, timeline: PriceTimeline) -> datetime:
        """Store a timeline and return its expiry time."""
        now = self.clock()
        expires_at = now + self.ttl_for(timeline, now)
        with self._lock:
            self._entries[user_key] = _Entry(timeline=timeline, fetched_at=now, expires_at=expires_at)
        logger.debug(f"Cached {len(timeline)} prices for user {user_key} until {expires_at.isoformat()}")
        return expires_at

    def invalidate(self, user_key: Hashable):
        with self._lock:
            self._entries.pop(user_key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
