"""Cached access to a user's price timeline."""

import logging
from typing import Callable, Optional

from ..models import PriceTimeline, TibberConfig
from .cache import PriceCache
from .tibber import TibberClient

logger = logging.getLogger(__name__)

TibberFactory = Callable[[str], TibberClient]


class PriceService:
    """Fetches prices through the cache using each user's stored token."""

    def __init__(
        self,
        repository,
        cache: PriceCache,
        tibber_config: Optional[TibberConfig] = None,
        client_factory: Optional[TibberFactory] = None
    ):
        self.repository = repository
        self.cache = cache
        self.tibber_config = tibber_config or TibberConfig()
        self.client_factory = client_factory or (lambda token: TibberClient(token, self.tibber_config))

    async def is_connected(self, user_id: int) -> bool:
        return await self.repository.get_price_token(user_id) is not None

    async def get_timeline(self, user_id: int) -> Optional[PriceTimeline]:
        """Return the user's timeline, or None if no price provider is connected.

        Raises:
            PriceFetchError: if the provider call fails on a cache miss
        """
        cached = self.cache.get(user_id)
        if cached is not None:
            logger.debug(f"Price cache hit for user {user_id}")
            return cached

        token = await self.repository.get_price_token(user_id)
        if token is None:
            return None

        timeline = await self.client_factory(token).fetch_prices()
        self.cache.put(user_id, timeline)
        return timeline
