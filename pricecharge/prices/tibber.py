"""Tibber GraphQL price client."""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from ..errors import PriceFetchError
from ..models import PriceTimeline, TibberConfig
from .timeline import normalize

logger = logging.getLogger(__name__)

PRICE_QUERY = """
{
  viewer {
    homes {
      currentSubscription {
        priceInfo {
          today { total energy tax startsAt level }
          tomorrow { total energy tax startsAt level }
        }
      }
    }
  }
}
"""


class TibberClient:
    """Fetches today's and tomorrow's hourly prices for the first home."""

    def __init__(
        self,
        access_token: str,
        config: Optional[TibberConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """Initialize the client.

        Args:
            access_token: Tibber bearer token
            config: Endpoint and timeout settings
            http_client: Optional shared client (tests inject a mock transport)
        """
        self.access_token = access_token
        self.config = config or TibberConfig()
        self._http_client = http_client

    async def fetch_prices(self) -> PriceTimeline:
        """Fetch the current price timeline.

        Raises:
            PriceFetchError: on transport errors, non-2xx responses,
                GraphQL errors, or a payload without price info
        """
        data = await self._post_query(PRICE_QUERY)

        viewer = (data.get("data") or {}).get("viewer") or {}
        homes = viewer.get("homes") or []
        if not homes:
            raise PriceFetchError("No homes found in Tibber account")

        price_info = (homes[0].get("currentSubscription") or {}).get("priceInfo")
        if not price_info:
            raise PriceFetchError("No price info available")

        try:
            timeline = normalize(price_info.get("today") or [], price_info.get("tomorrow") or [])
        except ValidationError as e:
            raise PriceFetchError(f"Malformed Tibber price data: {e}") from e

        logger.info(f"Fetched {len(timeline)} Tibber prices (tomorrow available: {timeline.has_tomorrow})")
        return timeline

    async def _post_query(self, query: str) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.access_token}",
        }
        client = self._http_client or httpx.AsyncClient(timeout=self.config.timeout)
        try:
            response = await client.post(self.config.api_url, json={"query": query}, headers=headers)
        except httpx.HTTPError as e:
            raise PriceFetchError(f"Tibber API unreachable: {e}") from e
        finally:
            if self._http_client is None:
                await client.aclose()

        if response.status_code >= 400:
            raise PriceFetchError(f"Tibber API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise PriceFetchError("Tibber API returned invalid JSON") from e

        if not isinstance(data, dict):
            raise PriceFetchError("Tibber API returned an unexpected payload")

        errors = data.get("errors")
        if errors:
            raise PriceFetchError(errors[0].get("message") or "Tibber API error")

        return data
