"""Price feed: timeline model, provider client, and cache."""

from .timeline import normalize, expand_to_sub_intervals, resolve_current
from .cache import PriceCache
from .tibber import TibberClient
from .service import PriceService

__all__ = [
    "normalize",
    "expand_to_sub_intervals",
    "resolve_current",
    "PriceCache",
    "TibberClient",
    "PriceService",
]
