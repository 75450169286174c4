"""Charger vendor client interface and registry."""

from typing import Any, Callable, Dict, List, Optional, Protocol

from ..errors import ConfigurationError
from ..models import ChargerCredentials, ChargerState


class ChargerClient(Protocol):
    """Capabilities every charger vendor integration provides.

    Vendors implement this set directly; there is no shared base class.
    `credentials` always reflects the latest tokens, so callers can persist
    them after a call that triggered a refresh.
    """

    @property
    def credentials(self) -> Optional[ChargerCredentials]:
        ...

    async def login(self, username: str, password: str) -> ChargerCredentials:
        ...

    async def list_devices(self) -> List[Dict[str, Any]]:
        ...

    async def get_state(self, device_id: str) -> ChargerState:
        ...

    async def start(self, device_id: str) -> None:
        ...

    async def pause(self, device_id: str) -> None:
        ...

    async def resume(self, device_id: str) -> None:
        ...

    async def aclose(self) -> None:
        ...


class ChargerClientRegistry:
    """Maps a charger brand to a client constructor."""

    def __init__(self):
        self._factories: Dict[str, Callable[[Optional[ChargerCredentials]], ChargerClient]] = {}

    def register(self, brand: str, factory: Callable[[Optional[ChargerCredentials]], ChargerClient]):
        self._factories[brand.lower()] = factory

    @property
    def brands(self):
        return sorted(self._factories)

    def create(self, brand: str, credentials: Optional[ChargerCredentials] = None) -> ChargerClient:
        """Build a client for the brand.

        Raises:
            ConfigurationError: if the brand is not supported
        """
        factory = self._factories.get((brand or "").lower())
        if factory is None:
            raise ConfigurationError(f"Unsupported charger brand: {brand}")
        return factory(credentials)

    __call__ = create
