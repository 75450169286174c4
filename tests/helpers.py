"""Builders and fakes shared by the test modules."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pricecharge.errors import ChargerCommandError
from pricecharge.models import (
    ChargerCredentials,
    ChargerState,
    ChargingPolicy,
    OperatingMode,
    PolicyBinding,
    PricePoint,
)
from pricecharge.prices import normalize

DAY_START = datetime(2025, 1, 15, 0, 0, tzinfo=timezone.utc)


def make_point(total: float, starts_at: datetime, level: str = "NORMAL") -> PricePoint:
    return PricePoint(total=total, energy=total * 0.8, tax=total * 0.2, starts_at=starts_at, level=level)


def make_timeline(prices: List[float], start: datetime = DAY_START, tomorrow: Optional[List[float]] = None):
    """Hourly timeline from a price list starting at `start`."""
    today = [make_point(p, start + timedelta(hours=i)) for i, p in enumerate(prices)]
    next_day = [
        make_point(p, start + timedelta(days=1, hours=i)) for i, p in enumerate(tomorrow or [])
    ]
    return normalize(today, next_day)


def make_binding(
    policy_id: int = 1,
    max_price: float = 0.25,
    charger_name: str = "garage",
    device_id: Optional[str] = "EH000001",
    credentials: Optional[ChargerCredentials] = None,
    charger_ref: Optional[int] = None,
) -> PolicyBinding:
    return PolicyBinding(
        policy=ChargingPolicy(id=policy_id, charger_ref=charger_ref or policy_id, max_price=max_price),
        charger_name=charger_name,
        brand="easee",
        device_id=device_id,
        credentials=credentials if credentials is not None else ChargerCredentials("access", "refresh"),
    )


class FakeChargerClient:
    """In-memory charger client that records the commands it receives."""

    def __init__(
        self,
        mode: OperatingMode = OperatingMode.AWAITING_START,
        credentials: Optional[ChargerCredentials] = None,
        fail_on: Optional[str] = None,
        state_error: Optional[Exception] = None,
        refreshed_to: Optional[ChargerCredentials] = None,
    ):
        self._credentials = credentials
        self.mode = mode
        self.fail_on = fail_on
        self.state_error = state_error
        self.refreshed_to = refreshed_to
        self.commands: List[str] = []
        self.closed = False

    @property
    def credentials(self) -> Optional[ChargerCredentials]:
        return self._credentials

    async def login(self, username, password):
        self._credentials = ChargerCredentials("access", "refresh")
        return self._credentials

    async def list_devices(self):
        return [{"id": "EH000001", "name": "Garage"}]

    async def get_state(self, device_id):
        if self.refreshed_to is not None:
            self._credentials = self.refreshed_to
        if self.state_error is not None:
            raise self.state_error
        return ChargerState(operating_mode=self.mode, is_online=True)

    async def _command(self, name):
        self.commands.append(name)
        if self.fail_on == name:
            raise ChargerCommandError("API request failed: 400", 400)

    async def start(self, device_id):
        await self._command("start")

    async def pause(self, device_id):
        await self._command("pause")

    async def resume(self, device_id):
        await self._command("resume")

    async def aclose(self):
        self.closed = True


