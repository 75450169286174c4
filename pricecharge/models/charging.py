"""Charger, policy, decision, and schedule models."""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntEnum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from .prices import PriceLevel

logger = logging.getLogger(__name__)


class OperatingMode(IntEnum):
    """Charger operating mode as reported by the hardware."""
    DISCONNECTED = 1
    AWAITING_START = 2
    CHARGING = 3
    COMPLETED = 4
    ERROR = 5
    READY_TO_CHARGE = 6

    @classmethod
    def from_code(cls, code: Any) -> "OperatingMode":
        """Map a vendor op-mode code, treating unknown codes as ERROR."""
        try:
            return cls(int(code))
        except (TypeError, ValueError):
            logger.warning(f"Unknown charger operating mode {code!r}, treating as ERROR")
            return cls.ERROR

    @property
    def label(self) -> str:
        return _MODE_LABELS[self]


_MODE_LABELS = {
    OperatingMode.DISCONNECTED: "Disconnected",
    OperatingMode.AWAITING_START: "Awaiting Start",
    OperatingMode.CHARGING: "Charging",
    OperatingMode.COMPLETED: "Completed",
    OperatingMode.ERROR: "Error",
    OperatingMode.READY_TO_CHARGE: "Ready to Charge",
}


class ChargeAction(str, Enum):
    START = "start"
    PAUSE = "pause"
    NONE = "none"


class ActionOutcome(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class ChargerState(BaseModel):
    """Live charger state, read fresh before every decision."""
    operating_mode: OperatingMode
    is_online: bool = False
    total_power: float = Field(0.0, description="Current charging power (kW)")
    session_energy: float = Field(0.0, description="Energy delivered this session (kWh)")
    output_current: float = 0.0
    cable_locked: bool = False
    smart_charging: bool = False
    latest_pulse: Optional[datetime] = None

    @classmethod
    def from_easee(cls, data: Dict[str, Any]) -> "ChargerState":
        """Build state from an Easee /state payload."""
        return cls(
            operating_mode=OperatingMode.from_code(data.get("chargerOpMode")),
            is_online=bool(data.get("isOnline", False)),
            total_power=float(data.get("totalPower") or 0.0),
            session_energy=float(data.get("sessionEnergy") or 0.0),
            output_current=float(data.get("outputCurrent") or 0.0),
            cable_locked=bool(data.get("cableLocked", False)),
            smart_charging=bool(data.get("smartCharging", False)),
            latest_pulse=data.get("latestPulse"),
        )


class ChargingPolicy(BaseModel):
    """Maximum acceptable price for one charger."""
    id: int
    charger_ref: int = Field(..., description="Database id of the charger")
    max_price: float = Field(..., description="Charge when price <= max_price")
    enabled: bool = True
    updated_at: Optional[datetime] = None

    @field_validator("max_price")
    @classmethod
    def validate_max_price(cls, v: float) -> float:
        """Require a finite positive threshold."""
        if not math.isfinite(v) or v <= 0:
            raise ValueError("max_price must be a finite number greater than 0")
        return v


@dataclass
class ChargerCredentials:
    """Vendor tokens for one charger."""
    access_token: str
    refresh_token: Optional[str] = None


@dataclass
class PolicyBinding:
    """A policy joined with the charger it controls."""
    policy: ChargingPolicy
    charger_name: str
    brand: str
    device_id: Optional[str]
    credentials: Optional[ChargerCredentials]

    @property
    def is_usable(self) -> bool:
        return bool(self.device_id) and self.credentials is not None and bool(self.credentials.access_token)


class DecisionResult(BaseModel):
    """Outcome of evaluating one policy in an apply-cycle."""
    policy_id: int
    charger_name: str
    charger_id: Optional[str]
    current_price: float
    max_price: float
    should_charge: bool
    action: ChargeAction = ChargeAction.NONE
    outcome: ActionOutcome = ActionOutcome.SKIPPED
    message: str = ""


class ApplyReport(BaseModel):
    """Result of a full apply-cycle for one user."""
    decisions: List[DecisionResult] = Field(default_factory=list)
    current_price: Optional[float] = None
    evaluated_at: datetime
    message: Optional[str] = None


class ScheduleSlot(BaseModel):
    """One priced interval and whether the policy would charge in it."""
    starts_at: datetime
    price: float
    level: PriceLevel
    active: bool


class ScheduleSummary(BaseModel):
    active_count: int = 0
    total_count: int = 0
    cheapest: Optional[float] = None
    most_expensive: Optional[float] = None


class Schedule(BaseModel):
    """Projection of one policy over the full price timeline."""
    policy_id: int
    charger_ref: int
    charger_name: Optional[str] = None
    max_price: float
    enabled: bool
    interval_minutes: int = 60
    slots: List[ScheduleSlot] = Field(default_factory=list)
    summary: ScheduleSummary = Field(default_factory=ScheduleSummary)


class ChargerInfo(BaseModel):
    """Stored charger record without its secrets."""
    id: int
    brand: str
    name: Optional[str] = None
    device_id: Optional[str] = None
    has_credentials: bool = False
    created_at: Optional[datetime] = None


class AutomationStatus(BaseModel):
    active: bool = False
    last_run_at: Optional[datetime] = None
    last_run_message: Optional[str] = None
