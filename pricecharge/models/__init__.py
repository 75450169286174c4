"""Data models for the charge scheduler."""

from .config import (
    AppConfig,
    ServerConfig,
    DatabaseConfig,
    SecurityConfig,
    TibberConfig,
    EaseeConfig,
    CacheConfig,
    AutomationConfig,
    LoggingConfig,
)
from .prices import PriceLevel, PricePoint, PriceTimeline
from .charging import (
    OperatingMode,
    ChargeAction,
    ActionOutcome,
    ChargerState,
    ChargingPolicy,
    ChargerCredentials,
    PolicyBinding,
    DecisionResult,
    ApplyReport,
    ScheduleSlot,
    ScheduleSummary,
    Schedule,
    ChargerInfo,
    AutomationStatus,
)

__all__ = [
    "AppConfig",
    "ServerConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "TibberConfig",
    "EaseeConfig",
    "CacheConfig",
    "AutomationConfig",
    "LoggingConfig",
    "PriceLevel",
    "PricePoint",
    "PriceTimeline",
    "OperatingMode",
    "ChargeAction",
    "ActionOutcome",
    "ChargerState",
    "ChargingPolicy",
    "ChargerCredentials",
    "PolicyBinding",
    "DecisionResult",
    "ApplyReport",
    "ScheduleSlot",
    "ScheduleSummary",
    "Schedule",
    "ChargerInfo",
    "AutomationStatus",
]
