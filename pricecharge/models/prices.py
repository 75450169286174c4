"""Electricity price models."""

from datetime import datetime
from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PriceLevel(str, Enum):
    """Relative price level as reported by the price provider."""
    VERY_CHEAP = "VERY_CHEAP"
    CHEAP = "CHEAP"
    NORMAL = "NORMAL"
    EXPENSIVE = "EXPENSIVE"
    VERY_EXPENSIVE = "VERY_EXPENSIVE"


class PricePoint(BaseModel):
    """All-in unit price for one interval."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total: float = Field(..., description="Total price incl. tax per kWh")
    energy: float = Field(0.0, description="Energy part of the price")
    tax: float = Field(0.0, description="Tax part of the price")
    starts_at: datetime = Field(..., alias="startsAt", description="Interval start (timezone aware)")
    level: PriceLevel = Field(PriceLevel.NORMAL, description="Provider price level")

    @field_validator("starts_at")
    @classmethod
    def require_timezone(cls, v: datetime) -> datetime:
        """Reject naive timestamps, interval math needs an offset."""
        if v.tzinfo is None:
            raise ValueError("startsAt must include a timezone offset")
        return v


class PriceTimeline(BaseModel):
    """Ordered price points covering today and optionally tomorrow."""
    points: List[PricePoint] = Field(default_factory=list)
    interval_minutes: int = Field(60, description="Length of each slot in minutes")
    has_tomorrow: bool = Field(False, description="Whether tomorrow's prices are published")

    def __len__(self) -> int:
        return len(self.points)

    @property
    def is_empty(self) -> bool:
        return not self.points
