"""Charging policy endpoints: CRUD, apply, and schedule."""

import logging
import math
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from ..errors import PriceChargeError
from ..models import ApplyReport, ChargingPolicy, Schedule
from .deps import get_current_user, raise_http

router = APIRouter()
logger = logging.getLogger(__name__)


class PolicyRequest(BaseModel):
    """Create or update the policy for a charger."""
    charger_id: int = Field(..., description="Database id of the charger")
    max_price: float = Field(..., description="Maximum price per kWh to charge at")

    @field_validator("max_price")
    @classmethod
    def validate_max_price(cls, v: float) -> float:
        """Max price must be a positive finite number."""
        if not math.isfinite(v) or v <= 0:
            raise ValueError("Max price must be a positive number")
        return v

    class Config:
        json_schema_extra = {
            "example": {
                "charger_id": 1,
                "max_price": 0.25
            }
        }


class PolicyToggleRequest(BaseModel):
    enabled: bool


class PolicyResponse(BaseModel):
    """Policy with its charger."""
    id: int
    charger_id: int
    charger_name: str
    brand: str
    device_id: Optional[str]
    max_price: float
    enabled: bool
    updated_at: Optional[datetime]


class SchedulesResponse(BaseModel):
    schedules: List[Schedule]


@router.get("/policies", response_model=List[PolicyResponse])
async def list_policies(user_id: int = Depends(get_current_user)) -> List[PolicyResponse]:
    """List all policies, newest first."""
    from ..main import app_state

    bindings = await app_state.repository.list_policy_bindings(user_id)
    return [
        PolicyResponse(
            id=b.policy.id,
            charger_id=b.policy.charger_ref,
            charger_name=b.charger_name,
            brand=b.brand,
            device_id=b.device_id,
            max_price=b.policy.max_price,
            enabled=b.policy.enabled,
            updated_at=b.policy.updated_at,
        )
        for b in reversed(bindings)
    ]


@router.post("/policies", response_model=ChargingPolicy)
async def save_policy(request: PolicyRequest, user_id: int = Depends(get_current_user)) -> ChargingPolicy:
    """Create the charger's policy, or update its max price."""
    from ..main import app_state

    try:
        policy = await app_state.repository.upsert_policy(user_id, request.charger_id, request.max_price)
    except PriceChargeError as e:
        raise_http(e)

    logger.info(f"Policy {policy.id} saved: charger={policy.charger_ref}, max_price={policy.max_price}")
    return policy


@router.patch("/policies/{policy_id}", response_model=ChargingPolicy)
async def toggle_policy(
    policy_id: int,
    request: PolicyToggleRequest,
    user_id: int = Depends(get_current_user)
) -> ChargingPolicy:
    """Enable or disable a policy."""
    from ..main import app_state

    try:
        return await app_state.repository.set_policy_enabled(user_id, policy_id, request.enabled)
    except PriceChargeError as e:
        raise_http(e)


@router.delete("/policies/{policy_id}")
async def delete_policy(policy_id: int, user_id: int = Depends(get_current_user)):
    """Delete a policy."""
    from ..main import app_state

    if not await app_state.repository.delete_policy(user_id, policy_id):
        raise HTTPException(status_code=404, detail="Policy not found")
    return {"success": True}


@router.post("/policies/apply", response_model=ApplyReport)
async def apply_policies(user_id: int = Depends(get_current_user)) -> ApplyReport:
    """Run one apply-cycle now."""
    from ..main import app_state

    try:
        return await app_state.engine.apply_all(user_id)
    except PriceChargeError as e:
        logger.error(f"Apply policies failed for user {user_id}: {e}")
        raise_http(e)


@router.get("/policies/schedule", response_model=SchedulesResponse)
async def policy_schedule(
    policy_id: Optional[int] = Query(None, description="Only this policy (enabled or not)"),
    resolution: int = Query(60, description="Slot length in minutes"),
    user_id: int = Depends(get_current_user)
) -> SchedulesResponse:
    """Project policies over today's and tomorrow's prices."""
    from ..main import app_state

    try:
        schedules = await app_state.engine.compute_schedules(user_id, policy_id, resolution)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PriceChargeError as e:
        logger.error(f"Schedule calculation failed for user {user_id}: {e}")
        raise_http(e)

    return SchedulesResponse(schedules=schedules)
