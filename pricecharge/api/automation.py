"""Automation settings and the external cron trigger."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..errors import PriceChargeError
from ..models import ApplyReport
from .deps import get_current_user, raise_http

router = APIRouter()
logger = logging.getLogger(__name__)


class AutomationStatusResponse(BaseModel):
    """Automation state for the app UI."""
    active: bool
    interval_minutes: int
    scheduler_running: bool
    next_run_at: Optional[datetime] = None
    last_run_at: Optional[datetime] = None
    last_run_message: Optional[str] = None


async def _status_response(user_id: int) -> AutomationStatusResponse:
    from ..main import app_state

    status = await app_state.repository.get_automation(user_id)
    automation = app_state.automation
    return AutomationStatusResponse(
        active=status.active,
        interval_minutes=app_state.config.automation.interval_minutes,
        scheduler_running=automation.scheduler.running,
        next_run_at=automation.next_run_at if status.active else None,
        last_run_at=status.last_run_at,
        last_run_message=status.last_run_message,
    )


@router.get("/automation/status", response_model=AutomationStatusResponse)
async def automation_status(user_id: int = Depends(get_current_user)) -> AutomationStatusResponse:
    """Get automation status."""
    return await _status_response(user_id)


@router.post("/automation/enable", response_model=AutomationStatusResponse)
async def enable_automation(user_id: int = Depends(get_current_user)) -> AutomationStatusResponse:
    """Include this user in scheduled apply-cycles."""
    from ..main import app_state

    await app_state.repository.set_automation_active(user_id, True)
    logger.info(f"Automation enabled for user {user_id}")
    return await _status_response(user_id)


@router.post("/automation/disable", response_model=AutomationStatusResponse)
async def disable_automation(user_id: int = Depends(get_current_user)) -> AutomationStatusResponse:
    """Exclude this user from scheduled apply-cycles."""
    from ..main import app_state

    await app_state.repository.set_automation_active(user_id, False)
    logger.info(f"Automation disabled for user {user_id}")
    return await _status_response(user_id)


@router.post("/cron/apply", response_model=ApplyReport)
async def cron_apply(user_id: int = Depends(get_current_user)) -> ApplyReport:
    """Apply-cycle for an external cron; requires active automation."""
    from ..main import app_state

    if not (await app_state.repository.get_automation(user_id)).active:
        raise HTTPException(status_code=401, detail="Automation not active")

    try:
        report = await app_state.engine.apply_all(user_id)
    except PriceChargeError as e:
        logger.error(f"Cron apply failed for user {user_id}: {e}")
        raise_http(e)

    await app_state.repository.record_automation_run(
        user_id, report.evaluated_at, f"cron: {len(report.decisions)} decision(s)"
    )
    return report
