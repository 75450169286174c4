"""Price feed and price provider connection endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..errors import PriceChargeError, PriceFetchError
from ..models import PricePoint, PriceTimeline
from ..prices import expand_to_sub_intervals, resolve_current
from ..prices.cache import utc_now
from .deps import get_current_user, raise_http

router = APIRouter()
logger = logging.getLogger(__name__)


class PricesResponse(BaseModel):
    """Price timeline plus the point governing now."""
    timeline: PriceTimeline
    current: Optional[PricePoint] = None


class TibberConnectRequest(BaseModel):
    """Personal access token for the Tibber API."""
    access_token: str = Field(..., min_length=1, description="Tibber personal access token")

    class Config:
        json_schema_extra = {
            "example": {
                "access_token": "5K4MVS-OjfWhK_4yrjOlFe1F6kJXPVf7eQYggo8ebAE"
            }
        }


class TibberStatusResponse(BaseModel):
    connected: bool


@router.get("/prices", response_model=PricesResponse)
async def get_prices(
    resolution: int = Query(60, description="Slot length in minutes (60, 30, 15, ...)"),
    user_id: int = Depends(get_current_user)
) -> PricesResponse:
    """Get today's and tomorrow's prices, optionally split into 15 minute slots."""
    from ..main import app_state

    try:
        timeline = await app_state.prices.get_timeline(user_id)
    except PriceChargeError as e:
        logger.error(f"Error fetching prices: {e}")
        raise_http(e)

    if timeline is None:
        raise HTTPException(
            status_code=400,
            detail="Tibber not connected. Connect your Tibber account first."
        )

    try:
        expanded = expand_to_sub_intervals(timeline, resolution)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return PricesResponse(timeline=expanded, current=resolve_current(timeline, utc_now()))


@router.post("/tibber/connect", response_model=TibberStatusResponse)
async def connect_tibber(
    request: TibberConnectRequest,
    user_id: int = Depends(get_current_user)
) -> TibberStatusResponse:
    """Validate a Tibber token with a test query and store it encrypted."""
    from ..main import app_state

    token = request.access_token.strip()
    try:
        await app_state.prices.client_factory(token).fetch_prices()
    except PriceFetchError as e:
        logger.warning(f"Tibber token validation failed for user {user_id}: {e}")
        raise HTTPException(
            status_code=400,
            detail="Invalid token. Please check your Tibber personal access token and try again."
        )

    await app_state.repository.set_price_token(user_id, token)
    app_state.prices.cache.invalidate(user_id)
    logger.info(f"Tibber connected for user {user_id}")
    return TibberStatusResponse(connected=True)


@router.delete("/tibber/connect", response_model=TibberStatusResponse)
async def disconnect_tibber(user_id: int = Depends(get_current_user)) -> TibberStatusResponse:
    """Remove the stored Tibber token."""
    from ..main import app_state

    await app_state.repository.delete_price_token(user_id)
    app_state.prices.cache.invalidate(user_id)
    logger.info(f"Tibber disconnected for user {user_id}")
    return TibberStatusResponse(connected=False)


@router.get("/tibber/status", response_model=TibberStatusResponse)
async def tibber_status(user_id: int = Depends(get_current_user)) -> TibberStatusResponse:
    """Whether a Tibber token is stored."""
    from ..main import app_state

    return TibberStatusResponse(connected=await app_state.prices.is_connected(user_id))
