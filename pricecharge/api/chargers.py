"""Charger connection and live status endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ..errors import ChargerAuthError, ChargerCommandError, ConfigurationError, NotFoundError
from ..models import ChargerInfo, ChargerState
from .deps import get_current_user, raise_http

router = APIRouter()
logger = logging.getLogger(__name__)


class ConnectChargerRequest(BaseModel):
    """Vendor account login used to obtain charger tokens."""
    brand: str = Field("easee", description="Charger brand")
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    device_id: Optional[str] = Field(None, description="Charger serial; all account chargers if omitted")
    name: Optional[str] = Field(None, description="Display name")

    class Config:
        json_schema_extra = {
            "example": {
                "brand": "easee",
                "username": "user@example.com",
                "password": "your-password",
                "device_id": "EH123456",
                "name": "Garage"
            }
        }


class ChargerStatusResponse(BaseModel):
    """Stored charger plus its live state, if it could be read."""
    charger: ChargerInfo
    status: Optional[ChargerState] = None
    mode_label: Optional[str] = None
    message: Optional[str] = None


@router.get("/chargers", response_model=List[ChargerInfo])
async def list_chargers(user_id: int = Depends(get_current_user)) -> List[ChargerInfo]:
    """List the user's chargers."""
    from ..main import app_state

    return await app_state.repository.list_chargers(user_id)


@router.post("/chargers/connect", response_model=List[ChargerInfo])
async def connect_charger(
    request: ConnectChargerRequest,
    user_id: int = Depends(get_current_user)
) -> List[ChargerInfo]:
    """Log in to the vendor and store the charger(s) with encrypted tokens."""
    from ..main import app_state

    try:
        client = app_state.registry.create(request.brand)
    except ConfigurationError as e:
        raise_http(e)

    try:
        credentials = await client.login(request.username, request.password)

        if request.device_id:
            devices = [{"id": request.device_id, "name": request.name}]
        else:
            devices = await client.list_devices()
            if not devices:
                raise HTTPException(status_code=400, detail="No chargers found on this account")
    except ChargerAuthError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except ChargerCommandError as e:
        logger.error(f"Charger connect failed for user {user_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    finally:
        await client.aclose()

    stored = []
    for device in devices:
        stored.append(await app_state.repository.add_charger(
            user_id,
            brand=request.brand.lower(),
            device_id=device["id"],
            credentials=credentials,
            name=request.name or device.get("name"),
        ))
    logger.info(f"Connected {len(stored)} {request.brand} charger(s) for user {user_id}")
    return stored


@router.delete("/chargers/{charger_id}")
async def delete_charger(charger_id: int, user_id: int = Depends(get_current_user)):
    """Delete a charger and its policy."""
    from ..main import app_state

    if not await app_state.repository.delete_charger(user_id, charger_id):
        raise HTTPException(status_code=404, detail="Charger not found")
    return {"success": True}


@router.get("/chargers/{charger_id}/status", response_model=ChargerStatusResponse)
async def charger_status(charger_id: int, user_id: int = Depends(get_current_user)) -> ChargerStatusResponse:
    """Read the charger's live state."""
    from ..main import app_state

    try:
        info, credentials = await app_state.repository.get_charger_access(user_id, charger_id)
    except NotFoundError as e:
        raise_http(e)

    if credentials is None or not info.device_id:
        return ChargerStatusResponse(charger=info, message="No token or charger ID stored")

    try:
        client = app_state.registry.create(info.brand, credentials)
    except ConfigurationError as e:
        raise_http(e)

    try:
        state = await client.get_state(info.device_id)
    except ChargerCommandError as e:
        logger.error(f"Status read failed for charger {charger_id}: {e}")
        return ChargerStatusResponse(charger=info, message=str(e))
    finally:
        if client.credentials is not None and client.credentials != credentials:
            await app_state.repository.save_charger_credentials(charger_id, client.credentials)
        await client.aclose()

    return ChargerStatusResponse(charger=info, status=state, mode_label=state.operating_mode.label)
