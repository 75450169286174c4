"""Shared request dependencies and error translation."""

import logging
from typing import NoReturn, Optional

from fastapi import Header, HTTPException, status

from ..errors import (
    ConfigurationError,
    NotFoundError,
    PriceChargeError,
    PriceFetchError,
    PriceUnavailableError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConfigurationError, status.HTTP_400_BAD_REQUEST),
    (PriceUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (PriceFetchError, status.HTTP_502_BAD_GATEWAY),
]


async def get_current_user(authorization: Optional[str] = Header(None)) -> int:
    """Resolve `Authorization: Bearer <api_key>` to a user id.

    Usage: user_id: int = Depends(get_current_user)
    """
    from ..main import app_state

    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing authorization")

    user_id = await app_state.repository.get_user_id_by_api_key(authorization[len("Bearer "):].strip())
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return user_id


def raise_http(error: Exception) -> NoReturn:
    """Translate a service error into an HTTPException."""
    if isinstance(error, PriceChargeError):
        for error_type, status_code in _STATUS_BY_ERROR:
            if isinstance(error, error_type):
                raise HTTPException(status_code=status_code, detail=str(error))
    logger.error(f"Unhandled error: {error}")
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))
