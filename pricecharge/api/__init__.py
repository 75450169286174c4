"""API endpoints."""

from .health import router as health_router
from .prices import router as prices_router
from .chargers import router as chargers_router
from .policies import router as policies_router
from .automation import router as automation_router

__all__ = ["health_router", "prices_router", "chargers_router", "policies_router", "automation_router"]
