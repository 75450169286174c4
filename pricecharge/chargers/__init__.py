"""Charger vendor integrations."""

from .base import ChargerClient, ChargerClientRegistry
from .easee import EaseeClient

__all__ = ["ChargerClient", "ChargerClientRegistry", "EaseeClient"]
