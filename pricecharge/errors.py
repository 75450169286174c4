"""Exception types for the charge scheduler.

Configuration and price errors propagate to callers and abort an
apply-cycle. Charger errors are caught per policy and reported as data
in the decision results.
"""

from typing import Optional


class PriceChargeError(Exception):
    """Base class for all service errors."""


class ConfigurationError(PriceChargeError):
    """Required setup is missing (price connection, credentials, input)."""


class NotFoundError(PriceChargeError):
    """A requested record does not exist for this user."""


class PriceFetchError(PriceChargeError):
    """The price provider was unreachable or returned unusable data."""


class PriceUnavailableError(PriceChargeError):
    """No known price interval covers the current instant."""


class ChargerCommandError(PriceChargeError):
    """A charger vendor call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ChargerAuthError(ChargerCommandError):
    """Charger credentials are invalid and could not be refreshed."""
