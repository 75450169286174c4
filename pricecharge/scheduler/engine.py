"""Apply-cycle and schedule orchestration for one user."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ..errors import ConfigurationError, PriceUnavailableError
from ..models import ApplyReport, Schedule
from ..prices import PriceService, expand_to_sub_intervals, resolve_current
from ..prices.cache import utc_now
from .executor import ChargerCommandExecutor
from .projector import project

logger = logging.getLogger(__name__)


class ChargeEngine:
    """Shared entry point for manual, HTTP cron, and scheduled apply-cycles."""

    def __init__(
        self,
        repository,
        prices: PriceService,
        executor: ChargerCommandExecutor,
        clock: Callable[[], datetime] = utc_now
    ):
        self.repository = repository
        self.prices = prices
        self.executor = executor
        self.clock = clock

    async def apply_all(self, user_id: int) -> ApplyReport:
        """Evaluate and act on every enabled policy of the user.

        Raises:
            ConfigurationError: if no price provider is connected
            PriceFetchError: if prices cannot be fetched
            PriceUnavailableError: if no price covers the current time
        """
        timeline = await self.prices.get_timeline(user_id)
        if timeline is None:
            raise ConfigurationError(
                "Tibber not connected. Connect your Tibber account first."
            )

        now = self.clock()
        current = resolve_current(timeline, now)
        if current is None:
            raise PriceUnavailableError("Could not determine current electricity price.")

        bindings = await self.repository.list_policy_bindings(user_id, enabled_only=True, include_credentials=True)
        if not bindings:
            return ApplyReport(
                current_price=current.total,
                evaluated_at=now,
                message="No enabled policies found.",
            )

        if not any(binding.is_usable for binding in bindings):
            logger.info(f"User {user_id}: no enabled policy has a connected charger")
            return ApplyReport(
                current_price=current.total,
                evaluated_at=now,
                message="No enabled policies have a connected charger.",
            )

        logger.info(f"User {user_id}: applying {len(bindings)} policies at €{current.total:.4f}")
        decisions = await self.executor.apply_many(bindings, current)

        return ApplyReport(decisions=decisions, current_price=current.total, evaluated_at=now)

    async def compute_schedules(
        self,
        user_id: int,
        policy_id: Optional[int] = None,
        interval_minutes: int = 60
    ) -> List[Schedule]:
        """Project policies over the price timeline.

        Without a policy_id all enabled policies are projected; with one,
        that policy is projected whether enabled or not. Returns an empty
        list when there is no price data or no matching policy.

        Raises:
            PriceFetchError: if the provider is connected but failing
            ValueError: for an interval that does not divide an hour
        """
        bindings = await self.repository.list_policy_bindings(
            user_id, enabled_only=policy_id is None, policy_id=policy_id
        )
        if not bindings:
            return []

        timeline = await self.prices.get_timeline(user_id)
        if timeline is None or timeline.is_empty:
            return []

        timeline = expand_to_sub_intervals(timeline, interval_minutes)
        return [project(timeline, b.policy, b.charger_name) for b in bindings]
