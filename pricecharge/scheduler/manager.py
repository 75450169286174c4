"""Scheduled apply-cycles with APScheduler."""

import logging
from datetime import datetime
from typing import Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..errors import PriceChargeError
from ..models import ActionOutcome, ApplyReport, AutomationConfig
from ..prices.cache import utc_now
from .engine import ChargeEngine

logger = logging.getLogger(__name__)

JOB_ID = "apply_cycle"


def summarize_report(report: ApplyReport) -> str:
    """One-line summary of an apply-cycle for logs and status."""
    if not report.decisions:
        return report.message or "No decisions"

    counts: Dict[str, int] = {outcome.value: 0 for outcome in ActionOutcome}
    for decision in report.decisions:
        counts[decision.outcome.value] += 1
    return (
        f"€{report.current_price:.4f}: {counts['success']} success, "
        f"{counts['skipped']} skipped, {counts['error']} error"
    )


class AutomationManager:
    """Runs the apply-cycle for every user with automation switched on."""

    def __init__(
        self,
        engine: ChargeEngine,
        repository,
        config: AutomationConfig,
        clock: Callable[[], datetime] = utc_now
    ):
        """Initialize automation manager."""
        self.engine = engine
        self.repository = repository
        self.config = config
        self.clock = clock
        self.scheduler = AsyncIOScheduler()
        self.last_run_at: Optional[datetime] = None

    def start(self):
        """Start the scheduler and register the interval job."""
        if not self.config.enabled:
            logger.info("Automation is disabled in configuration, not scheduling apply-cycles")
            return

        self.scheduler.add_job(
            self.run_cycle,
            trigger=IntervalTrigger(minutes=self.config.interval_minutes),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self.scheduler.start()
        logger.info(f"Automation started: apply-cycle every {self.config.interval_minutes} minutes")

    def stop(self):
        """Stop the scheduler."""
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Automation stopped")

    @property
    def next_run_at(self) -> Optional[datetime]:
        job = self.scheduler.get_job(JOB_ID)
        return job.next_run_time if job else None

    async def run_cycle(self) -> Dict[int, str]:
        """Apply policies for all active users.

        A failure for one user is logged and recorded, then the next user
        is processed.

        Returns:
            Mapping of user id to a one-line result summary
        """
        user_ids = await self.repository.list_active_automation_users()
        self.last_run_at = self.clock()
        logger.info(f"Automation cycle for {len(user_ids)} user(s)")

        summaries: Dict[int, str] = {}
        for user_id in user_ids:
            summaries[user_id] = await self.run_for_user(user_id)
        return summaries

    async def run_for_user(self, user_id: int) -> str:
        try:
            report = await self.engine.apply_all(user_id)
            summary = summarize_report(report)
            logger.info(f"User {user_id}: {summary}")
        except PriceChargeError as e:
            summary = f"Failed: {e}"
            logger.error(f"User {user_id}: apply-cycle failed: {e}")
        except Exception as e:
            summary = f"Failed: {e}"
            logger.exception(f"User {user_id}: unexpected error in apply-cycle")

        await self.repository.record_automation_run(user_id, self.clock(), summary)
        return summary
