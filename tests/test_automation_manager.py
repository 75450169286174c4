"""Tests for scheduled apply-cycles."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from pricecharge.errors import ConfigurationError
from pricecharge.models import ActionOutcome, ApplyReport, AutomationConfig, DecisionResult
from pricecharge.scheduler import AutomationManager
from pricecharge.scheduler.manager import JOB_ID, summarize_report

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


def decision(outcome):
    return DecisionResult(
        policy_id=1, charger_name="Garage", charger_id="EH1",
        current_price=0.2, max_price=0.25, should_charge=True, outcome=outcome,
    )


class TestSummarizeReport:

    def test_counts_outcomes(self):
        report = ApplyReport(
            decisions=[decision(ActionOutcome.SUCCESS), decision(ActionOutcome.SKIPPED), decision(ActionOutcome.SKIPPED)],
            current_price=0.2,
            evaluated_at=NOW,
        )
        assert summarize_report(report) == "€0.2000: 1 success, 2 skipped, 0 error"

    def test_uses_message_without_decisions(self):
        report = ApplyReport(current_price=0.2, evaluated_at=NOW, message="No enabled policies found.")
        assert summarize_report(report) == "No enabled policies found."


class TestAutomationManager:

    @pytest.fixture
    def repository(self):
        repo = MagicMock()
        repo.list_active_automation_users = AsyncMock(return_value=[1, 2])
        repo.record_automation_run = AsyncMock()
        return repo

    @pytest.fixture
    def engine(self):
        engine = MagicMock()
        engine.apply_all = AsyncMock(return_value=ApplyReport(
            decisions=[decision(ActionOutcome.SUCCESS)], current_price=0.2, evaluated_at=NOW
        ))
        return engine

    @pytest.mark.asyncio
    async def test_cycle_applies_for_each_active_user(self, engine, repository):
        manager = AutomationManager(engine, repository, AutomationConfig(), clock=lambda: NOW)

        summaries = await manager.run_cycle()

        assert summaries == {1: "€0.2000: 1 success, 0 skipped, 0 error", 2: "€0.2000: 1 success, 0 skipped, 0 error"}
        assert [c.args[0] for c in engine.apply_all.await_args_list] == [1, 2]
        repository.record_automation_run.assert_any_await(1, NOW, summaries[1])
        assert manager.last_run_at == NOW

    @pytest.mark.asyncio
    async def test_failing_user_does_not_stop_cycle(self, engine, repository):
        ok = engine.apply_all.return_value
        engine.apply_all.side_effect = [ConfigurationError("Tibber not connected."), ok]
        manager = AutomationManager(engine, repository, AutomationConfig(), clock=lambda: NOW)

        summaries = await manager.run_cycle()

        assert summaries[1] == "Failed: Tibber not connected."
        assert summaries[2].endswith("1 success, 0 skipped, 0 error")
        assert repository.record_automation_run.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded(self, engine, repository):
        repository.list_active_automation_users.return_value = [1]
        engine.apply_all.side_effect = RuntimeError("database is locked")
        manager = AutomationManager(engine, repository, AutomationConfig(), clock=lambda: NOW)

        summaries = await manager.run_cycle()

        assert summaries == {1: "Failed: database is locked"}
        repository.record_automation_run.assert_awaited_once_with(1, NOW, "Failed: database is locked")

    @pytest.mark.asyncio
    async def test_start_schedules_interval_job(self, engine, repository):
        manager = AutomationManager(engine, repository, AutomationConfig(interval_minutes=5))

        manager.start()
        try:
            job = manager.scheduler.get_job(JOB_ID)
            assert job is not None
            assert job.trigger.interval.total_seconds() == 300
            assert job.max_instances == 1
            assert manager.next_run_at is not None
        finally:
            manager.stop()

    def test_disabled_in_config(self, engine, repository):
        manager = AutomationManager(engine, repository, AutomationConfig(enabled=False))

        manager.start()

        assert manager.scheduler.running is False
        assert manager.next_run_at is None
        manager.stop()
