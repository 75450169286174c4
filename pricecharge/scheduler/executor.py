"""Carries out charging decisions against charger hardware."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from ..chargers.base import ChargerClient
from ..errors import ChargerCommandError
from ..models import (
    ActionOutcome,
    ChargerCredentials,
    DecisionResult,
    PolicyBinding,
    PricePoint,
)
from .evaluator import ChargerCommand, Decision, PolicyEvaluator

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, Optional[ChargerCredentials]], ChargerClient]
CredentialSink = Callable[[int, ChargerCredentials], Awaitable[None]]


class ChargerCommandExecutor:
    """Runs one apply step per charger and reports it as a DecisionResult.

    Each charger gets a single attempt per cycle with no local retries;
    the polling cycle is the retry. Failures stay inside the charger's
    own result so sibling chargers are unaffected.
    """

    def __init__(
        self,
        client_factory: ClientFactory,
        save_credentials: CredentialSink,
        evaluator: Optional[PolicyEvaluator] = None
    ):
        """Initialize executor.

        Args:
            client_factory: Builds a vendor client from (brand, credentials)
            save_credentials: Coroutine persisting refreshed tokens for a charger id
            evaluator: Decision logic (default PolicyEvaluator)
        """
        self.client_factory = client_factory
        self.save_credentials = save_credentials
        self.evaluator = evaluator or PolicyEvaluator()

    async def apply_many(self, bindings: List[PolicyBinding], current_price: PricePoint) -> List[DecisionResult]:
        """Apply all bindings concurrently, results in binding order."""
        return list(await asyncio.gather(*(self.apply(b, current_price) for b in bindings)))

    async def apply(self, binding: PolicyBinding, current_price: PricePoint) -> DecisionResult:
        policy = binding.policy
        result = DecisionResult(
            policy_id=policy.id,
            charger_name=binding.charger_name,
            charger_id=binding.device_id,
            current_price=current_price.total,
            max_price=policy.max_price,
            should_charge=current_price.total <= policy.max_price,
        )

        if not binding.is_usable:
            result.outcome = ActionOutcome.ERROR
            result.message = "Charger has no stored token or charger ID."
            logger.warning(f"Policy {policy.id}: {result.message}")
            return result

        client = None
        try:
            client = self.client_factory(binding.brand, binding.credentials)
            state = await client.get_state(binding.device_id)
            decision = self.evaluator.evaluate(current_price, policy, state)
            await self._carry_out(client, binding, decision, result)
        except ChargerCommandError as e:
            result.outcome = ActionOutcome.ERROR
            result.message = str(e)
            logger.error(f"Policy {policy.id} ({binding.charger_name}): {e}")
        except Exception as e:
            result.outcome = ActionOutcome.ERROR
            result.message = str(e) or "Failed to control charger"
            logger.exception(f"Policy {policy.id} ({binding.charger_name}): unexpected error")
        finally:
            if client is not None:
                await self._persist_refreshed_credentials(client, binding)
                await client.aclose()

        logger.info(
            f"Policy {policy.id} ({binding.charger_name}): action={result.action.value} "
            f"outcome={result.outcome.value} - {result.message}"
        )
        return result

    async def _carry_out(self, client: ChargerClient, binding: PolicyBinding, decision: Decision, result: DecisionResult):
        result.should_charge = decision.should_charge
        result.action = decision.action

        if decision.command is None:
            result.outcome = decision.outcome
            result.message = decision.message
            return

        try:
            await self._send(client, binding.device_id, decision.command)
        except ChargerCommandError as e:
            if not decision.degrade_failure_to_skip:
                raise
            logger.info(f"{binding.charger_name}: {decision.command.value} not possible ({e})")
            result.outcome = ActionOutcome.SKIPPED
            result.message = decision.failure_message
            return

        result.outcome = ActionOutcome.SUCCESS
        result.message = decision.success_message

    @staticmethod
    async def _send(client: ChargerClient, device_id: str, command: ChargerCommand):
        if command == ChargerCommand.START:
            await client.start(device_id)
        elif command == ChargerCommand.RESUME:
            await client.resume(device_id)
        elif command == ChargerCommand.PAUSE:
            await client.pause(device_id)

    async def _persist_refreshed_credentials(self, client: ChargerClient, binding: PolicyBinding):
        fresh = client.credentials
        if fresh is None or fresh == binding.credentials:
            return
        try:
            await self.save_credentials(binding.policy.charger_ref, fresh)
            binding.credentials = fresh
        except Exception:
            logger.exception(f"Failed to persist refreshed tokens for charger {binding.policy.charger_ref}")
