"""Price-threshold charging decisions.

The decision ladder, for the price of the current interval and the
charger's live operating mode:

    price <= max_price (charge):
        AwaitingStart, ReadyToCharge  -> start via START
        Charging                      -> nothing, already charging
        Disconnected, Completed, Error -> start via RESUME; a failed resume
                                         is an expected state (no car) and
                                         is reported as skipped
    price > max_price (don't charge):
        Charging                      -> pause via PAUSE
        anything else                 -> nothing
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..models import ActionOutcome, ChargeAction, ChargerState, ChargingPolicy, OperatingMode, PricePoint

logger = logging.getLogger(__name__)


class ChargerCommand(str, Enum):
    """Remote command that carries out a decision."""
    START = "start"
    RESUME = "resume"
    PAUSE = "pause"


_STARTABLE_MODES = frozenset({OperatingMode.AWAITING_START, OperatingMode.READY_TO_CHARGE})


@dataclass(frozen=True)
class Decision:
    """What to do for one policy, before any command runs.

    When `command` is None the decision is final and `outcome` and
    `message` describe it. Otherwise the executor runs the command and
    reports `success_message` on success.
    """
    should_charge: bool
    action: ChargeAction
    command: Optional[ChargerCommand] = None
    outcome: ActionOutcome = ActionOutcome.SKIPPED
    message: str = ""
    success_message: str = ""
    degrade_failure_to_skip: bool = False
    failure_message: str = ""


def should_charge(price: float, max_price: float) -> bool:
    """Charging is allowed at or below the threshold."""
    return price <= max_price


def format_comparison(price: float, max_price: float, allowed: bool) -> str:
    sign = "≤" if allowed else ">"
    return f"price €{price:.4f} {sign} max €{max_price:.4f}"


class PolicyEvaluator:
    """Decides the charger action for a policy at the current price."""

    def evaluate(self, current_price: PricePoint, policy: ChargingPolicy, state: ChargerState) -> Decision:
        price = current_price.total
        allowed = should_charge(price, policy.max_price)
        mode = state.operating_mode
        comparison = format_comparison(price, policy.max_price, allowed)

        if allowed:
            if mode in _STARTABLE_MODES:
                decision = Decision(
                    should_charge=True,
                    action=ChargeAction.START,
                    command=ChargerCommand.START,
                    success_message=f"Started charging ({comparison})",
                )
            elif mode == OperatingMode.CHARGING:
                decision = Decision(
                    should_charge=True,
                    action=ChargeAction.NONE,
                    outcome=ActionOutcome.SKIPPED,
                    message="Already charging.",
                )
            else:
                decision = Decision(
                    should_charge=True,
                    action=ChargeAction.START,
                    command=ChargerCommand.RESUME,
                    success_message=f"Resumed charging ({comparison})",
                    degrade_failure_to_skip=True,
                    failure_message=f"Charger is {mode.label}; no car connected or cannot start.",
                )
        else:
            if mode == OperatingMode.CHARGING:
                decision = Decision(
                    should_charge=False,
                    action=ChargeAction.PAUSE,
                    command=ChargerCommand.PAUSE,
                    success_message=f"Paused charging ({comparison})",
                )
            else:
                decision = Decision(
                    should_charge=False,
                    action=ChargeAction.NONE,
                    outcome=ActionOutcome.SKIPPED,
                    message="Not currently charging, no action needed.",
                )

        logger.debug(
            f"Policy {policy.id}: {comparison}, mode={mode.label} -> "
            f"action={decision.action.value} command={decision.command.value if decision.command else None}"
        )
        return decision
