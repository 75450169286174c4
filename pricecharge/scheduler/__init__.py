"""Charging decisions, execution, schedule projection, and automation."""

from .evaluator import ChargerCommand, Decision, PolicyEvaluator, should_charge
from .executor import ChargerCommandExecutor
from .projector import project
from .engine import ChargeEngine
from .manager import AutomationManager

__all__ = [
    "ChargerCommand",
    "Decision",
    "PolicyEvaluator",
    "should_charge",
    "ChargerCommandExecutor",
    "project",
    "ChargeEngine",
    "AutomationManager",
]
