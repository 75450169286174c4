"""Projects a charging policy over the whole price timeline."""

from typing import Optional

from ..models import ChargingPolicy, PriceTimeline, Schedule, ScheduleSlot, ScheduleSummary
from .evaluator import should_charge


def project(timeline: PriceTimeline, policy: ChargingPolicy, charger_name: Optional[str] = None) -> Schedule:
    """Mark every slot where the policy would allow charging.

    Covers today and tomorrow, past and future alike; this is a display
    forecast and never touches the charger.
    """
    slots = [
        ScheduleSlot(
            starts_at=point.starts_at,
            price=point.total,
            level=point.level,
            active=should_charge(point.total, policy.max_price),
        )
        for point in timeline.points
    ]

    prices = [slot.price for slot in slots]
    summary = ScheduleSummary(
        active_count=sum(1 for slot in slots if slot.active),
        total_count=len(slots),
        cheapest=min(prices) if prices else None,
        most_expensive=max(prices) if prices else None,
    )

    return Schedule(
        policy_id=policy.id,
        charger_ref=policy.charger_ref,
        charger_name=charger_name,
        max_price=policy.max_price,
        enabled=policy.enabled,
        interval_minutes=timeline.interval_minutes,
        slots=slots,
        summary=summary,
    )
