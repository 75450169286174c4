"""Price timeline construction and lookup."""

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Mapping, Optional, Union

from ..models import PricePoint, PriceTimeline

logger = logging.getLogger(__name__)

NATIVE_INTERVAL_MINUTES = 60

RawPoint = Union[PricePoint, Mapping[str, Any]]


def _to_point(raw: RawPoint) -> PricePoint:
    if isinstance(raw, PricePoint):
        return raw
    return PricePoint.model_validate(raw)


def normalize(today: Iterable[RawPoint], tomorrow: Optional[Iterable[RawPoint]] = None) -> PriceTimeline:
    """Build a native-resolution timeline from today's and tomorrow's points.

    Points keep the provider's order: all of today, then tomorrow.
    Tomorrow may be empty or None before the day-ahead prices publish.
    """
    today_points = [_to_point(p) for p in today]
    tomorrow_points = [_to_point(p) for p in (tomorrow or [])]

    return PriceTimeline(
        points=today_points + tomorrow_points,
        interval_minutes=NATIVE_INTERVAL_MINUTES,
        has_tomorrow=bool(tomorrow_points),
    )


def expand_to_sub_intervals(timeline: PriceTimeline, interval_minutes: int) -> PriceTimeline:
    """Split every native hour into equal sub-slots with the same price.

    This is a step function: a 15 minute expansion yields four slots per
    hour, all carrying the hour's price, starting at :00, :15, :30, :45.

    Raises:
        ValueError: if interval_minutes does not evenly divide 60, or the
            timeline is already expanded.
    """
    if interval_minutes <= 0 or NATIVE_INTERVAL_MINUTES % interval_minutes != 0:
        raise ValueError(f"interval_minutes must divide {NATIVE_INTERVAL_MINUTES}, got {interval_minutes}")

    if timeline.interval_minutes != NATIVE_INTERVAL_MINUTES:
        raise ValueError("Timeline is already expanded")

    if interval_minutes == NATIVE_INTERVAL_MINUTES:
        return timeline

    slots_per_hour = NATIVE_INTERVAL_MINUTES // interval_minutes
    step = timedelta(minutes=interval_minutes)

    expanded: List[PricePoint] = []
    for point in timeline.points:
        for q in range(slots_per_hour):
            expanded.append(point.model_copy(update={"starts_at": point.starts_at + q * step}))

    return PriceTimeline(
        points=expanded,
        interval_minutes=interval_minutes,
        has_tomorrow=timeline.has_tomorrow,
    )


def resolve_current(timeline: PriceTimeline, now: datetime) -> Optional[PricePoint]:
    """Find the point whose [starts_at, starts_at + interval) contains now.

    Returns None when now lies outside every known interval, e.g. just
    after midnight before tomorrow's prices are available.
    """
    if now.tzinfo is None:
        raise ValueError("now must be timezone aware")

    length = timedelta(minutes=timeline.interval_minutes)
    for point in timeline.points:
        if point.starts_at <= now < point.starts_at + length:
            return point

    logger.debug(f"No price interval covers {now.isoformat()} ({len(timeline.points)} points)")
    return None
