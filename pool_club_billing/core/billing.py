"""
Session billing calculations.

Converts the elapsed wall-clock time of a table session into a charge under
the tiered hourly/per-minute rate policy.
"""

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .rates import DEFAULT_RATE_POLICY, MINUTES_PER_HOUR, RatePolicy

logger = logging.getLogger(__name__)

_CENT = Decimal("0.01")


@dataclass(frozen=True)
class TimeInterval:
    """Start and end of a table session. Either side may be unknown."""
    start: Optional[datetime]
    end: Optional[datetime]


@dataclass(frozen=True)
class BillBreakdown:
    """Immutable bill for a single ended session."""
    initial_charge: float
    additional_charge: float
    total_bill: float
    total_minutes: int
    additional_minutes: int

    @classmethod
    def zero(cls) -> "BillBreakdown":
        """Breakdown for a session with nothing to charge."""
        return cls(
            initial_charge=0.0,
            additional_charge=0.0,
            total_bill=0.0,
            total_minutes=0,
            additional_minutes=0
        )


def truncate_to_minute(timestamp: datetime) -> datetime:
    """Drop the seconds and microseconds of a timestamp.

    Timezone info is preserved, only sub-minute fields are zeroed.
    """
    return timestamp.replace(second=0, microsecond=0)


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two timestamps after minute truncation.

    Two timestamps inside the same calendar minute are 0 minutes apart no
    matter how many seconds separate them. Inverted intervals are negative.

    Args:
        start: Session start
        end: Session end

    Returns:
        Elapsed minutes, rounded up
    """
    delta = truncate_to_minute(end) - truncate_to_minute(start)
    return math.ceil(delta.total_seconds() / 60)


def compute_bill(
    start: Optional[datetime],
    end: Optional[datetime],
    rate: RatePolicy = DEFAULT_RATE_POLICY
) -> BillBreakdown:
    """Compute the bill for a session.

    Pricing tiers:
    1. Up to the grace threshold (63 minutes by default) - one hourly block
    2. Longer - full hours at the hourly rate, remainder at the per-minute rate

    The total is rounded half-up to 2 decimal places. Missing timestamps and
    zero or negative durations produce the zero breakdown rather than an error.

    Args:
        start: Session start, or None if unknown
        end: Session end, or None if unknown
        rate: Rate policy to bill with

    Returns:
        BillBreakdown for the session
    """
    if start is None or end is None:
        return BillBreakdown.zero()

    duration = elapsed_minutes(start, end)
    if duration <= 0:
        return BillBreakdown.zero()

    if duration <= rate.grace_threshold_minutes:
        total = rate.hourly_rate
        additional_minutes = 0
    else:
        full_hours, additional_minutes = divmod(duration, MINUTES_PER_HOUR)
        total = full_hours * rate.hourly_rate
        total += additional_minutes * rate.per_minute_rate

    total = total.quantize(_CENT, rounding=ROUND_HALF_UP)
    additional = max(Decimal("0"), total - rate.hourly_rate)

    breakdown = BillBreakdown(
        initial_charge=float(rate.hourly_rate),
        additional_charge=float(additional),
        total_bill=float(total),
        total_minutes=duration,
        additional_minutes=additional_minutes
    )
    logger.debug(
        "Billed %d minutes (%d additional) at %s/hour: %.2f",
        duration, additional_minutes, rate.hourly_rate, breakdown.total_bill
    )
    return breakdown


def compute_interval_bill(
    interval: TimeInterval,
    rate: RatePolicy = DEFAULT_RATE_POLICY
) -> BillBreakdown:
    """Compute the bill for a TimeInterval."""
    return compute_bill(interval.start, interval.end, rate)
