"""
Rate policy for table rentals.

Holds the hourly rate and the grace window used by the billing calculator.
"""

from dataclasses import dataclass
from decimal import Decimal

DEFAULT_HOURLY_RATE = Decimal("950")
DEFAULT_GRACE_THRESHOLD_MINUTES = 63
MINUTES_PER_HOUR = 60
# below this a short session would bill less than one hourly block
MIN_GRACE_THRESHOLD_MINUTES = MINUTES_PER_HOUR - 1


@dataclass(frozen=True)
class RatePolicy:
    """Hourly pricing for a pool table.

    Sessions up to ``grace_threshold_minutes`` long are billed as a single
    hourly block. Longer sessions are billed per full hour plus a per-minute
    rate for the remainder.
    """
    hourly_rate: Decimal = DEFAULT_HOURLY_RATE
    grace_threshold_minutes: int = DEFAULT_GRACE_THRESHOLD_MINUTES

    def __post_init__(self):
        """Normalize the rate to Decimal and validate values."""
        # via str() so 950.5 becomes Decimal("950.5"), not its binary expansion
        object.__setattr__(self, "hourly_rate", Decimal(str(self.hourly_rate)))
        if self.hourly_rate <= 0:
            raise ValueError("hourly_rate must be > 0")
        if self.grace_threshold_minutes < MIN_GRACE_THRESHOLD_MINUTES:
            raise ValueError(
                f"grace_threshold_minutes must be >= {MIN_GRACE_THRESHOLD_MINUTES}"
            )

    @property
    def per_minute_rate(self) -> Decimal:
        """Charge for a single minute beyond the last full hour."""
        return self.hourly_rate / MINUTES_PER_HOUR


DEFAULT_RATE_POLICY = RatePolicy()
