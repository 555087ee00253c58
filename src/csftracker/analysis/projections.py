"""
Forward-looking projection series for the dashboard.

These are illustrative projections, not history: each series is a fixed
decay formula applied to the current counts. Month labels start at the
current month and wrap around the year.

Gap Closure (month index i):
    closed    = min(total, round(total x i x closure_rate))
    remaining = total - closed
    target    = max(0, total - round(total x i x target_rate))

Risk Burn-Down (month index i):
    factor = max(0, 1 - i x reduction)
    high/medium/low/total = round(count x factor)
    target = round(total x max(0, 1 - i x target_reduction))

All rounding is half-up.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from csftracker.analysis.aggregator import round_half_up

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

DEFAULT_CLOSURE_RATE = 0.15
DEFAULT_TARGET_RATE = 0.2
DEFAULT_GAP_HORIZON = 8
DEFAULT_BURN_DOWN_RATE = 0.08
DEFAULT_BURN_DOWN_TARGET_RATE = 0.1
DEFAULT_BURN_DOWN_HORIZON = 12


@dataclass
class ProjectionPoint:
    """One month of the gap closure projection."""

    month: str
    remaining: int
    closed: int
    target: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "month": self.month,
            "remaining": self.remaining,
            "closed": self.closed,
            "target": self.target,
        }


@dataclass
class BurnDownPoint:
    """One month of the risk burn-down projection."""

    month: str
    high: int
    medium: int
    low: int
    total: int
    target: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "month": self.month,
            "high": self.high,
            "medium": self.medium,
            "low": self.low,
            "total": self.total,
            "target": self.target,
        }


def month_labels(months: int, start: date | None = None) -> list[str]:
    """
    Three-letter month names starting at `start`, wrapping the year.

    Args:
        months: Number of labels.
        start: First month. Defaults to the current UTC month.
    """
    if start is None:
        start = datetime.now(UTC).date()
    first = start.month - 1
    return [MONTH_NAMES[(first + i) % 12] for i in range(months)]


def _check(months: int, **rates: float) -> None:
    if months < 1:
        raise ValueError(f"months must be at least 1, got {months}")
    for name, rate in rates.items():
        if not 0 <= rate <= 1:
            raise ValueError(f"{name} must be between 0 and 1, got {rate}")


def gap_closure_projection(
    total_gaps: int,
    closure_rate: float = DEFAULT_CLOSURE_RATE,
    months: int = DEFAULT_GAP_HORIZON,
    target_rate: float = DEFAULT_TARGET_RATE,
    start: date | None = None,
) -> list[ProjectionPoint]:
    """
    Project how the open gaps close month by month.

    Args:
        total_gaps: Non-compliant controls today.
        closure_rate: Fraction of the gaps closed per month.
        months: Number of months projected.
        target_rate: Fraction of the gaps the target closes per month.
        start: First projected month. Defaults to the current month.

    Returns:
        One ProjectionPoint per month, the first being today's state.

    Raises:
        ValueError: If months < 1, a rate is outside [0, 1] or
            total_gaps is negative.
    """
    _check(months, closure_rate=closure_rate, target_rate=target_rate)
    if total_gaps < 0:
        raise ValueError(f"total_gaps must not be negative, got {total_gaps}")

    points = []
    for i, month in enumerate(month_labels(months, start)):
        closed = min(total_gaps, round_half_up(total_gaps * (i * closure_rate)))
        points.append(
            ProjectionPoint(
                month=month,
                remaining=max(0, total_gaps - closed),
                closed=closed,
                target=max(0, total_gaps - round_half_up(total_gaps * (i * target_rate))),
            )
        )
    return points


def risk_burn_down(
    high: int,
    medium: int,
    low: int,
    months: int = DEFAULT_BURN_DOWN_HORIZON,
    reduction: float = DEFAULT_BURN_DOWN_RATE,
    target_reduction: float = DEFAULT_BURN_DOWN_TARGET_RATE,
    start: date | None = None,
) -> list[BurnDownPoint]:
    """
    Project how open risks decline month by month, per priority.

    Args:
        high: Non-compliant High priority controls today.
        medium: Non-compliant Medium priority controls today.
        low: Non-compliant Low priority controls today.
        months: Number of months projected.
        reduction: Fraction of today's risks removed per month.
        target_reduction: Fraction the target removes per month.
        start: First projected month. Defaults to the current month.

    Returns:
        One BurnDownPoint per month.

    Raises:
        ValueError: If months < 1 or a rate is outside [0, 1].
    """
    _check(months, reduction=reduction, target_reduction=target_reduction)

    total = high + medium + low
    points = []
    for i, month in enumerate(month_labels(months, start)):
        factor = max(0.0, 1 - i * reduction)
        points.append(
            BurnDownPoint(
                month=month,
                high=round_half_up(high * factor),
                medium=round_half_up(medium * factor),
                low=round_half_up(low * factor),
                total=round_half_up(total * factor),
                target=round_half_up(total * max(0.0, 1 - i * target_reduction)),
            )
        )
    return points
