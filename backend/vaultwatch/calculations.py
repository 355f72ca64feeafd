"""Numeric coercion and return-on-investment calculations.

These pure functions sit between the untrusted upstream JSON and every
figure the service publishes, so none of them raise.
"""

import math
from typing import Any


def to_number(value: Any) -> float:
    """Coerce an untrusted JSON value to a finite float, 0.0 when it is not one."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return float(value)

    try:
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            text = value.strip()
            # float() reads "1_000" as 1000; upstream numbers never use separators
            if not text or "_" in text:
                return 0.0
            number = float(text)
        else:
            return 0.0
    except (ValueError, OverflowError):
        return 0.0

    return number if math.isfinite(number) else 0.0


def to_days(value: Any) -> int:
    """Whole days, floored and clamped at zero."""
    return max(0, math.floor(to_number(value)))


def calculate_roi_pct(equity: float, pnl: float, gain: float | None = None) -> float:
    """Calculate ROI percent on the initial capital (equity - pnl).

    `gain` defaults to `pnl`; pass a different figure (e.g. all-time PnL) to
    measure it against the same capital base. Returns 0.0 when the initial
    capital is zero or negative.
    """
    initial = equity - pnl
    if initial <= 0:
        return 0.0

    numerator = pnl if gain is None else gain
    return (numerator / initial) * 100
