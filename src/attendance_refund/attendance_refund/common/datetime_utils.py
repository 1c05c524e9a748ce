from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def round_half_up(value: Decimal) -> int:
    """Round .5 away from zero for non-negative values (2.5 -> 3, not 2)."""
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """Integer percentage, 0 when whole is 0."""
    if whole <= 0:
        return 0
    return round_half_up(Decimal(part) * 100 / Decimal(whole))
