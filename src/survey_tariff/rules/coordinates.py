"""Coordinates-picking fee."""
from __future__ import annotations

import math
from decimal import Decimal

from .tiers import Number

COORDINATES_PICKING_RATE = Decimal("0.094")
# Always rounded *up* to the next multiple of this amount.
COORDINATES_PICKING_STEP = Decimal("10000")


def coordinates_picking_fee(base_fee: Number) -> Decimal:
    """9.4% of the minimum survey fee, rounded up to the nearest 10,000."""

    fee = Decimal(str(base_fee)) if not isinstance(base_fee, Decimal) else base_fee
    if fee <= 0:
        return Decimal("0")
    steps = math.ceil(fee * COORDINATES_PICKING_RATE / COORDINATES_PICKING_STEP)
    return Decimal(steps) * COORDINATES_PICKING_STEP
