"""Ordered range tables used by every tiered schedule.

Published survey and due-diligence schedules are irregular, so they are kept
as data: an ascending list of inclusive ``{min, max, fee}`` ranges scanned
linearly. Tables are small (well under twenty rows), which keeps the scan
cheap and the data easy to check against the gazetted schedule.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Iterator, Optional, Sequence, Tuple, Union

from .errors import InvalidRange

Number = Union[Decimal, int, float, str]

# Adjacent tiers may leave at most one unit between ``max`` and the next ``min``
# (schedules are published in whole square metres: 0-700, 701-1500, ...).
_MAX_STEP = Decimal("1")


def _dec(value: Number) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class FeeTier:
    min: Decimal
    max: Optional[Decimal]
    fee: Decimal


class TierTable:
    """Immutable, validated sequence of :class:`FeeTier` rows."""

    __slots__ = ("_tiers",)

    def __init__(self, tiers: Iterable[FeeTier], *, non_decreasing: bool = True):
        rows = tuple(tiers)
        _validate(rows, non_decreasing=non_decreasing)
        self._tiers: Tuple[FeeTier, ...] = rows

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Sequence[Optional[Number]]],
        *,
        non_decreasing: bool = True,
    ) -> "TierTable":
        """Build a table from ``(min, max, fee)`` triples; ``max`` may be ``None``."""

        tiers = []
        for row in rows:
            if len(row) != 3:
                raise InvalidRange(f"tier rows need (min, max, fee), got {row!r}")
            lo, hi, fee = row
            if lo is None or fee is None:
                raise InvalidRange(f"tier min and fee are required, got {row!r}")
            try:
                tier = FeeTier(min=_dec(lo), max=None if hi is None else _dec(hi), fee=_dec(fee))
            except ArithmeticError:
                raise InvalidRange(f"tier values must be numeric, got {row!r}") from None
            if not (tier.min.is_finite() and tier.fee.is_finite() and (tier.max is None or tier.max.is_finite())):
                raise InvalidRange(f"tier values must be numeric, got {row!r}")
            tiers.append(tier)
        return cls(tiers, non_decreasing=non_decreasing)

    def __iter__(self) -> Iterator[FeeTier]:
        return iter(self._tiers)

    def __len__(self) -> int:
        return len(self._tiers)

    def __getitem__(self, index: int) -> FeeTier:
        return self._tiers[index]

    def __repr__(self) -> str:
        return f"TierTable({len(self._tiers)} tiers, max_covered={self.max_covered})"

    @property
    def max_covered(self) -> Optional[Decimal]:
        """Upper bound of the last tier, or ``None`` when it is open-ended."""
        return self._tiers[-1].max

    def find(self, size: Number) -> FeeTier:
        """Return the tier a size falls into.

        A size between one tier's ``max`` and the next tier's ``min`` (e.g.
        700.5 between 0-700 and 701-1500) belongs to the higher tier. Sizes
        beyond a closed table resolve to its last tier; overflow pricing is the
        caller's concern.
        """
        value = _dec(size)
        if value < 0:
            raise InvalidRange(f"size must not be negative, got {value}")
        for tier in self._tiers:
            if tier.max is None or value <= tier.max:
                return tier
        return self._tiers[-1]

    def lookup(self, size: Number) -> Decimal:
        return self.find(size).fee


def _validate(rows: Tuple[FeeTier, ...], *, non_decreasing: bool) -> None:
    if not rows:
        raise InvalidRange("tier table must contain at least one tier")

    previous: Optional[FeeTier] = None
    for index, tier in enumerate(rows):
        if tier.min < 0:
            raise InvalidRange(f"tier {index} starts below zero ({tier.min})")
        if tier.max is not None and tier.min > tier.max:
            raise InvalidRange(f"tier {index} has min {tier.min} > max {tier.max}")
        if tier.fee < 0:
            raise InvalidRange(f"tier {index} has a negative fee ({tier.fee})")
        if previous is not None:
            if previous.max is None:
                raise InvalidRange(f"tier {index} follows an open-ended tier")
            if tier.min <= previous.max:
                raise InvalidRange(
                    f"tier {index} overlaps previous tier ({tier.min} <= {previous.max})"
                )
            if tier.min - previous.max > _MAX_STEP:
                raise InvalidRange(
                    f"gap between tier {index - 1} (max {previous.max}) and tier {index} (min {tier.min})"
                )
            if non_decreasing and tier.fee < previous.fee:
                raise InvalidRange(
                    f"tier {index} fee {tier.fee} is lower than previous fee {previous.fee}"
                )
        previous = tier
