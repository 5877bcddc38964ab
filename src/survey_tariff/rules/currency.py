"""Display formatting for money amounts (Naira by default)."""
from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

Amount = Union[Decimal, int, float, str]

CURRENCY_SYMBOLS = {
    "NGN": "₦",
    "USD": "$",
    "GBP": "£",
    "EUR": "€",
}

# (threshold, suffix) from largest to smallest, like "₦1.2M"
_COMPACT_STEPS = (
    (Decimal("1000000000000"), "T"),
    (Decimal("1000000000"), "B"),
    (Decimal("1000000"), "M"),
    (Decimal("1000"), "K"),
)

_STRIP = re.compile(r"[₦$£€,\s]")


def _to_decimal(amount: Amount) -> Decimal:
    if isinstance(amount, Decimal):
        value = amount
    else:
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation:
            return Decimal("0")
    return value if value.is_finite() else Decimal("0")


def _prefix(currency: str) -> str:
    code = (currency or "").upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    return symbol if symbol is not None else f"{code} "


def format_number(amount: Amount, fraction_digits: int = 0) -> str:
    """Group thousands with commas, e.g. ``1575000`` -> ``"1,575,000"``."""

    value = _to_decimal(amount)
    quantum = Decimal(1).scaleb(-fraction_digits)
    rounded = value.quantize(quantum, rounding=ROUND_HALF_UP)
    return f"{rounded:,.{fraction_digits}f}"


def format_currency(amount: Amount, currency: str = "NGN", fraction_digits: int = 0) -> str:
    """``format_currency(1575000)`` -> ``"₦1,575,000"``; negatives -> ``"-₦500"``."""

    value = _to_decimal(amount)
    text = format_number(abs(value), fraction_digits)
    sign = "-" if value < 0 and text.strip("0.,") else ""
    return f"{sign}{_prefix(currency)}{text}"


def _compact_scale(magnitude: Decimal, threshold: Decimal) -> Decimal:
    return (magnitude / threshold).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)


def format_compact_currency(amount: Amount, currency: str = "NGN") -> str:
    """Short form for cards and summaries: ``₦1.2M``, ``₦500K``, ``₦950``."""

    value = _to_decimal(amount)
    magnitude = abs(value)
    sign = "-" if value < 0 else ""
    whole = magnitude.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    for index, (threshold, suffix) in enumerate(_COMPACT_STEPS):
        if whole < threshold:
            continue
        scaled = _compact_scale(magnitude, threshold)
        # 999,950 rounds to 1000.0K; show it as 1M instead.
        if scaled >= 1000 and index > 0:
            threshold, suffix = _COMPACT_STEPS[index - 1]
            scaled = _compact_scale(magnitude, threshold)
        digits = f"{scaled:f}".rstrip("0").rstrip(".")
        return f"{sign}{_prefix(currency)}{digits}{suffix}"
    return f"{sign}{_prefix(currency)}{format_number(magnitude)}"


def parse_currency(text: str) -> Decimal:
    """Inverse of :func:`format_currency`; anything unparsable is ``0``."""

    cleaned = _STRIP.sub("", text or "")
    if cleaned.upper().startswith(("NGN", "USD", "GBP", "EUR")):
        cleaned = cleaned[3:]
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return Decimal("0")
    return value if value.is_finite() else Decimal("0")
