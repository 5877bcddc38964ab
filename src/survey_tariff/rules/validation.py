"""Field checks shared by the request types."""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional, Type, TypeVar, Union

from .errors import MissingParameter
from .tiers import Number

E = TypeVar("E", bound=Enum)


def coerce_enum(enum_cls: Type[E], value: Union[E, str], field_name: str) -> E:
    """Accept an enum member or its (case-insensitive) value."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        raise MissingParameter(field_name, f"has unsupported value {value!r}") from None


def positive_decimal(field_name: str, value: Optional[Number]) -> Decimal:
    if value is None or isinstance(value, bool):
        raise MissingParameter(field_name)
    try:
        dec = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except ArithmeticError:
        raise MissingParameter(field_name, f"must be a number, got {value!r}") from None
    if not dec.is_finite() or dec <= 0:
        raise MissingParameter(field_name)
    return dec


def _whole_number(field_name: str, value: Optional[Union[int, str, Decimal]]) -> int:
    if value is None or isinstance(value, bool):
        raise MissingParameter(field_name)
    try:
        count = int(value)
    except (TypeError, ValueError, OverflowError):
        raise MissingParameter(field_name, f"must be a whole number, got {value!r}") from None
    if isinstance(value, (float, Decimal)) and value != count:
        raise MissingParameter(field_name, f"must be a whole number, got {value!r}")
    return count


def positive_int(field_name: str, value: Optional[Union[int, str, Decimal]]) -> int:
    count = _whole_number(field_name, value)
    if count <= 0:
        raise MissingParameter(field_name)
    return count


def non_negative_int(field_name: str, value: Optional[Union[int, str, Decimal]]) -> int:
    count = _whole_number(field_name, value)
    if count < 0:
        raise MissingParameter(field_name, "must be zero or more")
    return count
