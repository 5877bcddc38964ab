"""Billing line items, breakdowns and the shared tax step."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional, Tuple, Union

from ..settings import settings
from .errors import InvalidRange

# 13% VAT
TAX_RATE = Decimal("0.13")

_CENT = Decimal("0.01")
_WHOLE = Decimal("1")


def _money(x: Union[Decimal, int, float, str]) -> Decimal:
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    return x.quantize(_CENT, rounding=ROUND_HALF_UP)


def _whole(x: Union[Decimal, int, float, str]) -> Decimal:
    """Round half-up to whole currency units."""
    if not isinstance(x, Decimal):
        x = Decimal(str(x))
    return x.quantize(_WHOLE, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BillingItem:
    description: str
    amount: Decimal
    quantity: Optional[int] = None
    unit_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if self.quantity is not None and self.unit_price is not None:
            expected = _money(Decimal(self.quantity) * self.unit_price)
            if _money(self.amount) != expected:
                raise InvalidRange(
                    f"{self.description!r}: amount {self.amount} != {self.quantity} x {self.unit_price}"
                )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"description": self.description, "amount": str(self.amount)}
        if self.quantity is not None:
            payload["quantity"] = self.quantity
        if self.unit_price is not None:
            payload["unit_price"] = str(self.unit_price)
        return payload


@dataclass(frozen=True)
class BillingBreakdown:
    """Itemized result of a calculation.

    ``internal_charges`` are part of ``subtotal`` but are not shown to the
    customer as line items (back-office service charge, survey markup).
    """

    items: Tuple[BillingItem, ...]
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    taxable: bool = True
    internal_charges: Tuple[BillingItem, ...] = ()

    @property
    def items_total(self) -> Decimal:
        return sum((i.amount for i in self.items), Decimal("0"))

    @property
    def internal_total(self) -> Decimal:
        return sum((i.amount for i in self.internal_charges), Decimal("0"))

    def to_dict(self, *, include_internal: bool = False) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "items": [i.to_dict() for i in self.items],
            "subtotal": str(self.subtotal),
            "tax": str(self.tax),
            "total": str(self.total),
            "currency": self.currency,
            "taxable": self.taxable,
        }
        if include_internal:
            payload["internal_charges"] = [i.to_dict() for i in self.internal_charges]
        return payload


@dataclass
class BreakdownBuilder:
    """Accumulates items and hidden charges, then applies the tax step once."""

    currency: str = field(default_factory=lambda: settings.currency)
    items: List[BillingItem] = field(default_factory=list)
    internal_charges: List[BillingItem] = field(default_factory=list)
    subtotal: Decimal = Decimal("0")

    def add_item(
        self,
        description: str,
        amount: Decimal,
        *,
        quantity: Optional[int] = None,
        unit_price: Optional[Decimal] = None,
    ) -> BillingItem:
        item = BillingItem(description, amount, quantity, unit_price)
        self.items.append(item)
        self.subtotal += item.amount
        return item

    def add_internal(self, description: str, amount: Decimal) -> BillingItem:
        item = BillingItem(description, amount)
        self.internal_charges.append(item)
        self.subtotal += item.amount
        return item

    def build(self, *, taxable: bool = True) -> BillingBreakdown:
        subtotal = self.subtotal
        tax = _whole(subtotal * TAX_RATE) if taxable else Decimal("0")
        return BillingBreakdown(
            items=tuple(self.items),
            subtotal=subtotal,
            tax=tax,
            total=subtotal + tax,
            currency=self.currency,
            taxable=taxable,
            internal_charges=tuple(self.internal_charges),
        )
