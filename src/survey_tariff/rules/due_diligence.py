"""Due-diligence (land information + charting information) fees."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Mapping, Optional, Union

from ..settings import settings
from .billing import BillingBreakdown, BreakdownBuilder, _whole
from .errors import MissingParameter
from .schedule_loader import TariffSchedule, load_schedule
from .validation import coerce_enum, positive_decimal
from .tiers import Number, TierTable

logger = logging.getLogger(__name__)

# 10% service charge + 23% affiliate charge
DUE_DILIGENCE_MARKUP = Decimal("1.33")


class ClientType(Enum):
    INDIVIDUAL = "individual"
    CORPORATE = "corporate"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class DueDiligenceRequest:
    land_area: Decimal  # square metres
    client_type: ClientType

    def __post_init__(self) -> None:
        object.__setattr__(self, "land_area", positive_decimal("land_area", self.land_area))
        if self.client_type is None:
            raise MissingParameter("client_type", "is required")
        object.__setattr__(self, "client_type", coerce_enum(ClientType, self.client_type, "client_type"))


class DueDiligenceCalculator:
    """Looks up both due-diligence tables and applies the composite markup."""

    def __init__(self, schedule: Optional[TariffSchedule] = None, *, currency: Optional[str] = None):
        schedule = schedule if schedule is not None else load_schedule()
        self.land_information: Mapping[str, TierTable] = schedule.due_diligence["land_information"]
        self.charting_information: Mapping[str, TierTable] = schedule.due_diligence["charting_information"]
        self.currency = currency or settings.currency

    def calculate(self, request: DueDiligenceRequest) -> BillingBreakdown:
        client = request.client_type
        land_fee = self.land_information[client.value].lookup(request.land_area)
        charting_fee = self.charting_information[client.value].lookup(request.land_area)

        # Each fee is marked up and rounded on its own before summing.
        builder = BreakdownBuilder(currency=self.currency)
        builder.add_item(
            f"Land Information Fee ({client.label})",
            _whole(land_fee * DUE_DILIGENCE_MARKUP),
        )
        builder.add_item(
            f"Charting Information Fee ({client.label})",
            _whole(charting_fee * DUE_DILIGENCE_MARKUP),
        )
        breakdown = builder.build()
        logger.debug(
            "Due diligence fee area=%s client=%s total=%s",
            request.land_area,
            client.value,
            breakdown.total,
        )
        return breakdown


def calculate_due_diligence_fee(
    land_area: Number,
    client_type: Union[ClientType, str],
    schedule: Optional[TariffSchedule] = None,
) -> BillingBreakdown:
    request = DueDiligenceRequest(land_area=land_area, client_type=client_type)
    return DueDiligenceCalculator(schedule).calculate(request)
