"""Flat document-processing fees (survey plan, C of O, gazette, layout, chart).

These are the simple per-document charges used by the documentation pages,
independent of the zoned survey schedule. All are taxed at the standard rate.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from .billing import BillingBreakdown, BreakdownBuilder
from .tiers import Number
from .validation import coerce_enum, non_negative_int


class GazetteService(Enum):
    PUBLISH = "publish"
    SEARCH = "search"
    VERIFY = "verify"


SURVEY_PLAN_FEES = {"standard": Decimal("5000"), "express": Decimal("2000")}
CERTIFICATE_OF_OCCUPANCY_FEES = {"standard": Decimal("3000"), "express": Decimal("1500")}
LAYOUT_PROCESSING_FEES = {"standard": Decimal("8000"), "express": Decimal("3000")}

GAZETTE_FEES = {
    GazetteService.PUBLISH: ("Gazette Publication", Decimal("15000")),
    GazetteService.SEARCH: ("Gazette Search", Decimal("2000")),
    GazetteService.VERIFY: ("Gazette Verification", Decimal("5000")),
}
GAZETTE_EXPRESS_FEE = Decimal("1500")

SURVEY_CHART_BASE_FEE = Decimal("1000")
SURVEY_CHART_POINT_FEE = Decimal("100")
SURVEY_CHART_EXPRESS_FEE = Decimal("1000")

LARGE_PROPERTY_THRESHOLD = Decimal("1000")  # m²
LARGE_PROPERTY_FEE = Decimal("2000")
COMMERCIAL_PROPERTY_FEE = Decimal("1500")
MULTIPLE_BUILDINGS_THRESHOLD = 5
FEE_PER_EXTRA_BUILDING = Decimal("500")
COMPLEX_LAYOUT_FEE = Decimal("3000")


def _area(value: Optional[Number]) -> Optional[Decimal]:
    """Optional form input; blank or unparsable means "not given"."""
    if value is None:
        return None
    try:
        area = Decimal(str(value).strip())
    except ArithmeticError:
        return None
    return area if area.is_finite() else None


def _speed(express: bool) -> str:
    return "express" if express else "standard"


def calculate_survey_plan_processing_fee(
    land_area: Optional[Number] = None,
    express: bool = False,
    property_type: Optional[str] = None,
) -> BillingBreakdown:
    builder = BreakdownBuilder()
    speed = _speed(express)
    builder.add_item(f"Survey Plan Processing ({speed.capitalize()})", SURVEY_PLAN_FEES[speed])

    area = _area(land_area)
    if area is not None and area > LARGE_PROPERTY_THRESHOLD:
        builder.add_item("Large Property Processing Fee", LARGE_PROPERTY_FEE)
    if (property_type or "").lower() == "commercial":
        builder.add_item("Commercial Property Fee", COMMERCIAL_PROPERTY_FEE)
    return builder.build()


def calculate_certificate_of_occupancy_fee(
    building_area: Optional[Number] = None,
    zoning: Optional[str] = None,
    express: bool = False,
) -> BillingBreakdown:
    builder = BreakdownBuilder()
    speed = _speed(express)
    builder.add_item(
        f"Certificate of Occupancy Processing ({speed.capitalize()})",
        CERTIFICATE_OF_OCCUPANCY_FEES[speed],
    )

    area = _area(building_area)
    if area is not None and area > LARGE_PROPERTY_THRESHOLD:
        builder.add_item("Large Building Processing Fee", LARGE_PROPERTY_FEE)
    if (zoning or "").lower() in {"commercial", "mixed"}:
        builder.add_item("Commercial Zoning Fee", COMMERCIAL_PROPERTY_FEE)
    return builder.build()


def calculate_gazette_fee(
    service: Union[GazetteService, str],
    express: bool = False,
) -> BillingBreakdown:
    gazette_service = coerce_enum(GazetteService, service, "service")
    name, fee = GAZETTE_FEES[gazette_service]

    builder = BreakdownBuilder()
    builder.add_item(name, fee)
    if express:
        builder.add_item("Express Processing Fee", GAZETTE_EXPRESS_FEE)
    return builder.build()


def calculate_layout_processing_fee(
    total_area: Optional[Number] = None,
    building_count: Optional[int] = None,
    layout_type: Optional[str] = None,
    express: bool = False,
) -> BillingBreakdown:
    builder = BreakdownBuilder()
    speed = _speed(express)
    builder.add_item(f"Layout Survey Processing ({speed.capitalize()})", LAYOUT_PROCESSING_FEES[speed])

    # Layouts use twice the large-property threshold and fee.
    area = _area(total_area)
    if area is not None and area > LARGE_PROPERTY_THRESHOLD * 2:
        builder.add_item("Large Area Processing Fee", LARGE_PROPERTY_FEE * 2)

    if building_count is not None:
        extra = non_negative_int("building_count", building_count) - MULTIPLE_BUILDINGS_THRESHOLD
        if extra > 0:
            builder.add_item(
                f"Additional Buildings Fee ({extra} buildings)",
                extra * FEE_PER_EXTRA_BUILDING,
                quantity=extra,
                unit_price=FEE_PER_EXTRA_BUILDING,
            )

    if (layout_type or "").lower() in {"mixed-use", "industrial"}:
        builder.add_item("Complex Layout Processing Fee", COMPLEX_LAYOUT_FEE)
    return builder.build()


def calculate_survey_chart_fee(point_count: int, express: bool = False) -> BillingBreakdown:
    points = non_negative_int("point_count", point_count)

    builder = BreakdownBuilder()
    builder.add_item("Survey Chart Base Fee", SURVEY_CHART_BASE_FEE)
    if points > 0:
        builder.add_item(
            f"Survey Points ({points} points)",
            points * SURVEY_CHART_POINT_FEE,
            quantity=points,
            unit_price=SURVEY_CHART_POINT_FEE,
        )
    if express:
        builder.add_item("Express Processing Fee", SURVEY_CHART_EXPRESS_FEE)
    return builder.build()
