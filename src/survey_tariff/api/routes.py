# src/survey_tariff/api/routes.py
"""
Quote endpoints for the survey, due-diligence and document-processing tariffs.

Notes:
- Amounts are returned as decimal strings.
- MissingParameter -> 422, UnknownZone -> 404, ServiceUnavailable -> 501.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Path, Query
from pydantic import BaseModel, Field

from ..rules.billing import BillingBreakdown
from ..rules.due_diligence import ClientType, calculate_due_diligence_fee
from ..rules.errors import MissingParameter, ServiceUnavailable, TariffError, UnknownZone
from ..rules.processing_fees import (
    GazetteService,
    calculate_certificate_of_occupancy_fee,
    calculate_gazette_fee,
    calculate_layout_processing_fee,
    calculate_survey_chart_fee,
    calculate_survey_plan_processing_fee,
)
from ..rules.survey_fee import (
    ServiceSubKind,
    SurveyKind,
    TitleType,
    calculate_survey_fee,
    survey_request,
)
from ..rules.zones import list_zones, resolve_zone

logger = logging.getLogger("survey-tariff-api")

router = APIRouter(prefix="/api/v1", tags=["Tariffs"])

# ============ Pydantic Models ============

class SurveyQuoteIn(BaseModel):
    zone: str = Field(..., examples=["A"])
    plot_size: Decimal = Field(..., description="Plot size in square metres", examples=[500])
    survey_kind: SurveyKind = Field(..., examples=["standard"])
    sub_kind: Optional[ServiceSubKind] = Field(
        None, description="Only used by layout and survey-plan requests", examples=["fresh-survey"]
    )
    title_type: TitleType = Field(TitleType.PRIVATE, examples=["private"])
    unit_count: Optional[int] = Field(
        None, description="Strata units, or number of plots for layout surveys", examples=[4]
    )
    missing_marker_count: Optional[int] = Field(None, examples=[2])
    total_marker_count: Optional[int] = Field(None, examples=[8])


class DueDiligenceQuoteIn(BaseModel):
    land_area: Decimal = Field(..., description="Land area in square metres", examples=[1200])
    client_type: ClientType = Field(..., examples=["individual"])


class ProcessingQuoteIn(BaseModel):
    express: bool = False
    land_area: Optional[Decimal] = Field(None, description="Survey plan: land area (m²)")
    property_type: Optional[str] = Field(None, examples=["commercial"])
    building_area: Optional[Decimal] = Field(None, description="C of O: building area (m²)")
    zoning: Optional[str] = Field(None, examples=["mixed"])
    gazette_service: Optional[GazetteService] = Field(None, examples=["search"])
    total_area: Optional[Decimal] = Field(None, description="Layout: total area (m²)")
    building_count: Optional[int] = Field(None, ge=0)
    layout_type: Optional[str] = Field(None, examples=["mixed-use"])
    point_count: Optional[int] = Field(None, ge=0, description="Survey chart: number of points")


class ZoneMatch(BaseModel):
    area: str
    zone: Optional[str] = None


# ============ Helpers ============

def _quote(fn, *args, **kwargs) -> Dict[str, Any]:
    """Run a calculator and translate tariff errors to HTTP errors."""
    try:
        breakdown: BillingBreakdown = fn(*args, **kwargs)
    except MissingParameter as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except UnknownZone as exc:
        logger.warning("Quote requested for unknown zone %r", exc.zone)
        raise HTTPException(status_code=404, detail=str(exc))
    except ServiceUnavailable as exc:
        raise HTTPException(status_code=501, detail=str(exc))
    except TariffError as exc:
        logger.exception("Tariff schedule error")
        raise HTTPException(status_code=500, detail=str(exc))
    return breakdown.to_dict()


# ============ Zones ============

@router.get("/zones")
def get_zones() -> List[Dict[str, Any]]:
    return list_zones()


@router.get("/zones/resolve", response_model=ZoneMatch)
def get_zone_for_area(area: str = Query(..., min_length=2, description="LGA or corridor name")) -> ZoneMatch:
    return ZoneMatch(area=area, zone=resolve_zone(area))


# ============ Quotes ============

@router.post("/quotes/survey")
def quote_survey(body: SurveyQuoteIn) -> Dict[str, Any]:
    """Itemized survey fee for the zoned land-survey schedule."""

    def _run() -> BillingBreakdown:
        request = survey_request(
            body.survey_kind,
            zone=body.zone,
            plot_size=body.plot_size,
            title_type=body.title_type,
            sub_kind=body.sub_kind,
            unit_count=body.unit_count,
            missing_marker_count=body.missing_marker_count,
            total_marker_count=body.total_marker_count,
        )
        return calculate_survey_fee(request)

    return _quote(_run)


@router.post("/quotes/due-diligence")
def quote_due_diligence(body: DueDiligenceQuoteIn) -> Dict[str, Any]:
    return _quote(calculate_due_diligence_fee, body.land_area, body.client_type)


@router.post("/quotes/processing/{service}")
def quote_processing(
    body: ProcessingQuoteIn,
    service: str = Path(..., description="survey-plan | certificate-of-occupancy | gazette | layout | survey-chart"),
) -> Dict[str, Any]:
    if service == "survey-plan":
        return _quote(
            calculate_survey_plan_processing_fee, body.land_area, body.express, body.property_type
        )
    if service == "certificate-of-occupancy":
        return _quote(
            calculate_certificate_of_occupancy_fee, body.building_area, body.zoning, body.express
        )
    if service == "gazette":
        if body.gazette_service is None:
            raise HTTPException(status_code=422, detail="gazette_service is required")
        return _quote(calculate_gazette_fee, body.gazette_service, body.express)
    if service == "layout":
        return _quote(
            calculate_layout_processing_fee,
            body.total_area,
            body.building_count,
            body.layout_type,
            body.express,
        )
    if service == "survey-chart":
        return _quote(calculate_survey_chart_fee, body.point_count or 0, body.express)
    raise HTTPException(status_code=404, detail=f"Unknown processing service '{service}'")
