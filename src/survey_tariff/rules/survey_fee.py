"""Survey fee calculation from the zoned land-survey schedule.

Requests are modelled as one dataclass per survey kind, each carrying exactly
the fields that kind is priced on. :func:`survey_request` builds the right
variant from flat form data (the shape the booking forms submit).

Order of operations in :meth:`SurveyFeeCalculator.calculate`:

  1. zone lookup and schedule fee for the plot size;
  2. per-hectare overflow beyond the schedule's largest tier;
  3. back-office service charge (not shown as a line item);
  4. 2x multiplier for commercial / industrial titles;
  5. kind-specific formula;
  6. 29% survey markup on the schedule fee for requests without a service
     sub-kind (not shown as a line item);
  7. 13% tax, except for survey plans which are billed without tax.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Callable, ClassVar, Dict, Optional, Type, Union

from ..settings import settings
from .billing import BillingBreakdown, BreakdownBuilder, _money, _whole
from .coordinates import coordinates_picking_fee
from .currency import format_currency
from .errors import MissingParameter, ServiceUnavailable
from .tiers import Number, TierTable
from .validation import coerce_enum, positive_decimal, positive_int
from .zones import Zone, ZoneRegistry, default_registry

logger = logging.getLogger(__name__)


class SurveyKind(Enum):
    STANDARD = "standard"
    STRATA = "strata"
    LAYOUT = "layout"
    PLAN_FILING = "survey-plan"
    DETAILS = "details"
    AS_BUILT = "as-built"
    RE_ESTABLISHMENT = "re-establishment"
    CERTIFICATE_OF_OCCUPANCY = "certificate-occupancy"
    GAZETTE = "gazette"

    @property
    def taxable(self) -> bool:
        return self is not SurveyKind.PLAN_FILING


class ServiceSubKind(Enum):
    FRESH_SURVEY = "fresh-survey"
    EXISTING_COORDINATES = "existing-coordinates"
    DIRECT_VERIFICATION = "direct-verification"
    RETAKING_POINTS = "retaking-points"


class TitleType(Enum):
    PRIVATE = "private"
    COMMERCIAL = "commercial"
    INDUSTRIAL = "industrial"


# ---------- Request variants ----------

@dataclass(frozen=True, kw_only=True)
class SurveyRequest:
    """Fields shared by every survey kind."""

    kind: ClassVar[SurveyKind]

    zone: str
    plot_size: Decimal  # square metres
    title_type: TitleType = TitleType.PRIVATE

    def __post_init__(self) -> None:
        object.__setattr__(self, "zone", (self.zone or "").strip().upper())
        object.__setattr__(self, "plot_size", positive_decimal("plot_size", self.plot_size))
        object.__setattr__(self, "title_type", coerce_enum(TitleType, self.title_type, "title_type"))

    def service_sub_kind(self) -> Optional[ServiceSubKind]:
        return None


@dataclass(frozen=True, kw_only=True)
class StandardSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.STANDARD


@dataclass(frozen=True, kw_only=True)
class StrataSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.STRATA

    unit_count: int

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "unit_count", positive_int("unit_count", self.unit_count))


@dataclass(frozen=True, kw_only=True)
class LayoutSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.LAYOUT

    plot_count: int
    sub_kind: Optional[ServiceSubKind] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "plot_count", positive_int("plot_count", self.plot_count))
        if self.sub_kind is not None:
            object.__setattr__(self, "sub_kind", coerce_enum(ServiceSubKind, self.sub_kind, "sub_kind"))

    def service_sub_kind(self) -> Optional[ServiceSubKind]:
        return self.sub_kind


@dataclass(frozen=True, kw_only=True)
class PlanFilingSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.PLAN_FILING

    sub_kind: Optional[ServiceSubKind] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.sub_kind is not None:
            object.__setattr__(self, "sub_kind", coerce_enum(ServiceSubKind, self.sub_kind, "sub_kind"))

    def service_sub_kind(self) -> Optional[ServiceSubKind]:
        return self.sub_kind


@dataclass(frozen=True, kw_only=True)
class DetailsSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.DETAILS


@dataclass(frozen=True, kw_only=True)
class AsBuiltSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.AS_BUILT


@dataclass(frozen=True, kw_only=True)
class ReEstablishmentSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.RE_ESTABLISHMENT

    missing_marker_count: int
    total_marker_count: int

    def __post_init__(self) -> None:
        super().__post_init__()
        missing = positive_int("missing_marker_count", self.missing_marker_count)
        total = positive_int("total_marker_count", self.total_marker_count)
        if missing > total:
            raise MissingParameter(
                "missing_marker_count", f"({missing}) cannot exceed total_marker_count ({total})"
            )
        object.__setattr__(self, "missing_marker_count", missing)
        object.__setattr__(self, "total_marker_count", total)


@dataclass(frozen=True, kw_only=True)
class CertificateOfOccupancySurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.CERTIFICATE_OF_OCCUPANCY


@dataclass(frozen=True, kw_only=True)
class GazetteSurvey(SurveyRequest):
    kind: ClassVar[SurveyKind] = SurveyKind.GAZETTE


SurveyFeeRequest = Union[
    StandardSurvey,
    StrataSurvey,
    LayoutSurvey,
    PlanFilingSurvey,
    DetailsSurvey,
    AsBuiltSurvey,
    ReEstablishmentSurvey,
    CertificateOfOccupancySurvey,
    GazetteSurvey,
]

REQUEST_TYPES: Dict[SurveyKind, Type[SurveyRequest]] = {
    cls.kind: cls
    for cls in (
        StandardSurvey,
        StrataSurvey,
        LayoutSurvey,
        PlanFilingSurvey,
        DetailsSurvey,
        AsBuiltSurvey,
        ReEstablishmentSurvey,
        CertificateOfOccupancySurvey,
        GazetteSurvey,
    )
}


def survey_request(
    kind: Union[SurveyKind, str],
    *,
    zone: str,
    plot_size: Optional[Number],
    title_type: Union[TitleType, str, None] = None,
    sub_kind: Union[ServiceSubKind, str, None] = None,
    unit_count: Optional[int] = None,
    missing_marker_count: Optional[int] = None,
    total_marker_count: Optional[int] = None,
) -> SurveyRequest:
    """Build the request variant for ``kind`` from flat form fields.

    ``unit_count`` is the number of strata units for strata surveys and the
    number of plots for layout surveys. Fields the kind is not priced on are
    dropped.
    """
    survey_kind = coerce_enum(SurveyKind, kind, "survey_kind")
    fields: Dict[str, object] = {"zone": zone, "plot_size": plot_size}
    if title_type is not None:
        fields["title_type"] = title_type

    supplied = {
        "sub_kind": sub_kind,
        "unit_count": unit_count,
        "missing_marker_count": missing_marker_count,
        "total_marker_count": total_marker_count,
    }
    if survey_kind is SurveyKind.STRATA:
        fields["unit_count"] = supplied.pop("unit_count")
    elif survey_kind is SurveyKind.LAYOUT:
        fields["plot_count"] = supplied.pop("unit_count")
        fields["sub_kind"] = supplied.pop("sub_kind")
    elif survey_kind is SurveyKind.PLAN_FILING:
        fields["sub_kind"] = supplied.pop("sub_kind")
    elif survey_kind is SurveyKind.RE_ESTABLISHMENT:
        fields["missing_marker_count"] = supplied.pop("missing_marker_count")
        fields["total_marker_count"] = supplied.pop("total_marker_count")

    ignored = sorted(k for k, v in supplied.items() if v is not None)
    if ignored:
        logger.debug("Ignoring %s for %s survey", ", ".join(ignored), survey_kind.value)

    return REQUEST_TYPES[survey_kind](**fields)


# ---------- Calculator ----------

class SurveyFeeCalculator:
    """Prices survey requests against a zone registry."""

    # Square metres per hectare, the unit of overflow pricing.
    LARGE_UNIT = Decimal("10000")

    # Back-office service charge: 20,000 per started 600 m².
    SERVICE_CHARGE_AREA = Decimal("600")
    SERVICE_CHARGE_UNIT = Decimal("20000")

    TITLE_MULTIPLIER = Decimal("2")

    # 24% affiliate + 5% service charge
    SURVEY_MARKUP_RATE = Decimal("0.29")

    VERIFICATION_FEE = Decimal("10000")
    DETAILS_RATE = Decimal("0.75")
    AS_BUILT_RATE = Decimal("1.20")

    # fee column holds the fraction of the survey fee charged per plot count
    LAYOUT_PERCENTAGES = TierTable.from_rows(
        [
            (1, 10, "0.80"),
            (11, 20, "0.75"),
            (21, 40, "0.70"),
            (41, 60, "0.65"),
            (61, 80, "0.60"),
            (81, 100, "0.55"),
            (101, None, "0.50"),
        ],
        non_decreasing=False,
    )

    # Requests carrying one of these are priced with the markup already folded
    # in (or replaced by a flat fee), so the hidden markup is skipped.
    MARKUP_EXEMPT_SUB_KINDS = frozenset(ServiceSubKind)

    def __init__(self, registry: Optional[ZoneRegistry] = None, *, currency: Optional[str] = None):
        self.registry = registry if registry is not None else default_registry()
        self.currency = currency or settings.currency
        self._formulas: Dict[SurveyKind, Callable[..., Decimal]] = {
            SurveyKind.STANDARD: self._price_standard,
            SurveyKind.STRATA: self._price_strata,
            SurveyKind.LAYOUT: self._price_layout,
            SurveyKind.PLAN_FILING: self._price_plan_filing,
            SurveyKind.DETAILS: self._price_details,
            SurveyKind.AS_BUILT: self._price_as_built,
            SurveyKind.RE_ESTABLISHMENT: self._price_re_establishment,
        }

    @classmethod
    def layout_percentage(cls, plot_count: int) -> Decimal:
        return cls.LAYOUT_PERCENTAGES.lookup(positive_int("plot_count", plot_count))

    # ------------- Public API -------------

    def calculate(self, request: SurveyRequest) -> BillingBreakdown:
        if not isinstance(request, SurveyRequest):
            raise TypeError(f"expected a SurveyRequest, got {type(request).__name__}")

        zone = self.registry.get_zone(request.zone)
        builder = BreakdownBuilder(currency=self.currency)

        base_fee = zone.tiers.lookup(request.plot_size)
        base_fee += self._overflow(zone, request.plot_size, builder)

        if request.kind is not SurveyKind.PLAN_FILING:
            builder.add_internal("Survey service charge", self.service_charge(request.plot_size))

        survey_fee = base_fee
        if request.title_type in (TitleType.COMMERCIAL, TitleType.INDUSTRIAL):
            survey_fee = base_fee * self.TITLE_MULTIPLIER
            builder.add_item("Commercial/Industrial Title Multiplier (2x)", base_fee)

        formula = self._formulas.get(request.kind)
        if formula is None:
            raise ServiceUnavailable(request.kind.value)
        final_fee = formula(request, zone, base_fee, survey_fee, builder)

        if request.service_sub_kind() not in self.MARKUP_EXEMPT_SUB_KINDS:
            builder.add_internal(
                "Survey markup (24% affiliate + 5% service charge)",
                _whole(base_fee * self.SURVEY_MARKUP_RATE),
            )

        breakdown = builder.build(taxable=request.kind.taxable)
        logger.debug(
            "Survey fee %s zone=%s plot_size=%s base=%s final=%s total=%s",
            request.kind.value,
            zone.key,
            request.plot_size,
            base_fee,
            final_fee,
            breakdown.total,
        )
        return breakdown

    def service_charge(self, plot_size: Decimal) -> Decimal:
        return Decimal(math.ceil(plot_size / self.SERVICE_CHARGE_AREA)) * self.SERVICE_CHARGE_UNIT

    # ------------- Steps -------------

    def _overflow(self, zone: Zone, plot_size: Decimal, builder: BreakdownBuilder) -> Decimal:
        """Per-hectare charge for the part of a plot beyond the schedule."""

        covered = zone.tiers.max_covered
        if covered is None:
            return Decimal("0")
        hectares = plot_size / self.LARGE_UNIT
        limit = covered / self.LARGE_UNIT
        if hectares <= limit:
            return Decimal("0")

        extra = math.ceil(hectares - limit)
        fee = extra * zone.additional_unit_fee
        builder.add_item(
            f"Additional Hectares ({extra} HA @ {format_currency(zone.additional_unit_fee, self.currency)})",
            fee,
            quantity=extra,
            unit_price=zone.additional_unit_fee,
        )
        return fee

    def _with_markup(self, fee: Decimal) -> Decimal:
        return fee + _whole(fee * self.SURVEY_MARKUP_RATE)

    # ------------- Kind formulas -------------
    # Each adds its line items and returns the amount they sum to.

    def _price_standard(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        builder.add_item(f"Standard Survey Fee - {zone.name}", survey_fee)
        return survey_fee

    def _price_strata(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        units = request.unit_count
        amount = survey_fee * units
        builder.add_item(
            f"Strata Survey Fee - {zone.name} ({units} units)",
            amount,
            quantity=units,
            unit_price=survey_fee,
        )
        return amount

    def _price_layout(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        plots = request.plot_count
        percentage = self.layout_percentage(plots)
        amount = _money(survey_fee * percentage)
        total = amount

        sub_kind = request.sub_kind
        if sub_kind is ServiceSubKind.FRESH_SURVEY:
            picking = coordinates_picking_fee(base_fee)
            builder.add_item("Coordinates Picking Service", picking)
            total += picking
            description = f"Fresh Layout Survey Processing - {plots} plots"
        elif sub_kind is ServiceSubKind.EXISTING_COORDINATES:
            description = f"Layout Survey Processing with Existing Coordinates - {plots} plots"
        elif sub_kind is ServiceSubKind.DIRECT_VERIFICATION:
            description = f"Layout Survey Direct Verification - {plots} plots"
        elif sub_kind is ServiceSubKind.RETAKING_POINTS:
            description = f"Layout Survey Verification by Retaking Points - {plots} plots"
        else:
            description = f"Layout Survey Fee - {plots} plots ({percentage * 100:.0f}% of base fee)"

        builder.add_item(description, amount)
        return total

    def _price_plan_filing(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        sub_kind = request.sub_kind
        if sub_kind is ServiceSubKind.FRESH_SURVEY:
            marked_up = self._with_markup(survey_fee)
            picking = coordinates_picking_fee(base_fee)
            builder.add_item("Coordinates Picking Service", picking)
            builder.add_item(f"Fresh Survey Plan Processing - {zone.name}", marked_up)
            return marked_up + picking
        if sub_kind is ServiceSubKind.EXISTING_COORDINATES:
            marked_up = self._with_markup(survey_fee)
            builder.add_item(f"Survey Plan Processing with Existing Coordinates - {zone.name}", marked_up)
            return marked_up
        if sub_kind is ServiceSubKind.DIRECT_VERIFICATION:
            builder.add_item(f"Survey Plan Direct Verification - {zone.name}", self.VERIFICATION_FEE)
            return self.VERIFICATION_FEE
        if sub_kind is ServiceSubKind.RETAKING_POINTS:
            picking = coordinates_picking_fee(base_fee)
            builder.add_item("Coordinates Picking Service", picking)
            builder.add_item(f"Survey Plan Verification by Retaking Points - {zone.name}", self.VERIFICATION_FEE)
            return self.VERIFICATION_FEE + picking

        builder.add_item(f"Survey Plan Fee - {zone.name}", survey_fee)
        return survey_fee

    def _price_details(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        amount = _money(survey_fee * self.DETAILS_RATE)
        builder.add_item("Details Survey Fee (75% of minimum survey fee)", amount)
        return amount

    def _price_as_built(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        amount = _money(survey_fee * self.AS_BUILT_RATE)
        builder.add_item("As-Built Survey Fee (120% of minimum survey fee)", amount)
        return amount

    def _price_re_establishment(self, request, zone, base_fee, survey_fee, builder) -> Decimal:
        # Quadratic in the missing share: a few lost beacons cost little,
        # most of them cost close to a full survey.
        missing, total = request.missing_marker_count, request.total_marker_count
        ratio = Decimal(missing) / Decimal(total)
        amount = _money(ratio ** 2 * survey_fee)
        builder.add_item(f"Re-establishment of Beacons ({missing}/{total} missing)", amount)
        return amount


def calculate_survey_fee(
    request: SurveyRequest,
    registry: Optional[ZoneRegistry] = None,
) -> BillingBreakdown:
    """Price a survey request; see :class:`SurveyFeeCalculator`."""

    return SurveyFeeCalculator(registry).calculate(request)
