from decimal import Decimal

import pytest

from survey_tariff.rules.errors import MissingParameter, ServiceUnavailable, UnknownZone
from survey_tariff.rules.survey_fee import (
    LayoutSurvey,
    PlanFilingSurvey,
    ReEstablishmentSurvey,
    ServiceSubKind,
    StandardSurvey,
    StrataSurvey,
    SurveyFeeCalculator,
    SurveyKind,
    TitleType,
    calculate_survey_fee,
    survey_request,
)


def _quote(kind, **fields):
    return calculate_survey_fee(survey_request(kind, **fields))


def _descriptions(breakdown):
    return [item.description for item in breakdown.items]


def test_standard_private_zone_a():
    breakdown = _quote("standard", zone="A", plot_size=500)

    assert _descriptions(breakdown) == ["Standard Survey Fee - Zone A"]
    assert breakdown.items[0].amount == Decimal("1575000")
    # 20,000 service charge + 29% markup on the schedule fee
    assert [c.amount for c in breakdown.internal_charges] == [Decimal("20000"), Decimal("456750")]
    assert breakdown.subtotal == Decimal("2051750")
    assert breakdown.tax == Decimal("266728")
    assert breakdown.total == Decimal("2318478")
    assert breakdown.currency == "NGN"


def test_commercial_title_doubles_survey_fee():
    breakdown = _quote("standard", zone="a", plot_size="500", title_type="commercial")

    assert _descriptions(breakdown) == [
        "Commercial/Industrial Title Multiplier (2x)",
        "Standard Survey Fee - Zone A",
    ]
    assert [i.amount for i in breakdown.items] == [Decimal("1575000"), Decimal("3150000")]
    # markup is still computed on the undoubled schedule fee
    assert breakdown.internal_charges[-1].amount == Decimal("456750")
    assert breakdown.subtotal == Decimal("5201750")
    assert breakdown.total == Decimal("5877978")


def test_industrial_title_uses_same_multiplier():
    commercial = _quote("standard", zone="C", plot_size=900, title_type=TitleType.COMMERCIAL)
    industrial = _quote("standard", zone="C", plot_size=900, title_type=TitleType.INDUSTRIAL)

    assert commercial == industrial


@pytest.mark.parametrize(
    "plot_size, extra_hectares",
    [
        (500000, 0),
        (Decimal("500000.5"), 1),
        (510000, 1),
        (524000, 3),
    ],
)
def test_overflow_beyond_schedule_is_priced_per_started_hectare(plot_size, extra_hectares):
    breakdown = _quote("standard", zone="D", plot_size=plot_size)

    overflow = [i for i in breakdown.items if i.description.startswith("Additional Hectares")]
    if extra_hectares == 0:
        assert overflow == []
    else:
        (item,) = overflow
        assert item.description == f"Additional Hectares ({extra_hectares} HA @ ₦100,000)"
        assert item.quantity == extra_hectares
        assert item.unit_price == Decimal("100000")
        assert item.amount == extra_hectares * Decimal("100000")

    standard = breakdown.items[-1]
    assert standard.amount == Decimal("17682100") + extra_hectares * Decimal("100000")


def test_service_charge_per_started_600_square_metres():
    calculator = SurveyFeeCalculator()

    assert calculator.service_charge(Decimal("1")) == Decimal("20000")
    assert calculator.service_charge(Decimal("600")) == Decimal("20000")
    assert calculator.service_charge(Decimal("601")) == Decimal("40000")


def test_strata_multiplies_by_units():
    breakdown = _quote("strata", zone="A", plot_size=500, unit_count=4)

    (item,) = breakdown.items
    assert item.description == "Strata Survey Fee - Zone A (4 units)"
    assert item.quantity == 4
    assert item.unit_price == Decimal("1575000")
    assert item.amount == Decimal("6300000")
    assert breakdown.total == Decimal("7657728")


@pytest.mark.parametrize(
    "plot_count, expected",
    [
        (1, "0.80"),
        (10, "0.80"),
        (11, "0.75"),
        (40, "0.70"),
        (60, "0.65"),
        (61, "0.60"),
        (100, "0.55"),
        (101, "0.50"),
        (5000, "0.50"),
    ],
)
def test_layout_percentage(plot_count: int, expected: str) -> None:
    assert SurveyFeeCalculator.layout_percentage(plot_count) == Decimal(expected)


def test_layout_without_sub_kind_keeps_markup():
    breakdown = _quote("layout", zone="B", plot_size=600, unit_count=10)

    assert _descriptions(breakdown) == ["Layout Survey Fee - 10 plots (80% of base fee)"]
    assert breakdown.items[0].amount == Decimal("800000.00")
    assert breakdown.internal_total == Decimal("310000")
    assert breakdown.subtotal == Decimal("1110000")
    assert breakdown.tax == Decimal("144300")


def test_fresh_layout_adds_coordinates_picking_and_skips_markup():
    breakdown = calculate_survey_fee(
        LayoutSurvey(zone="B", plot_size=600, plot_count=11, sub_kind=ServiceSubKind.FRESH_SURVEY)
    )

    assert _descriptions(breakdown) == [
        "Coordinates Picking Service",
        "Fresh Layout Survey Processing - 11 plots",
    ]
    assert [i.amount for i in breakdown.items] == [Decimal("100000"), Decimal("750000.00")]
    assert [c.description for c in breakdown.internal_charges] == ["Survey service charge"]
    assert breakdown.subtotal == Decimal("870000")
    assert breakdown.total == Decimal("983100")


@pytest.mark.parametrize(
    "sub_kind, description",
    [
        (
            ServiceSubKind.EXISTING_COORDINATES,
            "Layout Survey Processing with Existing Coordinates - 10 plots",
        ),
        (ServiceSubKind.DIRECT_VERIFICATION, "Layout Survey Direct Verification - 10 plots"),
        (ServiceSubKind.RETAKING_POINTS, "Layout Survey Verification by Retaking Points - 10 plots"),
    ],
)
def test_layout_sub_kinds_retitle_and_skip_markup(sub_kind, description):
    plain = calculate_survey_fee(LayoutSurvey(zone="B", plot_size=600, plot_count=10))
    breakdown = calculate_survey_fee(
        LayoutSurvey(zone="B", plot_size=600, plot_count=10, sub_kind=sub_kind)
    )

    assert [(i.description, i.amount) for i in breakdown.items] == [
        (description, Decimal("800000.00"))
    ]
    assert breakdown.items[0].amount == plain.items[0].amount
    assert [(c.description, c.amount) for c in breakdown.internal_charges] == [
        ("Survey service charge", Decimal("20000"))
    ]
    assert breakdown.subtotal == Decimal("820000")
    assert plain.subtotal == Decimal("1110000")
    assert plain.subtotal - breakdown.subtotal == Decimal("290000")


@pytest.mark.parametrize(
    "sub_kind, items, subtotal",
    [
        (None, [("Survey Plan Fee - Zone C", "750000")], "967500"),
        (
            ServiceSubKind.FRESH_SURVEY,
            [
                ("Coordinates Picking Service", "80000"),
                ("Fresh Survey Plan Processing - Zone C", "967500"),
            ],
            "1047500",
        ),
        (
            ServiceSubKind.EXISTING_COORDINATES,
            [("Survey Plan Processing with Existing Coordinates - Zone C", "967500")],
            "967500",
        ),
        (
            ServiceSubKind.DIRECT_VERIFICATION,
            [("Survey Plan Direct Verification - Zone C", "10000")],
            "10000",
        ),
        (
            ServiceSubKind.RETAKING_POINTS,
            [
                ("Coordinates Picking Service", "80000"),
                ("Survey Plan Verification by Retaking Points - Zone C", "10000"),
            ],
            "90000",
        ),
    ],
)
def test_survey_plan_is_untaxed_and_has_no_service_charge(sub_kind, items, subtotal):
    breakdown = calculate_survey_fee(PlanFilingSurvey(zone="C", plot_size=700, sub_kind=sub_kind))

    assert [(i.description, i.amount) for i in breakdown.items] == [
        (d, Decimal(a)) for d, a in items
    ]
    assert all(c.description != "Survey service charge" for c in breakdown.internal_charges)
    assert breakdown.subtotal == Decimal(subtotal)
    assert breakdown.taxable is False
    assert breakdown.tax == Decimal("0")
    assert breakdown.total == breakdown.subtotal


def test_details_and_as_built_are_fractions_of_survey_fee():
    details = _quote("details", zone="A", plot_size=500)
    as_built = _quote("as-built", zone="A", plot_size=500)

    assert details.items[0].amount == Decimal("1181250.00")
    assert details.total == Decimal("1873540")
    assert as_built.items[0].amount == Decimal("1890000.00")
    assert as_built.tax == Decimal("307678")


@pytest.mark.parametrize(
    "missing, total, expected",
    [
        (1, 10, "15750.00"),
        (9, 10, "1275750.00"),
        (4, 4, "1575000.00"),
    ],
)
def test_re_establishment_scales_with_square_of_missing_share(missing, total, expected):
    breakdown = calculate_survey_fee(
        ReEstablishmentSurvey(
            zone="A", plot_size=500, missing_marker_count=missing, total_marker_count=total
        )
    )

    (item,) = breakdown.items
    assert item.description == f"Re-establishment of Beacons ({missing}/{total} missing)"
    assert item.amount == Decimal(expected)


@pytest.mark.parametrize("kind", ["certificate-occupancy", "gazette"])
def test_unpriced_kinds_are_coming_soon(kind):
    with pytest.raises(ServiceUnavailable, match="coming soon"):
        _quote(kind, zone="A", plot_size=500)


def test_unknown_zone():
    with pytest.raises(UnknownZone) as exc_info:
        _quote("standard", zone="E", plot_size=500)
    assert exc_info.value.zone == "E"


@pytest.mark.parametrize(
    "kind, fields, field_name",
    [
        ("standard", {"plot_size": 0}, "plot_size"),
        ("standard", {"plot_size": -5}, "plot_size"),
        ("standard", {"plot_size": None}, "plot_size"),
        ("standard", {"plot_size": "abc"}, "plot_size"),
        ("strata", {"plot_size": 500}, "unit_count"),
        ("strata", {"plot_size": 500, "unit_count": 0}, "unit_count"),
        ("layout", {"plot_size": 500}, "plot_count"),
        ("layout", {"plot_size": 500, "unit_count": 2.5}, "plot_count"),
        ("strata", {"plot_size": 500, "unit_count": float("inf")}, "unit_count"),
        ("layout", {"plot_size": 500, "unit_count": "a dozen"}, "plot_count"),
        ("re-establishment", {"plot_size": 500, "total_marker_count": 4}, "missing_marker_count"),
        (
            "re-establishment",
            {"plot_size": 500, "missing_marker_count": 5, "total_marker_count": 4},
            "missing_marker_count",
        ),
        ("standard", {"plot_size": 500, "title_type": "royal"}, "title_type"),
        ("survey-plan", {"plot_size": 500, "sub_kind": "guesswork"}, "sub_kind"),
        ("mapping", {"plot_size": 500}, "survey_kind"),
    ],
)
def test_missing_or_invalid_parameters(kind, fields, field_name):
    with pytest.raises(MissingParameter) as exc_info:
        _quote(kind, zone="A", **fields)
    assert exc_info.value.field_name == field_name


def test_factory_builds_kind_specific_variants():
    layout = survey_request(SurveyKind.LAYOUT, zone=" b ", plot_size=600, unit_count="12")
    strata = survey_request("STRATA", zone="A", plot_size=500, unit_count=3)

    assert layout == LayoutSurvey(zone="B", plot_size=Decimal("600"), plot_count=12)
    assert strata == StrataSurvey(zone="A", plot_size=Decimal("500"), unit_count=3)


def test_factory_drops_fields_the_kind_is_not_priced_on():
    request = survey_request(
        "standard", zone="A", plot_size=500, sub_kind="fresh-survey", unit_count=7
    )

    assert request == StandardSurvey(zone="A", plot_size=Decimal("500"))
    # no sub-kind on a standard survey, so the markup still applies
    assert calculate_survey_fee(request).total == Decimal("2318478")


def test_calculation_is_idempotent():
    request = StandardSurvey(zone="B", plot_size=Decimal("2750.25"), title_type="industrial")
    calculator = SurveyFeeCalculator()

    assert calculator.calculate(request) == calculator.calculate(request)
    assert calculator.calculate(request).to_dict() == calculate_survey_fee(request).to_dict()


@pytest.mark.parametrize(
    "request_",
    [
        StandardSurvey(zone="D", plot_size=524000, title_type="commercial"),
        StrataSurvey(zone="C", plot_size=1200, unit_count=6),
        LayoutSurvey(zone="A", plot_size=45000, plot_count=73, sub_kind="retaking-points"),
        PlanFilingSurvey(zone="B", plot_size=3100, sub_kind="fresh-survey"),
        ReEstablishmentSurvey(zone="A", plot_size=800, missing_marker_count=2, total_marker_count=8),
    ],
)
def test_subtotal_is_items_plus_internal_charges(request_):
    breakdown = calculate_survey_fee(request_)

    assert breakdown.subtotal == breakdown.items_total + breakdown.internal_total
    assert breakdown.total == breakdown.subtotal + breakdown.tax
    assert breakdown.tax == breakdown.tax.to_integral_value()


def test_breakdown_serialisation_hides_internal_charges():
    breakdown = _quote("standard", zone="A", plot_size=500)

    payload = breakdown.to_dict()
    assert "internal_charges" not in payload
    assert payload["items"] == [{"description": "Standard Survey Fee - Zone A", "amount": "1575000"}]
    assert payload["total"] == "2318478"
    assert len(breakdown.to_dict(include_internal=True)["internal_charges"]) == 2


def test_calculate_rejects_non_requests():
    with pytest.raises(TypeError):
        SurveyFeeCalculator().calculate({"zone": "A", "plot_size": 500})
