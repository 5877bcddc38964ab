from decimal import Decimal

import pytest

from survey_tariff.rules.coordinates import coordinates_picking_fee


@pytest.mark.parametrize(
    "base_fee, expected",
    [
        (0, "0"),
        (-100, "0"),
        (100000, "10000"),
        (425000, "40000"),
        (750000, "80000"),
        # 94,000 rounds up to the next 10,000
        (1000000, "100000"),
        (1575000, "150000"),
        ("1063830", "110000"),
    ],
)
def test_coordinates_picking_fee_rounds_up_to_ten_thousand(base_fee, expected: str) -> None:
    fee = coordinates_picking_fee(base_fee)

    assert fee == Decimal(expected)
    assert fee % Decimal("10000") == 0
