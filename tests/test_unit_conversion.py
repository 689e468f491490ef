import os
import sys
from decimal import Decimal

import pytest

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from stockcanon.errors import (
    ConversionDivisionError,
    MissingRateError,
    QuantityRangeError,
)
from stockcanon.utils.unit_conversion import (
    ConversionRate,
    QuantityTriple,
    convert_units,
    format_units_display,
    to_flat_units,
    to_triple,
    validate_rate,
)


CASE_RATE = ConversionRate(
    level1_rate=24,
    level2_rate=12,
    level1_name="case",
    level2_name="box",
    level3_name="piece",
)


def test_to_flat_units():
    quantity = QuantityTriple(level1=2, level2=3, level3=5)
    assert to_flat_units(quantity, CASE_RATE) == 2 * 24 + 3 * 12 + 5 == 89


def test_to_flat_units_loose_only_needs_no_rate():
    assert to_flat_units(QuantityTriple(level3=7), None) == 7
    assert to_flat_units(QuantityTriple(), ConversionRate()) == 0


def test_to_flat_units_uses_explicit_fallback_for_missing_rates():
    quantity = QuantityTriple(level1=1, level2=2, level3=3)
    partial = ConversionRate(level1_rate=None, level2_rate=10)
    fallback = ConversionRate(level1_rate=144, level2_rate=12)

    assert to_flat_units(quantity, partial, fallback=fallback) == 144 + 20 + 3
    assert to_flat_units(quantity, None, fallback=fallback) == 144 + 24 + 3


def test_to_flat_units_without_rate_or_fallback_raises():
    with pytest.raises(MissingRateError):
        to_flat_units(QuantityTriple(level1=1), ConversionRate(level2_rate=12))

    with pytest.raises(MissingRateError):
        to_flat_units(QuantityTriple(level2=1), None)

    # A missing rate is fine while its level holds nothing.
    assert to_flat_units(QuantityTriple(level2=1, level3=2), ConversionRate(level2_rate=6)) == 8


def test_to_triple_gives_minimal_form():
    assert to_triple(89, ConversionRate(level1_rate=24, level2_rate=12)) == QuantityTriple(3, 1, 5)
    assert to_triple(0, CASE_RATE) == QuantityTriple(0, 0, 0)
    assert to_triple(24, CASE_RATE) == QuantityTriple(1, 0, 0)
    assert to_triple(23, CASE_RATE) == QuantityTriple(0, 1, 11)


def test_to_triple_round_trips_through_flat_units():
    for flat in (0, 1, 11, 12, 35, 89, 1000, 5057):
        assert to_flat_units(to_triple(flat, CASE_RATE), CASE_RATE) == flat


def test_to_flat_units_then_to_triple_is_not_identity_for_reducible_input():
    original = QuantityTriple(level1=2, level2=3, level3=5)
    assert to_triple(to_flat_units(original, CASE_RATE), CASE_RATE) != original


@pytest.mark.parametrize(
    "rate",
    [
        ConversionRate(level1_rate=0, level2_rate=12),
        ConversionRate(level1_rate=24, level2_rate=0),
        ConversionRate(level1_rate=None, level2_rate=12),
        ConversionRate(level1_rate=24, level2_rate=None),
        None,
    ],
)
def test_to_triple_requires_both_rates(rate):
    for flat in (0, 1, 89):
        with pytest.raises(ConversionDivisionError):
            to_triple(flat, rate)


def test_conversion_division_error_is_zero_division_error():
    with pytest.raises(ZeroDivisionError):
        to_triple(5, ConversionRate(level1_rate=0, level2_rate=12))


def test_negative_and_non_integer_inputs_rejected():
    with pytest.raises(QuantityRangeError):
        QuantityTriple(level1=-1)
    with pytest.raises(QuantityRangeError):
        QuantityTriple(level3=1.5)
    with pytest.raises(QuantityRangeError):
        QuantityTriple(level2="3")
    with pytest.raises(QuantityRangeError):
        QuantityTriple(level1=True)
    with pytest.raises(QuantityRangeError):
        to_triple(-1, CASE_RATE)
    with pytest.raises(QuantityRangeError):
        ConversionRate(level1_rate=-24, level2_rate=12)


def test_integral_decimals_and_floats_are_accepted():
    quantity = QuantityTriple(level1=Decimal("2"), level2=3.0, level3=Decimal("5.00"))
    assert quantity.as_tuple() == (2, 3, 5)
    assert ConversionRate(level1_rate=Decimal("24"), level2_rate=12.0).level1_rate == 24


def test_quantity_from_record():
    record = {
        "unit_level1_quantity": 2,
        "unit_level2_quantity": None,
        "unit_level3_quantity": 5,
        "unrelated": "ignored",
    }
    assert QuantityTriple.from_record(record) == QuantityTriple(2, 0, 5)
    assert QuantityTriple.from_record({}) == QuantityTriple()

    with pytest.raises(QuantityRangeError):
        QuantityTriple.from_record({"unit_level1_quantity": -3})


def test_rate_from_record():
    rate = ConversionRate.from_record(
        {
            "unit_level1_rate": 144,
            "unit_level1_name": "case",
            "unit_level2_rate": 12,
            "unit_level2_name": " box ",
            "unit_level3_name": "",
        }
    )
    assert rate.level1_rate == 144
    assert rate.level2_rate == 12
    assert rate.level1_name == "case"
    assert rate.level2_name == "box"
    assert rate.level3_name is None
    assert rate.is_complete

    empty = ConversionRate.from_record({})
    assert empty.level1_rate is None
    assert not empty.is_complete


def test_convert_units():
    assert convert_units(2, 1, 3, CASE_RATE) == 48
    assert convert_units(2, 1, 2, CASE_RATE) == 4
    assert convert_units(30, 3, 2, CASE_RATE) == 2
    assert convert_units(30, 3, 1, CASE_RATE) == 1
    assert convert_units(5, 3, 3, None) == 5


def test_convert_units_errors():
    with pytest.raises(QuantityRangeError):
        convert_units(1, 4, 3, CASE_RATE)
    with pytest.raises(MissingRateError):
        convert_units(1, 1, 3, ConversionRate(level2_rate=12))
    with pytest.raises(ConversionDivisionError):
        convert_units(10, 3, 2, ConversionRate(level1_rate=24, level2_rate=0))


def test_format_units_display():
    assert format_units_display(QuantityTriple(2, 3, 5), CASE_RATE) == "2 case + 3 box + 5 piece"
    assert format_units_display(QuantityTriple(0, 1, 0), CASE_RATE) == "1 box"
    assert format_units_display(QuantityTriple(1, 1, 4)) == "4 piece"
    assert format_units_display(QuantityTriple(), CASE_RATE) == "0"
    assert format_units_display(QuantityTriple(level3=3), ConversionRate(level3_name="bottle")) == "3 bottle"


def test_validate_rate():
    assert validate_rate(CASE_RATE).is_valid

    result = validate_rate(ConversionRate(level1_rate=0, level2_rate=12))
    assert not result.is_valid
    assert any("Level 1" in message for message in result.errors)

    result = validate_rate(ConversionRate(level1_rate=6, level2_rate=12))
    assert not result.is_valid
    assert any("greater than or equal" in message for message in result.errors)

    result = validate_rate(ConversionRate(level1_rate=20000, level2_rate=2000))
    assert result.is_valid
    assert len(result.warnings) == 2

    result = validate_rate(ConversionRate(level1_rate=24, level2_rate=12, level1_name="c"))
    assert not result.is_valid
