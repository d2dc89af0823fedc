"""Unit tests for base-unit conversion."""
from __future__ import annotations

from decimal import Decimal

import pytest

from liquidation_bot.units import from_base_units, to_base_units


class TestToBaseUnits:
    def test_whole_number(self) -> None:
        assert to_base_units(2, 6) == 2_000_000

    def test_fraction_padded(self) -> None:
        assert to_base_units(1.5, 6) == 1_500_000

    def test_fraction_truncated_not_rounded(self) -> None:
        assert to_base_units(0.1234569, 6) == 123_456

    def test_exponent_notation_input(self) -> None:
        # str(1e-7) is "1e-07"; must not be parsed digit by digit.
        assert to_base_units(1e-7, 6) == 0
        assert to_base_units(1.5e-5, 6) == 15

    def test_large_value(self) -> None:
        assert to_base_units(1e21, 18) == 10**39

    def test_zero_decimals(self) -> None:
        assert to_base_units(12.99, 0) == 12

    def test_string_and_decimal_input(self) -> None:
        assert to_base_units("952.380952380952", 6) == 952_380_952
        assert to_base_units(Decimal("0.000001"), 6) == 1

    @pytest.mark.parametrize("bad", [-1, -0.5, float("nan"), float("inf"), "abc"])
    def test_invalid_values_raise(self, bad: object) -> None:
        with pytest.raises(ValueError):
            to_base_units(bad, 6)  # type: ignore[arg-type]

    def test_negative_decimals_raise(self) -> None:
        with pytest.raises(ValueError):
            to_base_units(1, -1)


class TestFromBaseUnits:
    def test_exact(self) -> None:
        assert from_base_units(1_500_000, 6) == Decimal("1.5")

    def test_string_amount(self) -> None:
        assert from_base_units("1000000000000000000", 18) == Decimal(1)
