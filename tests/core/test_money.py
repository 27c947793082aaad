from decimal import Decimal

import pytest

from src.shared.utils.money import round_money, to_money


class TestRoundMoney:
    """Tests for round_money function."""

    def test_round_half_up(self):
        """Test ROUND_HALF_UP behavior."""
        assert round_money(10.125) == Decimal("10.13")
        assert round_money(10.124) == Decimal("10.12")
        assert round_money(10.145) == Decimal("10.15")

    def test_from_decimal(self):
        assert round_money(Decimal("99.999")) == Decimal("100.00")

    def test_from_string_and_int(self):
        assert round_money("0.001") == Decimal("0.00")
        assert round_money(100) == Decimal("100.00")

    def test_negative_numbers(self):
        """Negative halves round toward zero."""
        assert round_money(-10.125) == Decimal("-10.12")
        assert round_money(-10.126) == Decimal("-10.13")

    def test_precision(self):
        """Result always has 2 decimal places."""
        assert str(round_money(10)) == "10.00"
        assert str(round_money(10.1)) == "10.10"


class TestToMoney:
    """Tests for to_money conversion."""

    def test_float_has_no_binary_artefacts(self):
        assert to_money(0.1) == Decimal("0.1")

    def test_decimal_passes_through(self):
        value = Decimal("12.50")
        assert to_money(value) is value

    @pytest.mark.parametrize("value", ["abc", "", "NaN", "Infinity", float("inf")])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(ValueError):
            to_money(value)
