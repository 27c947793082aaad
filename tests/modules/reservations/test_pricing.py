import random
from datetime import timedelta
from decimal import Decimal

import pytest

from src.core.exceptions import ValidationError
from src.modules.reservations.codes import FULFILLMENT_CODE_ALPHABET, FulfillmentCodeGenerator
from src.modules.reservations.pricing import calculate_total_price, rental_days
from tests.helpers import days_from_now


class TestRentalDays:
    def test_whole_days(self):
        assert rental_days(days_from_now(1), days_from_now(3)) == 2

    def test_partial_day_rounds_up(self):
        assert rental_days(days_from_now(1), days_from_now(2, hours=1)) == 2

    def test_minimum_one_day(self):
        start = days_from_now(1)
        assert rental_days(start, start + timedelta(hours=2)) == 1
        assert rental_days(start, start + timedelta(seconds=1)) == 1


class TestCalculateTotalPrice:
    def test_two_days_at_fifty(self):
        assert calculate_total_price(Decimal("50"), days_from_now(1), days_from_now(3)) == Decimal("100.00")

    def test_two_hours_charged_as_one_day(self):
        price = calculate_total_price(Decimal("50"), days_from_now(1), days_from_now(1, hours=2))
        assert price == Decimal("50.00")

    def test_fractional_rate_is_rounded(self):
        assert calculate_total_price("10.333", days_from_now(1), days_from_now(4)) == Decimal("31.00")

    def test_free_item(self):
        assert calculate_total_price(0, days_from_now(1), days_from_now(2)) == Decimal("0.00")

    def test_negative_rate_rejected(self):
        with pytest.raises(ValidationError):
            calculate_total_price("-1", days_from_now(1), days_from_now(2))


class TestFulfillmentCodeGenerator:
    def test_code_shape(self):
        code = FulfillmentCodeGenerator().generate()
        assert len(code) == 8
        assert all(ch in FULFILLMENT_CODE_ALPHABET for ch in code)

    def test_seeded_generators_agree(self):
        first = FulfillmentCodeGenerator(random.Random(7))
        second = FulfillmentCodeGenerator(random.Random(7))
        assert [first.generate() for _ in range(3)] == [second.generate() for _ in range(3)]

    def test_custom_length(self):
        assert len(FulfillmentCodeGenerator(length=12).generate()) == 12

    def test_invalid_length(self):
        with pytest.raises(ValueError):
            FulfillmentCodeGenerator(length=0)
