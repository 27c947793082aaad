from datetime import datetime, timedelta
from decimal import Decimal

from src.core.exceptions import ValidationError
from src.shared.utils.money import MoneyLike, round_money, to_money

ONE_DAY = timedelta(days=1)


def rental_days(start: datetime, end: datetime) -> int:
    """Whole days billed for [start, end]: partial days round up, minimum one."""
    days, remainder = divmod(end - start, ONE_DAY)
    if remainder:
        days += 1
    return max(1, days)


def calculate_total_price(daily_rate: MoneyLike, start: datetime, end: datetime) -> Decimal:
    """
    Price of a reservation window.

    Examples:
        50/day for exactly two days   -> 100.00
        50/day for two hours          -> 50.00 (minimum one day)
    """
    rate = to_money(daily_rate)
    if rate < 0:
        raise ValidationError("Daily rate cannot be negative", field="daily_rate")
    return round_money(rate * rental_days(start, end))
