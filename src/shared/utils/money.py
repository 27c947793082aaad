from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Union

MoneyLike = Union[Decimal, float, int, str]


def to_money(value: MoneyLike) -> Decimal:
    """
    Convert a rate or amount to Decimal without binary float artefacts.

    Raises ValueError for values that are not numbers (e.g. "abc", NaN).
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except InvalidOperation as exc:
            raise ValueError(f"Not a monetary value: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary value: {value!r}")
    return result


def round_money(value: MoneyLike) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    value = to_money(value)
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
