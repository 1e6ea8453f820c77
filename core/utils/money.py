"""Денежные утилиты: фиксированная точка и округление half-up."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from domain.exceptions import ValidationError

Number = Union[Decimal, int, str, float]

WHOLE_UNIT = Decimal("1")
ZERO = Decimal("0")


def to_decimal(value: Number, field: str = "value") -> Decimal:
    """
    Привести значение к Decimal.

    float проходит через str(), чтобы не тащить двоичную погрешность в расчёт.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Некорректное числовое значение поля {field}", field=field, value=value)
    try:
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"Некорректное числовое значение поля {field}", field=field, value=value)


def round_money(value: Number) -> Decimal:
    """Округлить до целой денежной единицы по правилу half-up."""
    return to_decimal(value).quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)
