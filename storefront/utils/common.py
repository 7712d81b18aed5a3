# utils/common.py
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Tuple, Union

import pytz

from storefront.config import ORDERS_MAX_LIMIT, ORDERS_MAX_OFFSET
from storefront.utils.exceptions import ValidationError

CENTS = Decimal("0.01")
# Largest value a NUMERIC(10,2) column holds
MAX_MONEY = Decimal("99999999.99")


def utcnow() -> datetime:
    return datetime.now(pytz.UTC)


def to_money(value: Union[Decimal, int, str]) -> Decimal:
    """Quantize a currency amount to cents, rejecting amounts a money column cannot store."""
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {value}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid amount: {value}")

    if abs(amount) <= MAX_MONEY:
        amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    # Rounding up to the next cent can still overflow the column
    if abs(amount) > MAX_MONEY:
        raise ValidationError(f"Amount {amount} exceeds the maximum of {MAX_MONEY}")
    return amount


def validate_pagination(limit, offset) -> Tuple[int, int]:
    """Check limit/offset are bounded non-negative integers before they reach a query."""
    for name, value in (("limit", limit), ("offset", offset)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError(f"{name} must be an integer")

    if not 1 <= limit <= ORDERS_MAX_LIMIT:
        raise ValidationError(f"limit must be between 1 and {ORDERS_MAX_LIMIT}")
    if not 0 <= offset <= ORDERS_MAX_OFFSET:
        raise ValidationError(f"offset must be between 0 and {ORDERS_MAX_OFFSET}")

    return limit, offset
