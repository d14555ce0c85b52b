# hm_ledger/billing/money.py
from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from hm_ledger.billing.exceptions import ValidationError

# Amounts are plain Decimals at a fixed two-place scale, matching
# DecimalField(max_digits=12, decimal_places=2) on the Bill model.
Money = Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("9999999999.99")


def to_money(value: Any, *, field: str = "amount") -> Money:
    """
    Convert caller input into a two-place Decimal without rounding.

    Accepts Decimal, int and numeric strings; floats go through str() so that
    0.1 stays 0.1. Anything finer than a cent is rejected rather than rounded.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a decimal amount.", field=field)

    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a decimal amount.", field=field)

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite amount.", field=field)

    try:
        quantized = amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"{field} exceeds the maximum supported amount.", field=field)

    if quantized != amount:
        raise ValidationError(f"{field} cannot have more than two decimal places.", field=field)

    if quantized < ZERO:
        raise ValidationError(f"{field} cannot be negative.", field=field)

    if quantized > MAX_AMOUNT:
        raise ValidationError(f"{field} exceeds the maximum supported amount.", field=field)

    return quantized


def to_positive_money(value: Any, *, field: str = "amount") -> Money:
    amount = to_money(value, field=field)
    if amount <= ZERO:
        raise ValidationError(f"{field} must be > 0.", field=field)
    return amount


def money_sum(amounts) -> Money:
    return sum(amounts, ZERO).quantize(CENT)
