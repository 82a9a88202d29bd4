from decimal import Decimal, ROUND_HALF_UP, getcontext
from household_ledger.core.config import settings
from household_ledger.core.exceptions import ValidationError

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # floats go through str() so 0.1 stays 0.1
    return Decimal(str(value))


def qround(d: Decimal) -> Decimal:
    return to_decimal(d).quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(d: Decimal) -> str:
    return f"{settings.CURRENCY_SYMBOL}{qround(d):.2f}"


def require_positive(amount, field: str = "amount") -> Decimal:
    try:
        value = qround(to_decimal(amount))
    except (ArithmeticError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not value.is_finite() or value <= ZERO:
        raise ValidationError(f"{field} must be greater than zero")
    return value


def require_non_negative(value, field: str = "value") -> Decimal:
    try:
        value = to_decimal(value)
    except (ArithmeticError, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not value.is_finite() or value < ZERO:
        raise ValidationError(f"{field} must not be negative")
    return value
