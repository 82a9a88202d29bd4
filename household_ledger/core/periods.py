import re
from datetime import date, datetime

from household_ledger.core.config import settings
from household_ledger.core.exceptions import ValidationError

MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> tuple[int, int]:
    match = MONTH_RE.match(month or "")
    if not match:
        raise ValidationError(f"Invalid month '{month}', expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def format_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_from_date(d: date | datetime) -> str:
    return format_month(d.year, d.month)


def current_month() -> str:
    return month_from_date(datetime.now())


def previous_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 1:
        return format_month(year - 1, 12)
    return format_month(year, m - 1)


def next_month(month: str) -> str:
    year, m = parse_month(month)
    if m == 12:
        return format_month(year + 1, 1)
    return format_month(year, m + 1)


def allocation_month_for_income_date(d: date | datetime, allocated_to_month: str | None = None) -> str:
    """
    Month whose budget an income funds.

    Income received on or after the cutoff day (22nd by default) pays for the
    following month. An explicit ``allocated_to_month`` always wins.
    """
    if allocated_to_month:
        parse_month(allocated_to_month)
        return allocated_to_month

    month = month_from_date(d)
    if d.day >= settings.ALLOCATION_CUTOFF_DAY:
        return next_month(month)
    return month


def month_bounds(month: str) -> tuple[date, date]:
    """First day of ``month`` and first day of the month after it."""
    year, m = parse_month(month)
    next_year, next_m = parse_month(next_month(month))
    return date(year, m, 1), date(next_year, next_m, 1)
