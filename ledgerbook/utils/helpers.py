"""
Helper Functions Module
Date, money and parsing utilities shared by the accounting core
"""

import calendar
import re
from datetime import date, datetime, timedelta
from typing import Any, Iterable, Optional
from uuid import uuid4


MONTH_MAP = {
    'jan': 1, 'feb': 2, 'mar': 3, 'apr': 4, 'may': 5, 'jun': 6,
    'jul': 7, 'aug': 8, 'sep': 9, 'oct': 10, 'nov': 11, 'dec': 12
}


def new_id() -> str:
    """Generate a document identifier"""
    return uuid4().hex


def now() -> datetime:
    """Current local timestamp"""
    return datetime.now()


def today() -> date:
    return date.today()


def parse_amount(value: Any) -> float:
    """Parse an amount permissively, falling back to 0.0

    Accepts numbers, numeric strings with currency symbols or thousands
    separators ("Rs. 1,200.50") and blanks.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r'-?\d+(?:\.\d+)?', str(value).replace(',', ''))
    return float(match.group(0)) if match else 0.0


def parse_date(value: Any) -> Optional[date]:
    """Parse ISO, DD/MM/YYYY, YYYYMMDD and d-MMM-yy strings into a date"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()

    if len(text) == 8 and text.isdigit():
        return date(int(text[:4]), int(text[4:6]), int(text[6:8]))

    for fmt in ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d"):
        try:
            return datetime.strptime(text[:10], fmt).date()
        except ValueError:
            continue

    # d-MMM-yy / dd-MMM-yyyy (e.g. 1-Apr-24)
    parts = text.replace(' ', '-').split('-')
    if len(parts) == 3 and parts[1][:3].lower() in MONTH_MAP:
        year = int(parts[2])
        if year < 100:
            year += 2000 if year < 50 else 1900
        return date(year, MONTH_MAP[parts[1][:3].lower()], int(parts[0]))

    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        return None


def round_money(value: float) -> float:
    return round(value, 2)


def money_sum(values: Iterable[float]) -> float:
    """Sum amounts and round to paise"""
    return round_money(sum(values))


def financial_year_of(value: date) -> str:
    """April-March financial year label, e.g. 2024-25"""
    if value.month >= 4:
        return f"{value.year}-{str(value.year + 1)[-2:]}"
    return f"{value.year - 1}-{str(value.year)[-2:]}"


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def add_months(value: date, months: int) -> date:
    """Shift by whole months, clamping to the end of the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, min(value.day, last_day_of_month(year, month)))


def add_months_overflowing(value: date, months: int) -> date:
    """Shift by whole months, rolling surplus days into the following month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    return date(year, month, 1) + timedelta(days=value.day - 1)


def with_day(value: date, day: int) -> date:
    """Pin to a day of the same month, clamping to its last day"""
    return value.replace(day=min(day, last_day_of_month(value.year, value.month)))


def with_day_overflowing(value: date, day: int) -> date:
    """Pin to a day of the same month, rolling over when it does not exist"""
    return value.replace(day=1) + timedelta(days=day - 1)


def sunday_based_weekday(value: date) -> int:
    """Weekday number with Sunday=0 ... Saturday=6"""
    return (value.weekday() + 1) % 7


def get_current_timestamp() -> str:
    """Get current timestamp in ISO format"""
    return datetime.now().isoformat()
