"""
Recurrence Date Math
Next-run computation for recurring vouchers
"""

from datetime import date, timedelta

from ..models.recurring import Frequency, RecurringVoucher
from ..utils.helpers import (
    add_months,
    add_months_overflowing,
    last_day_of_month,
    sunday_based_weekday,
    with_day,
    with_day_overflowing,
)


def _add_years(value: date, years: int) -> date:
    year = value.year + years
    return date(year, value.month, min(value.day, last_day_of_month(year, value.month)))


def calculate_next_run_date(recurring: RecurringVoucher, legacy_quarterly_overflow: bool = False) -> date:
    """Next run from lastRunDate (or startDate when it never ran)

    Monthly and quarterly day-of-month pins clamp to the end of a short month
    (Jan 31 + 1 month = Feb 28/29). With ``legacy_quarterly_overflow`` the
    quarterly branch rolls the surplus days into the next month instead.
    """
    base = recurring.last_run_date or recurring.start_date
    interval = recurring.interval
    frequency = recurring.frequency

    if frequency == Frequency.DAILY:
        return base + timedelta(days=interval)

    if frequency == Frequency.WEEKLY:
        next_date = base + timedelta(days=7 * interval)
        if recurring.week_day is not None:
            next_date += timedelta(days=recurring.week_day - sunday_based_weekday(next_date))
        return next_date

    if frequency == Frequency.MONTHLY:
        next_date = add_months(base, interval)
        if recurring.day_of_month:
            next_date = with_day(next_date, recurring.day_of_month)
        return next_date

    if frequency == Frequency.QUARTERLY:
        if legacy_quarterly_overflow:
            next_date = add_months_overflowing(base, 3 * interval)
            if recurring.day_of_month:
                next_date = with_day_overflowing(next_date, recurring.day_of_month)
            return next_date
        next_date = add_months(base, 3 * interval)
        if recurring.day_of_month:
            next_date = with_day(next_date, recurring.day_of_month)
        return next_date

    if frequency == Frequency.YEARLY:
        next_date = _add_years(base, interval)
        if recurring.month_of_year and recurring.day_of_month:
            month = recurring.month_of_year
            next_date = date(
                next_date.year, month,
                min(recurring.day_of_month, last_day_of_month(next_date.year, month)),
            )
        return next_date

    raise ValueError(f"Unknown frequency: {frequency}")


def is_due(recurring: RecurringVoucher, today: date) -> bool:
    return (
        recurring.is_active
        and not recurring.is_paused
        and recurring.next_run_date is not None
        and recurring.next_run_date <= today
        and (recurring.end_date is None or recurring.end_date >= today)
    )


def is_exhausted(recurring: RecurringVoucher) -> bool:
    """Consecutive failures have used up the retry budget"""
    return recurring.max_retries > 0 and recurring.retry_count >= recurring.max_retries
