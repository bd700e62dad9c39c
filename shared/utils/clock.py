import calendar
from datetime import date, datetime, timezone
from typing import Iterator, Optional

from dateutil.relativedelta import relativedelta


def today() -> date:
    """Current calendar day; time of day is dropped for due-date comparisons."""
    return date.today()


def now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_today(value: Optional[date] = None) -> date:
    if value is None:
        return today()
    if isinstance(value, datetime):
        return value.date()
    return value


def due_date_for(year: int, month: int, day_of_month: int) -> date:
    """
    Due date for a given month. A day past the end of the month is clamped
    to the month's last day (31 -> Feb 28/29, Apr 30 ...).
    """
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day_of_month, last_day))


def months_between(start: date, end: date) -> Iterator[date]:
    """First day of every calendar month touched by [start, end], inclusive."""
    cursor = start.replace(day=1)
    last = end.replace(day=1)
    i = 0
    while cursor <= last:
        yield cursor
        i += 1
        cursor = start.replace(day=1) + relativedelta(months=i)


def next_month_start(value: date) -> date:
    return value.replace(day=1) + relativedelta(months=1)
