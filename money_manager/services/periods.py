# money_manager/services/periods.py

import calendar
import datetime as dt
from typing import Optional


def add_months(day: dt.date, months: int) -> dt.date:
    """Shift by whole months, clamping to the last day of a shorter month (Jan 31 -> Feb 28)."""
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    last = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day.day, last))


def period_end(start: dt.date, period: str) -> dt.date:
    """Inclusive end of a budget window that opens on `start`."""
    if period == "weekly":
        return start + dt.timedelta(days=7)
    if period == "yearly":
        return add_months(start, 12)
    return add_months(start, 1)


def month_bounds(today: Optional[dt.date] = None) -> tuple[dt.date, dt.date]:
    today = today or dt.date.today()
    first = today.replace(day=1)
    last = today.replace(day=calendar.monthrange(today.year, today.month)[1])
    return first, last


def next_payment_date(due_day: int, today: Optional[dt.date] = None) -> dt.date:
    """Next date falling on `due_day`, today included. Short months use their last day."""
    today = today or dt.date.today()
    this_month = today.replace(day=1)
    last = calendar.monthrange(this_month.year, this_month.month)[1]
    candidate = this_month.replace(day=min(due_day, last))
    if candidate >= today:
        return candidate
    following = add_months(this_month, 1)
    last = calendar.monthrange(following.year, following.month)[1]
    return following.replace(day=min(due_day, last))
