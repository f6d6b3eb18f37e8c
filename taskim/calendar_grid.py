"""
Month grid helpers.

Everything here is pure date arithmetic: no task data, no terminal.
"""
import calendar
from datetime import date, timedelta

WEEKDAY_NAMES = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
MAX_WEEKS = 6
MIN_WEEKS = 4


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date in (year, month), pulling ``day`` back to the month's last day."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def add_months(d: date, months: int) -> date:
    """First day of the month ``months`` away from ``d``'s month."""
    index = d.year * 12 + (d.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def week_start(d: date) -> date:
    # date.weekday(): Monday == 0, so shift to make Sunday the first column
    return d - timedelta(days=(d.weekday() + 1) % 7)


def build_weeks(reference_date: date):
    first_of_month = reference_date.replace(day=1)
    last_of_month = reference_date.replace(
        day=days_in_month(reference_date.year, reference_date.month))

    current = week_start(first_of_month)
    weeks = []
    for _ in range(MAX_WEEKS):
        week = []
        for _ in range(7):
            week.append(current)
            current += timedelta(days=1)
        weeks.append(week)
        if current > last_of_month and len(weeks) >= MIN_WEEKS:
            break
    return weeks
