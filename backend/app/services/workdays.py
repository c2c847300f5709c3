"""
Working-day calendar arithmetic.

Monday to Friday are working days; Saturday and Sunday are not. There is
no holiday calendar. Every function here is pure date arithmetic.
"""

from datetime import date, timedelta

SATURDAY = 5
ONE_DAY = timedelta(days=1)


def is_working_day(day: date) -> bool:
    """Return False for Saturday/Sunday, True otherwise."""
    return day.weekday() < SATURDAY


def add_working_days(start: date, days: int) -> date:
    """
    Advance `days` working days from `start`, skipping weekends.

    add_working_days(d, 0) returns d unchanged, so a 1-day task ends on the
    day it starts. A negative count walks backwards.
    """
    if days < 0:
        return subtract_working_days(start, -days)

    result = start
    added = 0
    while added < days:
        result += ONE_DAY
        if is_working_day(result):
            added += 1
    return result


def subtract_working_days(end: date, days: int) -> date:
    """Mirror of add_working_days: retreat `days` working days from `end`."""
    if days < 0:
        return add_working_days(end, -days)

    result = end
    subtracted = 0
    while subtracted < days:
        result -= ONE_DAY
        if is_working_day(result):
            subtracted += 1
    return result


def next_working_day(day: date) -> date:
    """Return `day` if it is a working day, else the following Monday."""
    while not is_working_day(day):
        day += ONE_DAY
    return day


def previous_working_day(day: date) -> date:
    """Return `day` if it is a working day, else the preceding Friday."""
    while not is_working_day(day):
        day -= ONE_DAY
    return day


def working_days_between(start: date, end: date) -> int:
    """
    Count working days in the inclusive range [start, end].

    Returns 0 when end is before start.
    """
    if end < start:
        return 0

    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    day = start + timedelta(days=full_weeks * 7)
    for _ in range(remainder):
        if is_working_day(day):
            count += 1
        day += ONE_DAY
    return count
