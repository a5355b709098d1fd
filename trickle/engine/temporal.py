"""Temporal arithmetic.

Converts elapsed wall-clock time into accrued currency. Everything is simple
elapsed-seconds arithmetic: a "month" is a fixed 30.416 days, not a calendar
month.
"""

from datetime import datetime, timedelta

DAYS_PER_MONTH = 30.416
SECONDS_PER_DAY = 24 * 60 * 60
SECONDS_PER_WEEK = 7 * SECONDS_PER_DAY
SECONDS_PER_MONTH = DAYS_PER_MONTH * SECONDS_PER_DAY

# Anything at or below 0.01 per month never fills a bucket.
NEGLIGIBLE_INCOME = 0.01 / SECONDS_PER_MONTH


def seconds_between(start: datetime, end: datetime) -> float:
    """Signed number of seconds from `start` to `end`."""
    return (end - start).total_seconds()


def shift(when: datetime, seconds: float) -> datetime:
    return when + timedelta(seconds=seconds)


def accrued(rate_per_second: float, start: datetime, end: datetime) -> float:
    """Currency accrued at `rate_per_second` between two instants.

    Negative when `end` precedes `start`; callers clamp where that is invalid.
    """
    return rate_per_second * seconds_between(start, end)


def per_second(monthly: float) -> float:
    """Convert a monthly figure into a per-second rate."""
    return monthly / SECONDS_PER_MONTH


def per_month(rate_per_second: float) -> float:
    return rate_per_second * SECONDS_PER_MONTH


def income_for_completion(target_amount: float, start: datetime, completion: datetime) -> float:
    """Per-second income that fills `target_amount` between two instants.

    Returns 0.0 when the completion date is not after the start.
    """
    seconds = seconds_between(start, completion)
    if seconds <= 0:
        return 0.0
    return target_amount / seconds
