"""Helper functions for date processing in pygl."""

import datetime
import re
import pandas as pd


def to_date(x) -> datetime.date | None:
    """Convert a date, datetime, pandas Timestamp or ISO string to datetime.date.

    Missing values (None, NaT, NA) are returned as None.
    """
    if x is None or (not isinstance(x, str) and pd.isna(x)):
        return None
    if isinstance(x, datetime.datetime):
        return x.date()
    if isinstance(x, datetime.date):
        return x
    return pd.Timestamp(x).date()


def last_day_of_month(date: datetime.date) -> datetime.date:
    """Returns the last day of the month for a given date.

    Args:
        date (datetime.date): The date for which to find the last day of its month.

    Returns:
        datetime.date: The last day of the month for the given date.
    """
    next_month = date.replace(day=28) + datetime.timedelta(days=4)
    return next_month - datetime.timedelta(days=next_month.day)


def is_month_end(date: datetime.date) -> bool:
    """True if the following day falls into a new calendar month."""
    return (date + datetime.timedelta(days=1)).day == 1


def first_day_of_next_month(date: datetime.date) -> datetime.date:
    return last_day_of_month(date) + datetime.timedelta(days=1)


def date_range(start: datetime.date, end: datetime.date):
    """Yield each calendar day from `start` to `end`, both inclusive."""
    day = start
    while day <= end:
        yield day
        day += datetime.timedelta(days=1)


def parse_date_span(
    x: datetime.date | datetime.datetime | str | int | None
) -> tuple[datetime.date | None, datetime.date | None]:
    """Converts a given period, expressed as a date, datetime, string, integer, or None,
    into a tuple of start and end dates. A single date yields (None, <date>),
    the period from inception to that date, and None an open period.

    Args:
        x (datetime.date | datetime.datetime | str | int | None): The period to be interpreted.

    Returns:
        tuple: Start and end dates of the period, either of which may be None.

    Examples:
        parse_date_span(None) -> (None, None)
        parse_date_span("2024-01-31") -> (None, datetime.date(2024, 1, 31))
        parse_date_span("2024-02") -> (datetime.date(2024, 2, 1), datetime.date(2024, 2, 29))
        parse_date_span("2024-Q2") -> (datetime.date(2024, 4, 1), datetime.date(2024, 6, 30))
        parse_date_span(2024) -> (datetime.date(2024, 1, 1), datetime.date(2024, 12, 31))
    """
    if x is None:
        return (None, None)
    if isinstance(x, datetime.date):
        return (None, to_date(x))
    if not isinstance(x, (str, int)):
        raise ValueError(f"Cannot interpret '{x}' of type {type(x).__name__} as a period.")

    text = str(x).strip()
    if re.fullmatch(r"[0-9]{4}", text):
        year = int(text)
        return (datetime.date(year, 1, 1), datetime.date(year, 12, 31))
    if re.fullmatch(r"[0-9]{4}-[0-9]{2}-[0-9]{2}", text):
        return (None, datetime.date.fromisoformat(text))
    if re.fullmatch(r"[0-9]{4}-[0-9]{2}", text):
        start = datetime.date(int(text[:4]), int(text[5:7]), 1)
        return (start, last_day_of_month(start))
    if re.fullmatch(r"[0-9]{4}-Q[1-4]", text):
        year, quarter = int(text[:4]), int(text[6])
        start = datetime.date(year, (quarter - 1) * 3 + 1, 1)
        return (start, last_day_of_month(datetime.date(year, quarter * 3, 1)))
    raise ValueError(f"Cannot interpret '{text}' as a period.")
