# timeparse.py
"""Date and time-of-day parsing for job records.

Job dates arrive in several shapes depending on where the row came from:
plain ``YYYY-MM-DD`` dates, full ISO timestamps, or human formatted strings.
They are matched against ``DATE_FORMATS`` in order and the first format that
parses wins. Only when none match is ``pandas.to_datetime`` tried as a
general purpose fallback.

Nothing here raises on bad input: every function returns ``None`` instead,
and callers treat ``None`` as "contributes nothing".
"""
from __future__ import annotations

import warnings
from datetime import date, datetime, time
from typing import Any

import pandas as pd

# Order matters: "01/02/2024" is read day first (1 February), never month first.
# %b is matched against English abbreviations (the process keeps the C locale).
DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
    "%d %b %Y",
    "%d/%m/%Y",
)

TIME_FORMAT = "%H:%M"


def _fallback_parse(text: str) -> date | None:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            ts = pd.to_datetime(text, errors="coerce")
        except (ValueError, TypeError, OverflowError):
            return None
    if pd.isna(ts):
        return None
    # the year must be written out; "March 4" would otherwise get a made-up year
    if f"{ts.year:04d}" not in text:
        return None
    return ts.date()


def parse_job_date(value: Any) -> date | None:
    """Returns the calendar date of ``value`` or None.

    Datetimes keep their wall-clock date: an offset such as ``+02:00`` is
    never converted, so a record cannot move to another day.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if pd.isna(value):
            return None
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return _fallback_parse(text)


def parse_time_of_day(value: Any) -> time | None:
    """Parses ``HH:MM`` or ``HH:MM:SS``; only the first 5 characters count."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.time().replace(second=0, microsecond=0, tzinfo=None)
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0, tzinfo=None)
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip()[:5], TIME_FORMAT).time()
    except ValueError:
        return None


def make_instant(job_date: Any, time_value: Any) -> datetime | None:
    """Combines a job date and a time of day into a naive datetime, or None."""
    d = parse_job_date(job_date)
    if d is None:
        return None
    t = parse_time_of_day(time_value)
    if t is None:
        return None
    return datetime.combine(d, t)


__all__ = ["DATE_FORMATS", "parse_job_date", "parse_time_of_day", "make_instant"]
