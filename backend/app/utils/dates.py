# app/utils/dates.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any

import pandas as pd

DAY_FIRST_FORMAT = "%d/%m/%Y"

_DAY_FIRST_RE = re.compile(r"^\s*(\d{1,2})[/.-](\d{1,2})[/.-](\d{4})\s*$")
_ISO_RE = re.compile(r"^\s*\d{4}-\d{2}-\d{2}([T ][\d:.]+(Z|[+-]\d{2}:?\d{2})?)?\s*$")


def format_day_first(value: date | datetime) -> str:
    return value.strftime(DAY_FIRST_FORMAT)


def normalize_date(value: Any) -> str:
    """
    Return ``value`` as ``DD/MM/YYYY`` text.

    Spreadsheet hosts turn date-looking text into native dates; those come back as
    datetime/Timestamp objects (or ISO strings once serialized) and are formatted
    back to day-first text here. Text that is not recognisably a date is kept as is.
    """
    if value is None or value is pd.NaT:
        return ""
    if isinstance(value, pd.Timestamp):
        return format_day_first(value.to_pydatetime())
    if isinstance(value, (datetime, date)):
        return format_day_first(value)

    text = str(value).strip()
    if not text:
        return ""

    m = _DAY_FIRST_RE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return format_day_first(date(year, month, day))
        except ValueError:
            return text

    if _ISO_RE.match(text):
        parsed = pd.to_datetime(text, errors="coerce")
        if not pd.isna(parsed):
            return format_day_first(parsed.to_pydatetime())

    return text


__all__ = ["DAY_FIRST_FORMAT", "format_day_first", "normalize_date"]
