import math
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd

SECONDS_PER_DAY = 86400
MAX_SERIAL = 2958465  # 9999-12-31
DATE1904_OFFSET = 1462
# Serial 60 is the fictitious 1900-02-29 kept for Lotus 1-2-3 compatibility
PHANTOM_LEAP_SERIAL = 60


@dataclass(frozen=True)
class SerialDateParts:
    """Calendar date and wall-clock components decoded from a date serial."""

    day: date
    hour: int
    minute: int
    second: int
    millisecond: int


def _serial_day_to_date(days: int) -> date:
    if days == 0:
        return date(1899, 12, 31)
    if days == PHANTOM_LEAP_SERIAL:
        # Rolls over the same way a JavaScript Date does
        return date(1900, 3, 1)
    if days > PHANTOM_LEAP_SERIAL:
        days -= 1
    return date(1900, 1, 1) + timedelta(days=days - 1)


def parse_date_code(value: float, date1904: bool = False) -> Optional[SerialDateParts]:
    """
    Decode a spreadsheet date serial.

    The integer part counts days from the spreadsheet epoch and the
    fractional part is the time of day. Sub-second remainders within 1e-4 s
    of the next second round up to it.

    Args:
        value: Serial number
        date1904: Whether the workbook uses the 1904 date system

    Returns:
        SerialDateParts, or None when the serial is out of range

    Example:
        >>> parse_date_code(45658.5)
        SerialDateParts(day=datetime.date(2025, 1, 1), hour=12, minute=0, second=0, millisecond=0)
    """
    if not math.isfinite(value) or value < 0 or value > MAX_SERIAL:
        return None

    days = int(value)
    seconds = math.floor(SECONDS_PER_DAY * (value - days))
    fraction = SECONDS_PER_DAY * (value - days) - seconds
    if abs(fraction) < 1e-6:
        fraction = 0.0
    if date1904:
        days += DATE1904_OFFSET
    if fraction > 0.9999:
        fraction = 0.0
        seconds += 1
        if seconds == SECONDS_PER_DAY:
            seconds = 0
            days += 1

    hour, remainder = divmod(seconds, 3600)
    minute, second = divmod(remainder, 60)
    return SerialDateParts(
        day=_serial_day_to_date(days),
        hour=hour,
        minute=minute,
        second=second,
        millisecond=min(999, round(fraction * 1000)),
    )


def datetime_to_serial(value: datetime, date1904: bool = False) -> float:
    """
    Encode a datetime as a spreadsheet date serial (inverse of parse_date_code).

    Args:
        value: Naive datetime to encode
        date1904: Whether to use the 1904 date system

    Returns:
        Serial number with millisecond precision in its fractional part
    """
    day = value.date()
    if day < date(1900, 3, 1):
        days = (day - date(1899, 12, 31)).days
    else:
        days = (day - date(1899, 12, 30)).days
    if date1904:
        days -= DATE1904_OFFSET

    seconds = (
        value.hour * 3600
        + value.minute * 60
        + value.second
        + (value.microsecond // 1000) / 1000
    )
    return days + seconds / SECONDS_PER_DAY


def to_numeric(value: Any) -> Optional[float]:
    """
    Coerce one raw cell to a number.

    Finite numbers pass through, native dates become their millisecond epoch
    value, strings are trimmed and parsed as decimals. Anything else is None.

    Example:
        >>> to_numeric(" 3.30 ")
        3.3
        >>> to_numeric("n/a") is None
        True
    """
    if value is None or isinstance(value, (bool, np.bool_)):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, date):
        return float(pd.Timestamp(value).value // 10**6)
    if isinstance(value, time):
        return None

    text = str(value).strip()
    if not text or "_" in text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def disambiguate_labels(labels: Sequence[str]) -> List[str]:
    """
    Make labels unique by appending a counter to repeated occurrences.

    The first occurrence keeps its label; later ones get `` (2)``, `` (3)``
    and so on, skipping any suffix that is already taken.

    Example:
        >>> disambiguate_labels(["log.csv", "log.csv", "other.csv"])
        ['log.csv', 'log.csv (2)', 'other.csv']
    """
    seen = Counter()
    taken = set(labels)
    result = []
    for label in labels:
        seen[label] += 1
        if seen[label] == 1:
            result.append(label)
            continue
        counter = seen[label]
        candidate = f"{label} ({counter})"
        while candidate in taken:
            counter += 1
            candidate = f"{label} ({counter})"
        taken.add(candidate)
        result.append(candidate)
    return result
