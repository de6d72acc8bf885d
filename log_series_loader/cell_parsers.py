"""
Date and time interpreters for heterogeneous log cells.

Each interpreter is total: it returns None when no strategy recognises the
cell and never raises. Strategies are tried in a fixed priority order:
native values, spreadsheet serials, structural string forms, the named
format templates of a DateTimeFormatConfig, and finally a free-form parse.
"""

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from functools import lru_cache
from typing import Any, Optional, Pattern, Tuple

import pandas as pd
from dateutil import parser as date_parser

from .ts_config import DateTimeFormatConfig
from .utils import parse_date_code

DEFAULT_FORMATS = DateTimeFormatConfig()

# Quote characters some spreadsheets prepend to force a cell to text
_QUOTE_ARTIFACT = re.compile(r"^['\"＇‘’＂]+")
_EIGHT_DIGITS = re.compile(r"^\d{8}$")
_SIX_DIGITS = re.compile(r"^\d{6}$")
_FOUR_DIGITS = re.compile(r"^\d{4}$")
# Strings that a free-form parser would complete with today's date
_BARE_TIME = re.compile(r"^\d{1,2}(:\d{1,2}){1,2}([.,]\d+)?$|^\d{1,6}$")

_DISTINCT_DEFAULTS = (datetime(1999, 1, 1), datetime(2000, 2, 2))

_TEMPLATE_TOKENS = (
    ("YYYY", r"(?P<year>\d{4})"),
    ("MM", r"(?P<month>\d{2})"),
    ("DD", r"(?P<day>\d{2})"),
    ("HH", r"(?P<hour>\d{2})"),
    ("mm", r"(?P<minute>\d{2})"),
    ("ss", r"(?P<second>\d{2})"),
    ("SSS", r"(?P<millisecond>\d{3})"),
)


@dataclass(frozen=True)
class TimeOfDay:
    """Wall-clock time with millisecond resolution."""

    hour: int
    minute: int
    second: int = 0
    millisecond: int = 0

    @classmethod
    def create(
        cls,
        hour: float,
        minute: float,
        second: float = 0,
        millisecond: float = 0,
        max_hour: int = 99,
    ) -> Optional["TimeOfDay"]:
        """Build a TimeOfDay, or None if any component is out of range."""
        parts = (hour, minute, second, millisecond)
        if not all(_is_whole(part) for part in parts):
            return None
        if not 0 <= hour <= max_hour:
            return None
        if not 0 <= minute <= 59 or not 0 <= second <= 59:
            return None
        if not 0 <= millisecond <= 999:
            return None
        return cls(int(hour), int(minute), int(second), int(millisecond))


MIDNIGHT = TimeOfDay(0, 0, 0, 0)


def normalize_text_cell(value: str) -> str:
    """Strip a leading quote artifact and surrounding whitespace."""
    return _QUOTE_ARTIFACT.sub("", value.strip()).strip()


def _is_whole(number: Optional[float]) -> bool:
    return number is not None and math.isfinite(number) and number == int(number)


def _to_number(text: str) -> Optional[float]:
    text = text.strip()
    if not text:
        return None
    try:
        return float(text)
    except ValueError:
        return None


@lru_cache(maxsize=None)
def compile_template(template: str) -> Pattern:
    """
    Compile a format template such as ``YYYY/MM/DD`` into a strict regex.

    Example:
        >>> bool(compile_template("HH:mm").match("08:30"))
        True
    """
    pattern = ""
    position = 0
    while position < len(template):
        for token, group in _TEMPLATE_TOKENS:
            if template.startswith(token, position):
                pattern += group
                position += len(token)
                break
        else:
            pattern += re.escape(template[position])
            position += 1
    return re.compile(f"^{pattern}$")


# Date interpreter


def date_from_parts(year: float, month: float, day: float) -> Optional[date]:
    if not all(_is_whole(part) for part in (year, month, day)):
        return None
    if not 1 <= month <= 12 or not 1 <= day <= 31:
        return None
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_date_structural(text: str) -> Optional[date]:
    """Interpret ``Y<sep>M<sep>D`` with / - or . separators, or ``YYYYMMDD``."""
    delimiter = next((sep for sep in "/-." if sep in text), None)
    if delimiter:
        segments = text.split(delimiter)
        if len(segments) != 3:
            return None
        return date_from_parts(*(_to_number(segment) for segment in segments))
    if _EIGHT_DIGITS.match(text):
        return date_from_parts(int(text[:4]), int(text[4:6]), int(text[6:8]))
    return None


def parse_date_template(text: str, template: str) -> Optional[date]:
    match = compile_template(template).match(text)
    if not match:
        return None
    fields = match.groupdict()
    if not {"year", "month", "day"} <= fields.keys():
        return None
    return date_from_parts(
        int(fields["year"]), int(fields["month"]), int(fields["day"])
    )


def has_complete_date(text: str) -> bool:
    """
    Whether ``text`` states its own year, month and day.

    The text is parsed against two defaults that differ in every date
    field; any field filled from a default makes the results disagree.

    Example:
        >>> has_complete_date("Jan 15, 2024"), has_complete_date("8:30 PM")
        (True, False)
    """
    results = []
    for default in _DISTINCT_DEFAULTS:
        try:
            results.append(date_parser.parse(text, default=default).date())
        except (ValueError, OverflowError, TypeError):
            return False
    return results[0] == results[1]


def parse_freeform_datetime(text: str) -> Optional[datetime]:
    """
    Last-resort parse of an arbitrary date or date-time string.

    Text that leaves the year, month or day unstated is rejected rather than
    completed with today's date or a fixed epoch.
    """
    if not has_complete_date(text):
        return None
    try:
        parsed = pd.to_datetime(text, errors="coerce")
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed is None or pd.isna(parsed):
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.tz_localize(None)
    return parsed.to_pydatetime()


def parse_date_cell(
    value: Any, formats: DateTimeFormatConfig = DEFAULT_FORMATS
) -> Optional[date]:
    """
    Interpret a raw cell as a calendar date.

    Args:
        value: Raw cell (text, number, native date or None)
        formats: Format templates and serial epoch to use

    Returns:
        The calendar date, or None if no strategy recognises the cell
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool) or value is None or isinstance(value, time):
        return None
    if isinstance(value, (int, float)):
        parts = parse_date_code(float(value), formats.date1904)
        return parts.day if parts else None
    if not isinstance(value, str):
        return None

    text = normalize_text_cell(value)
    if not text:
        return None

    parsed = parse_date_structural(text)
    if parsed:
        return parsed

    for template in formats.date_formats:
        parsed = parse_date_template(text, template)
        if parsed:
            return parsed

    if _BARE_TIME.match(text):
        return None
    fallback = parse_freeform_datetime(text)
    return fallback.date() if fallback else None


# Time interpreter


def parse_seconds_component(text: str) -> Optional[Tuple[float, int]]:
    """Split ``SS[.fff]`` into (second, millisecond); empty means zero."""
    text = text.strip()
    if not text:
        return 0, 0
    if "." in text:
        whole, _, fraction = text.partition(".")
        second = _to_number(whole)
        if second is None or (fraction and not fraction.isdigit()):
            return None
        fraction_value = float(f"0.{fraction}") if fraction else 0.0
        return second, min(999, round(fraction_value * 1000))
    second = _to_number(text)
    return None if second is None else (second, 0)


def parse_colon_time(text: str, max_hour: int = 99) -> Optional[TimeOfDay]:
    """Interpret ``H:M`` or ``H:M:S[.fff]``."""
    segments = text.split(":")
    if not 2 <= len(segments) <= 3:
        return None
    hour = _to_number(segments[0])
    minute = _to_number(segments[1])
    if hour is None or minute is None:
        return None
    if len(segments) == 2:
        return TimeOfDay.create(hour, minute, max_hour=max_hour)

    seconds = parse_seconds_component(segments[2])
    if seconds is None:
        return None
    return TimeOfDay.create(hour, minute, *seconds, max_hour=max_hour)


def parse_compact_time(text: str, max_hour: int = 99) -> Optional[TimeOfDay]:
    """Interpret ``HHMMSS`` or ``HHMM``."""
    if _SIX_DIGITS.match(text):
        return TimeOfDay.create(
            int(text[:2]), int(text[2:4]), int(text[4:6]), max_hour=max_hour
        )
    if _FOUR_DIGITS.match(text):
        return TimeOfDay.create(int(text[:2]), int(text[2:4]), max_hour=max_hour)
    return None


def parse_time_template(
    text: str, template: str, max_hour: int = 99
) -> Optional[TimeOfDay]:
    match = compile_template(template).match(text)
    if not match:
        return None
    fields = {key: int(number) for key, number in match.groupdict().items()}
    if not {"hour", "minute"} <= fields.keys():
        return None
    return TimeOfDay.create(
        fields["hour"],
        fields["minute"],
        fields.get("second", 0),
        fields.get("millisecond", 0),
        max_hour=max_hour,
    )


def parse_freeform_time(text: str) -> Optional[TimeOfDay]:
    """Last-resort parse of a time, alone or inside a date-time string."""
    if "/" in text or "-" in text:
        # A date is present, so only a combined date-time yields a time
        candidate = parse_freeform_datetime(text) if ":" in text else None
    else:
        candidate = parse_freeform_datetime(f"1970-01-01 {text}")
    if candidate is None:
        return None
    return TimeOfDay(
        candidate.hour,
        candidate.minute,
        candidate.second,
        candidate.microsecond // 1000,
    )


def time_from_native(value: Any) -> TimeOfDay:
    return TimeOfDay(
        value.hour, value.minute, value.second, value.microsecond // 1000
    )


def parse_time_cell(
    value: Any, formats: DateTimeFormatConfig = DEFAULT_FORMATS
) -> Optional[TimeOfDay]:
    """
    Interpret a raw cell as a time of day.

    None means "no time found", which is distinct from MIDNIGHT.

    Args:
        value: Raw cell (text, number, native date/time or None)
        formats: Format templates, hour bound and serial epoch to use

    Returns:
        The TimeOfDay, or None if no strategy recognises the cell
    """
    if isinstance(value, (datetime, time)):
        return time_from_native(value)
    if isinstance(value, bool) or value is None or isinstance(value, date):
        return None
    if isinstance(value, (int, float)):
        parts = parse_date_code(float(value), formats.date1904)
        if parts is None:
            return None
        return TimeOfDay(parts.hour, parts.minute, parts.second, parts.millisecond)
    if not isinstance(value, str):
        return None

    text = normalize_text_cell(value)
    if not text:
        return None

    if ":" in text:
        parsed = parse_colon_time(text, formats.max_hour)
        if parsed:
            return parsed
    parsed = parse_compact_time(text, formats.max_hour)
    if parsed:
        return parsed

    for template in formats.time_formats:
        parsed = parse_time_template(text, template, formats.max_hour)
        if parsed:
            return parsed

    return parse_freeform_time(text)
