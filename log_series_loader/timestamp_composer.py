from datetime import date, datetime, timedelta
from typing import Any, Optional

from .cell_parsers import (
    DEFAULT_FORMATS,
    MIDNIGHT,
    TimeOfDay,
    parse_date_cell,
    parse_time_cell,
)
from .ts_config import DateTimeFormatConfig


def combine(day: date, time_of_day: TimeOfDay) -> datetime:
    """
    Place a wall-clock time on a calendar date.

    Hours beyond 23 roll over into the following days.
    """
    return datetime(day.year, day.month, day.day) + timedelta(
        hours=time_of_day.hour,
        minutes=time_of_day.minute,
        seconds=time_of_day.second,
        milliseconds=time_of_day.millisecond,
    )


def compose_timestamp(
    primary: Any,
    secondary: Any,
    formats: DateTimeFormatConfig = DEFAULT_FORMATS,
) -> Optional[datetime]:
    """
    Combine a date-bearing cell and a time-bearing cell into one instant.

    The default layout is primary=date, secondary=time, but the reversed
    layout and a single combined date-time cell are tolerated:

    1. If the primary cell is a date, take the time from the secondary cell,
       else from the primary cell itself, else midnight.
    2. Otherwise, if the secondary cell is a date, take the time from the
       primary cell, else midnight.
    3. Otherwise the row has no timestamp.

    Args:
        primary: First cell of the row
        secondary: Second cell of the row
        formats: Format configuration for the interpreters

    Returns:
        The composed datetime, or None if neither cell holds a date
    """
    primary_date = parse_date_cell(primary, formats)
    if primary_date is not None:
        time_of_day = (
            parse_time_cell(secondary, formats)
            or parse_time_cell(primary, formats)
            or MIDNIGHT
        )
        return combine(primary_date, time_of_day)

    secondary_date = parse_date_cell(secondary, formats)
    if secondary_date is not None:
        time_of_day = parse_time_cell(primary, formats) or MIDNIGHT
        return combine(secondary_date, time_of_day)

    return None
