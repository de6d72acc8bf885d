from dataclasses import dataclass
from typing import Tuple, Union

DEFAULT_DATE_FORMATS = ("YYYY/MM/DD", "YYYY-MM-DD", "YYYY.MM.DD", "YYYYMMDD")
DEFAULT_TIME_FORMATS = ("HH:mm:ss.SSS", "HH:mm:ss", "HH:mm", "HHmmss", "HHmm")


@dataclass(frozen=True)
class DateTimeFormatConfig:
    """Format templates and bounds used by the date and time interpreters."""

    date_formats: Tuple[str, ...] = DEFAULT_DATE_FORMATS
    time_formats: Tuple[str, ...] = DEFAULT_TIME_FORMATS
    # Hours above 23 are accepted so elapsed-hour logs still parse
    max_hour: int = 99
    date1904: bool = False


@dataclass
class LoadingConfig:
    """Configuration for decoding and reading raw files."""

    delimiter: str = None  # None sniffs among delimiter_candidates
    delimiter_candidates: Tuple[str, ...] = (",", "\t", ";", "|")
    fallback_encoding: str = "cp932"
    sheet_name: Union[int, str] = 0


@dataclass
class HeaderConfig:
    """Configuration for header detection and column naming."""

    min_header_cells: int = 3
    placeholder_prefix: str = "Data"


@dataclass
class MergeConfig:
    """Configuration for combining several parsed files."""

    label_template: str = "[{label}] {column}"
    sort_single_file: bool = False
    validate_datasets: bool = False
