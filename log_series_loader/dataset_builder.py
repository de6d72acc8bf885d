import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from .cell_parsers import DEFAULT_FORMATS
from .error_handling import InvalidHeaderError, NoValidTimestampsError
from .header_locator import header_labels
from .tabular_reader import RawGrid
from .timestamp_composer import compose_timestamp
from .ts_config import DateTimeFormatConfig, HeaderConfig
from .utils import to_numeric

logger = logging.getLogger(__name__)

Series = List[Optional[float]]


@dataclass
class ParsedData:
    """Timestamps and the numeric series aligned to them."""

    timestamps: List[datetime]
    series: Dict[str, Series]
    skipped_rows: List[int] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Return the data as a DataFrame indexed by timestamp, NaN for gaps."""
        frame = pd.DataFrame(
            {
                label: np.array(
                    [np.nan if value is None else value for value in values],
                    dtype=float,
                )
                for label, values in self.series.items()
            },
            index=pd.DatetimeIndex(self.timestamps, name="timestamp"),
        )
        return frame


@dataclass(frozen=True)
class ParsedDataset:
    """A parsed file: its data, file name and user-facing label."""

    data: ParsedData
    file_name: str
    label: str


def build_parsed_data(
    grid: RawGrid,
    header_index: int,
    formats: DateTimeFormatConfig = DEFAULT_FORMATS,
    header_config: Optional[HeaderConfig] = None,
) -> ParsedData:
    """
    Turn the rows below the header into timestamps and numeric series.

    Columns 0 and 1 feed the timestamp composer; every later header column
    becomes a series. Rows without a resolvable timestamp are dropped and
    their grid indices recorded in ``skipped_rows``. Cells that cannot be
    read as numbers become None.

    Args:
        grid: Rows produced by the tabular reader
        header_index: Index of the header row in ``grid``
        formats: Format configuration for the cell interpreters
        header_config: Header configuration (placeholder labels)

    Returns:
        ParsedData with one series entry per timestamp

    Raises:
        InvalidHeaderError: If the header has fewer than three columns
        NoValidTimestampsError: If no data row yields a timestamp
    """
    header_row = grid[header_index]
    if len(header_row) < 3:
        raise InvalidHeaderError(
            filepath=None,
            reason="At least a date column, a time column and one data column "
            f"are required, found {len(header_row)} column(s)",
        )

    labels = header_labels(header_row, header_config)
    series: Dict[str, Series] = {label: [] for label in labels}
    timestamps: List[datetime] = []
    skipped_rows: List[int] = []

    for row_index in range(header_index + 1, len(grid)):
        row = grid[row_index]
        primary = row[0] if len(row) > 0 else None
        secondary = row[1] if len(row) > 1 else None
        timestamp = compose_timestamp(primary, secondary, formats)
        if timestamp is None:
            skipped_rows.append(row_index)
            continue

        timestamps.append(timestamp)
        for column, label in enumerate(labels, start=2):
            series[label].append(to_numeric(row[column]) if column < len(row) else None)

    if not timestamps:
        raise NoValidTimestampsError(
            filepath=None,
            reason="No row produced a valid timestamp",
            context={"data_rows": len(grid) - header_index - 1},
        )

    if skipped_rows:
        logger.debug(f"Dropped {len(skipped_rows)} row(s) without a timestamp")

    return ParsedData(timestamps=timestamps, series=series, skipped_rows=skipped_rows)
