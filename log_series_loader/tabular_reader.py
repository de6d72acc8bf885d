import csv
import logging
import math
from datetime import datetime, time
from io import BytesIO, StringIO
from typing import Any, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .error_handling import MalformedTableError
from .ts_config import LoadingConfig

logger = logging.getLogger(__name__)

RawCell = Union[str, int, float, datetime, time, None]
RawRow = List[RawCell]
RawGrid = List[RawRow]


def cell_text(cell: Any) -> str:
    """Trimmed string form of a cell; absent cells are empty."""
    if cell is None:
        return ""
    return str(cell).strip()


def is_blank_row(row: Sequence[Any]) -> bool:
    return all(not cell_text(cell) for cell in row)


def sniff_delimiter(text: str, candidates: Sequence[str]) -> str:
    """
    Guess the field delimiter from the first non-empty lines.

    Args:
        text: Decoded file content
        candidates: Delimiters to choose from, in order of preference

    Returns:
        The detected delimiter, or the first candidate when undecidable
    """
    sample_lines = [line for line in text.splitlines() if line.strip()][:25]
    sample = "\n".join(sample_lines)
    if sample:
        try:
            return csv.Sniffer().sniff(sample, delimiters="".join(candidates)).delimiter
        except csv.Error:
            pass

    counts = {candidate: sample.count(candidate) for candidate in candidates}
    best = max(candidates, key=lambda candidate: counts[candidate])
    return best if counts[best] else candidates[0]


def _normalize_cell(value: Any) -> RawCell:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, pd.Timestamp):
        return None if pd.isna(value) else value.to_pydatetime()
    if isinstance(value, (datetime, time)):
        return value
    if isinstance(value, (np.bool_, bool)):
        return bool(value)
    if isinstance(value, np.integer):
        return int(value)
    if isinstance(value, (float, np.floating)):
        return None if math.isnan(value) else float(value)
    return value


def _frame_to_grid(frame: pd.DataFrame) -> RawGrid:
    grid = []
    for values in frame.itertuples(index=False, name=None):
        row = [_normalize_cell(value) for value in values]
        # Short rows are padded with NaN by pandas; restore the ragged shape
        while row and row[-1] is None:
            row.pop()
        if not is_blank_row(row):
            grid.append(row)
    return grid


def read_delimited(text: str, config: Optional[LoadingConfig] = None) -> RawGrid:
    """
    Parse delimited text into a grid of string cells.

    Rows whose fields are all empty after trimming are dropped. Structural
    errors such as an unterminated quoted field raise MalformedTableError.

    Args:
        text: Decoded file content
        config: Loading configuration (delimiter, candidates)

    Returns:
        Row-major grid; rows keep their own length
    """
    config = config or LoadingConfig()
    text = text.lstrip("\ufeff")
    if not text.strip():
        return []

    delimiter = config.delimiter or sniff_delimiter(
        text, config.delimiter_candidates
    )
    logger.debug(f"Reading delimited text with delimiter {delimiter!r}")

    # Upper bound on the field count; quoted delimiters only overestimate
    width = max(line.count(delimiter) for line in text.splitlines()) + 1
    try:
        frame = pd.read_csv(
            StringIO(text),
            sep=delimiter,
            header=None,
            names=range(width),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            quotechar='"',
        )
    except pd.errors.EmptyDataError:
        return []
    except pd.errors.ParserError as e:
        raise MalformedTableError(filepath=None, reason=str(e))

    return _frame_to_grid(frame)


def read_spreadsheet(
    content: bytes, engine: Optional[str] = None, config: Optional[LoadingConfig] = None
) -> RawGrid:
    """
    Read one sheet of a workbook into a grid of natively typed cells.

    Numbers stay numbers and dates stay datetimes; blank rows are dropped.

    Args:
        content: Raw workbook bytes
        engine: pandas Excel engine (``openpyxl`` for .xlsx, ``xlrd`` for .xls)
        config: Loading configuration (sheet selection)

    Returns:
        Row-major grid; rows keep their own length
    """
    config = config or LoadingConfig()
    frame = pd.read_excel(
        BytesIO(content),
        sheet_name=config.sheet_name,
        header=None,
        engine=engine,
    )
    return _frame_to_grid(frame.astype(object))
