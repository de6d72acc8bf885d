from typing import List, Optional, Sequence

from .error_handling import HeaderNotFoundError
from .tabular_reader import RawCell, RawGrid, cell_text
from .ts_config import HeaderConfig
from .utils import disambiguate_labels


def count_non_empty_cells(row: Sequence[RawCell]) -> int:
    return sum(1 for cell in row if cell_text(cell))


def locate_header(grid: RawGrid, config: Optional[HeaderConfig] = None) -> int:
    """
    Find the header row, skipping metadata or banner rows above it.

    The header is the first row, top to bottom, with at least
    ``min_header_cells`` non-empty cells.

    Args:
        grid: Rows produced by the tabular reader
        config: Header configuration

    Returns:
        Index of the header row in ``grid``

    Raises:
        HeaderNotFoundError: If no row qualifies
    """
    config = config or HeaderConfig()
    for index, row in enumerate(grid):
        if count_non_empty_cells(row) >= config.min_header_cells:
            return index

    raise HeaderNotFoundError(
        filepath=None,
        reason=f"No header row with at least {config.min_header_cells} "
        f"non-empty cells was found",
        context={"rows_scanned": len(grid)},
    )


def header_labels(row: Sequence[RawCell], config: Optional[HeaderConfig] = None) -> List[str]:
    """
    Return the trimmed labels of the data columns (index 2 onwards).

    Empty labels are replaced with ``<placeholder_prefix><N>``, N counting
    data columns from 1, so column positions are preserved. Repeated labels
    are made unique so every column keeps its own series.
    """
    config = config or HeaderConfig()
    labels = [
        cell_text(cell) or f"{config.placeholder_prefix}{position}"
        for position, cell in enumerate(row[2:], start=1)
    ]
    return disambiguate_labels(labels)
