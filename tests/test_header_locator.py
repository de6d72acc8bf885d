import pytest

from log_series_loader.error_handling import HeaderNotFoundError
from log_series_loader.header_locator import (
    count_non_empty_cells,
    header_labels,
    locate_header,
)
from log_series_loader.ts_config import HeaderConfig


def test_count_non_empty_cells():
    assert count_non_empty_cells(["a", "", "  ", None, 0, "b"]) == 3


def test_header_on_first_row():
    grid = [["Date", "Time", "Temp"], ["2024/01/01", "00:00", "1"]]
    assert locate_header(grid) == 0


def test_banner_rows_are_skipped():
    grid = [
        ["Logger export v1.2"],
        ["Device", "TX-100"],
        ["Date", "Time", "Temp", "Volt"],
        ["2024/01/01", "00:00", "1", "2"],
    ]
    assert locate_header(grid) == 2


def test_banner_with_blank_padding_is_not_a_header():
    grid = [
        ["Serial", "", "", "", "A-17"],
        ["Date", "Time", "Temp", "Volt"],
    ]
    assert locate_header(grid) == 1


def test_no_header_found():
    with pytest.raises(HeaderNotFoundError) as exc_info:
        locate_header([["a", "b"], ["1", "2"]])
    assert exc_info.value.context["rows_scanned"] == 2


def test_empty_grid():
    with pytest.raises(HeaderNotFoundError):
        locate_header([])


def test_min_header_cells_is_configurable():
    grid = [["a", "b"], ["Date", "Time", "Temp", "Volt"]]
    assert locate_header(grid, HeaderConfig(min_header_cells=2)) == 0
    assert locate_header(grid, HeaderConfig(min_header_cells=4)) == 1


class TestHeaderLabels:
    def test_data_columns_only(self):
        assert header_labels(["Date", "Time", " Temp ", "Volt"]) == ["Temp", "Volt"]

    def test_placeholders_keep_positions(self):
        assert header_labels(["Date", "Time", "", "Volt", None]) == [
            "Data1",
            "Volt",
            "Data3",
        ]

    def test_placeholder_prefix(self):
        config = HeaderConfig(placeholder_prefix="Column")
        assert header_labels(["Date", "Time", ""], config) == ["Column1"]

    def test_repeated_labels_are_made_unique(self):
        assert header_labels(["Date", "Time", "Temp", "Temp"]) == ["Temp", "Temp (2)"]
