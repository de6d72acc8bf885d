from datetime import date, datetime, time

import pytest

from log_series_loader.cell_parsers import (
    MIDNIGHT,
    TimeOfDay,
    compile_template,
    has_complete_date,
    normalize_text_cell,
    parse_colon_time,
    parse_date_cell,
    parse_date_structural,
    parse_time_cell,
)
from log_series_loader.ts_config import DateTimeFormatConfig


class TestNormalizeTextCell:
    @pytest.mark.parametrize(
        "raw", ["'08:30", "''08:30", "＇08:30", "‘08:30", '"08:30', "  '08:30  "]
    )
    def test_strips_quote_artifacts(self, raw):
        assert normalize_text_cell(raw) == "08:30"

    def test_keeps_inner_quotes(self):
        assert normalize_text_cell("O'Neil") == "O'Neil"


class TestCompileTemplate:
    def test_tokens_become_groups(self):
        match = compile_template("YYYY.MM.DD").match("2024.01.15")
        assert match.groupdict() == {"year": "2024", "month": "01", "day": "15"}

    def test_literals_are_escaped(self):
        assert compile_template("YYYY.MM.DD").match("2024x01x15") is None


class TestParseDateCell:
    @pytest.mark.parametrize(
        "raw",
        [
            "2024/01/15",
            "2024-01-15",
            "2024.01.15",
            "20240115",
            "2024/1/15",
            "'2024/01/15",
            " 2024-01-15 ",
        ],
    )
    def test_structural_forms(self, raw):
        assert parse_date_cell(raw) == date(2024, 1, 15)

    def test_freeform_fallback(self):
        assert parse_date_cell("Jan 15, 2024") == date(2024, 1, 15)

    def test_combined_date_time_string(self):
        assert parse_date_cell("2024-01-15T08:30:00") == date(2024, 1, 15)
        assert parse_date_cell("2024/01/15 08:30:00") == date(2024, 1, 15)

    def test_native_values(self):
        assert parse_date_cell(datetime(2024, 1, 15, 8, 30)) == date(2024, 1, 15)
        assert parse_date_cell(date(2024, 1, 15)) == date(2024, 1, 15)

    def test_serial_number(self):
        assert parse_date_cell(45658) == date(2025, 1, 1)
        assert parse_date_cell(45658.75) == date(2025, 1, 1)

    def test_date1904_serial(self):
        config = DateTimeFormatConfig(date1904=True)
        assert parse_date_cell(0, config) == date(1904, 1, 1)

    @pytest.mark.parametrize(
        "raw", [None, "", "   ", "'", "abc", "08:30", "08:30:15.250", "235959", True]
    )
    def test_unrecognised(self, raw):
        assert parse_date_cell(raw) is None

    @pytest.mark.parametrize(
        "raw", ["May", "10 AM", "8:30 PM", "08:30:00 pm", "May 2024", "15 May", "---"]
    )
    def test_freeform_requires_year_month_and_day(self, raw):
        assert parse_date_cell(raw) is None

    def test_has_complete_date(self):
        assert has_complete_date("15 May 2024")
        assert not has_complete_date("May 2024")
        assert not has_complete_date("-- pause --")

    def test_time_value_is_not_a_date(self):
        assert parse_date_cell(time(8, 30)) is None

    def test_out_of_range_serial(self):
        assert parse_date_cell(-5) is None

    @pytest.mark.parametrize("raw", ["2024/02/30", "2024/13/01", "2024/01", "2024/1.5/3"])
    def test_structural_rejects_impossible_dates(self, raw):
        assert parse_date_structural(raw) is None

    def test_custom_template(self):
        config = DateTimeFormatConfig(date_formats=("DD_MM_YYYY",))
        assert parse_date_cell("15_01_2024", config) == date(2024, 1, 15)


class TestParseTimeCell:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("08:30", TimeOfDay(8, 30)),
            ("8:5", TimeOfDay(8, 5)),
            ("08:30:15", TimeOfDay(8, 30, 15)),
            ("00:00:01.000", TimeOfDay(0, 0, 1, 0)),
            ("08:30:15.250", TimeOfDay(8, 30, 15, 250)),
            ("08:30:15.5", TimeOfDay(8, 30, 15, 500)),
            ("235959", TimeOfDay(23, 59, 59)),
            ("0000", TimeOfDay(0, 0)),
            ("0830", TimeOfDay(8, 30)),
        ],
    )
    def test_string_forms(self, raw, expected):
        assert parse_time_cell(raw) == expected

    def test_quote_artifact_is_ignored(self):
        assert parse_time_cell("'08:30") == parse_time_cell("08:30")

    def test_compact_midnight_differs_from_absent(self):
        assert parse_time_cell("0000") == MIDNIGHT
        assert parse_time_cell("") is None

    def test_hours_beyond_a_day_are_accepted(self):
        assert parse_time_cell("25:30") == TimeOfDay(25, 30)
        assert parse_time_cell("99:00") == TimeOfDay(99, 0)

    def test_max_hour_is_configurable(self):
        config = DateTimeFormatConfig(max_hour=23)
        assert parse_colon_time("25:30", config.max_hour) is None

    @pytest.mark.parametrize("raw", ["100:00", "12:60", "12:30:60", "12:x", "1:2:3:4"])
    def test_colon_form_out_of_range(self, raw):
        assert parse_colon_time(raw) is None

    def test_native_values(self):
        assert parse_time_cell(datetime(2024, 1, 15, 8, 30, 15, 250000)) == TimeOfDay(
            8, 30, 15, 250
        )
        assert parse_time_cell(time(23, 59)) == TimeOfDay(23, 59)

    def test_serial_fraction(self):
        assert parse_time_cell(0.5) == TimeOfDay(12, 0)
        assert parse_time_cell(45658.75) == TimeOfDay(18, 0)

    def test_combined_date_time_string(self):
        assert parse_time_cell("2024-01-15T08:30:00") == TimeOfDay(8, 30)

    @pytest.mark.parametrize("raw", [None, "", "abc", True, date(2024, 1, 15)])
    def test_unrecognised(self, raw):
        assert parse_time_cell(raw) is None

    def test_twelve_hour_clock(self):
        assert parse_time_cell("8:30 PM") == TimeOfDay(20, 30)

    def test_date_only_string_has_no_time(self):
        assert parse_time_cell("2024/01/15") is None


class TestTimeOfDay:
    def test_rejects_fractional_parts(self):
        assert TimeOfDay.create(8.5, 0) is None

    def test_rejects_negative(self):
        assert TimeOfDay.create(-1, 0) is None

    def test_rejects_milliseconds_overflow(self):
        assert TimeOfDay.create(0, 0, 0, 1000) is None
