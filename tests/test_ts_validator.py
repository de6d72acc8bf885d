from datetime import datetime

import pytest

from log_series_loader.dataset_builder import ParsedData
from log_series_loader.ts_validator import (
    DatasetValidator,
    ValidationStrategy,
    sort_dataset,
)


@pytest.fixture
def unordered_data():
    return ParsedData(
        timestamps=[
            datetime(2024, 1, 1, 0, 2),
            datetime(2024, 1, 1, 0, 0),
            datetime(2024, 1, 1, 0, 0),
        ],
        series={"X": [3.0, 1.0, 2.0]},
    )


def test_ordered_data_has_no_issues():
    data = ParsedData(
        timestamps=[datetime(2024, 1, 1), datetime(2024, 1, 2)],
        series={"X": [1.0, 2.0]},
    )
    assert DatasetValidator(ValidationStrategy.STRICT).validate(data) == []


def test_issue_types(unordered_data):
    issues = DatasetValidator().validate(unordered_data)
    assert [(issue.issue_type, issue.position) for issue in issues] == [
        ("unordered", 1),
        ("duplicate", 2),
    ]


def test_length_mismatch():
    data = ParsedData(timestamps=[datetime(2024, 1, 1)], series={"X": [1.0, 2.0]})
    result = DatasetValidator().is_valid_sequence(data)
    assert not result.is_valid
    assert result.error_type == "length_mismatch"
    assert "'X'" in result.error_message


def test_lenient_accepts_unordered(unordered_data):
    assert DatasetValidator("lenient").is_valid_sequence(unordered_data).is_valid


def test_strict_rejects_unordered(unordered_data):
    result = DatasetValidator("strict").is_valid_sequence(unordered_data)
    assert not result.is_valid
    assert result.error_type == "unordered"


def test_none_accepts_everything():
    data = ParsedData(timestamps=[datetime(2024, 1, 1)], series={"X": []})
    assert DatasetValidator(ValidationStrategy.NONE).is_valid_sequence(data).is_valid


def test_unknown_strategy_falls_back_to_lenient():
    assert DatasetValidator("bogus").strategy == ValidationStrategy.LENIENT


def test_sort_dataset_is_stable(unordered_data):
    result = sort_dataset(unordered_data)
    assert result.timestamps == [
        datetime(2024, 1, 1, 0, 0),
        datetime(2024, 1, 1, 0, 0),
        datetime(2024, 1, 1, 0, 2),
    ]
    assert result.series == {"X": [1.0, 2.0, 3.0]}
    assert unordered_data.series == {"X": [3.0, 1.0, 2.0]}
