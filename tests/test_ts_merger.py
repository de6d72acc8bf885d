from datetime import datetime, timedelta

import pytest

from log_series_loader.dataset_builder import ParsedData, ParsedDataset
from log_series_loader.ts_config import MergeConfig
from log_series_loader.ts_merger import assign_unique_labels, merge_datasets

T0 = datetime(2024, 1, 1, 0, 0, 0)
T1 = T0 + timedelta(seconds=1)
T2 = T0 + timedelta(seconds=2)


def make_dataset(label, timestamps, series):
    return ParsedDataset(
        data=ParsedData(timestamps=timestamps, series=series),
        file_name=label,
        label=label,
    )


def test_two_overlapping_files():
    merged = merge_datasets(
        [
            make_dataset("file1", [T0, T1], {"X": [1.0, 2.0]}),
            make_dataset("file2", [T1, T2], {"X": [3.0, 4.0]}),
        ]
    )
    assert merged.timestamps == [T0, T1, T2]
    assert merged.series == {
        "[file1] X": [1.0, 2.0, None],
        "[file2] X": [None, 3.0, 4.0],
    }


def test_timeline_is_strictly_ascending():
    merged = merge_datasets(
        [
            make_dataset("a", [T2, T0, T2], {"X": [1.0, 2.0, 3.0]}),
            make_dataset("b", [T1, T0], {"Y": [4.0, 5.0]}),
        ]
    )
    assert merged.timestamps == [T0, T1, T2]
    assert all(
        earlier < later
        for earlier, later in zip(merged.timestamps, merged.timestamps[1:])
    )
    assert all(len(values) == 3 for values in merged.series.values())


def test_repeated_instant_keeps_last_row():
    merged = merge_datasets(
        [
            make_dataset("a", [T0, T0, T1], {"X": [1.0, 2.0, 3.0]}),
            make_dataset("b", [T1], {"X": [9.0]}),
        ]
    )
    assert merged.series["[a] X"] == [2.0, 3.0]


def test_gaps_inside_a_file_survive():
    merged = merge_datasets(
        [
            make_dataset("a", [T0, T1], {"X": [None, 2.0]}),
            make_dataset("b", [T2], {"X": [3.0]}),
        ]
    )
    assert merged.series["[a] X"] == [None, 2.0, None]


def test_single_dataset_is_returned_unchanged():
    dataset = make_dataset("only", [T1, T0], {"X": [1.0, 2.0]})
    assert merge_datasets([dataset]) is dataset.data


def test_label_template():
    merged = merge_datasets(
        [
            make_dataset("a", [T0], {"X": [1.0]}),
            make_dataset("b", [T0], {"X": [2.0]}),
        ],
        MergeConfig(label_template="{label}/{column}"),
    )
    assert list(merged.series) == ["a/X", "b/X"]


def test_no_datasets():
    with pytest.raises(ValueError):
        merge_datasets([])


def test_assign_unique_labels():
    datasets = assign_unique_labels(
        [
            make_dataset("log.csv", [T0], {"X": [1.0]}),
            make_dataset("log.csv", [T1], {"X": [2.0]}),
        ]
    )
    assert [dataset.label for dataset in datasets] == ["log.csv", "log.csv (2)"]
    assert [dataset.file_name for dataset in datasets] == ["log.csv", "log.csv"]


def test_same_file_twice_keeps_both_series():
    datasets = assign_unique_labels(
        [
            make_dataset("log.csv", [T0], {"X": [1.0]}),
            make_dataset("log.csv", [T0], {"X": [1.0]}),
        ]
    )
    merged = merge_datasets(datasets)
    assert merged.series == {"[log.csv] X": [1.0], "[log.csv (2)] X": [1.0]}
