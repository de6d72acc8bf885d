import logging
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from .dataset_builder import ParsedData, ParsedDataset, Series
from .ts_config import MergeConfig
from .utils import disambiguate_labels

logger = logging.getLogger(__name__)


def assign_unique_labels(datasets: Sequence[ParsedDataset]) -> List[ParsedDataset]:
    """
    Return the datasets with display labels made unique.

    The first dataset with a given label keeps it; later ones get an
    incrementing counter in parentheses.
    """
    labels = disambiguate_labels([dataset.label for dataset in datasets])
    return [
        dataset if dataset.label == label else replace(dataset, label=label)
        for dataset, label in zip(datasets, labels)
    ]


def _to_array(values: Series) -> np.ndarray:
    return np.array([np.nan if value is None else value for value in values], dtype=float)


def _to_series(values: np.ndarray) -> Series:
    return [None if np.isnan(value) else float(value) for value in values]


def merge_datasets(
    datasets: Sequence[ParsedDataset], config: Optional[MergeConfig] = None
) -> ParsedData:
    """
    Align several parsed files on one timeline.

    The timeline is the ascending union of every file's distinct instants.
    Each file's series is re-indexed onto it, with None where the file has
    no row at that instant, and renamed ``"[<file label>] <column>"``. When a
    file repeats an instant, its last row at that instant wins. A single
    dataset is returned unchanged.

    Args:
        datasets: Parsed files, labels already made unique
        config: Merge configuration (series label template)

    Returns:
        Merged ParsedData

    Raises:
        ValueError: If no datasets are given
    """
    if not datasets:
        raise ValueError("datasets cannot be empty")
    if len(datasets) == 1:
        return datasets[0].data

    config = config or MergeConfig()
    instants = set().union(*(dataset.data.timestamps for dataset in datasets))
    timeline = pd.DatetimeIndex(sorted(instants))

    series: Dict[str, Series] = {}
    for dataset in datasets:
        index = pd.DatetimeIndex(dataset.data.timestamps)
        keep = ~index.duplicated(keep="last")
        for column, values in dataset.data.series.items():
            aligned = pd.Series(_to_array(values)[keep], index=index[keep]).reindex(
                timeline
            )
            label = config.label_template.format(label=dataset.label, column=column)
            series[label] = _to_series(aligned.to_numpy())

    logger.debug(
        f"Merged {len(datasets)} datasets onto a timeline of {len(timeline)} instants"
    )
    return ParsedData(timestamps=list(timeline.to_pydatetime()), series=series)
