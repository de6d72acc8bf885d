from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional, Union

from .dataset_builder import ParsedData


class ValidationStrategy(Enum):
    """Enum for different validation strategies."""

    NONE = "none"  # No validation
    LENIENT = "lenient"  # Only structural problems are invalid
    STRICT = "strict"  # Unordered or repeated timestamps are invalid too


@dataclass
class ValidationResult:
    is_valid: bool
    error_message: Optional[str] = None
    error_type: Optional[str] = None


@dataclass
class TimeValidationIssue:
    """Class for storing dataset validation issues"""

    issue_type: str  # 'unordered', 'duplicate' or 'length_mismatch'
    position: int
    timestamp: Optional[datetime] = None
    previous: Optional[datetime] = None
    label: Optional[str] = None


class TimeSeriesValidator(ABC):
    """Interface for dataset validation."""

    @abstractmethod
    def validate(self, data: ParsedData) -> List[TimeValidationIssue]:
        """
        Collect the issues found in one dataset.

        Args:
            data: Dataset to check

        Returns:
            List of TimeValidationIssue objects
        """
        pass

    @abstractmethod
    def is_valid_sequence(self, data: ParsedData) -> ValidationResult:
        """
        Check whether a dataset is acceptable under this validator's rules.

        Args:
            data: Dataset to check

        Returns:
            ValidationResult object
        """
        pass


class DatasetValidator(TimeSeriesValidator):
    """Checks series lengths and timestamp ordering of a parsed dataset."""

    def __init__(
        self, strategy: Union[ValidationStrategy, str] = ValidationStrategy.LENIENT
    ):
        if isinstance(strategy, str):
            try:
                self.strategy = ValidationStrategy(strategy)
            except ValueError:
                self.strategy = ValidationStrategy.LENIENT
        else:
            self.strategy = strategy

    def validate(self, data: ParsedData) -> List[TimeValidationIssue]:
        issues = []
        expected = len(data.timestamps)
        for label, values in data.series.items():
            if len(values) != expected:
                issues.append(
                    TimeValidationIssue(
                        issue_type="length_mismatch", position=len(values), label=label
                    )
                )

        for position in range(1, expected):
            previous = data.timestamps[position - 1]
            current = data.timestamps[position]
            if current == previous:
                issue_type = "duplicate"
            elif current < previous:
                issue_type = "unordered"
            else:
                continue
            issues.append(
                TimeValidationIssue(
                    issue_type=issue_type,
                    position=position,
                    timestamp=current,
                    previous=previous,
                )
            )

        return issues

    def is_valid_sequence(self, data: ParsedData) -> ValidationResult:
        if self.strategy == ValidationStrategy.NONE:
            return ValidationResult(is_valid=True)

        issues = self.validate(data)
        if self.strategy == ValidationStrategy.LENIENT:
            issues = [issue for issue in issues if issue.issue_type == "length_mismatch"]
        if not issues:
            return ValidationResult(is_valid=True)

        first_issue = issues[0]
        if first_issue.issue_type == "length_mismatch":
            message = (
                f"Series '{first_issue.label}' has {first_issue.position} values "
                f"for {len(data.timestamps)} timestamps"
            )
        else:
            message = (
                f"{first_issue.issue_type.capitalize()} timestamp at row "
                f"{first_issue.position}: {first_issue.timestamp} after "
                f"{first_issue.previous}"
            )
        return ValidationResult(
            is_valid=False, error_message=message, error_type=first_issue.issue_type
        )


def sort_dataset(data: ParsedData) -> ParsedData:
    """Return a copy of ``data`` with rows stably sorted by timestamp."""
    order = sorted(range(len(data.timestamps)), key=data.timestamps.__getitem__)
    return replace(
        data,
        timestamps=[data.timestamps[i] for i in order],
        series={
            label: [values[i] for i in order] for label, values in data.series.items()
        },
    )
