import json
import logging
import traceback
from dataclasses import dataclass, fields, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd
from streamlit.runtime.uploaded_file_manager import UploadedFile

from .cell_parsers import DEFAULT_FORMATS
from .dataset_builder import ParsedData, ParsedDataset, build_parsed_data
from .encoding_detector import decode_bytes
from .error_handling import (
    ErrorSeverity,
    LogParsingError,
    MalformedTableError,
    ProcessingError,
    ValidationError,
)
from .file_metadata_parser import FileMetadata, extract_metadata
from .header_locator import locate_header
from .tabular_reader import RawGrid, read_delimited, read_spreadsheet
from .ts_config import DateTimeFormatConfig, HeaderConfig, LoadingConfig, MergeConfig
from .ts_merger import assign_unique_labels, merge_datasets
from .ts_validator import DatasetValidator, TimeSeriesValidator, sort_dataset

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileInput:
    """Raw content of one file handed to the parser."""

    name: str
    content: bytes
    content_type: Optional[str] = None


def read_grid(
    file: FileInput, metadata: FileMetadata, loading_config: LoadingConfig
) -> RawGrid:
    """Decode and read one file into a raw grid, dispatching on its kind."""
    if not metadata.kind.is_spreadsheet:
        text = decode_bytes(file.content, loading_config.fallback_encoding)
        return read_delimited(text, loading_config)

    try:
        return read_spreadsheet(
            file.content, engine=metadata.kind.excel_engine, config=loading_config
        )
    except Exception as e:
        raise MalformedTableError(
            filepath=file.name, reason=f"Unreadable workbook: {str(e)}"
        )


def parse_file_input(
    file: FileInput,
    loading_config: Optional[LoadingConfig] = None,
    header_config: Optional[HeaderConfig] = None,
    format_config: DateTimeFormatConfig = DEFAULT_FORMATS,
) -> ParsedDataset:
    """
    Run the whole pipeline for one file.

    bytes -> text or workbook -> grid -> header -> timestamps and series.

    Args:
        file: File name and raw content
        loading_config: Decoding and reading configuration
        header_config: Header detection configuration
        format_config: Date and time format configuration

    Returns:
        ParsedDataset labelled with the file name

    Raises:
        LogParsingError: Any fatal condition, with the file name in its message
    """
    loading_config = loading_config or LoadingConfig()
    try:
        metadata = extract_metadata(file.name, file.content, file.content_type)
        grid = read_grid(file, metadata, loading_config)
        header_index = locate_header(grid, header_config)
        data = build_parsed_data(grid, header_index, format_config, header_config)
    except LogParsingError as e:
        if e.filepath is None:
            raise e.with_filepath(file.name) from e
        raise

    logger.debug(
        f"Parsed {file.name}: {len(data.timestamps)} rows, "
        f"{len(data.series)} series, {len(data.skipped_rows)} rows dropped"
    )
    return ParsedDataset(data=data, file_name=file.name, label=file.name)


def parse_file_inputs(files: Sequence[FileInput], **kwargs) -> List[ParsedDataset]:
    """Parse files strictly in order; the first fatal error aborts the batch."""
    return [parse_file_input(file, **kwargs) for file in files]


class LogFileLoader:
    def __init__(
        self,
        files: Optional[
            Sequence[Union[str, Path, FileInput, Tuple[str, bytes]]]
        ] = None,
        streamlit_files: Optional[Union[UploadedFile, List[UploadedFile]]] = None,
        loading_config: Optional[LoadingConfig] = None,
        header_config: Optional[HeaderConfig] = None,
        format_config: Optional[DateTimeFormatConfig] = None,
        merge_config: Optional[MergeConfig] = None,
        time_series_validator: Optional[TimeSeriesValidator] = None,
        log_file: Optional[str] = None,
    ):
        """
        Initialize LogFileLoader with either files or streamlit_files.

        Args:
            files: File paths, FileInput objects or (name, bytes) pairs, in order
            streamlit_files: Streamlit uploaded file(s)
            loading_config: Configuration for decoding and reading
            header_config: Configuration for header detection
            format_config: Date and time formats for the cell interpreters
            merge_config: Configuration for label disambiguation and merging
            time_series_validator: Validator used when merge_config.validate_datasets
            log_file: Optional path to log file for detailed logging

        Raises:
            ValueError: If input parameters are missing or conflicting
        """
        if files is None and streamlit_files is None:
            raise ValueError("Either files or streamlit_files must be provided")
        if files is not None and streamlit_files is not None:
            raise ValueError("Cannot specify both files and streamlit_files")

        self.files = list(files) if files is not None else None
        self.streamlit_files = streamlit_files

        self.loading_config = loading_config or LoadingConfig()
        self.header_config = header_config or HeaderConfig()
        self.format_config = format_config or DEFAULT_FORMATS
        self.merge_config = merge_config or MergeConfig()
        self.time_series_validator = time_series_validator or DatasetValidator()

        self.datasets: List[ParsedDataset] = []
        self.dataset: Optional[ParsedData] = None
        self.errors: List[ProcessingError] = []

        self._setup_logging(log_file)

    def _setup_logging(self, log_file: Optional[str]) -> None:
        """
        Setup logging configuration.

        Args:
            log_file: Optional path to log file
        """
        self.logger = logging.getLogger(f"LogFileLoader_{id(self)}")
        self.logger.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.WARNING)
        console_handler.setFormatter(formatter)
        self.logger.addHandler(console_handler)

        if log_file:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            self.logger.addHandler(file_handler)

    def _add_error(self, error: ProcessingError) -> None:
        """
        Add error to the error list and log it.

        Args:
            error: ProcessingError object to add
        """
        self.errors.append(error)

        log_message = f"{error.error_type}: {error.message}"
        if error.file_path:
            log_message += f" (File: {error.file_path})"

        if error.context:
            context_str = ", ".join(
                f"{k}={v}" for k, v in error.context.items() if v is not None
            )
            if context_str:
                log_message += f" [Context: {context_str}]"

        if error.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(log_message)
        elif error.severity == ErrorSeverity.ERROR:
            self.logger.error(log_message)
        elif error.severity == ErrorSeverity.WARNING:
            self.logger.warning(log_message)
        else:
            self.logger.info(log_message)

    def _handle_error(
        self,
        e: Exception,
        context: str,
        file_name: Optional[str] = None,
        additional_context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Record an exception raised while processing.

        Args:
            e: Exception that occurred
            context: Operation during which the error occurred
            file_name: Optional name of the file being processed
            additional_context: Additional contextual information
        """
        ctx = {"operation": context}
        if additional_context:
            ctx.update(additional_context)
        if isinstance(getattr(e, "context", None), dict):
            ctx.update(e.context)

        if isinstance(e, (LogParsingError, ValidationError)):
            severity = ErrorSeverity.ERROR
        else:
            severity = ErrorSeverity.CRITICAL

        self._add_error(
            ProcessingError(
                timestamp=datetime.now(),
                severity=severity,
                error_type=type(e).__name__,
                message=str(e),
                file_path=file_name,
                details={"context": context},
                stacktrace=traceback.format_exc(),
                context=ctx,
            )
        )

    def get_error_report(
        self, include_stacktrace: bool = False, include_context: bool = True
    ) -> Dict[str, Any]:
        """
        Generate an error report grouped by severity, type and file.

        Args:
            include_stacktrace: Whether to include stack traces in the report
            include_context: Whether to include context information in the report

        Returns:
            Dictionary containing error report
        """
        error_counts = {
            severity.value: len([e for e in self.errors if e.severity == severity])
            for severity in ErrorSeverity
        }

        error_details = []
        for error in self.errors:
            error_dict = error.to_dict(include_stacktrace=include_stacktrace)
            if not include_context:
                error_dict.pop("context", None)
            error_details.append(error_dict)

        error_types: Dict[str, int] = {}
        file_errors: Dict[str, int] = {}
        for error in self.errors:
            error_types[error.error_type] = error_types.get(error.error_type, 0) + 1
            if error.file_path:
                file_path = str(error.file_path)
                file_errors[file_path] = file_errors.get(file_path, 0) + 1

        return {
            "summary": {
                "total_errors": len(self.errors),
                "error_counts": error_counts,
                "error_types": error_types,
                "file_errors": file_errors,
                "has_critical_errors": error_counts[ErrorSeverity.CRITICAL.value] > 0,
            },
            "errors": error_details,
        }

    def export_error_report(
        self, output_path: Union[str, Path], include_stacktrace: bool = False
    ) -> None:
        """
        Export error report to a JSON file.

        Args:
            output_path: Path where to save the report
            include_stacktrace: Whether to include stack traces in the report
        """
        report = self.get_error_report(include_stacktrace)
        with open(output_path, "w") as f:
            json.dump(report, f, indent=2, default=str)
        self.logger.info(f"Error report exported to {output_path}")

    def get_errors_by_severity(
        self, severity: Union[ErrorSeverity, str]
    ) -> List[ProcessingError]:
        """
        Get errors filtered by severity level.

        Args:
            severity: ErrorSeverity enum or string value

        Returns:
            List of ProcessingError objects with the specified severity
        """
        if isinstance(severity, str):
            try:
                severity = ErrorSeverity(severity)
            except ValueError:
                raise ValueError(f"Invalid severity: {severity}")

        return [error for error in self.errors if error.severity == severity]

    def get_errors_by_file(self, file_name: Union[str, Path]) -> List[ProcessingError]:
        """Get errors related to a specific file."""
        file_name = str(file_name)
        return [
            error
            for error in self.errors
            if error.file_path and str(error.file_path) == file_name
        ]

    def has_critical_errors(self) -> bool:
        return any(error.severity == ErrorSeverity.CRITICAL for error in self.errors)

    @staticmethod
    def create_config_from_dict(config_class, config_dict):
        """
        Create a configuration object from a dictionary.

        Args:
            config_class: Configuration class to instantiate
            config_dict: Dictionary of configuration parameters

        Returns:
            Configuration object
        """
        valid_fields = {f.name for f in fields(config_class)}
        filtered_dict = {
            k: v for k, v in config_dict.items() if k in valid_fields and v is not None
        }
        return config_class(**filtered_dict)

    def update_config(
        self,
        loading_config: Optional[Dict[str, Any]] = None,
        header_config: Optional[Dict[str, Any]] = None,
        format_config: Optional[Dict[str, Any]] = None,
        merge_config: Optional[Dict[str, Any]] = None,
    ) -> "LogFileLoader":
        """
        Update configuration settings after initialization.

        Each argument is a dictionary of field values merged over the current
        configuration; unknown keys and None values are ignored.

        Returns:
            Self for method chaining
        """
        updates = {
            "loading_config": loading_config,
            "header_config": header_config,
            "format_config": format_config,
            "merge_config": merge_config,
        }
        for attribute, values in updates.items():
            if not values:
                continue
            current = getattr(self, attribute)
            current_dict = {f.name: getattr(current, f.name) for f in fields(current)}
            current_dict.update(values)
            setattr(
                self,
                attribute,
                self.create_config_from_dict(type(current), current_dict),
            )
        return self

    @classmethod
    def from_files(
        cls, file_paths: Sequence[Union[str, Path]], **kwargs
    ) -> "LogFileLoader":
        """
        Create a LogFileLoader from a list of file paths.

        Raises:
            ValueError: If file_paths is empty
        """
        if not file_paths:
            raise ValueError("file_paths cannot be empty")
        return cls(files=file_paths, **kwargs)

    @classmethod
    def from_streamlit(
        cls, uploaded_files: Union[UploadedFile, List[UploadedFile]], **kwargs
    ) -> "LogFileLoader":
        """
        Create a LogFileLoader from Streamlit uploaded files.

        Raises:
            ValueError: If uploaded_files is empty
        """
        if isinstance(uploaded_files, list) and not uploaded_files:
            raise ValueError("uploaded_files cannot be empty")
        return cls(streamlit_files=uploaded_files, **kwargs)

    def _validate_configs(self) -> None:
        """
        Validate configuration objects for consistency and correctness.

        Raises:
            ValidationError: If any configuration is invalid
        """
        errors = []

        delimiter = self.loading_config.delimiter
        if delimiter is not None and not (isinstance(delimiter, str) and delimiter):
            errors.append("loading_config.delimiter must be a non-empty string or None")
        if not self.loading_config.delimiter_candidates:
            errors.append("loading_config.delimiter_candidates cannot be empty")
        if not isinstance(self.loading_config.fallback_encoding, str):
            errors.append("loading_config.fallback_encoding must be a string")

        if (
            not isinstance(self.header_config.min_header_cells, int)
            or self.header_config.min_header_cells < 1
        ):
            errors.append("header_config.min_header_cells must be a positive integer")

        if not 23 <= self.format_config.max_hour <= 99:
            errors.append("format_config.max_hour must be between 23 and 99")

        if "{label}" not in self.merge_config.label_template or (
            "{column}" not in self.merge_config.label_template
        ):
            errors.append(
                "merge_config.label_template must contain {label} and {column}"
            )

        if errors:
            raise ValidationError(
                message="Invalid configuration settings",
                validation_type="configuration",
                details={"errors": errors},
            )

    def collect_inputs(self) -> List[FileInput]:
        """
        Read every configured source into FileInput objects, in order.

        Raises:
            ValueError: If a path does not point to a readable file
        """
        if self.streamlit_files is not None:
            uploaded = (
                [self.streamlit_files]
                if isinstance(self.streamlit_files, UploadedFile)
                else list(self.streamlit_files)
            )
            inputs = []
            for uploaded_file in uploaded:
                content_type = getattr(uploaded_file, "type", None)
                inputs.append(
                    FileInput(
                        name=uploaded_file.name,
                        content=uploaded_file.getvalue(),
                        content_type=content_type
                        if isinstance(content_type, str)
                        else None,
                    )
                )
            return inputs

        inputs = []
        for source in self.files:
            if isinstance(source, FileInput):
                inputs.append(source)
                continue
            if isinstance(source, tuple):
                name, content = source
                inputs.append(FileInput(name=name, content=content))
                continue
            path = Path(source)
            if not path.is_file():
                raise ValueError(f"Path is not a file or doesn't exist: {path}")
            inputs.append(FileInput(name=path.name, content=path.read_bytes()))
        return inputs

    def _record_dataset_warnings(self, dataset: ParsedDataset) -> None:
        if dataset.data.skipped_rows:
            self._add_error(
                ProcessingError(
                    severity=ErrorSeverity.WARNING,
                    error_type="SkippedRows",
                    message=f"{len(dataset.data.skipped_rows)} row(s) without a "
                    "resolvable timestamp were dropped",
                    file_path=dataset.file_name,
                    details={"skipped_rows": dataset.data.skipped_rows},
                )
            )

        if not self.merge_config.validate_datasets:
            return
        for issue in self.time_series_validator.validate(dataset.data):
            self._add_error(
                ProcessingError(
                    severity=ErrorSeverity.WARNING,
                    error_type="TimeValidationIssue",
                    message=f"{issue.issue_type} at row {issue.position}",
                    file_path=dataset.file_name,
                    details={"issue_type": issue.issue_type, "label": issue.label},
                )
            )
        result = self.time_series_validator.is_valid_sequence(dataset.data)
        if not result.is_valid:
            raise ValidationError(
                message=f"{dataset.file_name}: {result.error_message}",
                validation_type="dataset",
                details={"error_type": result.error_type},
            )

    def process_files(self) -> List[ParsedDataset]:
        """
        Parse every input file, strictly in order, and disambiguate labels.

        Returns:
            List of ParsedDataset objects

        Raises:
            LogParsingError: If any file fails; no partial result is kept
        """
        datasets = []
        for file in self.collect_inputs():
            try:
                dataset = parse_file_input(
                    file,
                    loading_config=self.loading_config,
                    header_config=self.header_config,
                    format_config=self.format_config,
                )
                if self.merge_config.sort_single_file:
                    dataset = replace(dataset, data=sort_dataset(dataset.data))
                self._record_dataset_warnings(dataset)
            except (LogParsingError, ValidationError) as e:
                self._handle_error(e, "process_files", file.name)
                self.datasets = []
                self.dataset = None
                raise
            datasets.append(dataset)

        self.datasets = assign_unique_labels(datasets)
        return self.datasets

    def load_and_merge(self) -> ParsedData:
        """
        Merge the parsed files onto one timeline.

        Raises:
            ValueError: If no files have been processed
        """
        if not self.datasets:
            raise ValueError("No datasets available. Run process_files first.")

        self.dataset = merge_datasets(self.datasets, self.merge_config)
        return self.dataset

    def initialize_processing(self) -> ParsedData:
        """
        Run the complete pipeline: validate configs, parse files, merge.

        Returns:
            The merged dataset
        """
        self._validate_configs()
        self.process_files()
        return self.load_and_merge()

    def get_dataset(self) -> ParsedData:
        if self.dataset is None:
            raise ValueError("Dataset not loaded. Run initialize_processing first.")
        return self.dataset

    def get_dataframe(self) -> pd.DataFrame:
        """Get the merged dataset as a DataFrame indexed by timestamp."""
        return self.get_dataset().to_dataframe()

    def get_processing_summary(self) -> Dict[str, Any]:
        """
        Get a summary of the processing status.

        Returns:
            Dictionary containing processing summary
        """
        summary = {
            "status": "not_started",
            "errors": {
                "total": len(self.errors),
                "by_severity": {severity.value: 0 for severity in ErrorSeverity},
            },
            "files": [
                {
                    "file_name": dataset.file_name,
                    "label": dataset.label,
                    "rows": len(dataset.data.timestamps),
                    "skipped_rows": len(dataset.data.skipped_rows),
                }
                for dataset in self.datasets
            ],
            "data": {
                "loaded": self.dataset is not None,
                "rows": len(self.dataset.timestamps) if self.dataset else 0,
                "series": len(self.dataset.series) if self.dataset else 0,
            },
        }

        for error in self.errors:
            summary["errors"]["by_severity"][error.severity.value] += 1

        if self.dataset is not None:
            summary["status"] = "completed"
        elif self.datasets:
            summary["status"] = "files_parsed"
        if (
            summary["errors"]["by_severity"][ErrorSeverity.ERROR.value]
            or summary["errors"]["by_severity"][ErrorSeverity.CRITICAL.value]
        ):
            summary["status"] = "failed"

        return summary
