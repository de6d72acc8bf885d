"""
Run the parsing pipeline off the caller's thread.

Requests carry raw file bytes and a correlation id; responses carry either the
parsed datasets or an error message. The pipeline itself is transport-agnostic,
so a request the pool cannot deliver is handled in-process with the same result.
"""

import logging
import uuid
from concurrent.futures import Executor, Future, ProcessPoolExecutor
from concurrent.futures.process import BrokenProcessPool
from dataclasses import dataclass, field
from pickle import PicklingError
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .dataset_builder import ParsedDataset
from .load_file import FileInput, parse_file_inputs
from .ts_merger import assign_unique_labels

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ParseRequest:
    correlation_id: str
    files: List[FileInput] = field(default_factory=list)


@dataclass(frozen=True)
class ParseResponse:
    correlation_id: str
    success: bool
    payload: Optional[List[ParsedDataset]] = None
    error: Optional[str] = None


def handle_parse_request(request: ParseRequest, **parser_kwargs) -> ParseResponse:
    """
    Parse every file of a request and wrap the outcome in a response.

    Never raises: any failure becomes an unsuccessful response carrying the
    error message.

    Args:
        request: Files to parse, in order
        **parser_kwargs: Configuration forwarded to parse_file_input

    Returns:
        ParseResponse with the label-disambiguated datasets on success
    """
    try:
        datasets = parse_file_inputs(request.files, **parser_kwargs)
    except Exception as e:
        logger.warning(f"Parse request {request.correlation_id} failed: {str(e)}")
        return ParseResponse(
            correlation_id=request.correlation_id, success=False, error=str(e)
        )

    return ParseResponse(
        correlation_id=request.correlation_id,
        success=True,
        payload=assign_unique_labels(datasets),
    )


class ParserWorker:
    """
    Submits parse requests to a process pool and matches responses by id.

    Several requests may be pending at once. Abandoned requests are removed
    with cancel(); their results, if any, are discarded.
    """

    DELIVERY_ERRORS = (BrokenProcessPool, PicklingError, OSError, RuntimeError)

    def __init__(
        self,
        max_workers: int = 1,
        executor: Optional[Executor] = None,
        **parser_kwargs: Any,
    ):
        self.max_workers = max_workers
        self.parser_kwargs = parser_kwargs
        self._executor = executor
        self._owns_executor = executor is None
        self._pending: Dict[str, Tuple[ParseRequest, Optional[Future]]] = {}

    def _get_executor(self) -> Executor:
        if self._executor is None:
            self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
        return self._executor

    def _run_in_process(self, request: ParseRequest) -> ParseResponse:
        logger.info(f"Parsing request {request.correlation_id} in-process")
        return handle_parse_request(request, **self.parser_kwargs)

    @property
    def pending(self) -> List[str]:
        return list(self._pending)

    def submit(self, files: Sequence[FileInput]) -> str:
        """
        Queue the files for parsing.

        Returns:
            Correlation id to pass to result() or cancel()
        """
        request = ParseRequest(correlation_id=new_correlation_id(), files=list(files))
        try:
            future = self._get_executor().submit(
                handle_parse_request, request, **self.parser_kwargs
            )
        except self.DELIVERY_ERRORS as e:
            logger.warning(f"Could not submit request {request.correlation_id}: {e}")
            future = None
        self._pending[request.correlation_id] = (request, future)
        return request.correlation_id

    def result(self, correlation_id: str) -> ParseResponse:
        """
        Wait for the response to a submitted request.

        Raises:
            KeyError: If the id is unknown or was cancelled
        """
        request, future = self._pending.pop(correlation_id)
        if future is None:
            return self._run_in_process(request)

        try:
            response = future.result()
        except self.DELIVERY_ERRORS as e:
            logger.warning(
                f"Worker failed to deliver request {correlation_id}: {str(e)}"
            )
            return self._run_in_process(request)

        if response.correlation_id != correlation_id:
            logger.warning(
                f"Response id {response.correlation_id} does not match "
                f"request {correlation_id}"
            )
            return self._run_in_process(request)
        return response

    def cancel(self, correlation_id: str) -> bool:
        """Abandon a pending request. Returns False if it was not pending."""
        entry = self._pending.pop(correlation_id, None)
        if entry is None:
            return False
        _, future = entry
        if future is not None:
            future.cancel()
        return True

    def parse(self, files: Sequence[FileInput]) -> ParseResponse:
        return self.result(self.submit(files))

    def shutdown(self, wait: bool = True) -> None:
        for correlation_id in list(self._pending):
            self.cancel(correlation_id)
        if self._executor is not None and self._owns_executor:
            self._executor.shutdown(wait=wait)
            self._executor = None

    def __enter__(self) -> "ParserWorker":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
