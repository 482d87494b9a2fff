# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Trace store access for gpuprofile.

This module provides the TraceStore interface used by the profiling
pipeline to run SQL queries against a trace, the columnar QueryResult
returned by those queries, and PerfettoTraceStore, the implementation
backed by the Perfetto trace processor.
"""

import http.client
import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from perfetto.trace_processor import TraceProcessor, TraceProcessorException

logger = logging.getLogger(__name__)


class QueryError(Exception):
    """Exception raised when a trace store query cannot be executed."""

    def __init__(self, sql: str, message: str) -> None:
        super().__init__(f"SQL query failed: {sql}: {message}")
        self.sql = sql


class QueryCancelled(QueryError):
    """Exception raised when a query is issued on a cancelled request."""


@dataclass
class RequestContext:
    """
    Cancellation and deadline state for one profiling-data request.

    Every query issued for a request carries the same context. Once the
    request is cancelled, or its deadline has passed, further queries fail
    with QueryCancelled instead of reaching the trace store.

    Attributes:
        deadline: Absolute time.monotonic() value after which the request
            is considered expired (None for no deadline)
    """

    deadline: Optional[float] = None
    _cancelled: threading.Event = field(
        default_factory=threading.Event, init=False, repr=False
    )

    @classmethod
    def with_timeout(cls, seconds: float) -> "RequestContext":
        """Create a context that expires `seconds` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def check(self, sql: str) -> None:
        """Raise QueryCancelled if the request may no longer issue `sql`."""
        if not self.cancelled:
            return
        if self._cancelled.is_set():
            raise QueryCancelled(sql, "request cancelled")
        raise QueryCancelled(sql, "request deadline exceeded")


class QueryResult:
    """
    Columnar result set of a trace store query.

    Columns are addressed by position, in the order they were selected.

    Example:
        >>> result = QueryResult(["id", "name"], [[1, 2], ["a", "b"]])
        >>> result.num_records
        2
        >>> result.string_values(1)
        ['a', 'b']
    """

    def __init__(
        self, column_names: Sequence[str], columns: Sequence[Sequence[Any]]
    ) -> None:
        if len(column_names) != len(columns):
            raise ValueError(
                f"Got {len(columns)} columns for {len(column_names)} column names"
            )
        lengths = {len(c) for c in columns}
        if len(lengths) > 1:
            raise ValueError(f"Columns have mismatched lengths: {sorted(lengths)}")
        self.column_names = list(column_names)
        self._columns = [list(c) for c in columns]
        self.num_records = lengths.pop() if lengths else 0

    @classmethod
    def from_rows(
        cls, column_names: Sequence[str], rows: Sequence[Sequence[Any]]
    ) -> "QueryResult":
        """Build a result from row tuples instead of columns."""
        columns = [[row[i] for row in rows] for i in range(len(column_names))]
        return cls(column_names, columns)

    def long_values(self, index: int) -> list[int]:
        """Column values as integers; NULL becomes 0."""
        return [0 if v is None else int(v) for v in self._columns[index]]

    def string_values(self, index: int) -> list[str]:
        """Column values as strings; NULL becomes the empty string."""
        return ["" if v is None else str(v) for v in self._columns[index]]

    def double_values(self, index: int) -> list[float]:
        """Column values as floats; NULL becomes 0.0."""
        return [0.0 if v is None else float(v) for v in self._columns[index]]


class TraceStore(ABC):
    """
    Queryable store of trace data.

    Implementations run a SQL query and return a columnar QueryResult,
    raising QueryError when the query cannot be executed.
    """

    @abstractmethod
    def query(self, sql: str, ctx: Optional[RequestContext] = None) -> QueryResult:
        pass


class PerfettoTraceStore(TraceStore):
    """
    TraceStore backed by the Perfetto trace processor.

    The trace processor serves queries over a single connection, so queries
    from concurrent threads are serialized.

    Example:
        >>> with PerfettoTraceStore("capture.perfetto-trace") as store:
        ...     result = store.query("SELECT id, name FROM gpu_counter_track")
    """

    def __init__(self, trace_path: Union[str, Path]) -> None:
        """
        Load a trace into a new trace processor instance.

        Args:
            trace_path: Path to the Perfetto trace file

        Raises:
            FileNotFoundError: If the file does not exist
        """
        self.trace_path = Path(trace_path)
        if not self.trace_path.exists():
            raise FileNotFoundError(f"File not found: {self.trace_path}")

        logger.info("Loading trace %s", self.trace_path)
        self._tp = TraceProcessor(trace=str(self.trace_path))
        self._lock = threading.Lock()

    def query(self, sql: str, ctx: Optional[RequestContext] = None) -> QueryResult:
        if ctx is not None:
            ctx.check(sql)
        logger.debug("Running query: %s", sql)
        try:
            with self._lock:
                result = self._tp.query(sql)
                column_names = list(result.column_names)
                rows = [[getattr(row, col) for col in column_names] for row in result]
        except (TraceProcessorException, http.client.HTTPException, OSError) as e:
            raise QueryError(sql, str(e)) from e
        return QueryResult.from_rows(column_names, rows)

    def close(self) -> None:
        with self._lock:
            self._tp.close()

    def __enter__(self) -> "PerfettoTraceStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
