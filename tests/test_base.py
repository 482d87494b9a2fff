# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Shared fakes and test data for gpuprofile tests.
"""

import shutil
import tempfile
import threading
import unittest
from pathlib import Path
from typing import Optional, Union

from gpuprofile.profiling.counters import COUNTER_TRACKS_QUERY, COUNTERS_QUERY_FMT
from gpuprofile.profiling.render_passes import IndexRange, RenderPassKey, RenderPassLookup
from gpuprofile.profiling.slices import SLICES_QUERY, TRACKS_QUERY, Slice, SliceData
from gpuprofile.profiling.submissions import QUEUE_SUBMIT_QUERY
from gpuprofile.trace_store import QueryError, QueryResult, RequestContext, TraceStore

SLICE_COLUMNS = [
    "id",
    "ts",
    "dur",
    "name",
    "depth",
    "track_id",
    "command_buffer",
    "render_target",
    "render_pass",
    "submission_id",
    "hw_queue_id",
]


class FakeTraceStore(TraceStore):
    """
    In-memory TraceStore answering queries from canned results.

    Results are registered by exact SQL text. A registered exception is
    raised instead of returning a result; unregistered queries fail with
    QueryError.
    """

    def __init__(self) -> None:
        self.results: dict[str, Union[QueryResult, Exception]] = {}
        self.queries: list[str] = []
        self._lock = threading.Lock()

    def add(self, sql: str, result: Union[QueryResult, Exception]) -> None:
        self.results[sql] = result

    def query(self, sql: str, ctx: Optional[RequestContext] = None) -> QueryResult:
        if ctx is not None:
            ctx.check(sql)
        with self._lock:
            self.queries.append(sql)
        result = self.results.get(sql)
        if result is None:
            raise QueryError(sql, "no such table")
        if isinstance(result, Exception):
            raise result
        return result

    def __enter__(self) -> "FakeTraceStore":
        return self

    def __exit__(self, *exc_info) -> None:
        pass

    def add_submissions(self, submissions: list[tuple[int, int]]) -> None:
        self.add(
            QUEUE_SUBMIT_QUERY,
            QueryResult.from_rows(["submission_id", "command_buffer"], submissions),
        )

    def add_slices(self, slices: list[Slice], tracks: Optional[list[tuple[int, str]]] = None) -> None:
        rows = [
            [
                s.id,
                s.ts,
                s.dur,
                s.name,
                s.depth,
                s.track_id,
                s.command_buffer,
                s.render_target,
                s.render_pass,
                s.submission_id,
                s.hw_queue_id,
            ]
            for s in slices
        ]
        self.add(SLICES_QUERY, QueryResult.from_rows(SLICE_COLUMNS, rows))
        self.add(TRACKS_QUERY, QueryResult.from_rows(["id", "name"], tracks or []))

    def add_counter_tracks(
        self,
        tracks: list[tuple[int, str, str, str]],
        samples: Optional[dict[int, list[tuple[int, float]]]] = None,
    ) -> None:
        self.add(
            COUNTER_TRACKS_QUERY,
            QueryResult.from_rows(["id", "name", "unit", "description"], tracks),
        )
        samples = samples or {}
        for track_id, _, _, _ in tracks:
            self.add(
                COUNTERS_QUERY_FMT.format(track_id=track_id),
                QueryResult.from_rows(["ts", "value"], samples.get(track_id, [])),
            )


class FakeRenderPassLookup(RenderPassLookup):
    """RenderPassLookup that records every key it is asked about."""

    def __init__(self, ranges: Optional[dict[RenderPassKey, IndexRange]] = None) -> None:
        self.ranges = dict(ranges or {})
        self.keys: list[RenderPassKey] = []

    def lookup(self, key: RenderPassKey) -> Optional[IndexRange]:
        self.keys.append(key)
        return self.ranges.get(key)


def make_slice(
    name: str,
    submission_id: int = 100,
    command_buffer: int = 5,
    render_pass: int = 7,
    render_target: int = 9,
    id: int = 0,
    ts: int = 0,
    dur: int = 10,
) -> Slice:
    """Create a slice with default values for fields a test does not care about."""
    return Slice(
        id=id,
        ts=ts,
        dur=dur,
        name=name,
        depth=0,
        track_id=1,
        command_buffer=command_buffer,
        render_target=render_target,
        render_pass=render_pass,
        submission_id=submission_id,
    )


def make_slice_data(*slices: Slice) -> SliceData:
    return SliceData(slices=list(slices))


class BaseTempDirTest(unittest.TestCase):
    """Base class for tests that write input files."""

    def setUp(self):
        """Create a temporary directory for test files."""
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        """Remove the temporary directory."""
        shutil.rmtree(self.temp_dir)

    def create_temp_file(self, filename: str, content: str) -> Path:
        """Create a temporary file with given content."""
        filepath = self.temp_dir / filename
        filepath.write_text(content)
        return filepath
