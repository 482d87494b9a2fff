# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Pytest configuration and shared fixtures for gpuprofile tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from gpuprofile.profiling.render_passes import IndexRange, RenderPassKey, RenderPassTable
from tests.test_base import FakeTraceStore, make_slice

# One frame: two render passes on two submissions, a barrier in between,
# and a trailing slice after the last render pass.
FRAME_SUBMISSIONS = [(100, 5), (101, 0), (102, 6)]
FRAME_SLICES = [
    make_slice("vertex", id=1, ts=0, dur=10, submission_id=100, command_buffer=5),
    make_slice("barrier", id=2, ts=10, dur=2, submission_id=100, command_buffer=5),
    make_slice("fragment", id=3, ts=12, dur=8, submission_id=100, command_buffer=5),
    make_slice(
        "vertex", id=4, ts=30, dur=10, submission_id=102, command_buffer=6, render_pass=8
    ),
    make_slice("resolve", id=5, ts=40, dur=3, submission_id=102, command_buffer=6),
]
FRAME_RENDER_PASSES = [
    (RenderPassKey(0, 5, 7, 9), IndexRange(1, 2)),
    (RenderPassKey(1, 6, 8, 9), IndexRange(3, 4)),
]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def frame_store() -> FakeTraceStore:
    """Trace store holding one frame of slices and two counter tracks."""
    store = FakeTraceStore()
    store.add_submissions(FRAME_SUBMISSIONS)
    store.add_slices(FRAME_SLICES, tracks=[(1, "GPU Queue 0")])
    store.add_counter_tracks(
        [(7, "GPU Frequency", "Hz", ""), (5, "GPU Utilization", "%", "")],
        {
            5: [(0, 10.0), (20, 30.0), (50, 50.0)],
            7: [(0, 100.0), (50, 200.0)],
        },
    )
    return store


@pytest.fixture
def frame_render_passes() -> RenderPassTable:
    """Render-pass table matching the frame in frame_store."""
    return RenderPassTable(FRAME_RENDER_PASSES)
