# Copyright (c) Meta Platforms, Inc. and affiliates.

"""End-to-end tests of profiling data for one frame."""

import logging

from gpuprofile.profiling import (
    CounterDescriptor,
    CounterSpec,
    NO_GROUP,
    process_profiling_data,
    RenderPassTable,
)


def test_frame_grouping(frame_store, frame_render_passes):
    data = process_profiling_data(frame_store, render_passes=frame_render_passes)

    assert [(s.name, s.group_id) for s in data.slices.slices] == [
        ("1-2 vertex", 0),
        ("barrier", 0),
        ("1-2 fragment", 0),
        ("3-4 vertex", 1),
        ("resolve", 1),
    ]
    assert [g.name for g in data.slices.groups] == [
        "RenderPass 7, RenderTarget 9",
        "RenderPass 8, RenderTarget 9",
    ]


def test_frame_spurious_submission_warning(frame_store, frame_render_passes, caplog):
    with caplog.at_level(logging.WARNING, logger="gpuprofile"):
        process_profiling_data(frame_store, render_passes=frame_render_passes)

    messages = [r.getMessage() for r in caplog.records]
    assert "Spurious vkQueueSubmit slice with submission id 101" in messages
    assert not any("Group missing" in m for m in messages)


def test_frame_without_render_passes(frame_store, caplog):
    with caplog.at_level(logging.WARNING, logger="gpuprofile"):
        data = process_profiling_data(frame_store, render_passes=RenderPassTable())

    assert all(s.group_id == NO_GROUP for s in data.slices.slices)
    missing = [r for r in caplog.records if "Group missing" in r.getMessage()]
    assert len(missing) == len(data.slices.slices)


def test_frame_counters(frame_store, frame_render_passes):
    descriptor = CounterDescriptor(specs=(CounterSpec(counter_id=2, name="GPU Utilization"),))
    data = process_profiling_data(
        frame_store, descriptor=descriptor, render_passes=frame_render_passes
    )

    assert [c.id for c in data.counters] == [5, 7]
    assert data.counters[0].spec.counter_id == 2
    assert data.counters[1].spec is None

    metrics = {m.name: m.id for m in data.gpu_counters.metrics}
    group0 = data.gpu_counters.entries[0].metric_to_value
    # Group 0 runs over [0, 20) and the utilization sample covering it is 30.
    assert group0[metrics["GPU Utilization"]] == 30.0
    assert group0[metrics["GPU Time"]] == 20.0
    assert group0[metrics["Wall Time"]] == 20.0
