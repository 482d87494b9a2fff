# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Per render-pass performance metrics.

Correlates grouped slices with counter samples to compute, for every
render-pass group, its GPU time, its wall time, and the average value of
every counter while the group's slices were executing.
"""

from bisect import bisect_right
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Optional

from gpuprofile.profiling.counters import CounterTrack
from gpuprofile.profiling.slices import NO_GROUP, Slice, SliceData

GPU_TIME_METRIC_ID = 0
WALL_TIME_METRIC_ID = 1


@dataclass
class Metric:
    """
    Description of one computed metric.

    Attributes:
        id: Metric id, referenced by entries
        name: Display name
        unit: Unit of the metric's values
        counter_id: Counter track the metric is derived from (None for
            timing metrics)
    """

    id: int
    name: str
    unit: str
    counter_id: Optional[int] = None


@dataclass
class GpuCounterEntry:
    """Metric values of one render-pass group."""

    group_id: int
    metric_to_value: dict[int, float] = field(default_factory=dict)


@dataclass
class GpuCounters:
    """Metrics and their per-group values."""

    metrics: list[Metric] = field(default_factory=list)
    entries: list[GpuCounterEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)


def _overlap(start: int, end: int, other_start: int, other_end: int) -> int:
    return max(0, min(end, other_end) - max(start, other_start))


def _weighted_counter_sum(s: Slice, counter: CounterTrack) -> tuple[float, int]:
    """
    Sum of counter values over the slice, weighted by overlap.

    Sample i covers [timestamps[i-1], timestamps[i]); the first sample has
    no known start and is skipped.

    Returns:
        Tuple of (weighted_sum, total_overlap)
    """
    timestamps = counter.timestamps
    weighted_sum = 0.0
    total_overlap = 0
    # First sample ending after the slice start.
    i = max(1, bisect_right(timestamps, s.ts))
    while i < len(timestamps) and timestamps[i - 1] < s.end:
        overlap = _overlap(s.ts, s.end, timestamps[i - 1], timestamps[i])
        weighted_sum += counter.values[i] * overlap
        total_overlap += overlap
        i += 1
    return weighted_sum, total_overlap


def compute_gpu_counters(
    slice_data: Optional[SliceData], counters: Optional[list[CounterTrack]]
) -> GpuCounters:
    """
    Compute per-group performance metrics.

    Args:
        slice_data: Grouped slices
        counters: Counter tracks with samples (None is treated as no counters)

    Returns:
        GpuCounters with one entry per group, in group id order

    Raises:
        ValueError: If slice_data is None
    """
    if slice_data is None:
        raise ValueError("No slice data to compute GPU counters from")
    counters = counters or []

    metrics = [
        Metric(id=GPU_TIME_METRIC_ID, name="GPU Time", unit="ns"),
        Metric(id=WALL_TIME_METRIC_ID, name="Wall Time", unit="ns"),
    ]
    for counter in counters:
        metrics.append(
            Metric(
                id=len(metrics),
                name=counter.name,
                unit=counter.unit,
                counter_id=counter.id,
            )
        )

    slices_by_group: dict[int, list[Slice]] = defaultdict(list)
    for s in slice_data.slices:
        if s.group_id != NO_GROUP:
            slices_by_group[s.group_id].append(s)

    entries = []
    for group in slice_data.groups:
        group_slices = slices_by_group.get(group.id, [])
        entry = GpuCounterEntry(group_id=group.id)
        if group_slices:
            entry.metric_to_value[GPU_TIME_METRIC_ID] = float(
                sum(s.dur for s in group_slices)
            )
            entry.metric_to_value[WALL_TIME_METRIC_ID] = float(
                max(s.end for s in group_slices) - min(s.ts for s in group_slices)
            )

        for metric in metrics[WALL_TIME_METRIC_ID + 1 :]:
            counter = counters[metric.id - WALL_TIME_METRIC_ID - 1]
            weighted_sum = 0.0
            total_overlap = 0
            for s in group_slices:
                slice_sum, slice_overlap = _weighted_counter_sum(s, counter)
                weighted_sum += slice_sum
                total_overlap += slice_overlap
            if total_overlap > 0:
                entry.metric_to_value[metric.id] = weighted_sum / total_overlap

        entries.append(entry)

    return GpuCounters(metrics=metrics, entries=entries)
