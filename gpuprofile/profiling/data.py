# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Profiling data assembly.

Builds the ProfilingData of a trace: grouped GPU slices, GPU counter
tracks, and the metrics derived from both. Slice and counter processing
are independent stages; a failing stage is logged and leaves its part of
the result empty instead of failing the whole request.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from gpuprofile.profiling.counters import (
    CounterDescriptor,
    CounterTrack,
    extract_counters,
)
from gpuprofile.profiling.grouper import group_slices
from gpuprofile.profiling.metrics import compute_gpu_counters, GpuCounters
from gpuprofile.profiling.render_passes import RenderPassLookup, RenderPassTable
from gpuprofile.profiling.slices import extract_slice_data, HandleMappingItem, SliceData
from gpuprofile.profiling.submissions import query_submission_order
from gpuprofile.trace_store import RequestContext, TraceStore

logger = logging.getLogger(__name__)

ComputeCounters = Callable[
    [Optional[SliceData], Optional[list[CounterTrack]]], GpuCounters
]


@dataclass
class ProfilingData:
    """
    Profiling data of one trace.

    Attributes:
        slices: Grouped GPU slices (None if slice processing failed)
        counters: GPU counter tracks (None if counter extraction failed)
        gpu_counters: Per-group metrics (None if they could not be computed)
    """

    slices: Optional[SliceData] = None
    counters: Optional[list[CounterTrack]] = None
    gpu_counters: Optional[GpuCounters] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "slices": self.slices.to_dict() if self.slices is not None else None,
            "counters": (
                [c.to_dict() for c in self.counters]
                if self.counters is not None
                else None
            ),
            "gpu_counters": (
                self.gpu_counters.to_dict() if self.gpu_counters is not None else None
            ),
        }


def process_gpu_slices(
    store: TraceStore,
    handle_mapping: Optional[Mapping[int, Sequence[HandleMappingItem]]],
    render_passes: RenderPassLookup,
    ctx: Optional[RequestContext] = None,
) -> SliceData:
    """
    Extract GPU slices and group them by render pass.

    Slice handles are remapped before grouping when a handle mapping is
    given.

    Raises:
        QueryError: If any slice or submission query fails
    """
    slice_data = extract_slice_data(store, ctx)
    submission_order = query_submission_order(store, ctx)
    if handle_mapping is not None:
        slice_data.map_identifiers(handle_mapping)
    return group_slices(slice_data, submission_order, render_passes)


def _run_slices_stage(
    store: TraceStore,
    handle_mapping: Optional[Mapping[int, Sequence[HandleMappingItem]]],
    render_passes: RenderPassLookup,
    ctx: Optional[RequestContext],
) -> Optional[SliceData]:
    try:
        return process_gpu_slices(store, handle_mapping, render_passes, ctx)
    except Exception:
        logger.error("Failed to get GPU slices", exc_info=True)
        return None


def _run_counters_stage(
    store: TraceStore,
    descriptor: Optional[CounterDescriptor],
    ctx: Optional[RequestContext],
    counter_workers: int,
) -> Optional[list[CounterTrack]]:
    try:
        return extract_counters(store, descriptor, ctx, max_workers=counter_workers)
    except Exception:
        logger.error("Failed to get GPU counters", exc_info=True)
        return None


def process_profiling_data(
    store: TraceStore,
    descriptor: Optional[CounterDescriptor] = None,
    handle_mapping: Optional[Mapping[int, Sequence[HandleMappingItem]]] = None,
    render_passes: Optional[RenderPassLookup] = None,
    ctx: Optional[RequestContext] = None,
    parallel: bool = False,
    counter_workers: int = 1,
    compute_counters: ComputeCounters = compute_gpu_counters,
) -> ProfilingData:
    """
    Build the profiling data of a trace.

    Slice processing and counter extraction are both attempted regardless
    of whether the other fails. Failures are logged and never raised.

    Args:
        store: Trace store to query
        descriptor: Device counter descriptor (optional)
        handle_mapping: Replay handle -> trace handles (default: handles are
            used as recorded)
        render_passes: Render-pass lookup from the synchronization analysis
            (default: no render passes, so no slice is grouped)
        ctx: Request context carried through every query
        parallel: Run slice and counter processing concurrently
        counter_workers: Number of concurrent counter sample queries
        compute_counters: Computes derived metrics from slices and counters

    Returns:
        ProfilingData, with None for every part that could not be produced
    """
    render_passes = render_passes if render_passes is not None else RenderPassTable()

    if parallel:
        with ThreadPoolExecutor(max_workers=2) as executor:
            slices_future = executor.submit(
                _run_slices_stage, store, handle_mapping, render_passes, ctx
            )
            counters_future = executor.submit(
                _run_counters_stage, store, descriptor, ctx, counter_workers
            )
            slices = slices_future.result()
            counters = counters_future.result()
    else:
        slices = _run_slices_stage(store, handle_mapping, render_passes, ctx)
        counters = _run_counters_stage(store, descriptor, ctx, counter_workers)

    gpu_counters = None
    try:
        gpu_counters = compute_counters(slices, counters)
    except Exception:
        logger.error(
            "Failed to calculate performance data based on GPU slices and counters",
            exc_info=True,
        )

    return ProfilingData(slices=slices, counters=counters, gpu_counters=gpu_counters)
