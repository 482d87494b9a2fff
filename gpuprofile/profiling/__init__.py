# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
gpuprofile profiling module.

This module turns the GPU slices and counters of a trace into profiling data:
- resolve_submission_order: Dense order of valid queue submissions
- group_slices: Render-pass grouping of GPU slices
- extract_counters: GPU counter tracks with their samples
- process_profiling_data: Assemble the complete ProfilingData
"""

from .counters import CounterDescriptor, CounterSpec, CounterTrack, extract_counters
from .data import process_gpu_slices, process_profiling_data, ProfilingData
from .grouper import group_slices
from .metrics import compute_gpu_counters, GpuCounters
from .render_passes import IndexRange, RenderPassKey, RenderPassLookup, RenderPassTable
from .slices import extract_slice_data, HandleMappingItem, NO_GROUP, Slice, SliceData
from .submissions import query_submission_order, resolve_submission_order

__all__ = [
    "compute_gpu_counters",
    "CounterDescriptor",
    "CounterSpec",
    "CounterTrack",
    "extract_counters",
    "extract_slice_data",
    "GpuCounters",
    "group_slices",
    "HandleMappingItem",
    "IndexRange",
    "NO_GROUP",
    "process_gpu_slices",
    "process_profiling_data",
    "ProfilingData",
    "query_submission_order",
    "RenderPassKey",
    "RenderPassLookup",
    "RenderPassTable",
    "resolve_submission_order",
    "Slice",
    "SliceData",
]
