# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Profiling data formatting utilities for different output formats.

Provides functions to format ProfilingData as tables or JSON.
All functions are pure (no side effects) and return strings.
"""

import json
from typing import Optional

from tabulate import tabulate

from gpuprofile.profiling.counters import CounterTrack
from gpuprofile.profiling.data import ProfilingData
from gpuprofile.profiling.metrics import GpuCounters
from gpuprofile.profiling.slices import NO_GROUP, SliceData

SECTIONS = ["groups", "slices", "counters", "metrics"]


def format_value(value) -> str:
    """
    Format a value for display.

    Handles special cases:
    - None -> empty string
    - float -> up to 6 significant digits
    - other -> str()
    """
    if value is None:
        return ""
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


def format_groups_table(slice_data: Optional[SliceData], show_header: bool = True) -> str:
    """Format render-pass groups with their slice counts."""
    if slice_data is None:
        return "No slice data available."
    if not slice_data.groups:
        return "No groups found."

    counts: dict[int, int] = {}
    for s in slice_data.slices:
        counts[s.group_id] = counts.get(s.group_id, 0) + 1

    rows = [
        [g.id, g.name, g.indices.start, g.indices.end, counts.get(g.id, 0)]
        for g in slice_data.groups
    ]
    headers = ["GROUP", "NAME", "FROM", "TO", "SLICES"] if show_header else []
    return tabulate(rows, headers=headers, tablefmt="plain")


def format_slices_table(slice_data: Optional[SliceData], show_header: bool = True) -> str:
    """Format slices in query order."""
    if slice_data is None:
        return "No slice data available."
    if not slice_data.slices:
        return "No slices found."

    rows = [
        [
            s.id,
            s.ts,
            s.dur,
            s.name,
            s.submission_id,
            s.command_buffer,
            s.render_pass,
            s.render_target,
            "" if s.group_id == NO_GROUP else s.group_id,
        ]
        for s in slice_data.slices
    ]
    headers = (
        ["ID", "TS", "DUR", "NAME", "SUBMISSION", "CB", "RP", "RT", "GROUP"]
        if show_header
        else []
    )
    return tabulate(rows, headers=headers, tablefmt="plain")


def format_counters_table(
    counters: Optional[list[CounterTrack]], show_header: bool = True
) -> str:
    """Format counter tracks with a summary of their samples."""
    if counters is None:
        return "No counter data available."
    if not counters:
        return "No counters found."

    rows = []
    for c in counters:
        mean = sum(c.values) / len(c.values) if c.values else None
        rows.append(
            [
                c.id,
                c.name,
                c.unit,
                len(c.values),
                format_value(mean),
                "" if c.spec is None else c.spec.counter_id,
            ]
        )
    headers = ["ID", "NAME", "UNIT", "SAMPLES", "MEAN", "SPEC"] if show_header else []
    return tabulate(rows, headers=headers, tablefmt="plain")


def format_metrics_table(
    gpu_counters: Optional[GpuCounters], show_header: bool = True
) -> str:
    """Format per-group metrics, one column per metric."""
    if gpu_counters is None:
        return "No metrics available."
    if not gpu_counters.entries:
        return "No metrics found."

    rows = [
        [entry.group_id]
        + [format_value(entry.metric_to_value.get(m.id)) for m in gpu_counters.metrics]
        for entry in gpu_counters.entries
    ]
    headers = (
        ["GROUP"] + [f"{m.name} ({m.unit})" if m.unit else m.name for m in gpu_counters.metrics]
        if show_header
        else []
    )
    return tabulate(rows, headers=headers, tablefmt="plain")


def format_profiling_table(
    data: ProfilingData, section: str = "all", show_header: bool = True
) -> str:
    """
    Format profiling data as plain text tables.

    Args:
        data: Profiling data to format
        section: One of SECTIONS, or "all" for every section
        show_header: Whether to show table headers

    Returns:
        Formatted output string
    """
    formatters = {
        "groups": lambda: format_groups_table(data.slices, show_header),
        "slices": lambda: format_slices_table(data.slices, show_header),
        "counters": lambda: format_counters_table(data.counters, show_header),
        "metrics": lambda: format_metrics_table(data.gpu_counters, show_header),
    }
    if section != "all":
        return formatters[section]()

    parts = []
    for name in SECTIONS:
        parts.append(f"=== {name.capitalize()} ===")
        parts.append(formatters[name]())
        parts.append("")
    return "\n".join(parts).rstrip("\n")


def format_profiling_json(data: ProfilingData) -> str:
    """Format profiling data as pretty-printed JSON."""
    return json.dumps(data.to_dict(), indent=2)
