# Copyright (c) Meta Platforms, Inc. and affiliates.

"""Tests for profiling data formatters."""

import json
import unittest

from gpuprofile.formatters import (
    format_counters_table,
    format_groups_table,
    format_metrics_table,
    format_profiling_json,
    format_profiling_table,
    format_slices_table,
    format_value,
)
from gpuprofile.profiling.counters import CounterSpec, CounterTrack
from gpuprofile.profiling.data import ProfilingData
from gpuprofile.profiling.metrics import compute_gpu_counters
from gpuprofile.profiling.render_passes import IndexRange, RenderPassKey
from tests.test_base import make_slice, make_slice_data


def _profiling_data() -> ProfilingData:
    slices = make_slice_data(
        make_slice("1-2 vertex", id=1, ts=0, dur=10),
        make_slice("barrier", id=2, ts=10, dur=5),
    )
    group_id = slices.create_or_get_group(
        RenderPassKey(0, 5, 7, 9), "RenderPass 7, RenderTarget 9", IndexRange(1, 2)
    )
    for s in slices.slices:
        s.group_id = group_id
    counters = [
        CounterTrack(
            id=3,
            name="GPU Utilization",
            unit="%",
            description="",
            spec=CounterSpec(counter_id=11, name="GPU Utilization"),
            timestamps=[0, 20],
            values=[40.0, 60.0],
        )
    ]
    return ProfilingData(
        slices=slices, counters=counters, gpu_counters=compute_gpu_counters(slices, counters)
    )


class FormatValueTest(unittest.TestCase):
    """Tests for format_value."""

    def test_values(self):
        self.assertEqual(format_value(None), "")
        self.assertEqual(format_value(1.0), "1")
        self.assertEqual(format_value(1 / 3), "0.333333")
        self.assertEqual(format_value(7), "7")


class FormatTablesTest(unittest.TestCase):
    """Tests for table formatters."""

    def setUp(self):
        self.data = _profiling_data()

    def test_groups_table(self):
        output = format_groups_table(self.data.slices)
        lines = output.splitlines()
        self.assertIn("GROUP", lines[0])
        self.assertIn("RenderPass 7, RenderTarget 9", lines[1])
        self.assertTrue(lines[1].rstrip().endswith("2"))

    def test_slices_table(self):
        output = format_slices_table(self.data.slices)
        self.assertIn("1-2 vertex", output)
        self.assertIn("barrier", output)
        self.assertEqual(len(output.splitlines()), 3)

    def test_slices_table_no_header(self):
        output = format_slices_table(self.data.slices, show_header=False)
        self.assertEqual(len(output.splitlines()), 2)
        self.assertNotIn("SUBMISSION", output)

    def test_counters_table(self):
        output = format_counters_table(self.data.counters)
        self.assertIn("GPU Utilization", output)
        self.assertIn("50", output)
        self.assertIn("11", output)

    def test_metrics_table(self):
        output = format_metrics_table(self.data.gpu_counters)
        self.assertIn("GPU Time (ns)", output)
        self.assertIn("GPU Utilization (%)", output)
        self.assertIn("15", output)

    def test_missing_sections(self):
        empty = ProfilingData()
        self.assertEqual(format_groups_table(empty.slices), "No slice data available.")
        self.assertEqual(format_slices_table(empty.slices), "No slice data available.")
        self.assertEqual(format_counters_table(empty.counters), "No counter data available.")
        self.assertEqual(format_metrics_table(empty.gpu_counters), "No metrics available.")

    def test_empty_sections(self):
        self.assertEqual(format_groups_table(make_slice_data()), "No groups found.")
        self.assertEqual(format_slices_table(make_slice_data()), "No slices found.")
        self.assertEqual(format_counters_table([]), "No counters found.")

    def test_profiling_table_all_sections(self):
        output = format_profiling_table(self.data)
        for title in ("Groups", "Slices", "Counters", "Metrics"):
            self.assertIn(f"=== {title} ===", output)

    def test_profiling_table_single_section(self):
        output = format_profiling_table(self.data, "counters")
        self.assertNotIn("===", output)
        self.assertIn("GPU Utilization", output)


class FormatJsonTest(unittest.TestCase):
    """Tests for format_profiling_json."""

    def test_json(self):
        out = json.loads(format_profiling_json(_profiling_data()))
        self.assertEqual(out["slices"]["groups"][0]["from"], 1)
        self.assertEqual(out["counters"][0]["spec"]["counter_id"], 11)
        self.assertEqual(out["gpu_counters"]["entries"][0]["group_id"], 0)

    def test_json_missing_parts(self):
        out = json.loads(format_profiling_json(ProfilingData()))
        self.assertEqual(out, {"slices": None, "counters": None, "gpu_counters": None})
