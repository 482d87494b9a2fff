# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the profile subcommand.

Builds the profiling data of a Perfetto trace and prints or writes it.
"""

from pathlib import Path
from typing import Optional

import click

from gpuprofile.formatters import (
    format_profiling_json,
    format_profiling_table,
    SECTIONS,
)
from gpuprofile.inputs.compression import write_text_file
from gpuprofile.inputs.loader import (
    InputValidationError,
    load_counter_descriptor,
    load_handle_mapping,
    load_render_passes,
)
from gpuprofile.profiling.data import process_profiling_data
from gpuprofile.trace_store import PerfettoTraceStore, RequestContext


def _write_output(output: str, output_file: Optional[Path], compress: bool = False) -> None:
    """Write output to file or stdout."""
    if output_file:
        write_text_file(output_file, output + "\n", compress=compress)
        click.echo(f"Output written to {output_file}", err=True)
    else:
        click.echo(output)


@click.command(name="profile")
@click.argument("trace", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--descriptor",
    "-d",
    "descriptor_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Device counter descriptor JSON file.",
)
@click.option(
    "--handle-mapping",
    "-m",
    "handle_mapping_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Replay handle mapping JSON file.",
)
@click.option(
    "--render-passes",
    "-r",
    "render_passes_file",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Render-pass table JSON file from the synchronization analysis.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"]),
    default="table",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--section",
    type=click.Choice(["all"] + SECTIONS),
    default="all",
    show_default=True,
    help="Section to show in table output.",
)
@click.option(
    "--no-header",
    is_flag=True,
    default=False,
    help="Hide table headers.",
)
@click.option(
    "--jobs",
    "-j",
    type=click.IntRange(min=1),
    default=1,
    show_default=True,
    help="Number of concurrent trace queries.",
)
@click.option(
    "--timeout",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Abort remaining queries after this many seconds.",
)
@click.option(
    "--output",
    "-o",
    "output_file",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path (default: stdout).",
)
@click.option(
    "--compress",
    is_flag=True,
    default=False,
    help="Compress output with Zstd (requires --output).",
)
def profile_command(
    trace: Path,
    descriptor_file: Optional[Path],
    handle_mapping_file: Optional[Path],
    render_passes_file: Optional[Path],
    output_format: str,
    section: str,
    no_header: bool,
    jobs: int,
    timeout: Optional[float],
    output_file: Optional[Path],
    compress: bool,
) -> None:
    """
    Build GPU profiling data from TRACE.

    Groups the GPU slices of a Perfetto trace by render pass and extracts
    its GPU counter tracks. Stages that fail are reported in the log and
    left empty in the output.

    \b
    Examples:
      gpuprofile profile capture.perfetto-trace
      gpuprofile profile capture.perfetto-trace -r render_passes.json --section groups
      gpuprofile profile capture.perfetto-trace -d mali.json --format json -o out.json
      gpuprofile profile capture.perfetto-trace --format json -o out.json.zst --compress
    """
    if compress and not output_file:
        raise click.ClickException("--compress requires --output")

    try:
        descriptor = load_counter_descriptor(descriptor_file) if descriptor_file else None
        handle_mapping = load_handle_mapping(handle_mapping_file) if handle_mapping_file else None
        render_passes = load_render_passes(render_passes_file) if render_passes_file else None
    except InputValidationError as e:
        raise click.ClickException(str(e))

    ctx = RequestContext.with_timeout(timeout) if timeout else RequestContext()

    try:
        store = PerfettoTraceStore(trace)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    with store:
        data = process_profiling_data(
            store,
            descriptor=descriptor,
            handle_mapping=handle_mapping,
            render_passes=render_passes,
            ctx=ctx,
            parallel=jobs > 1,
            counter_workers=jobs,
        )

    if output_format == "json":
        output = format_profiling_json(data)
    else:
        output = format_profiling_table(data, section, show_header=not no_header)

    _write_output(output, output_file, compress)
