# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the validate subcommand.

This module provides command-line interface for validating gpuprofile
JSON input files.
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from .loader import validate_input
from .schemas import SCHEMAS_BY_KIND


def _detect_kind(file_path: Path) -> str:
    """Auto-detect input kind from the file name."""
    name = file_path.name.lower()
    if "descriptor" in name or "counters" in name:
        return "descriptor"
    elif "mapping" in name or "handles" in name:
        return "handle-mapping"
    elif "render_pass" in name or "renderpass" in name or "render-pass" in name:
        return "render-passes"
    else:
        return "unknown"


def _format_size(size_bytes: int) -> str:
    """Format file size for display."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _print_validation_result(result: dict[str, Any], verbose: bool = False) -> None:
    """Print validation result in human-readable format."""
    if result["valid"]:
        click.echo("✅ Valid input file")
        click.echo(f"   Kind:         {result['kind']}")
        click.echo(f"   File size:    {_format_size(result['file_size'])}")
        if verbose and result.get("compression") == "zstd":
            click.echo("   Compression:  zstd")
    else:
        click.echo("❌ Validation failed")
        for error in result.get("errors", []):
            click.echo(f"   {error}")


@click.command(name="validate")
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--kind",
    "-k",
    type=click.Choice(list(SCHEMAS_BY_KIND.keys()) + ["auto"]),
    default="auto",
    help="Input kind. Default: auto-detect from file name.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Quiet mode. Only return exit code.",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output results in JSON format.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Verbose output with additional details.",
)
def validate_command(
    file: Path,
    kind: str,
    quiet: bool,
    json_output: bool,
    verbose: bool,
) -> None:
    """Validate a gpuprofile input file.

    Checks JSON syntax and schema compliance of counter descriptors,
    handle mappings and render-pass tables (plain or Zstd-compressed).

    FILE is the path to the input file to validate.
    """
    if kind == "auto":
        kind = _detect_kind(file)
        if kind == "unknown":
            if not quiet:
                click.echo(
                    f"Error: Cannot auto-detect input kind for {file}. "
                    "Use --kind to specify.",
                    err=True,
                )
            sys.exit(2)

    result = validate_input(file, kind)

    if quiet:
        sys.exit(0 if result["valid"] else 1)

    if json_output:
        click.echo(json.dumps(result, indent=2))
        sys.exit(0 if result["valid"] else 1)

    _print_validation_result(result, verbose)

    sys.exit(0 if result["valid"] else 1)
