# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
gpuprofile CLI entry point.

Provides command-line interface for building GPU profiling data and
validating its input files.
"""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

import click
from gpuprofile.inputs.cli import validate_command
from gpuprofile.profiling.cli import profile_command


def _get_package_version() -> str:
    """Get package version from metadata."""
    try:
        return version("gpuprofile")
    except PackageNotFoundError:
        return "0+unknown"


def _configure_logging(verbosity: int) -> None:
    """Log to stderr: warnings by default, -v for info, -vv for debug."""
    level = {0: logging.WARNING, 1: logging.INFO}.get(verbosity, logging.DEBUG)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


EXAMPLES = """
Examples:
  gpuprofile profile capture.perfetto-trace
  gpuprofile -v profile capture.perfetto-trace -r render_passes.json
  gpuprofile validate render_passes.json
"""


@click.group(epilog=EXAMPLES)
@click.version_option(version=_get_package_version(), prog_name="gpuprofile")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase log verbosity (-v info, -vv debug).",
)
def main(verbose: int) -> None:
    """gpuprofile: GPU render-pass profiling tools."""
    _configure_logging(verbose)


# Register subcommands
main.add_command(profile_command)
main.add_command(validate_command)


if __name__ == "__main__":
    sys.exit(main())
