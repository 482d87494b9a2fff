# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Loaders for gpuprofile JSON input files.

Each input file is parsed (plain or Zstd-compressed), validated against
the JSON Schema of its kind, and converted to the objects the profiling
pipeline consumes.
"""

import json
from pathlib import Path
from typing import Any, Union

import jsonschema

from gpuprofile.inputs.compression import detect_compression, open_text_file
from gpuprofile.inputs.schemas import SCHEMAS_BY_KIND
from gpuprofile.profiling.counters import CounterDescriptor, CounterSpec
from gpuprofile.profiling.render_passes import (
    IndexRange,
    RenderPassKey,
    RenderPassTable,
)
from gpuprofile.profiling.slices import HandleMappingItem


class InputValidationError(Exception):
    """Exception raised for input files that fail validation."""

    def __init__(self, filepath: Path, errors: list[str]) -> None:
        super().__init__(
            f"Invalid input file {filepath}:\n" + "\n".join(errors)
        )
        self.filepath = filepath
        self.errors = errors


def _schema_for(kind: str) -> dict[str, Any]:
    if kind not in SCHEMAS_BY_KIND:
        valid_kinds = ", ".join(SCHEMAS_BY_KIND.keys())
        raise ValueError(f"Unknown input kind: {kind}. Valid kinds: {valid_kinds}")
    return SCHEMAS_BY_KIND[kind]


def schema_errors(data: Any, kind: str, max_errors: int = 10) -> list[str]:
    """
    Validate parsed input data against the schema of its kind.

    Args:
        data: Parsed JSON document
        kind: Input kind ("descriptor", "handle-mapping", "render-passes")
        max_errors: Maximum number of schema errors to collect

    Returns:
        Error messages (empty if the data is valid)

    Raises:
        ValueError: If kind is not recognized
    """
    validator = jsonschema.Draft7Validator(_schema_for(kind))
    errors = []
    for error in validator.iter_errors(data):
        field_path = ".".join(str(p) for p in error.path)
        errors.append(f"Schema error at '{field_path}': {error.message}")
        if len(errors) >= max_errors:
            break
    return errors


def load_json_input(filepath: Union[str, Path], kind: str) -> Any:
    """
    Parse and validate a JSON input file.

    Raises:
        FileNotFoundError: If file does not exist
        InputValidationError: If the file is not valid JSON or fails
            schema validation
        ValueError: If kind is not recognized
    """
    filepath = Path(filepath)
    _schema_for(kind)

    try:
        with open_text_file(filepath) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise InputValidationError(
            filepath, [f"Line {e.lineno}: JSON decode error - {e.msg}"]
        ) from e

    errors = schema_errors(data, kind)
    if errors:
        raise InputValidationError(filepath, errors)
    return data


def validate_input(filepath: Path, kind: str) -> dict[str, Any]:
    """
    Complete validation of a JSON input file.

    Runs the loader of the given kind, so a file reported valid here is one
    the profile command accepts.

    Args:
        filepath: Path to the input file
        kind: Input kind

    Returns:
        Dictionary containing:
            - valid: bool - Whether validation passed
            - kind: str - Input kind validated against
            - file_size: int - File size in bytes
            - compression: str - "zstd" or "none"
            - errors: list[str] - Error messages (empty if valid)

    Raises:
        FileNotFoundError: If file does not exist
        ValueError: If kind is not recognized
    """
    _schema_for(kind)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    result: dict[str, Any] = {
        "valid": False,
        "kind": kind,
        "file_size": filepath.stat().st_size,
        "compression": detect_compression(filepath),
        "errors": [],
    }

    try:
        _LOADERS_BY_KIND[kind](filepath)
        result["valid"] = True
    except InputValidationError as e:
        result["errors"].extend(e.errors)
    except (OSError, UnicodeDecodeError) as e:
        result["errors"].append(f"File reading error: {str(e)}")

    return result


def load_counter_descriptor(filepath: Union[str, Path]) -> CounterDescriptor:
    data = load_json_input(filepath, "descriptor")
    specs = tuple(
        CounterSpec(
            counter_id=spec["counter_id"],
            name=spec["name"],
            description=spec.get("description", ""),
            numerator_units=tuple(spec.get("numerator_units", ())),
            denominator_units=tuple(spec.get("denominator_units", ())),
            select_by_default=spec.get("select_by_default", False),
        )
        for spec in data["specs"]
    )
    return CounterDescriptor(specs=specs)


def _parse_handle(handle: str) -> int:
    # Decimal keys may have leading zeros ("010" is 10).
    if handle.lower().startswith("0x"):
        return int(handle, 16)
    return int(handle)


def load_handle_mapping(
    filepath: Union[str, Path],
) -> dict[int, list[HandleMappingItem]]:
    """Load a replay handle mapping; keys may be decimal or 0x-prefixed hex."""
    data = load_json_input(filepath, "handle-mapping")
    return {
        _parse_handle(handle): [
            HandleMappingItem(
                handle_type=item["handle_type"], trace_value=item["trace_value"]
            )
            for item in items
        ]
        for handle, items in data.items()
    }


def load_render_passes(filepath: Union[str, Path]) -> RenderPassTable:
    data = load_json_input(filepath, "render-passes")
    table = RenderPassTable()
    for entry in data["render_passes"]:
        key = RenderPassKey(
            entry["submission_order"],
            entry["command_buffer"],
            entry["render_pass"],
            entry["render_target"],
        )
        try:
            table.add(key, IndexRange(entry["from"], entry["to"]))
        except ValueError as e:
            raise InputValidationError(Path(filepath), [str(e)]) from e
    return table


_LOADERS_BY_KIND = {
    "descriptor": load_counter_descriptor,
    "handle-mapping": load_handle_mapping,
    "render-passes": load_render_passes,
}
