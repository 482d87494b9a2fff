# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
JSON Schema definitions for gpuprofile input files.

Each schema describes one kind of JSON input accepted by the command line:
the device counter descriptor, the replay handle mapping, and the
render-pass table produced by the synchronization analysis.
"""

from typing import Any

_UNSIGNED = {"type": "integer", "minimum": 0}

# Device counter descriptor: {"specs": [{"counter_id": 1, "name": "..."}]}
COUNTER_DESCRIPTOR_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["specs"],
    "properties": {
        "specs": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["counter_id", "name"],
                "properties": {
                    "counter_id": _UNSIGNED,
                    "name": {"type": "string", "minLength": 1},
                    "description": {"type": "string"},
                    "numerator_units": {
                        "type": "array",
                        "items": {"type": "string"},
                    },
                    "denominator_units": {
                        "type": "array",
                        "items": {"type": "string"},
                    },
                    "select_by_default": {"type": "boolean"},
                },
                "additionalProperties": False,
            },
        }
    },
    "additionalProperties": False,
}

# Handle mapping: {"<replay handle>": [{"handle_type": "...", "trace_value": 1}]}
HANDLE_MAPPING_SCHEMA: dict[str, Any] = {
    "type": "object",
    "propertyNames": {"pattern": "^(0x[0-9a-fA-F]+|[0-9]+)$"},
    "additionalProperties": {
        "type": "array",
        "minItems": 1,
        "items": {
            "type": "object",
            "required": ["handle_type", "trace_value"],
            "properties": {
                "handle_type": {"type": "string"},
                "trace_value": _UNSIGNED,
            },
            "additionalProperties": False,
        },
    },
}

# Render-pass table: {"render_passes": [{..key.., "from": 1, "to": 2}]}
RENDER_PASSES_SCHEMA: dict[str, Any] = {
    "type": "object",
    "required": ["render_passes"],
    "properties": {
        "render_passes": {
            "type": "array",
            "items": {
                "type": "object",
                "required": [
                    "submission_order",
                    "command_buffer",
                    "render_pass",
                    "render_target",
                    "from",
                    "to",
                ],
                "properties": {
                    "submission_order": _UNSIGNED,
                    "command_buffer": _UNSIGNED,
                    "render_pass": _UNSIGNED,
                    "render_target": _UNSIGNED,
                    "from": _UNSIGNED,
                    "to": _UNSIGNED,
                },
                "additionalProperties": False,
            },
        }
    },
    "additionalProperties": False,
}

SCHEMAS_BY_KIND: dict[str, dict[str, Any]] = {
    "descriptor": COUNTER_DESCRIPTOR_SCHEMA,
    "handle-mapping": HANDLE_MAPPING_SCHEMA,
    "render-passes": RENDER_PASSES_SCHEMA,
}
