# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
gpuprofile input module.

This module loads and validates the JSON input files of the command line:
- Device counter descriptors
- Replay handle mappings
- Render-pass tables from the synchronization analysis
"""

from .loader import (
    InputValidationError,
    load_counter_descriptor,
    load_handle_mapping,
    load_json_input,
    load_render_passes,
    validate_input,
)
from .schemas import (
    COUNTER_DESCRIPTOR_SCHEMA,
    HANDLE_MAPPING_SCHEMA,
    RENDER_PASSES_SCHEMA,
    SCHEMAS_BY_KIND,
)

__all__ = [
    # Loading
    "InputValidationError",
    "load_counter_descriptor",
    "load_handle_mapping",
    "load_json_input",
    "load_render_passes",
    "validate_input",

    # Schemas
    "COUNTER_DESCRIPTOR_SCHEMA",
    "HANDLE_MAPPING_SCHEMA",
    "RENDER_PASSES_SCHEMA",
    "SCHEMAS_BY_KIND",
]
