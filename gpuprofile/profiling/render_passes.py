# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Render-pass lookup for slice grouping.

A prior synchronization analysis correlates every render-pass instance
with the range of commands it covers. This module defines the key that
identifies a render-pass instance, the command index range it maps to,
and the lookup interface the grouping pass queries.
"""

from abc import ABC, abstractmethod
from typing import Iterable, NamedTuple, Optional


class RenderPassKey(NamedTuple):
    """
    Identifies one render-pass instance.

    Attributes:
        submission_order: Resolved order of the submission (None when the
            slice's submission id could not be resolved)
        command_buffer: Command buffer handle
        render_pass: Render pass handle
        render_target: Render target (framebuffer) handle
    """

    submission_order: Optional[int]
    command_buffer: int
    render_pass: int
    render_target: int


class IndexRange(NamedTuple):
    """Half-open range [start, end) of command indices."""

    start: int
    end: int

    def __str__(self) -> str:
        return f"{self.start}-{self.end}"


class RenderPassLookup(ABC):
    """Maps render-pass instances to the command range they cover."""

    @abstractmethod
    def lookup(self, key: RenderPassKey) -> Optional[IndexRange]:
        """Return the command range for `key`, or None if none was found."""


class RenderPassTable(RenderPassLookup):
    """
    In-memory RenderPassLookup built from precomputed entries.

    Example:
        >>> key = RenderPassKey(0, 5, 7, 9)
        >>> table = RenderPassTable([(key, IndexRange(1, 2))])
        >>> table.lookup(key)
        IndexRange(start=1, end=2)
    """

    def __init__(
        self, entries: Iterable[tuple[RenderPassKey, IndexRange]] = ()
    ) -> None:
        self._ranges: dict[RenderPassKey, IndexRange] = {}
        for key, indices in entries:
            self.add(key, indices)

    def add(self, key: RenderPassKey, indices: IndexRange) -> None:
        if indices.end < indices.start:
            raise ValueError(f"Invalid index range {indices} for {key}")
        self._ranges[RenderPassKey(*key)] = IndexRange(*indices)

    def lookup(self, key: RenderPassKey) -> Optional[IndexRange]:
        return self._ranges.get(key)
