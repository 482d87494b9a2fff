# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
GPU slice extraction.

Reads the render-stage slices of a trace into a SliceData container,
remaps the replay-side handles they reference to trace-side handles, and
keeps the table of render-pass groups the slices are assigned to.
"""

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Sequence

from gpuprofile.profiling.render_passes import IndexRange, RenderPassKey
from gpuprofile.trace_store import RequestContext, TraceStore

logger = logging.getLogger(__name__)

NO_GROUP = -1

SLICES_QUERY = (
    "SELECT s.id, s.ts, s.dur, s.name, s.depth, s.track_id, "
    "s.command_buffer, s.render_target, s.render_pass, "
    "s.submission_id, s.hw_queue_id "
    "FROM gpu_slice s JOIN gpu_track t ON s.track_id = t.id "
    "WHERE t.scope = 'gpu_render_stage' "
    "ORDER BY s.ts"
)
TRACKS_QUERY = (
    "SELECT id, name FROM gpu_track WHERE scope = 'gpu_render_stage' ORDER BY id"
)


@dataclass(frozen=True)
class HandleMappingItem:
    """
    One trace-side handle a replay-side handle corresponds to.

    Attributes:
        handle_type: Vulkan object type (e.g., "VkCommandBuffer")
        trace_value: Handle value as recorded in the trace
    """

    handle_type: str
    trace_value: int


@dataclass
class Slice:
    """A single GPU render-stage slice."""

    id: int
    ts: int
    dur: int
    name: str
    depth: int
    track_id: int
    command_buffer: int
    render_target: int
    render_pass: int
    submission_id: int
    hw_queue_id: int = 0
    group_id: int = NO_GROUP

    @property
    def end(self) -> int:
        return self.ts + self.dur


@dataclass
class Track:
    """GPU hardware queue track slices are placed on."""

    id: int
    name: str


@dataclass
class Group:
    """
    Group of slices belonging to one render-pass instance.

    Attributes:
        id: Dense group id, starting at 0
        name: Display name ("RenderPass {rp}, RenderTarget {rt}")
        indices: Command index range covered by the render pass
    """

    id: int
    name: str
    indices: IndexRange


@dataclass
class SliceData:
    """
    Slices of one profiling request, in query order, with their groups.

    Slices are mutated in place by identifier remapping and by the
    render-pass grouping pass.
    """

    slices: list[Slice] = field(default_factory=list)
    tracks: list[Track] = field(default_factory=list)
    groups: list[Group] = field(default_factory=list)
    _group_ids: dict[RenderPassKey, int] = field(
        default_factory=dict, init=False, repr=False
    )

    def create_or_get_group(
        self, key: RenderPassKey, name: str, indices: IndexRange
    ) -> int:
        """
        Return the id of the group for `key`, creating it on first use.

        Args:
            key: Render-pass instance the group belongs to
            name: Display name of the group
            indices: Command index range of the render pass

        Returns:
            Group id
        """
        group_id = self._group_ids.get(key)
        if group_id is not None:
            return group_id

        group_id = len(self.groups)
        self.groups.append(Group(id=group_id, name=name, indices=indices))
        self._group_ids[key] = group_id
        return group_id

    def map_identifiers(
        self, handle_mapping: Mapping[int, Sequence[HandleMappingItem]]
    ) -> None:
        """
        Replace replay-side handles with the trace-side handles they map to.

        Command buffer, render target and render pass handles are remapped.
        Null handles are left untouched; unmapped handles keep their value.

        Args:
            handle_mapping: Replay handle -> trace handles it corresponds to
        """
        for s in self.slices:
            s.command_buffer = _map_handle(s.command_buffer, handle_mapping)
            s.render_target = _map_handle(s.render_target, handle_mapping)
            s.render_pass = _map_handle(s.render_pass, handle_mapping)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "slices": [asdict(s) for s in self.slices],
            "tracks": [asdict(t) for t in self.tracks],
            "groups": [
                {
                    "id": g.id,
                    "name": g.name,
                    "from": g.indices.start,
                    "to": g.indices.end,
                }
                for g in self.groups
            ],
        }


def _map_handle(
    handle: int, handle_mapping: Mapping[int, Sequence[HandleMappingItem]]
) -> int:
    if handle == 0:
        return handle
    items = handle_mapping.get(handle)
    if not items:
        logger.warning("No mapping found for handle %d", handle)
        return handle
    if len(items) > 1:
        logger.warning(
            "Handle %d has %d mappings, using the first", handle, len(items)
        )
    return items[0].trace_value


def extract_slice_data(
    store: TraceStore, ctx: Optional[RequestContext] = None
) -> SliceData:
    """
    Read render-stage slices and their tracks from the trace.

    Every slice starts without a group.

    Raises:
        QueryError: If a slice or track query fails
    """
    result = store.query(SLICES_QUERY, ctx)
    ids = result.long_values(0)
    tss = result.long_values(1)
    durs = result.long_values(2)
    names = result.string_values(3)
    depths = result.long_values(4)
    track_ids = result.long_values(5)
    command_buffers = result.long_values(6)
    render_targets = result.long_values(7)
    render_passes = result.long_values(8)
    submission_ids = result.long_values(9)
    hw_queue_ids = result.long_values(10)

    slices = [
        Slice(
            id=ids[i],
            ts=tss[i],
            dur=durs[i],
            name=names[i],
            depth=depths[i],
            track_id=track_ids[i],
            command_buffer=command_buffers[i],
            render_target=render_targets[i],
            render_pass=render_passes[i],
            submission_id=submission_ids[i],
            hw_queue_id=hw_queue_ids[i],
        )
        for i in range(result.num_records)
    ]

    tracks_result = store.query(TRACKS_QUERY, ctx)
    tracks = [
        Track(id=track_id, name=name)
        for track_id, name in zip(
            tracks_result.long_values(0), tracks_result.string_values(1)
        )
    ]

    logger.info("Extracted %d slices on %d tracks", len(slices), len(tracks))
    return SliceData(slices=slices, tracks=tracks)
