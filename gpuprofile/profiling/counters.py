# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
GPU counter track extraction.

Reads every GPU counter track of a trace together with its samples, and
attaches the device's specification of the counter where one is known.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from gpuprofile.trace_store import RequestContext, TraceStore

logger = logging.getLogger(__name__)

COUNTER_TRACKS_QUERY = "SELECT id, name, unit, description FROM gpu_counter_track ORDER BY id"
COUNTERS_QUERY_FMT = "SELECT ts, value FROM counter c WHERE c.track_id = {track_id} ORDER BY ts"


@dataclass(frozen=True)
class CounterSpec:
    """
    Device specification of a GPU counter.

    Attributes:
        counter_id: Device-specific counter id
        name: Counter name, as used for the counter's track in the trace
        description: Human-readable description
        numerator_units: Units of the counter's numerator
        denominator_units: Units of the counter's denominator
        select_by_default: Whether the counter is collected by default
    """

    counter_id: int
    name: str
    description: str = ""
    numerator_units: tuple[str, ...] = ()
    denominator_units: tuple[str, ...] = ()
    select_by_default: bool = False


@dataclass(frozen=True)
class CounterDescriptor:
    """Set of counters a device supports."""

    specs: tuple[CounterSpec, ...] = ()

    def specs_by_name(self) -> Mapping[str, CounterSpec]:
        return MappingProxyType({spec.name: spec for spec in self.specs})


@dataclass
class CounterTrack:
    """
    A GPU counter track and its samples.

    Attributes:
        id: Track id
        name: Counter name
        unit: Counter unit
        description: Counter description
        spec: Matching device specification (None when the device does not
            describe this counter)
        timestamps: Sample timestamps, ascending
        values: Sample values, parallel to timestamps
    """

    id: int
    name: str
    unit: str
    description: str
    spec: Optional[CounterSpec] = None
    timestamps: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        data = asdict(self)
        if self.spec is not None:
            data["spec"]["numerator_units"] = list(self.spec.numerator_units)
            data["spec"]["denominator_units"] = list(self.spec.denominator_units)
        return data


def _to_unsigned(timestamps: list[int], track_id: int) -> list[int]:
    for ts in timestamps:
        if ts < 0:
            raise ValueError(f"Negative timestamp {ts} on counter track {track_id}")
    return timestamps


def _query_samples(
    store: TraceStore, track_id: int, ctx: Optional[RequestContext]
) -> tuple[list[int], list[float]]:
    result = store.query(COUNTERS_QUERY_FMT.format(track_id=track_id), ctx)
    timestamps = _to_unsigned(result.long_values(0), track_id)
    values = result.double_values(1)
    return timestamps, values


def extract_counters(
    store: TraceStore,
    descriptor: Optional[CounterDescriptor] = None,
    ctx: Optional[RequestContext] = None,
    max_workers: int = 1,
) -> list[CounterTrack]:
    """
    Read all GPU counter tracks of the trace with their samples.

    Tracks are returned in ascending track id order, independently of the
    order the track query returns them in.

    Args:
        store: Trace store to query
        descriptor: Device counter descriptor used to attach specs
        ctx: Request context carried through every query
        max_workers: Number of sample queries to run concurrently

    Returns:
        Counter tracks sorted by id

    Raises:
        QueryError: If any query fails; no partial result is returned
    """
    result = store.query(COUNTER_TRACKS_QUERY, ctx)
    track_ids = result.long_values(0)
    names = result.string_values(1)
    units = result.string_values(2)
    descriptions = result.string_values(3)

    name_to_spec: Mapping[str, CounterSpec] = (
        descriptor.specs_by_name() if descriptor is not None else MappingProxyType({})
    )

    tracks = [
        CounterTrack(
            id=track_ids[i],
            name=names[i],
            unit=units[i],
            description=descriptions[i],
            spec=name_to_spec.get(names[i]),
        )
        for i in range(result.num_records)
    ]
    tracks.sort(key=lambda t: t.id)

    if max_workers > 1 and len(tracks) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            samples = list(
                executor.map(lambda t: _query_samples(store, t.id, ctx), tracks)
            )
    else:
        samples = [_query_samples(store, t.id, ctx) for t in tracks]

    for track, (timestamps, values) in zip(tracks, samples):
        track.timestamps = timestamps
        track.values = values

    logger.info("Extracted %d counter tracks", len(tracks))
    return tracks
