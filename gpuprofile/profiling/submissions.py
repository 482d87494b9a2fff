# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Submission ordering for GPU slices.

Queue submissions are identified in the trace by an external submission id.
The synchronization analysis refers to them by their dense position among
valid submissions instead, so the ids are resolved to a 0-based order here.
"""

import logging
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from gpuprofile.trace_store import RequestContext, TraceStore

logger = logging.getLogger(__name__)

QUEUE_SUBMIT_QUERY = (
    "SELECT submission_id, command_buffer FROM gpu_slice s "
    "JOIN track t ON s.track_id = t.id "
    "WHERE s.name = 'vkQueueSubmit' AND t.name = 'Vulkan Events' "
    "ORDER BY submission_id"
)


def resolve_submission_order(
    submissions: Iterable[tuple[int, int]],
) -> Mapping[int, int]:
    """
    Assign a dense sequential order to queue submissions.

    Submissions without a command buffer are spurious: they are skipped
    without consuming an order value.

    Args:
        submissions: (submission_id, command_buffer) pairs in ascending
            submission id order

    Returns:
        Read-only mapping from submission id to order. Spurious and unseen
        ids have no entry.

    Example:
        >>> dict(resolve_submission_order([(100, 5), (101, 0), (102, 6)]))
        {100: 0, 102: 1}
    """
    ordering: dict[int, int] = {}
    order = 0
    for submission_id, command_buffer in submissions:
        if command_buffer == 0:
            logger.warning(
                "Spurious vkQueueSubmit slice with submission id %d", submission_id
            )
            continue
        ordering[submission_id] = order
        order += 1
    return MappingProxyType(ordering)


def query_submission_order(
    store: TraceStore, ctx: Optional[RequestContext] = None
) -> Mapping[int, int]:
    """
    Query the queue submissions of a trace and resolve their order.

    Raises:
        QueryError: If the submission query fails
    """
    result = store.query(QUEUE_SUBMIT_QUERY, ctx)
    submission_ids = result.long_values(0)
    command_buffers = result.long_values(1)
    return resolve_submission_order(zip(submission_ids, command_buffers))
