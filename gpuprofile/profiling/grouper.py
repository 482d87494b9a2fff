# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Render-pass grouping of GPU slices.

Assigns every slice to the render pass it belongs to, in a single forward
pass over the slices in query order.

Only the "vertex" and "fragment" slices of a render pass can be matched
against the synchronization data. When one matches, it is renamed after
the command range it covers and a group is established for its render
pass. Slices in between (barriers, secondary work, unmatched stages)
inherit the most recently established group. Slices after the last
render pass of a frame therefore keep the last group.
"""

import logging
from typing import Mapping

from gpuprofile.profiling.render_passes import RenderPassKey, RenderPassLookup
from gpuprofile.profiling.slices import NO_GROUP, SliceData

logger = logging.getLogger(__name__)

RENDER_PASS_STAGES = ("vertex", "fragment")


def group_slices(
    slice_data: SliceData,
    submission_order: Mapping[int, int],
    render_passes: RenderPassLookup,
) -> SliceData:
    """
    Assign render-pass groups to slices and rename render-pass stages.

    Args:
        slice_data: Slices in query order (modified in place)
        submission_order: Submission id -> resolved submission order
        render_passes: Lookup of the command range of a render pass

    Returns:
        The same SliceData, with group ids assigned
    """
    current_group = NO_GROUP

    for s in slice_data.slices:
        order = submission_order.get(s.submission_id)
        if order is None:
            logger.warning("Encountered submission ID mismatch %d", s.submission_id)

        key = RenderPassKey(order, s.command_buffer, s.render_pass, s.render_target)
        indices = render_passes.lookup(key)
        if indices is not None and s.name in RENDER_PASS_STAGES:
            s.name = f"{indices} {s.name}"
            current_group = slice_data.create_or_get_group(
                key,
                f"RenderPass {s.render_pass}, RenderTarget {s.render_target}",
                indices,
            )

        if current_group == NO_GROUP:
            logger.warning(
                "Group missing for slice %s at submission %d, commandBuffer %d, "
                "renderPass %d, renderTarget %d",
                s.name,
                s.submission_id,
                s.command_buffer,
                s.render_pass,
                s.render_target,
            )
        s.group_id = current_group

    logger.info(
        "Assigned %d slices to %d render-pass groups",
        len(slice_data.slices),
        len(slice_data.groups),
    )
    return slice_data
