"""
Horizontal anchoring: line one node's center up with another's.

``anchor_x_to_id`` maps a source node to a target node.  Each pass measures
both centers, shifts the source's offset by the difference and hands the
new offsets back to the host, which re-lays out and re-measures.  A pass in
which no source moves by more than ``tolerance`` is a fixed point.

Chained anchors (a→b, b→c) need more than one pass; mutually anchored
nodes never settle.  Resolution therefore stops after ``max_passes`` and,
if still moving, gives up and keeps the caller's manual offsets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

from .geometry import Rect
from .models import Offset

logger = logging.getLogger(__name__)

RectLookup = Callable[[str], Optional[Rect]]

DEFAULT_MAX_PASSES = 5
DEFAULT_TOLERANCE = 0.5


@dataclass
class AnchorResolution:
    offsets: dict[str, Offset]
    passes: int
    converged: bool


def anchor_pass(
    anchor_x_to_id: Mapping[str, str],
    rect_of: RectLookup,
    offsets: Mapping[str, Offset],
) -> tuple[dict[str, Offset], float]:
    """Run one anchoring pass against the current measurements.

    Returns the updated offsets and the largest absolute shift applied.
    Pairs with an unmeasured node are left alone.
    """
    updated = dict(offsets)
    largest = 0.0
    for source_id, target_id in anchor_x_to_id.items():
        source = rect_of(source_id)
        target = rect_of(target_id)
        if source is None or target is None:
            continue
        delta = target.center_x - source.center_x
        if delta == 0:
            continue
        current = updated.get(source_id) or Offset()
        updated[source_id] = current.shifted(delta)
        largest = max(largest, abs(delta))
    return updated, largest


class AnchorResolver:
    """Iterates ``anchor_pass`` to a fixed point.

    ``measure(offsets)`` must lay the chart out with the given offsets and
    return a rectangle lookup for the result.
    """

    def __init__(
        self,
        anchor_x_to_id: Mapping[str, str],
        base_offsets: Optional[Mapping[str, Offset]] = None,
        *,
        max_passes: int = DEFAULT_MAX_PASSES,
        tolerance: float = DEFAULT_TOLERANCE,
    ):
        self.anchor_x_to_id = dict(anchor_x_to_id)
        self.base_offsets = dict(base_offsets or {})
        self.max_passes = max(1, max_passes)
        self.tolerance = tolerance

    def resolve(self, measure: Callable[[dict[str, Offset]], RectLookup]) -> AnchorResolution:
        offsets = dict(self.base_offsets)
        if not self.anchor_x_to_id:
            return AnchorResolution(offsets, 0, True)

        for passes in range(1, self.max_passes + 1):
            rect_of = measure(offsets)
            updated, largest = anchor_pass(self.anchor_x_to_id, rect_of, offsets)
            if largest <= self.tolerance:
                return AnchorResolution(offsets, passes, True)
            offsets = updated

        # The last pass moved something; check whether it landed.
        _, largest = anchor_pass(self.anchor_x_to_id, measure(offsets), offsets)
        if largest <= self.tolerance:
            return AnchorResolution(offsets, self.max_passes, True)

        logger.warning(
            "Anchor offsets did not settle after %d passes; keeping manual offsets",
            self.max_passes,
        )
        return AnchorResolution(dict(self.base_offsets), self.max_passes, False)
