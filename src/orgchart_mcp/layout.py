"""
Pixel layout of grouped containers: the measuring host.

Given the containers from ``groups.build_groups``, this module places every
container, row and card in chart-local pixel space and reports the result
as a ``ChartGeometry``, which doubles as the rectangle oracle the router
and the anchor resolver read from.

Layout model (top to bottom):

    panel                full viewport width, ``panel_padding`` all round
      content column     at most ``content_max_width`` wide, centered,
                         inset by ``content_padding_x``
        container        ``group_margin_top`` above it, ``group_padding``
                         inside, rows separated by ``row_spacing``
          row            ``row_padding_top`` above the cards; single and
                         flex rows are centered, grid rows split the
                         container width into equal columns

Manual offsets behave like a visual translate: they move a card's rectangle
but never push its neighbours or resize its container.

Spacing constants (defaults):
  - Cards: 224 x 128
  - Container padding 48, gap above containers 48
  - Row spacing 40, padding above each row's cards 32
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Sequence

from .geometry import Rect
from .groups import Group, row_layout
from .models import Offset


@dataclass
class LayoutOptions:
    """Layout metrics for one chart."""
    viewport_width: float = 1280.0
    panel_padding: float = 32.0
    content_max_width: float = 1152.0
    content_padding_x: float = 32.0
    group_margin_top: float = 48.0
    group_padding: float = 48.0
    row_spacing: float = 40.0
    row_padding_top: float = 32.0
    card_width: float = 224.0
    card_height: float = 128.0


@dataclass
class ChartGeometry:
    """Measured rectangles for one layout pass.

    ``node_rects`` already include manual and anchor offsets.
    """
    node_rects: dict[str, Rect] = field(default_factory=dict)
    container_rects: list[Rect] = field(default_factory=list)
    node_group: dict[str, int] = field(default_factory=dict)
    width: float = 0.0
    height: float = 0.0

    def rect_of(self, node_id: str) -> Optional[Rect]:
        return self.node_rects.get(node_id)

    def container_of(self, node_id: str) -> Optional[Rect]:
        index = self.node_group.get(node_id)
        if index is None:
            return None
        return self.container_rects[index]


def layout_chart(
    groups: Sequence[Group],
    options: Optional[LayoutOptions] = None,
    offsets: Optional[Mapping[str, Offset]] = None,
    sizes: Optional[Mapping[str, tuple[float, float]]] = None,
) -> ChartGeometry:
    """Place every container and card.

    Args:
        groups: Containers in display order.
        options: Layout metrics; defaults to ``LayoutOptions()``.
        offsets: Per-node visual nudges applied after placement.
        sizes: Measured ``(width, height)`` per node, overriding the
            default card size.
    """
    opts = options or LayoutOptions()
    offsets = offsets or {}
    sizes = sizes or {}
    geometry = ChartGeometry(width=opts.viewport_width)

    available = max(opts.viewport_width - 2 * opts.panel_padding, 0.0)
    content_width = min(opts.content_max_width, available)
    content_left = opts.panel_padding + (available - content_width) / 2
    group_left = content_left + opts.content_padding_x
    group_width = max(content_width - 2 * opts.content_padding_x, 0.0)
    inner_left = group_left + opts.group_padding
    inner_width = max(group_width - 2 * opts.group_padding, 0.0)

    def size_of(node_id: str) -> tuple[float, float]:
        return sizes.get(node_id, (opts.card_width, opts.card_height))

    cursor_y = opts.panel_padding
    for group_index, group in enumerate(groups):
        group_top = cursor_y + opts.group_margin_top
        row_top = group_top + opts.group_padding

        for row_index, row in enumerate(group.rows):
            if row_index > 0:
                row_top += opts.row_spacing
            cards_top = row_top + opts.row_padding_top
            placed, content_height = _place_row(
                [node.id for node in row], cards_top, inner_left, inner_width,
                opts.viewport_width, size_of,
            )
            for node_id, rect in placed.items():
                offset = offsets.get(node_id)
                if offset is not None:
                    rect = rect.translated(offset.dx, offset.dy)
                geometry.node_rects[node_id] = rect
                geometry.node_group[node_id] = group_index
            row_top = cards_top + content_height

        group_bottom = row_top + opts.group_padding
        geometry.container_rects.append(
            Rect(group_left, group_top, group_width, group_bottom - group_top)
        )
        cursor_y = group_bottom

    geometry.height = cursor_y + opts.panel_padding
    return geometry


def _place_row(node_ids, top, left, width, viewport_width, size_of):
    """Place one row; returns ``({id: rect}, content_height)``."""
    arrangement = row_layout(len(node_ids))
    placed: dict[str, Rect] = {}
    if not node_ids:
        return placed, 0.0

    if arrangement.kind != "grid":
        dims = [size_of(nid) for nid in node_ids]
        total = sum(w for w, _ in dims) + arrangement.gap * (len(dims) - 1)
        row_height = max(h for _, h in dims)
        cursor_x = left + (width - total) / 2
        for nid, (w, h) in zip(node_ids, dims):
            placed[nid] = Rect(cursor_x, top + (row_height - h) / 2, w, h)
            cursor_x += w + arrangement.gap
        return placed, row_height

    columns = arrangement.columns_for(viewport_width, len(node_ids))
    gap = arrangement.gap
    cell_width = (width - gap * (columns - 1)) / columns
    line_top = top
    content_height = 0.0
    for start in range(0, len(node_ids), columns):
        line = node_ids[start:start + columns]
        dims = [size_of(nid) for nid in line]
        line_height = max(h for _, h in dims)
        for col, (nid, (w, h)) in enumerate(zip(line, dims)):
            cell_left = left + col * (cell_width + gap)
            placed[nid] = Rect(cell_left + (cell_width - w) / 2, line_top, w, h)
        if start > 0:
            content_height += gap
        content_height += line_height
        line_top += line_height + gap
    return placed, content_height
