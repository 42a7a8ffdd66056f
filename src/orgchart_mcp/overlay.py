"""SVG connector overlay.

The overlay is one ``<svg>`` sized to the chart's full extent: a single
shared ``arrowhead`` marker plus one ``<path>`` per ``PathSpec``, keyed by
the path id so a redraw can match old and new primitives.
"""

from __future__ import annotations

import math
from html import escape
from typing import Iterable

from .router import PathSpec

ARROW_MARKER_ID = "arrowhead"


def render_overlay_svg(
    paths: Iterable[PathSpec],
    width: float,
    height: float,
    color: str = "#3fa9c4",
    stroke_width: float = 2,
) -> str:
    """Build the overlay document for one snapshot's paths."""
    stroke = escape(color, quote=True)
    lines = [
        '<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{math.ceil(width)}" height="{math.ceil(height)}" '
        'style="overflow: visible; pointer-events: none">',
        "  <defs>",
        f'    <marker id="{ARROW_MARKER_ID}" markerWidth="10" markerHeight="7" '
        'refX="9" refY="3.5" orient="auto">',
        f'      <polygon points="0 0, 10 3.5, 0 7" fill="{stroke}" '
        f'stroke="{stroke}" stroke-width="1"/>',
        "    </marker>",
        "  </defs>",
    ]
    for path in paths:
        marker = f"url(#{ARROW_MARKER_ID})" if path.has_arrow else "none"
        lines.append(
            f'  <path id="{escape(path.id, quote=True)}" d="{path.d}" '
            f'stroke="{stroke}" stroke-width="{stroke_width}" fill="none" '
            f'stroke-linecap="round" stroke-linejoin="round" marker-end="{marker}"/>'
        )
    lines.append("</svg>")
    return "\n".join(lines) + "\n"
