"""
Data models for Org-Chart MCP: the chart ontology.

An org chart is a single rooted tree of role nodes plus a set of layout
directives that bend the default tier-by-tier arrangement:

    OrgChart
    ├── tree         the root ChartNode (children nest arbitrarily deep)
    ├── headers      container label per breadth-first tier
    └── directives   peers, isolated rows, anchors, offsets, extra edges

Every node carries a two-sided card: the ``front`` shows the role title,
the ``back`` shows the holder's lore name and handle.  The ``level`` field
is the node's seniority and is informational; card colors follow the
label of the container the node ends up in (see ``themes``).

Node ids must be unique across the whole tree; they key the rendered
cards, the connector path ids and every directive.  The tree is trusted to
be acyclic; traversals in ``levels`` detect a revisited id and fail fast.
"""

from __future__ import annotations

from typing import Callable, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


NodeLevel = Literal["executive", "board", "director", "manager", "staff"]

DEFAULT_HEADER = "Staff"

HeaderResolver = Callable[[int], Optional[str]]


# ---------------------------------------------------------------------------
# Cards
# ---------------------------------------------------------------------------

class CardFront(BaseModel):
    """Front face of a person card."""
    title: str


class CardBack(BaseModel):
    """Back face of a person card.

    Both fields are optional; a card with neither shows a placeholder.
    """
    lore_name: Optional[str] = None
    handle: Optional[str] = None

    def lines(self) -> list[str]:
        lines = []
        if self.lore_name:
            lines.append(self.lore_name)
        if self.handle:
            lines.append(f"@{self.handle}")
        return lines or ["[Additional Info]"]


# ---------------------------------------------------------------------------
# Tree
# ---------------------------------------------------------------------------

class ChartNode(BaseModel):
    """A role in the hierarchy.

    Children are ordered; that order is preserved in every tier and row the
    node's siblings end up in.
    """
    id: str
    level: NodeLevel = "staff"
    front: CardFront
    back: CardBack = Field(default_factory=CardBack)
    children: list[ChartNode] = Field(default_factory=list)

    def get_title(self) -> str:
        return self.front.title


class ExtraConnection(BaseModel):
    """An edge drawn between two nodes outside the parent/child hierarchy.

    Accepts the ``from``/``to`` keys used in recipes as well as the field
    names.
    """
    model_config = ConfigDict(populate_by_name=True)

    from_id: str = Field(alias="from")
    to_id: str = Field(alias="to")


class Offset(BaseModel):
    """A manual per-node nudge in pixels.  Unset axes mean zero."""
    x: Optional[float] = None
    y: Optional[float] = None

    @property
    def dx(self) -> float:
        return self.x or 0.0

    @property
    def dy(self) -> float:
        return self.y or 0.0

    def shifted(self, dx: float) -> Offset:
        """Return a copy moved horizontally by ``dx``."""
        return Offset(x=self.dx + dx, y=self.y)


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------

class ChartDirectives(BaseModel):
    """Caller-supplied layout directives, fixed for one render pass.

    Attributes:
        peer_with_parent_ids: Children rendered on their parent's own row.
        isolate_row_ids:      Children forced onto a dedicated row inside
                              their container, ahead of their siblings.
        anchor_x_to_id:       ``source -> target``; the source node is
                              shifted so its center x matches the target's.
        node_offsets:         Manual pixel nudges per node.
        extra_connections:    Edges outside the tree hierarchy.
    """
    peer_with_parent_ids: list[str] = Field(default_factory=list)
    isolate_row_ids: list[str] = Field(default_factory=list)
    anchor_x_to_id: dict[str, str] = Field(default_factory=dict)
    node_offsets: dict[str, Offset] = Field(default_factory=dict)
    extra_connections: list[ExtraConnection] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# OrgChart (Root)
# ---------------------------------------------------------------------------

class OrgChart(BaseModel):
    """The root chart model: a tree plus everything needed to lay it out.

    Header Labels
    -------------
    ``headers[i]`` labels breadth-first tier ``i``.  Consecutive tiers with
    the same label share one container.  Tiers past the end of the list, or
    with an empty label, fall back to ``default_header``.
    """
    title: str = "Organization Chart"
    theme: str = "dark"
    headers: list[str] = Field(default_factory=list)
    default_header: str = DEFAULT_HEADER
    tree: ChartNode
    directives: ChartDirectives = Field(default_factory=ChartDirectives)

    def header_resolver(self) -> HeaderResolver:
        headers = list(self.headers)

        def resolve(tier_index: int) -> Optional[str]:
            if 0 <= tier_index < len(headers):
                return headers[tier_index] or None
            return None

        return resolve
