"""
Container grouping and row arrangement.

Tiers from ``levels.extract_levels`` become visual containers here:

  1. Consecutive tiers whose header label resolves to the same string are
     merged into one container, one row per tier.  A label that comes back
     empty (or no resolver at all) falls back to the default category, so
     grouping never fails on a missing header.
  2. Rows holding isolated nodes are split in two: the isolated nodes first,
     on their own row, then everyone else.  The isolated row sits closer to
     the parent while staying inside the same labeled container.
  3. Optionally, peer nodes are pulled up onto their parent's row, right
     after the parent.

Row arrangement (single / flex / grid) is a pure function of how many cards
a row holds; see ``row_layout``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .models import DEFAULT_HEADER, ChartNode, HeaderResolver


# Row arrangement constants (pixels)
FLEX_GAP = 32
GRID_GAP = 24
MAX_FLEX_ITEMS = 4

# (minimum viewport width, column count), ascending
GRID_BREAKPOINTS: tuple[tuple[int, int], ...] = (
    (0, 2),
    (768, 3),
    (1024, 4),
    (1280, 5),
)


@dataclass
class Group:
    """One labeled container holding one or more rows of cards.

    ``row_isolated[i]`` is True when ``rows[i]`` is an isolated row split
    out of a tier.
    """
    label: str
    rows: list[list[ChartNode]]
    tier_indices: list[int]
    row_isolated: list[bool] = field(default_factory=list)

    def __post_init__(self):
        if len(self.row_isolated) < len(self.rows):
            self.row_isolated.extend([False] * (len(self.rows) - len(self.row_isolated)))

    def node_ids(self) -> list[str]:
        return [node.id for row in self.rows for node in row]


@dataclass(frozen=True)
class RowLayout:
    """How one row of cards is arranged inside its container."""
    kind: str  # 'single', 'flex' or 'grid'
    gap: float = 0.0
    breakpoints: tuple[tuple[int, int], ...] = ()

    def columns_for(self, viewport_width: float, count: int) -> int:
        """Cards per line at the given viewport width."""
        if self.kind != "grid":
            return max(count, 1)
        columns = self.breakpoints[0][1]
        for min_width, cols in self.breakpoints:
            if viewport_width >= min_width:
                columns = cols
        return columns


def row_layout(count: int) -> RowLayout:
    """Pick the arrangement for a row of ``count`` cards."""
    if count <= 1:
        return RowLayout("single")
    if count <= MAX_FLEX_ITEMS:
        return RowLayout("flex", gap=FLEX_GAP)
    return RowLayout("grid", gap=GRID_GAP, breakpoints=GRID_BREAKPOINTS)


def resolve_header(
    resolver: Optional[HeaderResolver],
    tier_index: int,
    default: str = DEFAULT_HEADER,
) -> str:
    """Resolve a tier's container label, falling back to ``default``."""
    label = resolver(tier_index) if resolver else None
    return label or default


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def build_groups(
    levels: Sequence[Sequence[ChartNode]],
    header_resolver: Optional[HeaderResolver] = None,
    isolate_row_ids: Iterable[str] = (),
    *,
    default_header: str = DEFAULT_HEADER,
    peer_with_parent_ids: Iterable[str] = (),
    parent_of: Optional[dict[str, str]] = None,
) -> list[Group]:
    """Merge tiers into labeled containers and split isolated rows.

    Args:
        levels: Breadth-first tiers, tier 0 first.
        header_resolver: ``tier_index -> label``; ``None`` results use
            ``default_header``.
        isolate_row_ids: Nodes that get a dedicated row in their container.
        default_header: Fallback container label.
        peer_with_parent_ids: Nodes moved onto their parent's row.  Only
            applied when ``parent_of`` is given.
        parent_of: ``child_id -> parent_id`` for the whole tree.
    """
    groups: list[Group] = []
    current: Optional[Group] = None

    for tier_index, tier in enumerate(levels):
        label = resolve_header(header_resolver, tier_index, default_header)
        if current is not None and label == current.label:
            current.rows.append(list(tier))
            current.row_isolated.append(False)
            current.tier_indices.append(tier_index)
        else:
            current = Group(label=label, rows=[list(tier)], tier_indices=[tier_index])
            groups.append(current)

    peers = set(peer_with_parent_ids) if parent_of is not None else set()
    isolated = set(isolate_row_ids) - peers
    if isolated:
        for group in groups:
            _split_isolated_rows(group, isolated)

    if peers:
        _place_peers(groups, peers, parent_of or {})
        groups = [group for group in groups if group.rows]

    return groups


def _split_isolated_rows(group: Group, isolated: set[str]) -> None:
    rows: list[list[ChartNode]] = []
    flags: list[bool] = []
    for row, was_isolated in zip(group.rows, group.row_isolated):
        flagged = [node for node in row if node.id in isolated]
        others = [node for node in row if node.id not in isolated]
        if flagged:
            rows.append(flagged)
            flags.append(True)
        if others:
            rows.append(others)
            flags.append(was_isolated)
    group.rows = rows
    group.row_isolated = flags


def _locate(groups: list[Group], node_id: str) -> Optional[tuple[int, int, int]]:
    for gi, group in enumerate(groups):
        for ri, row in enumerate(group.rows):
            for ni, node in enumerate(row):
                if node.id == node_id:
                    return gi, ri, ni
    return None


def _place_peers(groups: list[Group], peers: set[str], parent_of: dict[str, str]) -> None:
    # Walk in display order so a peer whose parent is itself a peer follows
    # the parent to its new row.
    ordered = [
        node.id
        for group in groups
        for row in group.rows
        for node in row
        if node.id in peers and node.id in parent_of
    ]
    placed_after: dict[str, int] = {}

    for peer_id in ordered:
        gi, ri, ni = _locate(groups, peer_id)
        node = groups[gi].rows[ri].pop(ni)

        parent_id = parent_of[peer_id]
        parent_at = _locate(groups, parent_id)
        if parent_at is None:
            groups[gi].rows[ri].insert(ni, node)
            continue
        pgi, pri, pni = parent_at
        slot = pni + 1 + placed_after.get(parent_id, 0)
        groups[pgi].rows[pri].insert(slot, node)
        placed_after[parent_id] = placed_after.get(parent_id, 0) + 1

    for group in groups:
        kept = [(row, flag) for row, flag in zip(group.rows, group.row_isolated) if row]
        group.rows = [row for row, _ in kept]
        group.row_isolated = [flag for _, flag in kept]
