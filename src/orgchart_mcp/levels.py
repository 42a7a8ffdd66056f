"""
Breadth-first tier extraction for the org tree.

Tier 0 is the root; tier ``n + 1`` is the concatenation of the children of
every node in tier ``n``, in order.  Traversal stops at the first tier that
yields no children.

The tree is trusted to be acyclic, but a node reached twice (a cycle, or
the same id reused in two places) would otherwise make the walk run
forever or draw one card twice.  Every traversal here keeps a visited-id
set and raises ``TreeStructureError`` on the first repeat.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator

from .errors import TreeStructureError
from .models import ChartNode


def extract_levels(root: ChartNode) -> list[list[ChartNode]]:
    """Flatten the tree into ordered breadth-first tiers."""
    levels: list[list[ChartNode]] = [[root]]
    seen: set[str] = {root.id}

    frontier = [root]
    while True:
        next_frontier: list[ChartNode] = []
        for node in frontier:
            for child in node.children:
                if child.id in seen:
                    raise TreeStructureError(child.id)
                seen.add(child.id)
                next_frontier.append(child)
        if not next_frontier:
            break
        levels.append(next_frontier)
        frontier = next_frontier

    return levels


def iter_nodes(root: ChartNode) -> Iterator[ChartNode]:
    """Yield every node once, breadth-first."""
    seen: set[str] = set()
    queue = deque([root])
    while queue:
        node = queue.popleft()
        if node.id in seen:
            raise TreeStructureError(node.id)
        seen.add(node.id)
        yield node
        queue.extend(node.children)


def build_tree_map(root: ChartNode) -> dict[str, list[str]]:
    """Map every node id to the ids of its direct children.

    Leaves map to an empty list.
    """
    return {node.id: [child.id for child in node.children] for node in iter_nodes(root)}


def build_parent_map(root: ChartNode) -> dict[str, str]:
    """Map every non-root node id to its parent's id."""
    parents: dict[str, str] = {}
    for parent_id, child_ids in build_tree_map(root).items():
        for child_id in child_ids:
            parents[child_id] = parent_id
    return parents
