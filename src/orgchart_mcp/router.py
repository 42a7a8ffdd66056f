"""
Orthogonal connector routing between parents and children.

Routing reads node positions through a ``GeometryOracle`` and turns the
parent→children map into a flat list of ``PathSpec``.  All connectors leave
a parent at its bottom-center and enter a child at its top-center.

Children of each parent are split into three disjoint sets:

  peers      flagged to sit on the parent's own row
  isolates   flagged to sit on a dedicated row (not also peers)
  branch     everyone else

Routing rules, in order:

  1. A parent with exactly one child gets a direct connector: a straight
     drop when the two center-x values are within ``STRAIGHT_TOLERANCE``,
     otherwise a four-point elbow that bends halfway between the parent's
     container bottom and the child's container top.  Nodes sharing one
     container bend halfway between the two points instead.
  2. Peers and isolates each get the same direct connector.
  3. Two or more branch children share one trunk: down from the parent,
     across to the center of the children's container, down to the branch
     line; a distribution segment spans the children and each child gets a
     short drop from the branch line.
  4. Extra connections get a direct connector with a plain midpoint bend.

A connector whose endpoints are not rendered is skipped.  Path ids are
built from node ids only, so unchanged geometry reproduces the same list.
Ids are joined with "-", so "a" + "b-c" and "a-b" + "c" (or a child named
"trunk") can spell the same id; later repeats get a "~2", "~3" suffix in
output order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .geometry import GeometryOracle, Point
from .models import ExtraConnection


STRAIGHT_TOLERANCE = 5.0


@dataclass(frozen=True)
class PathSpec:
    """One renderable connector."""
    id: str
    points: tuple[Point, ...]
    has_arrow: bool = True

    @property
    def d(self) -> str:
        """SVG path data: ``M x y L x y ...``."""
        parts = []
        for index, (x, y) in enumerate(self.points):
            parts.append(f"{'M' if index == 0 else 'L'} {_fmt(x)} {_fmt(y)}")
        return " ".join(parts)

    def to_dict(self) -> dict:
        return {"id": self.id, "d": self.d, "has_arrow": self.has_arrow}


def _fmt(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text


def _midpoint(a: float, b: float) -> float:
    return a + (b - a) / 2


def _direct_points(start: Point, end: Point, mid_y: float) -> tuple[Point, ...]:
    sx, sy = start
    ex, ey = end
    if abs(sx - ex) <= STRAIGHT_TOLERANCE:
        return (start, end)
    return ((sx, sy), (sx, mid_y), (ex, mid_y), (ex, ey))


def _mid_y_between_containers(
    geometry: GeometryOracle, parent_id: str, child_id: str, parent_y: float, child_y: float
) -> float:
    parent_box = geometry.container_of(parent_id)
    child_box = geometry.container_of(child_id)
    if parent_box is not None and child_box is not None and parent_box != child_box:
        return _midpoint(parent_box.bottom, child_box.top)
    return _midpoint(parent_y, child_y)


def _direct_connector(
    geometry: GeometryOracle, parent_id: str, child_id: str, start: Point
) -> Optional[PathSpec]:
    child = geometry.rect_of(child_id)
    if child is None:
        return None
    end = child.top_center
    mid_y = _mid_y_between_containers(geometry, parent_id, child_id, start[1], end[1])
    return PathSpec(f"{parent_id}-{child_id}", _direct_points(start, end, mid_y), True)


def _branch_connectors(
    geometry: GeometryOracle,
    parent_id: str,
    start: Point,
    branch: Sequence[str],
    isolates: Sequence[str],
) -> list[PathSpec]:
    positions = []
    for child_id in branch:
        rect = geometry.rect_of(child_id)
        if rect is not None:
            positions.append((child_id, rect.top_center))
    if not positions:
        return []

    leftmost = min(x for _, (x, _) in positions)
    rightmost = max(x for _, (x, _) in positions)
    min_child_y = min(y for _, (_, y) in positions)

    # The trunk lands on the container's center, not the children's mean.
    target_box = geometry.container_of(branch[0])
    center_x = target_box.center_x if target_box is not None else _midpoint(leftmost, rightmost)

    isolate_rects = [r for r in (geometry.rect_of(cid) for cid in isolates) if r is not None]
    if isolate_rects:
        branch_y = _midpoint(max(r.bottom for r in isolate_rects), min_child_y)
    elif target_box is not None:
        branch_y = _midpoint(target_box.top, min_child_y)
    else:
        branch_y = _midpoint(start[1], min_child_y)

    if target_box is not None:
        parent_box = geometry.container_of(parent_id)
        parent_bottom = parent_box.bottom if parent_box is not None else start[1]
        bend_y = _midpoint(parent_bottom, target_box.top)
    else:
        bend_y = _midpoint(start[1], branch_y)

    px, py = start
    paths = [
        PathSpec(
            f"{parent_id}-trunk",
            ((px, py), (px, bend_y), (center_x, bend_y), (center_x, branch_y)),
            False,
        ),
        PathSpec(
            f"{parent_id}-distribution",
            ((leftmost, branch_y), (rightmost, branch_y)),
            False,
        ),
    ]
    for child_id, (x, y) in positions:
        paths.append(PathSpec(f"{parent_id}-{child_id}", ((x, branch_y), (x, y)), True))
    return paths


def route_connectors(
    tree_map: Mapping[str, Sequence[str]],
    geometry: GeometryOracle,
    *,
    peer_with_parent_ids: Iterable[str] = (),
    isolate_row_ids: Iterable[str] = (),
    extra_connections: Iterable[ExtraConnection] = (),
) -> list[PathSpec]:
    """Compute every connector for one layout pass.

    Args:
        tree_map: ``parent_id -> [child ids]`` in display order.
        geometry: Rectangle oracle for nodes and their containers.
        peer_with_parent_ids: Children drawn on their parent's row.
        isolate_row_ids: Children drawn on a dedicated row.
        extra_connections: Edges outside the hierarchy.
    """
    peer_set = set(peer_with_parent_ids)
    isolate_set = set(isolate_row_ids) - peer_set
    paths: list[PathSpec] = []

    for parent_id, child_ids in tree_map.items():
        if not child_ids:
            continue
        parent = geometry.rect_of(parent_id)
        if parent is None:
            continue
        start = parent.bottom_center

        if len(child_ids) == 1:
            path = _direct_connector(geometry, parent_id, child_ids[0], start)
            if path is not None:
                paths.append(path)
            continue

        peers = [cid for cid in child_ids if cid in peer_set]
        isolates = [cid for cid in child_ids if cid in isolate_set]
        branch = [cid for cid in child_ids if cid not in peer_set and cid not in isolate_set]

        direct = peers + isolates
        if len(branch) == 1:
            direct = direct + branch
            branch = []
        for child_id in direct:
            path = _direct_connector(geometry, parent_id, child_id, start)
            if path is not None:
                paths.append(path)

        if branch:
            paths.extend(_branch_connectors(geometry, parent_id, start, branch, isolates))

    for extra in extra_connections:
        source = geometry.rect_of(extra.from_id)
        target = geometry.rect_of(extra.to_id)
        if source is None or target is None:
            continue
        start = source.bottom_center
        end = target.top_center
        paths.append(PathSpec(
            f"extra-{extra.from_id}-{extra.to_id}",
            _direct_points(start, end, _midpoint(start[1], end[1])),
            True,
        ))

    return _dedupe_ids(paths)


def _dedupe_ids(paths: list[PathSpec]) -> list[PathSpec]:
    seen: dict[str, int] = {}
    unique: list[PathSpec] = []
    for path in paths:
        count = seen.get(path.id, 0) + 1
        seen[path.id] = count
        if count > 1:
            new_id = f"{path.id}~{count}"
            while new_id in seen:
                count += 1
                new_id = f"{path.id}~{count}"
            seen[path.id] = count
            seen[new_id] = 1
            path = PathSpec(new_id, path.points, path.has_arrow)
        unique.append(path)
    return unique
