"""
A mounted org chart: the reactive recompute loop.

``OrgChartView`` owns everything scoped to one live chart instance: the
registry of mounted node handles, per-card flip state, the position
observer and the latest published ``ChartSnapshot``.

One recompute pass:

  1. extract tiers and build containers (peers, isolated rows)
  2. resolve anchor offsets, re-laying the chart out on every pass
  3. lay out with the final offsets
  4. route connectors against the mounted nodes only
  5. publish the new snapshot in one assignment

Recompute may be triggered again while it runs (a listener reacting to a
publish, say); such calls are folded into one follow-up pass, so readers
never observe a half-built path list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional

from .anchors import AnchorResolver
from .cards import CardState
from .geometry import Rect
from .groups import Group, build_groups
from .layout import ChartGeometry, LayoutOptions, layout_chart
from .levels import build_parent_map, build_tree_map, extract_levels, iter_nodes
from .models import ChartNode, Offset, OrgChart
from .observer import ManualScheduler, PositionObserver, Scheduler
from .router import PathSpec, route_connectors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChartSnapshot:
    """Everything one recompute produced.  Replaced whole, never patched."""
    generation: int
    groups: tuple[Group, ...]
    paths: tuple[PathSpec, ...]
    geometry: ChartGeometry
    offsets: dict[str, Offset] = field(default_factory=dict)
    anchors_converged: bool = True

    @property
    def width(self) -> float:
        return self.geometry.width

    @property
    def height(self) -> float:
        return self.geometry.height


class NodeRegistry:
    """Mounted node handles for one chart instance."""

    def __init__(self):
        self._handles: dict[str, ChartNode] = {}

    def register(self, node_id: str, handle: ChartNode) -> None:
        self._handles[node_id] = handle

    def unregister(self, node_id: str) -> None:
        self._handles.pop(node_id, None)

    def get(self, node_id: str) -> Optional[ChartNode]:
        return self._handles.get(node_id)

    def clear(self) -> None:
        self._handles.clear()

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._handles))


class MountedGeometry:
    """Restricts a layout's rectangles to nodes that are currently mounted."""

    def __init__(self, geometry: ChartGeometry, registry: NodeRegistry):
        self._geometry = geometry
        self._registry = registry

    def rect_of(self, node_id: str) -> Optional[Rect]:
        if node_id not in self._registry:
            return None
        return self._geometry.rect_of(node_id)

    def container_of(self, node_id: str) -> Optional[Rect]:
        if node_id not in self._registry:
            return None
        return self._geometry.container_of(node_id)


Listener = Callable[[ChartSnapshot], None]


class OrgChartView:
    """One live chart: mount it, feed it host events, read ``snapshot``."""

    def __init__(
        self,
        chart: OrgChart,
        options: Optional[LayoutOptions] = None,
        scheduler: Optional[Scheduler] = None,
    ):
        self._chart = chart
        self.options = options or LayoutOptions()
        self.scheduler = scheduler or ManualScheduler()
        self.registry = NodeRegistry()
        self.cards = CardState()
        self.observer = PositionObserver(self.recompute, self.scheduler)
        self.recompute_count = 0
        self._sizes: dict[str, tuple[float, float]] = {}
        self._snapshot: Optional[ChartSnapshot] = None
        self._generation = 0
        self._running = False
        self._dirty = False
        self._listeners: list[Listener] = []

    # --- Accessors ---

    @property
    def chart(self) -> OrgChart:
        return self._chart

    @property
    def snapshot(self) -> Optional[ChartSnapshot]:
        return self._snapshot

    @property
    def paths(self) -> tuple[PathSpec, ...]:
        return self._snapshot.paths if self._snapshot else ()

    def subscribe(self, listener: Listener) -> None:
        """Call ``listener`` with every published snapshot."""
        self._listeners.append(listener)

    # --- Lifecycle ---

    def mount(self) -> None:
        for node in iter_nodes(self._chart.tree):
            self.registry.register(node.id, node)
        self.observer.mount()

    def unmount(self) -> None:
        self.observer.unmount()
        self.registry.clear()

    def mount_node(self, node: ChartNode) -> None:
        self.registry.register(node.id, node)
        self.observer.notify_node_resize(node.id)

    def unmount_node(self, node_id: str) -> None:
        self.registry.unregister(node_id)
        self.observer.notify_node_resize(node_id)

    def replace_chart(self, chart: OrgChart) -> None:
        """Install a new chart; structural changes always come this way."""
        self._chart = chart
        if not self.observer.mounted:
            return
        self.registry.clear()
        for node in iter_nodes(chart.tree):
            self.registry.register(node.id, node)
        self.recompute()

    # --- Host events ---

    def resize_node(self, node_id: str, width: float, height: float) -> None:
        self._sizes[node_id] = (width, height)
        self.observer.notify_node_resize(node_id)

    def set_viewport_width(self, width: float) -> None:
        self.options.viewport_width = width
        self.observer.notify_viewport_resize()

    def scroll(self) -> None:
        self.observer.notify_scroll()

    def toggle_card(self, node_id: str) -> bool:
        return self.cards.toggle(node_id)

    # --- Recompute ---

    def recompute(self) -> None:
        if self._running:
            self._dirty = True
            return
        self._running = True
        try:
            while True:
                self._dirty = False
                snapshot = self._compute()
                self._snapshot = snapshot
                if not self._dirty:
                    break
        finally:
            self._running = False

        for listener in list(self._listeners):
            listener(snapshot)

    def _compute(self) -> ChartSnapshot:
        self.recompute_count += 1
        chart = self._chart
        directives = chart.directives

        levels = extract_levels(chart.tree)
        tree_map = build_tree_map(chart.tree)
        groups = build_groups(
            levels,
            chart.header_resolver(),
            directives.isolate_row_ids,
            default_header=chart.default_header,
            peer_with_parent_ids=directives.peer_with_parent_ids,
            parent_of=build_parent_map(chart.tree),
        )

        def measure(offsets: dict[str, Offset]):
            geometry = layout_chart(groups, self.options, offsets, self._sizes)
            return MountedGeometry(geometry, self.registry).rect_of

        resolution = AnchorResolver(
            directives.anchor_x_to_id, directives.node_offsets
        ).resolve(measure)

        geometry = layout_chart(groups, self.options, resolution.offsets, self._sizes)
        paths = route_connectors(
            tree_map,
            MountedGeometry(geometry, self.registry),
            peer_with_parent_ids=directives.peer_with_parent_ids,
            isolate_row_ids=directives.isolate_row_ids,
            extra_connections=directives.extra_connections,
        )

        self._generation += 1
        logger.debug(
            "Recompute #%d: %d containers, %d paths",
            self._generation, len(groups), len(paths),
        )
        return ChartSnapshot(
            generation=self._generation,
            groups=tuple(groups),
            paths=tuple(paths),
            geometry=geometry,
            offsets=resolution.offsets,
            anchors_converged=resolution.converged,
        )


def compute_chart(chart: OrgChart, options: Optional[LayoutOptions] = None) -> ChartSnapshot:
    """Mount, settle and tear down a chart in one go; return its snapshot."""
    view = OrgChartView(chart, options, ManualScheduler())
    view.mount()
    view.observer.layout_stable()
    view.unmount()
    return view.snapshot
