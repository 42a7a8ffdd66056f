"""Tests for orthogonal connector routing."""
from __future__ import annotations

from orgchart_mcp.geometry import Rect, StaticGeometry
from orgchart_mcp.models import ExtraConnection
from orgchart_mcp.router import PathSpec, route_connectors

from builders import box


UPPER = Rect(0, 0, 400, 100)
LOWER = Rect(0, 140, 400, 100)


def _by_id(paths):
    return {path.id: path for path in paths}


class TestSingleChild:
    def test_aligned_child_gets_straight_drop(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "c": box(104, 180)},
            containers={"p": UPPER, "c": LOWER},
        )
        paths = route_connectors({"p": ["c"]}, geometry)

        assert len(paths) == 1
        assert paths[0].id == "p-c"
        assert paths[0].points == ((100, 60), (104, 180))
        assert paths[0].has_arrow

    def test_five_pixels_still_counts_as_straight(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "c": box(105, 180)},
            containers={"p": UPPER, "c": LOWER},
        )
        assert len(route_connectors({"p": ["c"]}, geometry)[0].points) == 2

    def test_offset_child_bends_between_containers(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "c": box(250, 180)},
            containers={"p": UPPER, "c": LOWER},
        )
        [path] = route_connectors({"p": ["c"]}, geometry)

        assert path.points == ((100, 60), (100, 120), (250, 120), (250, 180))

    def test_shared_container_bends_between_points(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "c": box(250, 200)},
            containers={"p": UPPER, "c": UPPER},
        )
        [path] = route_connectors({"p": ["c"]}, geometry)

        assert path.points == ((100, 60), (100, 130), (250, 130), (250, 200))

    def test_leaf_parents_produce_nothing(self):
        geometry = StaticGeometry(rects={"p": box(100, 40)})
        assert route_connectors({"p": []}, geometry) == []


class TestBranching:
    def _geometry(self, **extra_rects):
        child_box = Rect(0, 150, 200, 100)
        rects = {
            "p": box(50, 20),
            "a": box(10, 200),
            "b": box(50, 200),
            "c": box(90, 200),
        }
        rects.update(extra_rects)
        containers = {"p": Rect(0, 0, 100, 100)}
        for node_id in rects:
            if node_id != "p":
                containers[node_id] = child_box
        return StaticGeometry(rects=rects, containers=containers)

    def test_three_children_share_a_trunk(self):
        paths = route_connectors({"p": ["a", "b", "c"]}, self._geometry())
        by_id = _by_id(paths)

        assert set(by_id) == {"p-trunk", "p-distribution", "p-a", "p-b", "p-c"}
        assert by_id["p-trunk"].points == ((50, 40), (50, 125), (100, 125), (100, 175))
        assert not by_id["p-trunk"].has_arrow
        assert by_id["p-distribution"].points == ((10, 175), (90, 175))
        assert not by_id["p-distribution"].has_arrow

    def test_branch_drops_start_on_branch_line(self):
        by_id = _by_id(route_connectors({"p": ["a", "b", "c"]}, self._geometry()))

        for child_id, x in (("a", 10), ("b", 50), ("c", 90)):
            path = by_id[f"p-{child_id}"]
            assert path.points == ((x, 175), (x, 200))
            assert path.has_arrow

    def test_branch_line_drops_below_isolated_row(self):
        geometry = self._geometry(i=box(50, 160))
        paths = route_connectors({"p": ["i", "a", "c"]}, geometry, isolate_row_ids={"i"})
        by_id = _by_id(paths)

        # isolated row bottom 180, branch children top 200
        assert by_id["p-distribution"].points == ((10, 190), (90, 190))
        assert by_id["p-i"].points == ((50, 40), (50, 160))
        assert by_id["p-i"].has_arrow
        assert "p-trunk" in by_id

    def test_peers_get_direct_connectors(self):
        geometry = self._geometry(peer=box(150, 20))
        paths = route_connectors({"p": ["peer", "a", "b"]}, geometry, peer_with_parent_ids={"peer"})
        by_id = _by_id(paths)

        assert by_id["p-peer"].points[0] == (50, 40)
        assert by_id["p-peer"].points[-1] == (150, 20)
        assert {"p-trunk", "p-distribution", "p-a", "p-b"} <= set(by_id)

    def test_lone_branch_child_routes_direct(self):
        geometry = self._geometry(peer=box(150, 20))
        paths = route_connectors({"p": ["peer", "a"]}, geometry, peer_with_parent_ids={"peer"})

        assert {path.id for path in paths} == {"p-peer", "p-a"}

    def test_unrendered_children_are_skipped(self):
        geometry = self._geometry()
        del geometry.rects["b"]
        by_id = _by_id(route_connectors({"p": ["a", "b", "c"]}, geometry))

        assert "p-b" not in by_id
        assert by_id["p-distribution"].points == ((10, 175), (90, 175))

    def test_unrendered_parent_routes_nothing(self):
        geometry = self._geometry()
        del geometry.rects["p"]
        assert route_connectors({"p": ["a", "b", "c"]}, geometry) == []


class TestExtraConnections:
    def test_extra_edge_uses_midpoint_bend(self):
        geometry = StaticGeometry(rects={"x": box(100, 0), "y": box(300, 100)})
        paths = route_connectors(
            {}, geometry, extra_connections=[ExtraConnection(from_id="x", to_id="y")]
        )

        assert [p.id for p in paths] == ["extra-x-y"]
        assert paths[0].points == ((100, 20), (100, 60), (300, 60), (300, 100))

    def test_missing_endpoint_is_skipped(self):
        geometry = StaticGeometry(rects={"x": box(100, 0)})
        paths = route_connectors(
            {}, geometry, extra_connections=[ExtraConnection(from_id="x", to_id="ghost")]
        )
        assert paths == []


class TestPathSpec:
    def test_path_data(self):
        path = PathSpec("p-c", ((100.0, 60.0), (100.0, 120.5), (250.25, 120.5)))
        assert path.d == "M 100 60 L 100 120.5 L 250.25 120.5"

    def test_to_dict(self):
        path = PathSpec("p-trunk", ((0, 0), (0, 10)), False)
        assert path.to_dict() == {"id": "p-trunk", "d": "M 0 0 L 0 10", "has_arrow": False}

    def test_routing_is_repeatable(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "a": box(40, 180), "b": box(160, 180)},
            containers={"p": UPPER, "a": LOWER, "b": LOWER},
        )
        tree_map = {"p": ["a", "b"]}
        assert route_connectors(tree_map, geometry) == route_connectors(tree_map, geometry)


class TestPathIds:
    def test_child_named_like_a_structural_path(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "trunk": box(40, 180), "b": box(160, 180)},
            containers={"p": UPPER, "trunk": LOWER, "b": LOWER},
        )
        paths = route_connectors({"p": ["trunk", "b"]}, geometry)

        assert [p.id for p in paths] == ["p-trunk", "p-distribution", "p-trunk~2", "p-b"]
        assert not paths[0].has_arrow
        assert paths[2].has_arrow
        assert paths[2].points == ((40, 160), (40, 180))

    def test_hyphenated_ids_that_spell_the_same_path(self):
        geometry = StaticGeometry(
            rects={
                "a": box(100, 0), "b-c": box(100, 100),
                "a-b": box(300, 0), "c": box(300, 100),
            },
        )
        paths = route_connectors({"a": ["b-c"], "a-b": ["c"]}, geometry)

        assert [p.id for p in paths] == ["a-b-c", "a-b-c~2"]
        assert paths[1].points[0] == (300, 20)

    def test_ids_are_unique_and_stable(self):
        geometry = StaticGeometry(
            rects={"p": box(100, 40), "trunk": box(40, 180), "b": box(160, 180)},
            containers={"p": UPPER, "trunk": LOWER, "b": LOWER},
        )
        tree_map = {"p": ["trunk", "b"]}
        first = route_connectors(tree_map, geometry)

        assert len({p.id for p in first}) == len(first)
        assert route_connectors(tree_map, geometry) == first
