"""Tests for YAML recipe parsing."""
from __future__ import annotations

from pathlib import Path

import pytest

from orgchart_mcp.errors import RecipeError, TreeStructureError
from orgchart_mcp.levels import iter_nodes
from orgchart_mcp.parser import chart_to_yaml, parse_file, parse_yaml


TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

NESTED = """
title: Acme
theme: light
headers: [Executive, Board, Staff]
default_header: Crew
peers: [cos]
isolate: [intern]
anchors:
  dev: cto
offsets:
  cto: {x: 12}
extra_connections:
  - from: coo
    to: dev
tree:
  id: ceo
  level: executive
  title: CEO
  children:
    - id: cos
      title: Chief of Staff
    - id: cto
      level: board
      front:
        title: CTO
      back:
        lore_name: Ada
        handle: ada
      children:
        - id: dev
    - id: coo
      level: board
      title: COO
    - id: intern
      level: staff
"""

FLAT = """
title: Flat
nodes:
  - id: ceo
    title: CEO
  - id: cto
    title: CTO
    reports_to: ceo
  - id: dev
    reports_to: cto
  - id: coo
    reports_to: ceo
"""


class TestNestedFormat:
    def test_tree_and_cards(self):
        chart = parse_yaml(NESTED)

        assert chart.title == "Acme"
        assert chart.theme == "light"
        assert [n.id for n in iter_nodes(chart.tree)] == ["ceo", "cos", "cto", "coo", "intern", "dev"]
        cto = chart.tree.children[1]
        assert cto.get_title() == "CTO"
        assert cto.back.lines() == ["Ada", "@ada"]
        assert chart.tree.children[0].front.title == "Chief of Staff"

    def test_untitled_node_falls_back_to_id(self):
        chart = parse_yaml(NESTED)
        dev = chart.tree.children[1].children[0]
        assert dev.front.title == "dev"
        assert dev.back.lines() == ["[Additional Info]"]

    def test_directives(self):
        d = parse_yaml(NESTED).directives

        assert d.peer_with_parent_ids == ["cos"]
        assert d.isolate_row_ids == ["intern"]
        assert d.anchor_x_to_id == {"dev": "cto"}
        assert d.node_offsets["cto"].dx == 12
        assert d.node_offsets["cto"].dy == 0
        assert [(e.from_id, e.to_id) for e in d.extra_connections] == [("coo", "dev")]

    def test_headers(self):
        chart = parse_yaml(NESTED)
        resolver = chart.header_resolver()

        assert chart.default_header == "Crew"
        assert resolver(1) == "Board"
        assert resolver(7) is None

    def test_duplicate_id_is_rejected(self):
        recipe = "tree:\n  id: a\n  children:\n    - id: b\n    - id: b\n"
        with pytest.raises(TreeStructureError):
            parse_yaml(recipe)


class TestFlatFormat:
    def test_builds_tree_in_declaration_order(self):
        chart = parse_yaml(FLAT)

        assert chart.tree.id == "ceo"
        assert [c.id for c in chart.tree.children] == ["cto", "coo"]
        assert chart.tree.children[0].children[0].id == "dev"

    def test_two_roots(self):
        with pytest.raises(RecipeError, match="exactly one"):
            parse_yaml("nodes:\n  - id: a\n  - id: b\n")

    def test_unknown_manager(self):
        with pytest.raises(RecipeError, match="unknown node"):
            parse_yaml("nodes:\n  - id: a\n  - id: b\n    reports_to: z\n")

    def test_duplicate_id(self):
        with pytest.raises(RecipeError, match="Duplicate"):
            parse_yaml("nodes:\n  - id: a\n  - id: a\n    reports_to: a\n")

    def test_reporting_cycle(self):
        recipe = (
            "nodes:\n"
            "  - id: root\n"
            "  - id: a\n    reports_to: b\n"
            "  - id: b\n    reports_to: a\n"
        )
        with pytest.raises(RecipeError, match="not connected"):
            parse_yaml(recipe)


class TestBadInput:
    @pytest.mark.parametrize("recipe", ["", "- just\n- a list\n", "title: nothing else\n", "tree: [unclosed"])
    def test_rejected(self, recipe):
        with pytest.raises(RecipeError):
            parse_yaml(recipe)

    @pytest.mark.parametrize("extra", [
        "offsets:\n  ceo: 5\n",
        "extra_connections:\n  - ceo\n",
        "anchors: [ceo]\n",
        "headers: 5\n",
        "peers: ceo\n",
        "isolate: {ceo: true}\n",
        "offsets: [ceo]\n",
    ], ids=["offset-scalar", "edge-scalar", "anchors-list", "headers-int", "peers-str", "isolate-map", "offsets-list"])
    def test_malformed_directive(self, extra):
        with pytest.raises(RecipeError):
            parse_yaml("tree:\n  id: ceo\n" + extra)

    @pytest.mark.parametrize("recipe", [
        "tree:\n  id: ceo\n  children: cto\n",
        "tree:\n  id: ceo\n  front: CEO\n",
        "nodes: 7\n",
    ], ids=["children-str", "front-str", "nodes-int"])
    def test_malformed_node_fields(self, recipe):
        with pytest.raises(RecipeError):
            parse_yaml(recipe)

    def test_node_without_id(self):
        with pytest.raises(RecipeError, match="id"):
            parse_yaml("tree:\n  title: Nobody\n")

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse_yaml("")


class TestSerialization:
    def test_chart_to_yaml_reparses(self):
        chart = parse_yaml(NESTED)
        again = parse_yaml(chart_to_yaml(chart))

        assert [n.id for n in iter_nodes(again.tree)] == [n.id for n in iter_nodes(chart.tree)]
        assert again.directives == chart.directives
        assert again.headers == chart.headers
        assert again.default_header == "Crew"


class TestTemplates:
    @pytest.mark.parametrize("path", sorted(TEMPLATES_DIR.glob("*.yaml")), ids=lambda p: p.stem)
    def test_template_parses(self, path):
        chart = parse_file(str(path))
        assert chart.tree.id
