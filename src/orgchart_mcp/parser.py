"""YAML recipe parser for Org-Chart MCP.

Supports two formats:
1. Nested tree YAML (``tree:`` with nested ``children``)
2. Flat recipe format (``nodes:`` list, each naming its ``reports_to``)

Both share the top-level keys ``title``, ``theme``, ``headers``,
``default_header``, ``peers``, ``isolate``, ``anchors``, ``offsets`` and
``extra_connections``.
"""

from __future__ import annotations
from pathlib import Path

import yaml
from pydantic import ValidationError

from .errors import RecipeError
from .levels import iter_nodes
from .models import (
    DEFAULT_HEADER,
    CardBack,
    CardFront,
    ChartDirectives,
    ChartNode,
    ExtraConnection,
    Offset,
    OrgChart,
)


def parse_yaml(yaml_str: str) -> OrgChart:
    """Parse a YAML string into an OrgChart model."""
    try:
        data = yaml.safe_load(yaml_str)
    except yaml.YAMLError as e:
        raise RecipeError(f"Invalid YAML: {e}") from e
    if not data:
        raise RecipeError("Empty YAML input")
    if not isinstance(data, dict):
        raise RecipeError("Recipe must be a mapping")

    try:
        if "tree" in data:
            tree = _parse_node(data["tree"])
        elif "nodes" in data:
            tree = _parse_flat_nodes(_list_value(data, "nodes"))
        else:
            raise RecipeError("Recipe needs either a 'tree' or a 'nodes' section")

        chart = OrgChart(
            title=data.get("title", "Organization Chart"),
            theme=data.get("theme", "dark"),
            headers=[str(h) for h in _list_value(data, "headers")],
            default_header=data.get("default_header", DEFAULT_HEADER),
            tree=tree,
            directives=_parse_directives(data),
        )
    except ValidationError as e:
        raise RecipeError(f"Invalid recipe: {e}") from e

    # Fail on duplicate ids / cycles here rather than at layout time
    for _ in iter_nodes(chart.tree):
        pass
    return chart


def parse_file(path: str) -> OrgChart:
    """Parse a YAML file into an OrgChart model."""
    content = Path(path).read_text()
    return parse_yaml(content)


def _parse_node(data: dict) -> ChartNode:
    """Parse a single node and its nested children."""
    if not isinstance(data, dict) or "id" not in data:
        raise RecipeError(f"Every node needs an 'id': {data!r}")

    return ChartNode(
        id=str(data["id"]),
        level=data.get("level", "staff"),
        front=_parse_front(data),
        back=_parse_back(data),
        children=[_parse_node(child) for child in _list_value(data, "children")],
    )


def _parse_front(data: dict) -> CardFront:
    front = _mapping_value(data, "front")
    return CardFront(title=front.get("title") or data.get("title") or str(data["id"]))


def _parse_back(data: dict) -> CardBack:
    back = _mapping_value(data, "back")
    return CardBack(
        lore_name=back.get("lore_name", data.get("lore_name")),
        handle=back.get("handle", data.get("handle")),
    )


def _parse_flat_nodes(nodes: list) -> ChartNode:
    """Parse the flat format.

    Example:
        nodes:
          - id: ceo
            title: CEO
          - id: cto
            title: CTO
            reports_to: ceo
    """
    if not nodes:
        raise RecipeError("'nodes' must list at least one node")

    order: list[str] = []
    parents: dict[str, str | None] = {}
    shells: dict[str, dict] = {}
    for node_data in nodes:
        if not isinstance(node_data, dict) or "id" not in node_data:
            raise RecipeError(f"Every node needs an 'id': {node_data!r}")
        node_id = str(node_data["id"])
        if node_id in shells:
            raise RecipeError(f"Duplicate node id '{node_id}'")
        order.append(node_id)
        shells[node_id] = node_data
        parent = node_data.get("reports_to")
        parents[node_id] = str(parent) if parent is not None else None

    roots = [nid for nid in order if parents[nid] is None]
    if len(roots) != 1:
        raise RecipeError(f"Expected exactly one node without 'reports_to', found {len(roots)}")
    for nid, parent in parents.items():
        if parent is not None and parent not in shells:
            raise RecipeError(f"Node '{nid}' reports to unknown node '{parent}'")

    children: dict[str, list[str]] = {nid: [] for nid in order}
    for nid in order:
        if parents[nid] is not None:
            children[parents[nid]].append(nid)

    def build(node_id: str) -> ChartNode:
        data = shells[node_id]
        return ChartNode(
            id=node_id,
            level=data.get("level", "staff"),
            front=_parse_front(data),
            back=_parse_back(data),
            children=[build(child) for child in children[node_id]],
        )

    tree = build(roots[0])
    reached = sum(1 for _ in iter_nodes(tree))
    if reached != len(order):
        raise RecipeError("Some nodes are not connected to the root (reporting cycle)")
    return tree


def _list_value(data: dict, key: str) -> list:
    """Return ``data[key]`` as a list; missing or null means empty."""
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise RecipeError(f"'{key}' must be a list, got {type(value).__name__}")
    return value


def _mapping_value(data: dict, key: str) -> dict:
    """Return ``data[key]`` as a mapping; missing or null means empty."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise RecipeError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


def _parse_directives(data: dict) -> ChartDirectives:
    offsets = {}
    for node_id, value in _mapping_value(data, "offsets").items():
        if value is not None and not isinstance(value, dict):
            raise RecipeError(f"Offset for '{node_id}' must be a mapping like {{x: 10}}")
        offsets[str(node_id)] = Offset(**{str(k): v for k, v in (value or {}).items()})

    extras = []
    for edge in _list_value(data, "extra_connections"):
        if not isinstance(edge, dict):
            raise RecipeError(f"Extra connection must be a mapping with 'from' and 'to': {edge!r}")
        extras.append(ExtraConnection(**{str(k): v for k, v in edge.items()}))

    return ChartDirectives(
        peer_with_parent_ids=[str(i) for i in _list_value(data, "peers")],
        isolate_row_ids=[str(i) for i in _list_value(data, "isolate")],
        anchor_x_to_id={str(k): str(v) for k, v in _mapping_value(data, "anchors").items()},
        node_offsets=offsets,
        extra_connections=extras,
    )


def chart_to_yaml(chart: OrgChart) -> str:
    """Serialize an OrgChart back to the nested YAML format."""
    data = {
        "title": chart.title,
        "theme": chart.theme,
    }
    if chart.headers:
        data["headers"] = list(chart.headers)
    if chart.default_header != DEFAULT_HEADER:
        data["default_header"] = chart.default_header

    d = chart.directives
    if d.peer_with_parent_ids:
        data["peers"] = list(d.peer_with_parent_ids)
    if d.isolate_row_ids:
        data["isolate"] = list(d.isolate_row_ids)
    if d.anchor_x_to_id:
        data["anchors"] = dict(d.anchor_x_to_id)
    if d.node_offsets:
        data["offsets"] = {
            node_id: offset.model_dump(exclude_none=True)
            for node_id, offset in d.node_offsets.items()
        }
    if d.extra_connections:
        data["extra_connections"] = [
            {"from": edge.from_id, "to": edge.to_id} for edge in d.extra_connections
        ]

    data["tree"] = _node_to_dict(chart.tree)
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


def _node_to_dict(node: ChartNode) -> dict:
    node_data = {"id": node.id, "level": node.level, "title": node.front.title}
    if node.back.lore_name:
        node_data["lore_name"] = node.back.lore_name
    if node.back.handle:
        node_data["handle"] = node.back.handle
    if node.children:
        node_data["children"] = [_node_to_dict(child) for child in node.children]
    return node_data
