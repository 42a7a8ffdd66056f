"""Org-Chart MCP server: MCP tools for laying out and rendering org charts."""

from __future__ import annotations

import json
import logging
import os
import uuid
from pathlib import Path

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, ImageContent, Tool

from .chart import compute_chart
from .layout import LayoutOptions
from .overlay import render_overlay_svg
from .parser import parse_yaml, chart_to_yaml
from .renderer import ChartRenderer
from .themes import get_theme


# --- Constants ---
OUTPUT_DIR = Path(os.environ.get("ORGCHART_OUTPUT_DIR", Path.home() / ".orgchart" / "charts"))
TEMPLATES_DIR = Path(__file__).parent.parent.parent / "templates"
LOG_LEVEL = os.environ.get("ORGCHART_LOG_LEVEL", "INFO")

logger = logging.getLogger(__name__)

server = Server("orgchart-mcp")


def _ensure_output_dir():
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)


RECIPE_DESCRIPTION = (
    "YAML string defining the org chart. Nested format example:\n"
    "title: Company\n"
    "headers: [Executive, Board, Board, Staff]\n"
    "tree:\n"
    "  id: ceo\n"
    "  level: executive\n"
    "  title: CEO\n"
    "  children:\n"
    "    - id: cto\n"
    "      level: board\n"
    "      title: CTO\n"
    "\n"
    "Flat format: a 'nodes' list where each node names 'reports_to'.\n"
    "Optional directives: peers, isolate (lists of ids), anchors (source: target), "
    "offsets (id: {x, y}), extra_connections (list of {from, to})."
)


# --- Tool definitions ---

@server.list_tools()
async def list_tools() -> list[Tool]:
    return [
        Tool(
            name="render_org_chart",
            description=(
                "Render an org chart from a YAML recipe. Tiers sharing a header label "
                "are grouped into one container; connectors are routed orthogonally. "
                "Returns the paths to the rendered PNG and/or SVG overlay."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "yaml_recipe": {"type": "string", "description": RECIPE_DESCRIPTION},
                    "scale": {
                        "type": "number",
                        "description": "Render scale factor (default 2.0 for crisp, legible output)",
                        "default": 2.0,
                    },
                    "filename": {
                        "type": "string",
                        "description": "Output filename (without extension). Default: auto-generated UUID.",
                    },
                    "format": {
                        "type": "string",
                        "enum": ["png", "svg", "both"],
                        "description": "'png' (full chart), 'svg' (connector overlay) or 'both'. Default: 'png'.",
                        "default": "png",
                    },
                    "viewport_width": {
                        "type": "number",
                        "description": "Viewport width in pixels; picks grid columns for wide rows. Default 1280.",
                        "default": 1280,
                    },
                    "flipped": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Node ids whose cards are drawn showing their back face.",
                    },
                },
                "required": ["yaml_recipe"],
            },
        ),
        Tool(
            name="compute_org_layout",
            description=(
                "Compute the layout of an org chart without rendering: containers with "
                "their rows of node ids, node and container rectangles, and connector paths "
                "(SVG path data)."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "yaml_recipe": {"type": "string", "description": RECIPE_DESCRIPTION},
                    "viewport_width": {
                        "type": "number",
                        "description": "Viewport width in pixels. Default 1280.",
                        "default": 1280,
                    },
                },
                "required": ["yaml_recipe"],
            },
        ),
        Tool(
            name="list_templates",
            description="List available org chart recipe templates that can be used as starting points.",
            inputSchema={
                "type": "object",
                "properties": {},
            },
        ),
        Tool(
            name="get_template",
            description="Get the YAML content of a specific template by name.",
            inputSchema={
                "type": "object",
                "properties": {
                    "name": {
                        "type": "string",
                        "description": "Template name (from list_templates output)",
                    },
                },
                "required": ["name"],
            },
        ),
    ]


@server.call_tool()
async def call_tool(name: str, arguments: dict) -> list[TextContent | ImageContent]:
    logger.info(f"Tool call: {name}")
    if name == "render_org_chart":
        return await _render_org_chart(arguments)
    elif name == "compute_org_layout":
        return await _compute_org_layout(arguments)
    elif name == "list_templates":
        return await _list_templates(arguments)
    elif name == "get_template":
        return await _get_template(arguments)
    else:
        return [TextContent(type="text", text=f"Unknown tool: {name}")]


async def _render_org_chart(args: dict) -> list[TextContent]:
    """Render a YAML recipe to PNG and/or SVG."""
    _ensure_output_dir()

    yaml_str = args["yaml_recipe"]
    scale = args.get("scale", 2.0)
    filename = args.get("filename", str(uuid.uuid4())[:8])
    output_format = args.get("format", "png")
    options = LayoutOptions(viewport_width=float(args.get("viewport_width", 1280)))

    try:
        chart = parse_yaml(yaml_str)
    except ValueError as e:
        return [TextContent(type="text", text=f"Failed to parse YAML recipe: {e}")]

    png_path = OUTPUT_DIR / f"{filename}.png"
    svg_path = OUTPUT_DIR / f"{filename}.svg"

    try:
        snapshot = compute_chart(chart, options)
        if output_format in ("png", "both"):
            ChartRenderer(scale=scale).render_snapshot(
                chart, snapshot, output_path=str(png_path), flipped=args.get("flipped", []),
            )
        if output_format in ("svg", "both"):
            svg = render_overlay_svg(
                snapshot.paths, snapshot.width, snapshot.height,
                color=get_theme(chart.theme).connector_color,
            )
            svg_path.write_text(svg)
    except Exception as e:
        logger.error(f"Render error: {e}")
        return [TextContent(type="text", text=f"Rendering failed: {e}")]

    result = {
        "status": "success",
        "title": chart.title,
        "containers": len(snapshot.groups),
        "nodes": len(snapshot.geometry.node_rects),
        "connectors": len(snapshot.paths),
        "anchors_converged": snapshot.anchors_converged,
    }
    if output_format in ("png", "both"):
        result["png_path"] = str(png_path)
    if output_format in ("svg", "both"):
        result["svg_path"] = str(svg_path)

    return [TextContent(type="text", text=json.dumps(result))]


async def _compute_org_layout(args: dict) -> list[TextContent]:
    """Lay out a YAML recipe and return the geometry as JSON."""
    options = LayoutOptions(viewport_width=float(args.get("viewport_width", 1280)))

    try:
        chart = parse_yaml(args["yaml_recipe"])
    except ValueError as e:
        return [TextContent(type="text", text=f"Failed to parse YAML recipe: {e}")]

    try:
        snapshot = compute_chart(chart, options)
    except Exception as e:
        logger.error(f"Layout error: {e}")
        return [TextContent(type="text", text=f"Layout failed: {e}")]

    geometry = snapshot.geometry
    return [TextContent(
        type="text",
        text=json.dumps({
            "title": chart.title,
            "width": geometry.width,
            "height": geometry.height,
            "containers": [
                {
                    "label": group.label,
                    "tiers": group.tier_indices,
                    "rows": [[node.id for node in row] for row in group.rows],
                    "rect": rect.to_dict(),
                }
                for group, rect in zip(snapshot.groups, geometry.container_rects)
            ],
            "nodes": {node_id: rect.to_dict() for node_id, rect in geometry.node_rects.items()},
            "paths": [path.to_dict() for path in snapshot.paths],
            "recipe": chart_to_yaml(chart),
        }),
    )]


async def _list_templates(args: dict) -> list[TextContent]:
    """List available template files."""
    templates = []

    if TEMPLATES_DIR.exists():
        for f in sorted(TEMPLATES_DIR.glob("*.yaml")) + sorted(TEMPLATES_DIR.glob("*.yml")):
            templates.append({
                "name": f.stem,
                "path": str(f),
            })

    return [TextContent(
        type="text",
        text=json.dumps({"templates": templates}),
    )]


async def _get_template(args: dict) -> list[TextContent]:
    """Get template content by name."""
    name = args["name"]

    for ext in [".yaml", ".yml"]:
        path = TEMPLATES_DIR / f"{name}{ext}"
        if path.exists():
            return [TextContent(type="text", text=path.read_text())]

    return [TextContent(type="text", text=f"Template not found: {name}")]


def main():
    """Entry point for the MCP server."""
    import asyncio

    # stdout carries the MCP stream; basicConfig logs to stderr
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(_run())


async def _run():
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


if __name__ == "__main__":
    main()
