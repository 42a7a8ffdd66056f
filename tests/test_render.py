"""Tests for the SVG overlay, themes and the PNG renderer."""
from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from orgchart_mcp.chart import compute_chart
from orgchart_mcp.overlay import render_overlay_svg
from orgchart_mcp.renderer import ChartRenderer
from orgchart_mcp.router import PathSpec
from orgchart_mcp.themes import THEMES, card_style_for_label, get_theme

from builders import chart, node


def company(theme="dark"):
    tree = node(
        "ceo",
        node("cto", node("dev"), level="board"),
        node("coo", level="board"),
        level="executive",
    )
    result = chart(tree, ["Executive", "Board", "Staff"])
    result.theme = theme
    return result


class TestOverlay:
    def test_one_shared_marker(self):
        paths = [
            PathSpec("p-trunk", ((0, 0), (0, 10)), False),
            PathSpec("p-a", ((0, 10), (0, 20)), True),
            PathSpec("p-b", ((5, 10), (5, 20)), True),
        ]
        svg = render_overlay_svg(paths, 100.5, 80)

        assert svg.count("<marker ") == 1
        assert 'id="arrowhead"' in svg
        assert 'width="101" height="80"' in svg
        assert svg.count("<path ") == 3

    def test_arrow_only_on_child_segments(self):
        paths = [
            PathSpec("p-trunk", ((0, 0), (0, 10)), False),
            PathSpec("p-a", ((0, 10), (0, 20)), True),
        ]
        svg = render_overlay_svg(paths, 100, 80)

        assert '<path id="p-trunk" d="M 0 0 L 0 10"' in svg
        assert 'id="p-trunk" d="M 0 0 L 0 10" stroke="#3fa9c4" stroke-width="2" fill="none" ' \
            'stroke-linecap="round" stroke-linejoin="round" marker-end="none"' in svg
        assert 'marker-end="url(#arrowhead)"' in svg

    def test_empty_overlay(self):
        svg = render_overlay_svg([], 10, 10)
        assert "<path " not in svg
        assert svg.rstrip().endswith("</svg>")


class TestThemes:
    @pytest.mark.parametrize("label, style", [
        ("Executive Board", "executive"),
        ("Board", "board"),
        ("Upper Management", "management"),
        ("Lower Command", "management"),
        ("Interns", "intern"),
        ("Employees", "employee"),
        ("Staff", "employee"),
    ])
    def test_card_style_for_label(self, label, style):
        assert card_style_for_label(label) == style

    def test_every_theme_has_every_accent(self):
        for theme in THEMES.values():
            for style in ("executive", "board", "management", "intern", "employee"):
                assert theme.accent_for(style).startswith("#")

    def test_unknown_theme(self):
        with pytest.raises(ValueError):
            get_theme("neon")


class TestChartRenderer:
    def test_renders_png_sized_to_layout(self):
        data = ChartRenderer(scale=1.0).render(company())
        snapshot = compute_chart(company())

        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        image = Image.open(BytesIO(data))
        assert image.size[0] == int(snapshot.width)
        assert image.size[1] == int(snapshot.height + ChartRenderer.TITLE_HEIGHT)

    def test_scale_multiplies_size(self):
        small = Image.open(BytesIO(ChartRenderer(scale=1.0).render(company())))
        large = Image.open(BytesIO(ChartRenderer(scale=2.0).render(company())))
        assert large.size == (small.size[0] * 2, small.size[1] * 2)

    def test_writes_file_and_draws_flipped_cards(self, tmp_path):
        out = tmp_path / "chart.png"
        data = ChartRenderer().render(company("light"), str(out), flipped=["cto", "dev"])

        assert out.read_bytes() == data

    def test_flipped_face_changes_pixels(self):
        renderer = ChartRenderer()
        front = renderer.render(company())
        back = renderer.render(company(), flipped=["ceo"])
        assert front != back
