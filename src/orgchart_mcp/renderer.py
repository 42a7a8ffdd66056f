"""Chart renderer using Pillow: produces org chart PNG images."""

from __future__ import annotations

import math
import textwrap
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional

from PIL import Image, ImageDraw, ImageFont

from .chart import ChartSnapshot, compute_chart
from .geometry import Rect
from .layout import LayoutOptions
from .models import ChartNode, OrgChart
from .router import PathSpec
from .themes import ThemePalette, card_style_for_label, get_theme


# --- Font handling ---

def _load_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a font, falling back to default if none available."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return ImageFont.load_default()


def _load_bold_font(size: int) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Load a bold font, falling back to regular."""
    font_paths = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/truetype/freefont/FreeSansBold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
    ]
    for fp in font_paths:
        if Path(fp).exists():
            return ImageFont.truetype(fp, size)
    return _load_font(size)


# --- Color helpers ---

def _hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert hex color to RGB tuple. Supports both 3-char and 6-char hex."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) == 3:
        hex_color = hex_color[0]*2 + hex_color[1]*2 + hex_color[2]*2
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def _hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    """Convert hex color to RGBA tuple."""
    r, g, b = _hex_to_rgb(hex_color)
    return (r, g, b, alpha)


def _blend(base_hex: str, over_hex: str, alpha: int) -> str:
    """Composite ``over_hex`` at ``alpha`` (0-255) onto ``base_hex``."""
    br, bg, bb = _hex_to_rgb(base_hex)
    orr, og, ob = _hex_to_rgb(over_hex)
    t = alpha / 255
    r = int(br + (orr - br) * t)
    g = int(bg + (og - bg) * t)
    b = int(bb + (ob - bb) * t)
    return f"#{r:02x}{g:02x}{b:02x}"


# --- Drawing primitives ---

def _draw_rounded_rect(
    draw: ImageDraw.ImageDraw,
    xy: tuple[float, float, float, float],
    radius: int,
    fill: Optional[str | tuple] = None,
    outline: Optional[str] = None,
    width: int = 1,
):
    """Draw a rounded rectangle."""
    x1, y1, x2, y2 = xy
    draw.rounded_rectangle(
        [x1, y1, x2, y2],
        radius=radius,
        fill=fill,
        outline=outline,
        width=width,
    )


def _draw_arrow(
    draw: ImageDraw.ImageDraw,
    start: tuple[float, float],
    end: tuple[float, float],
    color: str,
    arrow_size: int = 10,
):
    """Draw an arrowhead at ``end`` pointing along ``start -> end``."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.sqrt(dx * dx + dy * dy)
    if length == 0:
        return

    # Normalize
    udx = dx / length
    udy = dy / length

    # Arrowhead points
    ax = end[0] - arrow_size * udx + (arrow_size / 2) * udy
    ay = end[1] - arrow_size * udy - (arrow_size / 2) * udx
    bx = end[0] - arrow_size * udx - (arrow_size / 2) * udy
    by = end[1] - arrow_size * udy + (arrow_size / 2) * udx

    draw.polygon([(end[0], end[1]), (ax, ay), (bx, by)], fill=color)


def _wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: int) -> list[str]:
    """Word-wrap text to fit within max_width pixels."""
    words = text.split()
    lines = []
    current = ""

    for word in words:
        test = f"{current} {word}".strip() if current else word
        bbox = font.getbbox(test)
        tw = bbox[2] - bbox[0]
        if tw <= max_width:
            current = test
        else:
            if current:
                lines.append(current)
            # If single word is too long, force-wrap it
            if font.getbbox(word)[2] - font.getbbox(word)[0] > max_width:
                for chunk in textwrap.wrap(word, width=max(1, max_width // 8)):
                    lines.append(chunk)
                current = ""
            else:
                current = word

    if current:
        lines.append(current)

    return lines if lines else [""]


# --- Main renderer ---

class ChartRenderer:
    """Renders an OrgChart to a PNG image."""

    # Layout constants
    TITLE_HEIGHT = 72
    PANEL_RADIUS = 12
    CONTAINER_RADIUS = 10
    CARD_RADIUS = 3
    CARD_PADDING = 16
    CORNER_TICK = 8
    LABEL_TAB_OFFSET_X = 24
    LABEL_TAB_PAD_X = 12
    CONNECTOR_WIDTH = 2
    ARROW_SIZE = 10

    def __init__(self, scale: float = 1.0):
        self.scale = scale
        self.font_title = _load_bold_font(int(28 * scale))
        self.font_card = _load_bold_font(int(15 * scale))
        self.font_back = _load_font(int(13 * scale))
        self.font_container = _load_bold_font(int(12 * scale))
        self.theme: ThemePalette = get_theme("dark")  # Default theme

    def render(
        self,
        chart: OrgChart,
        output_path: Optional[str] = None,
        options: Optional[LayoutOptions] = None,
        flipped: Iterable[str] = (),
    ) -> bytes:
        """Lay out and render the chart to PNG bytes. Optionally save to file.

        Args:
            chart: The chart to render.
            output_path: Optional path to save the PNG.
            options: Layout metrics (viewport width, card size, spacing).
            flipped: Ids of cards to draw showing their back face.
        """
        snapshot = compute_chart(chart, options)
        return self.render_snapshot(chart, snapshot, output_path, flipped)

    def render_snapshot(
        self,
        chart: OrgChart,
        snapshot: ChartSnapshot,
        output_path: Optional[str] = None,
        flipped: Iterable[str] = (),
    ) -> bytes:
        """Render an already computed snapshot."""
        self.theme = get_theme(chart.theme)
        flipped = set(flipped)
        s = self.scale

        img_width = max(1, int(math.ceil(snapshot.width * s)))
        img_height = max(1, int(math.ceil((snapshot.height + self.TITLE_HEIGHT) * s)))
        img = Image.new("RGBA", (img_width, img_height), _hex_to_rgba(self.theme.background))
        draw = ImageDraw.Draw(img)

        oy = self.TITLE_HEIGHT

        self._draw_title(draw, chart.title, img_width)
        _draw_rounded_rect(
            draw, (0, oy * s, img_width - 1, img_height - 1),
            radius=int(self.PANEL_RADIUS * s),
            fill=self.theme.panel_fill,
        )

        # Containers, then connectors behind the cards
        for group, rect in zip(snapshot.groups, snapshot.geometry.container_rects):
            self._draw_container(draw, group.label, rect, oy)

        for path in snapshot.paths:
            self._draw_path(draw, path, oy)

        for group in snapshot.groups:
            style = card_style_for_label(group.label)
            for row in group.rows:
                for node in row:
                    rect = snapshot.geometry.rect_of(node.id)
                    if rect is None:
                        continue
                    self._draw_card(draw, node, rect, style, node.id in flipped, oy)

        buf = BytesIO()
        img.save(buf, format="PNG", optimize=True)
        png_bytes = buf.getvalue()

        if output_path:
            Path(output_path).write_bytes(png_bytes)

        return png_bytes

    def _box(self, rect: Rect, oy: float) -> tuple[float, float, float, float]:
        s = self.scale
        return (rect.left * s, (rect.top + oy) * s, rect.right * s, (rect.bottom + oy) * s)

    def _draw_title(self, draw: ImageDraw.ImageDraw, title: str, img_width: int):
        """Draw the chart title centered at the top."""
        bbox = self.font_title.getbbox(title)
        tw = bbox[2] - bbox[0]
        x = (img_width - tw) / 2
        draw.text((x, 20 * self.scale), title, fill=self.theme.title_color, font=self.font_title)

    def _draw_container(self, draw: ImageDraw.ImageDraw, label: str, rect: Rect, oy: float):
        """Draw a bordered group container with its label tab on the top edge."""
        x1, y1, x2, y2 = self._box(rect, oy)
        fill = _blend(self.theme.panel_fill, self.theme.container_fill, self.theme.container_fill_alpha)
        _draw_rounded_rect(
            draw, (x1, y1, x2, y2),
            radius=int(self.CONTAINER_RADIUS * self.scale),
            fill=fill,
            outline=self.theme.container_border,
            width=max(1, int(self.scale)),
        )

        # Label tab sits across the top border, masked with the panel color
        bbox = self.font_container.getbbox(label)
        tw = bbox[2] - bbox[0]
        th = bbox[3] - bbox[1]
        pad = self.LABEL_TAB_PAD_X * self.scale
        tab_x = x1 + self.LABEL_TAB_OFFSET_X * self.scale
        tab_y = y1 - th / 2 - 2 * self.scale
        draw.rectangle(
            [tab_x, tab_y, tab_x + tw + 2 * pad, tab_y + th + 4 * self.scale],
            fill=self.theme.panel_fill,
        )
        draw.text(
            (tab_x + pad, tab_y),
            label,
            fill=self.theme.container_label,
            font=self.font_container,
        )

    def _draw_path(self, draw: ImageDraw.ImageDraw, path: PathSpec, oy: float):
        """Draw one orthogonal connector as a polyline."""
        s = self.scale
        points = [(x * s, (y + oy) * s) for x, y in path.points]
        if len(points) < 2:
            return
        color = self.theme.connector_color
        draw.line(points, fill=color, width=max(1, int(self.CONNECTOR_WIDTH * s)), joint="curve")
        if path.has_arrow:
            _draw_arrow(draw, points[-2], points[-1], color, arrow_size=int(self.ARROW_SIZE * s))

    def _draw_card(
        self,
        draw: ImageDraw.ImageDraw,
        node: ChartNode,
        rect: Rect,
        style: str,
        flipped: bool,
        oy: float,
    ):
        """Draw a person card, front or back face."""
        s = self.scale
        accent = self.theme.accent_for(style)
        x1, y1, x2, y2 = self._box(rect, oy)

        _draw_rounded_rect(
            draw, (x1, y1, x2, y2),
            radius=int(self.CARD_RADIUS * s),
            fill=_blend(self.theme.card_fill, accent, 26),
            outline=accent,
            width=max(1, int(s)),
        )

        # Corner ticks on all four corners
        tick = self.CORNER_TICK * s
        inset = 4 * s
        for cx, sx in ((x1 + inset, 1), (x2 - inset, -1)):
            for cy, sy in ((y1 + inset, 1), (y2 - inset, -1)):
                draw.line([(cx, cy), (cx + sx * tick, cy)], fill=accent, width=1)
                draw.line([(cx, cy), (cx, cy + sy * tick)], fill=accent, width=1)

        # Level dot, top-left
        dot = 3 * s
        draw.ellipse([x1 + 8 * s, y1 + 8 * s, x1 + 8 * s + dot * 2, y1 + 8 * s + dot * 2], fill=accent)

        if flipped:
            lines = node.back.lines()
            font = self.font_back
            color = self.theme.card_back_color
        else:
            max_width = int((x2 - x1) - 2 * self.CARD_PADDING * s)
            lines = _wrap_text(node.get_title(), self.font_card, max_width)
            font = self.font_card
            color = self.theme.card_title_color

        line_height = (font.getbbox("Ag")[3] - font.getbbox("Ag")[1]) + 6 * s
        block = line_height * len(lines)
        y = y1 + ((y2 - y1) - block) / 2
        for line in lines:
            bbox = font.getbbox(line)
            tw = bbox[2] - bbox[0]
            draw.text((x1 + ((x2 - x1) - tw) / 2, y), line, fill=color, font=font)
            y += line_height
