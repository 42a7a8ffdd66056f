"""
Theme definitions for Org-Chart MCP.

Provides dark and light color palettes for rendering charts.
Each theme defines colors for:
- Panel background
- Text (title, card titles, back-face text, container labels)
- Group containers (fill, border, label tab)
- Connectors and arrowheads
- Card accents per card style
"""

from __future__ import annotations
from dataclasses import dataclass, field


# Card styles, picked from the enclosing container's label
CARD_STYLES = ("executive", "board", "management", "intern", "employee")


def card_style_for_label(label: str) -> str:
    """Map a container label to the card accent style for its cards."""
    key = label.lower()
    if "executive" in key:
        return "executive"
    if "board" in key:
        return "board"
    if "upper" in key or "lower" in key:
        return "management"
    if "intern" in key:
        return "intern"
    return "employee"


@dataclass
class ThemePalette:
    """Color palette for a theme."""

    # Panel
    background: str
    panel_fill: str

    # Text
    title_color: str
    card_title_color: str
    card_back_color: str
    muted_text_color: str

    # Group containers
    container_fill: str
    container_fill_alpha: int
    container_border: str
    container_label: str

    # Cards
    card_fill: str

    # Connectors
    connector_color: str

    # Accent per card style
    card_accents: dict[str, str] = field(default_factory=dict)

    def accent_for(self, style: str) -> str:
        return self.card_accents.get(style, self.card_accents["employee"])


# Dark theme - current default
DARK_THEME = ThemePalette(
    background="#05080d",
    panel_fill="#0b1220",
    title_color="#e2f7ff",
    card_title_color="#e2f7ff",
    card_back_color="#a6c8d8",
    muted_text_color="#5c7a8a",
    container_fill="#00d7ff",
    container_fill_alpha=8,
    container_border="#0e3a47",
    container_label="#00d7ff",
    card_fill="#0f1826",
    connector_color="#3fa9c4",
    card_accents={
        "executive": "#facc15",
        "board": "#fb923c",
        "management": "#4ade80",
        "intern": "#00d7ff",
        "employee": "#e879f9",
    },
)


# Light theme - clean white background with darker accents
LIGHT_THEME = ThemePalette(
    background="#ffffff",
    panel_fill="#f4f7fa",
    title_color="#10202b",
    card_title_color="#10202b",
    card_back_color="#3d5566",
    muted_text_color="#6c7f8c",
    container_fill="#0891b2",
    container_fill_alpha=12,
    container_border="#b6d3dd",
    container_label="#0e7490",
    card_fill="#ffffff",
    connector_color="#5b8fa3",
    card_accents={
        "executive": "#ca8a04",
        "board": "#ea580c",
        "management": "#16a34a",
        "intern": "#0891b2",
        "employee": "#c026d3",
    },
)


# Theme registry
THEMES: dict[str, ThemePalette] = {
    "dark": DARK_THEME,
    "light": LIGHT_THEME,
}


def get_theme(name: str) -> ThemePalette:
    """Get a theme palette by name.

    Args:
        name: Theme name ("dark" or "light")

    Returns:
        ThemePalette for the requested theme

    Raises:
        ValueError: If theme name is not recognized
    """
    if name not in THEMES:
        valid = ", ".join(THEMES.keys())
        raise ValueError(f"Unknown theme '{name}'. Valid themes: {valid}")
    return THEMES[name]
