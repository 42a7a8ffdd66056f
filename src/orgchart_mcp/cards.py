"""Per-card flip state.

Flipping is presentation only: cards keep a fixed size on both faces, so a
flip never changes geometry and never asks for a recompute.
"""

from __future__ import annotations


class CardState:
    """Which cards currently show their back face."""

    def __init__(self):
        self._flipped: dict[str, bool] = {}

    def toggle(self, node_id: str) -> bool:
        """Flip a card and return its new state."""
        flipped = not self._flipped.get(node_id, False)
        self._flipped[node_id] = flipped
        return flipped

    def is_flipped(self, node_id: str) -> bool:
        return self._flipped.get(node_id, False)

    def flipped_ids(self) -> set[str]:
        return {node_id for node_id, flipped in self._flipped.items() if flipped}

    def reset(self) -> None:
        self._flipped.clear()
