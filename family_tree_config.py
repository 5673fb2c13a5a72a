"""
Layout configuration for the family tree engine.
Holds the spacing constants and the fixed scheduler constants.
"""

from dataclasses import dataclass, fields
from typing import Any, Mapping

# Fixed origin of the placed layout.
BASE_X = 100
BASE_Y = 100

MAX_PLACEMENT_ROUNDS = 100
SEARCH_STEP = 50
SEARCH_LIMIT = 4000
# Only try against the push direction once the preferred side has failed this far out.
OPPOSITE_SEARCH_AFTER = 1500
APPEND_GAP_FACTOR = 1.5


@dataclass(frozen=True)
class LayoutConfig:
    """Spacing constants, in abstract layout units."""

    node_width: float = 180
    node_height: float = 80
    horizontal_gap: float = 40
    generation_gap: float = 150

    def __post_init__(self):
        if self.node_width <= 0 or self.node_height <= 0:
            raise ValueError(f"Node size must be positive, got {self.node_width}x{self.node_height}")
        if self.horizontal_gap < 0 or self.generation_gap < 0:
            raise ValueError("Gaps must not be negative")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "LayoutConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})
