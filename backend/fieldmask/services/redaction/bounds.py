from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Sequence

from .glyph_collector import GlyphRecord

# Font metrics are not available from the glyph stream, so ascent/descent are
# approximated as fractions of the font size around the baseline.
ASCENT_RATIO = 0.75
DESCENT_RATIO = 0.25

PADDING_X_RATIO = 0.05
PADDING_Y_RATIO = 0.1
MIN_PADDING = 1.0


@dataclass(frozen=True)
class PrecisionBounds:
    """Axis-aligned box in page space; ``(x, y)`` is the lower-left corner."""

    x: float
    y: float
    width: float
    height: float
    avg_font_size: float
    glyph_count: int
    strategy: str

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "avg_font_size": self.avg_font_size,
            "glyph_count": self.glyph_count,
            "strategy": self.strategy,
        }

    def __str__(self) -> str:
        return (
            f"PrecisionBounds[x={self.x:.1f}, y={self.y:.1f}, w={self.width:.1f}, "
            f"h={self.height:.1f}, fontSize={self.avg_font_size:.1f}, "
            f"glyphs={self.glyph_count}, strategy={self.strategy}]"
        )


def reading_order(glyphs: Sequence[GlyphRecord]) -> list[GlyphRecord]:
    """Row-major order: top rows first, then left to right."""
    return sorted(glyphs, key=lambda glyph: (-glyph.y, glyph.x))


def compute_precision_bounds(glyphs: Sequence[GlyphRecord], strategy: str) -> Optional[PrecisionBounds]:
    if not glyphs:
        return None

    ordered = reading_order(glyphs)

    min_x = min(glyph.x for glyph in ordered)
    max_x = max(glyph.x + glyph.width for glyph in ordered)
    min_y = min(glyph.y - glyph.font_size * DESCENT_RATIO for glyph in ordered)
    max_y = max(glyph.y + glyph.font_size * ASCENT_RATIO for glyph in ordered)
    avg_font_size = sum(glyph.font_size for glyph in ordered) / len(ordered)

    padding_x = max(MIN_PADDING, avg_font_size * PADDING_X_RATIO)
    padding_y = max(MIN_PADDING, avg_font_size * PADDING_Y_RATIO)

    return PrecisionBounds(
        x=min_x - padding_x,
        y=min_y - padding_y,
        width=max(0.0, max_x - min_x) + 2 * padding_x,
        height=max(0.0, max_y - min_y) + 2 * padding_y,
        avg_font_size=avg_font_size,
        glyph_count=len(ordered),
        strategy=strategy,
    )
