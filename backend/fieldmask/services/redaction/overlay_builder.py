from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Union

from .bounds import PrecisionBounds
from .drawing_surface import DrawingSurface
from .settings import BLACK, RGB, WHITE

COVER_EXPANSION = 2.0
MAX_FILLER_GLYPHS = 60
FILLER_WIDTH_RATIO = 0.6  # approximate advance of one filler glyph
MIN_FILLER_FONT_SIZE = 6.0
MAX_FILLER_FONT_SIZE = 14.0
FILLER_BASELINE_RATIO = 0.65
SECOND_ROW_OFFSET_RATIO = 0.8
SECOND_ROW_HEIGHT_RATIO = 1.5
FILLER_INSET = 1.0


@dataclass(frozen=True)
class SetFillColor:
    color: RGB

    def draw(self, surface: DrawingSurface) -> None:
        surface.set_fill_color(self.color)

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "set_fill_color", "color": list(self.color)}


@dataclass(frozen=True)
class FillRect:
    x: float
    y: float
    width: float
    height: float

    def draw(self, surface: DrawingSurface) -> None:
        surface.fill_rectangle(self.x, self.y, self.width, self.height)

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "fill_rectangle", "x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class SetFont:
    family: str
    size: float

    def draw(self, surface: DrawingSurface) -> None:
        surface.set_font(self.family, self.size)

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "set_font", "family": self.family, "size": self.size}


@dataclass(frozen=True)
class DrawText:
    x: float
    y: float
    text: str

    def draw(self, surface: DrawingSurface) -> None:
        surface.draw_text(self.x, self.y, self.text)

    def to_dict(self) -> Dict[str, Any]:
        return {"op": "draw_text", "x": self.x, "y": self.y, "text": self.text}


OverlayInstruction = Union[SetFillColor, FillRect, SetFont, DrawText]


def filler_font_size(avg_font_size: float) -> float:
    return max(MIN_FILLER_FONT_SIZE, min(avg_font_size, MAX_FILLER_FONT_SIZE))


def filler_glyph_count(available_width: float, font_size: float) -> int:
    glyph_width = font_size * FILLER_WIDTH_RATIO
    fitted = math.floor(available_width / glyph_width) if glyph_width > 0 else 0
    return min(MAX_FILLER_GLYPHS, max(1, fitted))


class RedactionOverlayBuilder:
    """Turns selected bounds into layered cover rectangles plus filler text rows."""

    def __init__(
        self,
        filler_char: str = "█",
        filler_font: str = "Helvetica-Bold",
        cover_color: RGB = WHITE,
        filler_color: RGB = BLACK,
    ) -> None:
        self.filler_char = filler_char
        self.filler_font = filler_font
        self.cover_color = cover_color
        self.filler_color = filler_color

    def mask_text(self, available_width: float, font_size: float) -> str:
        return self.filler_char * filler_glyph_count(available_width, font_size)

    def build(self, bounds: PrecisionBounds) -> List[OverlayInstruction]:
        instructions: List[OverlayInstruction] = [
            SetFillColor(self.cover_color),
            FillRect(
                bounds.x - COVER_EXPANSION,
                bounds.y - COVER_EXPANSION,
                bounds.width + 2 * COVER_EXPANSION,
                bounds.height + 2 * COVER_EXPANSION,
            ),
            # Second layer over the exact box
            SetFillColor(self.cover_color),
            FillRect(bounds.x, bounds.y, bounds.width, bounds.height),
        ]

        font_size = filler_font_size(bounds.avg_font_size)
        text = self.mask_text(bounds.width, font_size)
        text_x = bounds.x + FILLER_INSET
        text_y = bounds.y + bounds.height * FILLER_BASELINE_RATIO

        instructions.extend(
            [
                SetFont(self.filler_font, font_size),
                SetFillColor(self.filler_color),
                DrawText(text_x, text_y, text),
            ]
        )
        if bounds.height > font_size * SECOND_ROW_HEIGHT_RATIO:
            instructions.append(DrawText(text_x, text_y - font_size * SECOND_ROW_OFFSET_RATIO, text))
        return instructions

    def build_all(self, bounds_list: List[PrecisionBounds]) -> List[OverlayInstruction]:
        instructions: List[OverlayInstruction] = []
        for bounds in bounds_list:
            instructions.extend(self.build(bounds))
        return instructions


def replay(instructions: List[OverlayInstruction], surface: DrawingSurface) -> int:
    for instruction in instructions:
        instruction.draw(surface)
    return len(instructions)
