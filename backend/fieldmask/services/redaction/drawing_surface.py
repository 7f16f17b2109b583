from __future__ import annotations

from typing import Protocol, Tuple

import fitz

RGB = Tuple[float, float, float]

# Standard 14 names mapped onto PyMuPDF's built-in font aliases
_BASE14_ALIASES = {
    "helvetica": "helv",
    "helvetica-bold": "hebo",
    "helvetica-oblique": "heit",
    "courier": "cour",
    "courier-bold": "cobo",
    "times-roman": "tiro",
    "times-bold": "tibo",
    "symbol": "symb",
    "zapfdingbats": "zadb",
}


class DrawingSurface(Protocol):
    """Page drawing primitives in page space: origin bottom-left, y increasing upward."""

    def set_fill_color(self, color: RGB) -> None: ...

    def fill_rectangle(self, x: float, y: float, width: float, height: float) -> None: ...

    def set_font(self, family: str, size: float) -> None: ...

    def draw_text(self, x: float, y: float, text: str) -> None: ...


class PyMuPDFDrawingSurface:
    """Replays overlay primitives onto a ``fitz.Page`` (top-left origin, y down)."""

    def __init__(self, page: fitz.Page) -> None:
        self.page = page
        self.page_height = float(page.rect.height)
        self.fill_color: RGB = (0.0, 0.0, 0.0)
        self.font_name = "helv"
        self.font_file: str | None = None
        self.font_size = 12.0
        self.operations = 0

    def set_fill_color(self, color: RGB) -> None:
        self.fill_color = tuple(float(component) for component in color)  # type: ignore[assignment]

    def fill_rectangle(self, x: float, y: float, width: float, height: float) -> None:
        rect = fitz.Rect(x, self.page_height - (y + height), x + width, self.page_height - y)
        self.page.draw_rect(rect, color=None, fill=self.fill_color, width=0, overlay=True)
        self.operations += 1

    def set_font(self, family: str, size: float) -> None:
        self.font_size = float(size)
        if family.lower().endswith((".ttf", ".otf")):
            self.font_file = family
            self.font_name = "FieldmaskFiller"
            return
        self.font_file = None
        self.font_name = _BASE14_ALIASES.get(family.lower(), family)

    def draw_text(self, x: float, y: float, text: str) -> None:
        self.page.insert_text(
            fitz.Point(x, self.page_height - y),
            text,
            fontsize=self.font_size,
            fontname=self.font_name,
            fontfile=self.font_file,
            color=self.fill_color,
            overlay=True,
        )
        self.operations += 1
