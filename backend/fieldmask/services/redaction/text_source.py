from __future__ import annotations

from typing import Optional, Protocol

import fitz

from .glyph_collector import GlyphPositionCollector, GlyphRecord

LINE_SEPARATOR = "\n"
BLOCK_SEPARATOR = "\n"


class PageTextSource(Protocol):
    """One page's extraction pass, feeding glyphs and text into a collector."""

    def extract(self, collector: GlyphPositionCollector) -> None: ...


class PyMuPDFPageTextSource:
    """Walks ``page.get_text("rawdict")`` character by character.

    Glyph positions are converted to page space with the origin at the
    bottom-left corner. Synthetic characters (spaces PyMuPDF inferred from gaps)
    only contribute to the reconstructed text.
    """

    def __init__(self, page: fitz.Page, page_index: Optional[int] = None) -> None:
        self.page = page
        self.page_index = int(page.number) if page_index is None else page_index

    def extract(self, collector: GlyphPositionCollector) -> None:
        page_height = float(self.page.rect.height)
        raw = self.page.get_text("rawdict") or {}

        emitted_block = False
        for block in raw.get("blocks", []):
            lines = block.get("lines") or []
            if not lines:
                continue
            if emitted_block:
                collector.record_separator(BLOCK_SEPARATOR)
            emitted_block = True

            for line_index, line in enumerate(lines):
                if line_index:
                    collector.record_separator(LINE_SEPARATOR)
                for span in line.get("spans", []):
                    self._collect_span(span, page_height, collector)

    def _collect_span(self, span: dict, page_height: float, collector: GlyphPositionCollector) -> None:
        try:
            font_size = float(span.get("size") or 0.0)
        except (TypeError, ValueError):
            font_size = 0.0
        font = span.get("font") or None

        for char in span.get("chars", []) or []:
            glyph = char.get("c") or ""
            if not glyph:
                continue
            if char.get("synthetic"):
                collector.record_separator(glyph)
                continue

            bbox = [float(value) for value in (char.get("bbox") or span.get("bbox") or (0, 0, 0, 0))[:4]]
            origin = char.get("origin") or (bbox[0], bbox[3])
            collector.record_glyph(
                GlyphRecord(
                    text=glyph,
                    x=float(origin[0]),
                    y=page_height - float(origin[1]),
                    width=max(0.0, bbox[2] - bbox[0]),
                    height=max(0.0, bbox[3] - bbox[1]),
                    font_size=font_size,
                    font=font,
                )
            )
