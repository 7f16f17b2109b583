from __future__ import annotations

import threading
from bisect import bisect_left
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .glyph_sequence import GlyphTextIndex


@dataclass(frozen=True)
class GlyphRecord:
    """One rendered text fragment in page space (origin bottom-left, y up)."""

    text: str
    x: float
    y: float
    width: float
    height: float
    font_size: float
    font: Optional[str] = None

    @property
    def end_x(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class PageGlyphs:
    """Glyphs of one page, the reconstructed text and each glyph's offset into that text."""

    glyphs: Tuple[GlyphRecord, ...]
    text: str
    offsets: Tuple[int, ...] = ()
    _indexes: Dict[bool, GlyphTextIndex] = field(default_factory=dict, compare=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, compare=False, repr=False)

    def __len__(self) -> int:
        return len(self.glyphs)

    def glyphs_in_range(self, start: int, end: int) -> List[GlyphRecord]:
        """Glyphs whose text offset lies in ``[start, end)``."""
        first = bisect_left(self.offsets, start)
        selected: List[GlyphRecord] = []
        for position in range(first, len(self.offsets)):
            if self.offsets[position] >= end:
                break
            selected.append(self.glyphs[position])
        return selected

    def text_index(self, *, casefold: bool = False) -> GlyphTextIndex:
        """Normalized glyph text for sequence searches, built once per page and fold mode."""
        with self._lock:
            index = self._indexes.get(casefold)
            if index is None:
                index = GlyphTextIndex(self.glyphs, casefold=casefold)
                self._indexes[casefold] = index
            return index


class GlyphPositionCollector:
    """Accumulates glyph records and the reconstructed text of a single page.

    The owner must call :meth:`reset` before each page's extraction pass; records
    from a previous page are never visible to the next one.
    """

    def __init__(self) -> None:
        self._glyphs: List[GlyphRecord] = []
        self._offsets: List[int] = []
        self._text_parts: List[str] = []
        self._length = 0

    def reset(self) -> None:
        self._glyphs.clear()
        self._offsets.clear()
        self._text_parts.clear()
        self._length = 0

    def record_glyph(self, record: GlyphRecord) -> None:
        self._glyphs.append(record)
        self._offsets.append(self._length)
        self._text_parts.append(record.text)
        self._length += len(record.text)

    def record_separator(self, text: str) -> None:
        """Text emitted by the extraction pass that has no glyph behind it."""
        if text:
            self._text_parts.append(text)
            self._length += len(text)

    @property
    def glyphs(self) -> Tuple[GlyphRecord, ...]:
        return tuple(self._glyphs)

    @property
    def text(self) -> str:
        return "".join(self._text_parts)

    def snapshot(self) -> PageGlyphs:
        return PageGlyphs(
            glyphs=tuple(self._glyphs),
            text="".join(self._text_parts),
            offsets=tuple(self._offsets),
        )
