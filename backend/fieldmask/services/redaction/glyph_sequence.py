from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Sequence

if TYPE_CHECKING:
    from .glyph_collector import GlyphRecord

_ZERO_WIDTH = {
    "\u200B",  # zero-width space
    "\u200C",
    "\u200D",
    "\u2060",
    "\u2061",
    "\u2062",
    "\u2063",
    "\ufeff",
}

_LIGATURE_MAP = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
    "ﬅ": "ft",
    "ﬆ": "st",
}

WindowFilter = Callable[[int, int], bool]


def normalize_fragment(text: str, *, casefold: bool = False) -> str:
    """Expand ligatures and drop whitespace and zero-width characters."""
    if not text:
        return ""
    expanded = "".join(_LIGATURE_MAP.get(ch, ch) for ch in text)
    normalized = "".join(ch for ch in expanded if not ch.isspace() and ch not in _ZERO_WIDTH)
    return normalized.casefold() if casefold else normalized


def normalized_fragments(glyphs: Sequence[GlyphRecord], *, casefold: bool = False) -> List[str]:
    return [normalize_fragment(glyph.text, casefold=casefold) for glyph in glyphs]


def match_window_at(
    fragments: Sequence[str],
    needle: str,
    start: int,
) -> Optional[List[int]]:
    """Grow a window from ``start`` while it stays a prefix of ``needle``.

    Returns the indices of the contributing (non-blank) glyphs on an exact
    match, ``None`` as soon as the window diverges or runs out of glyphs.
    """
    if not needle or start >= len(fragments) or not fragments[start]:
        return None

    indices: List[int] = []
    consumed = 0
    for index in range(start, len(fragments)):
        fragment = fragments[index]
        if not fragment:
            continue
        if not needle.startswith(fragment, consumed):
            return None
        indices.append(index)
        consumed += len(fragment)
        if consumed == len(needle):
            return indices
    return None


class GlyphTextIndex:
    """Normalized text of a glyph run plus the offsets where each glyph starts and ends.

    A window only counts when it begins on a glyph start and finishes on a
    glyph end, so a needle never splits a multi-character fragment.
    """

    def __init__(self, glyphs: Sequence[GlyphRecord], *, casefold: bool = False) -> None:
        self.glyphs = glyphs
        self.casefold = casefold
        self.fragments = normalized_fragments(glyphs, casefold=casefold)

        self._visible: List[int] = []
        self._starts: Dict[int, int] = {}
        self._ends: Dict[int, int] = {}
        parts: List[str] = []
        offset = 0
        for index, fragment in enumerate(self.fragments):
            if not fragment:
                continue
            self._starts[offset] = len(self._visible)
            self._visible.append(index)
            parts.append(fragment)
            offset += len(fragment)
            self._ends[offset] = len(self._visible) - 1
        self.text = "".join(parts)

    def windows(self, target: str, *, overlapping: bool = True) -> Iterator[List[int]]:
        """Yield glyph index windows whose text equals ``target``, leftmost first."""
        needle = normalize_fragment(target, casefold=self.casefold)
        if not needle:
            return

        position = self.text.find(needle)
        while position != -1:
            first = self._starts.get(position)
            last = self._ends.get(position + len(needle))
            if first is not None and last is not None:
                yield self._visible[first : last + 1]
                if not overlapping:
                    position = self.text.find(needle, position + len(needle))
                    continue
            position = self.text.find(needle, position + 1)

    def find(self, target: str, accept: Optional[WindowFilter] = None) -> List[GlyphRecord]:
        """First window matching ``target``; ``accept`` gets its first and last glyph index and can veto it."""
        for indices in self.windows(target):
            if accept is not None and not accept(indices[0], indices[-1]):
                continue
            return [self.glyphs[index] for index in indices]
        return []


def find_glyph_sequence(
    glyphs: Sequence[GlyphRecord],
    target: str,
    *,
    casefold: bool = False,
    accept: Optional[WindowFilter] = None,
) -> List[GlyphRecord]:
    return GlyphTextIndex(glyphs, casefold=casefold).find(target, accept)


def window_text(glyphs: Sequence[GlyphRecord], *, casefold: bool = False) -> str:
    return "".join(normalized_fragments(glyphs, casefold=casefold))
