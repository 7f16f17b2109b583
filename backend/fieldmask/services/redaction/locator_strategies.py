from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ...utils.logging import get_logger
from .bounds import PrecisionBounds, compute_precision_bounds
from .field_matcher import FieldMatch
from .glyph_collector import GlyphRecord, PageGlyphs
from .glyph_sequence import find_glyph_sequence, match_window_at, normalize_fragment, window_text
from .scoring import (
    CHARACTER_SEQUENCE,
    CONTEXT_BASED,
    DEFAULT_STRATEGY_WEIGHT,
    INDEX_BASED,
    STRATEGY_WEIGHTS,
    BoundsSelector,
    ScoredBounds,
)

POSITION_TOLERANCE = 1.0

# Horizontal gap, relative to font size, that reads as a word break even when
# the extraction pass produced no space glyph.
WORD_GAP_RATIO = 0.15


class LocatorStrategy(ABC):
    """Maps a textual field match back to the glyphs that render it."""

    name: str = ""
    weight: float = DEFAULT_STRATEGY_WEIGHT

    def __init__(self, tolerance: float = POSITION_TOLERANCE) -> None:
        self.tolerance = tolerance

    @abstractmethod
    def find_glyphs(self, match: FieldMatch, page: PageGlyphs) -> Tuple[str, List[GlyphRecord]]:
        """Return ``(tag, glyphs)``; an empty glyph list means the strategy failed."""

    def locate(self, match: FieldMatch, page: PageGlyphs) -> Optional[PrecisionBounds]:
        tag, glyphs = self.find_glyphs(match, page)
        if not glyphs:
            return None
        return compute_precision_bounds(glyphs, tag)


class IndexBasedStrategy(LocatorStrategy):
    name = INDEX_BASED
    weight = STRATEGY_WEIGHTS[INDEX_BASED]

    def find_glyphs(self, match, page):
        if match.start >= len(page.text):
            return self.name, []

        selected = page.glyphs_in_range(match.start, match.end)
        if not selected:
            return self.name, []

        # Offsets that disagree with the glyph stream must not produce a box.
        if window_text(selected) != normalize_fragment(match.value):
            return self.name, []
        return self.name, selected


class CharacterSequenceStrategy(LocatorStrategy):
    name = CHARACTER_SEQUENCE
    weight = STRATEGY_WEIGHTS[CHARACTER_SEQUENCE]

    def find_glyphs(self, match, page):
        return self.name, page.text_index().find(match.value)


class ContextBasedStrategy(LocatorStrategy):
    """Finds the value among glyphs that follow the field's label."""

    name = CONTEXT_BASED
    weight = STRATEGY_WEIGHTS[CONTEXT_BASED]
    separator = ":"

    def find_glyphs(self, match, page):
        label_part, separator, _ = match.full_text.partition(self.separator)
        if not separator or not label_part.strip():
            return self.name, []
        label = label_part.strip() + separator

        label_glyphs = self._find_label(label, match, page)
        if not label_glyphs:
            return self.name, []

        anchor = label_glyphs[-1]
        end_x = anchor.end_x
        following = [
            glyph
            for glyph in page.glyphs
            if glyph.x >= end_x - self.tolerance and glyph.y <= anchor.y + self.tolerance
        ]
        return self.name, find_glyph_sequence(following, match.value, casefold=True)

    def _find_label(self, label: str, match: FieldMatch, page: PageGlyphs) -> List[GlyphRecord]:
        windows = list(page.text_index(casefold=True).windows(label, overlapping=False))
        if not windows:
            return []
        # Use the same occurrence of the label as the one the regex matched.
        occurrence = _count_occurrences(page.text[: match.full_start], label)
        indices = windows[min(occurrence, len(windows) - 1)]
        return [page.glyphs[index] for index in indices]


def _count_occurrences(text: str, label: str) -> int:
    haystack = normalize_fragment(text, casefold=True)
    needle = normalize_fragment(label, casefold=True)
    if not needle:
        return 0
    return haystack.count(needle)


PatternFinder = Callable[[FieldMatch, PageGlyphs, float], List[GlyphRecord]]


def _is_word_char(text: str) -> bool:
    return bool(text) and text.isalnum()


def _separated(left: Optional[GlyphRecord], right: Optional[GlyphRecord], tolerance: float) -> bool:
    if left is None or right is None:
        return True
    left_text = normalize_fragment(left.text)
    right_text = normalize_fragment(right.text)
    if not left_text or not right_text:
        return True
    if not (_is_word_char(left_text[-1]) and _is_word_char(right_text[0])):
        return True
    if abs(left.y - right.y) > tolerance:
        return True
    gap = right.x - left.end_x
    return gap > max(left.font_size, right.font_size) * WORD_GAP_RATIO


def find_name_glyphs(match: FieldMatch, page: PageGlyphs, tolerance: float) -> List[GlyphRecord]:
    glyphs = page.glyphs

    def on_word_boundary(first: int, last: int) -> bool:
        before = glyphs[first - 1] if first > 0 else None
        after = glyphs[last + 1] if last + 1 < len(glyphs) else None
        return _separated(before, glyphs[first], tolerance) and _separated(glyphs[last], after, tolerance)

    return page.text_index(casefold=True).find(match.value, on_word_boundary)


def find_email_glyphs(match: FieldMatch, page: PageGlyphs, tolerance: float) -> List[GlyphRecord]:
    needle = normalize_fragment(match.value, casefold=True)
    local_length = needle.find("@")
    if local_length <= 0:
        return find_generic_glyphs(match, page, tolerance)

    fragments = page.text_index(casefold=True).fragments
    for anchor, fragment in enumerate(fragments):
        if "@" not in fragment:
            continue
        remaining = local_length - fragment.index("@")
        if remaining < 0:
            continue
        start = _walk_back(fragments, anchor, remaining)
        if start is None:
            continue
        indices = match_window_at(fragments, needle, start)
        if indices is not None:
            return [page.glyphs[index] for index in indices]
    return []


def _walk_back(fragments: Sequence[str], anchor: int, length: int) -> Optional[int]:
    """Index of the glyph that starts ``length`` characters before ``anchor``'s text."""
    consumed = 0
    index = anchor
    while index > 0 and consumed < length:
        index -= 1
        consumed += len(fragments[index])
    if consumed != length:
        return None
    return index


def find_generic_glyphs(match: FieldMatch, page: PageGlyphs, tolerance: float) -> List[GlyphRecord]:
    return page.text_index(casefold=True).find(match.value)


PATTERN_FINDERS: Dict[str, Tuple[str, PatternFinder]] = {
    "name": ("Name-Pattern", find_name_glyphs),
    "email": ("Email-Pattern", find_email_glyphs),
}
GENERIC_PATTERN = ("Generic-Pattern", find_generic_glyphs)


class PatternBasedStrategy(LocatorStrategy):
    name = "Pattern-Based"
    weight = DEFAULT_STRATEGY_WEIGHT

    def __init__(
        self,
        tolerance: float = POSITION_TOLERANCE,
        finders: Optional[Dict[str, Tuple[str, PatternFinder]]] = None,
    ) -> None:
        super().__init__(tolerance)
        self.finders = dict(PATTERN_FINDERS if finders is None else finders)

    def find_glyphs(self, match, page):
        key = match.field_id.strip().rstrip(":").strip().lower()
        tag, finder = self.finders.get(key, GENERIC_PATTERN)
        return tag, finder(match, page, self.tolerance)


def default_strategies(tolerance: float = POSITION_TOLERANCE) -> List[LocatorStrategy]:
    return [
        IndexBasedStrategy(tolerance),
        CharacterSequenceStrategy(tolerance),
        ContextBasedStrategy(tolerance),
        PatternBasedStrategy(tolerance),
    ]


@dataclass
class LocateOutcome:
    match: FieldMatch
    selected: Optional[ScoredBounds]
    candidates: List[ScoredBounds] = field(default_factory=list)

    @property
    def bounds(self) -> Optional[PrecisionBounds]:
        return self.selected.bounds if self.selected else None


class MultiStrategyLocator:
    """Runs every registered strategy for a match and keeps the best-scoring bounds."""

    def __init__(
        self,
        strategies: Optional[Sequence[LocatorStrategy]] = None,
        selector: Optional[BoundsSelector] = None,
        *,
        max_workers: int = 0,
        tolerance: float = POSITION_TOLERANCE,
    ) -> None:
        self.logger = get_logger(__name__)
        self.strategies: List[LocatorStrategy] = list(strategies or default_strategies(tolerance))
        self.selector = selector or BoundsSelector()
        self.max_workers = max_workers

    def register(self, strategy: LocatorStrategy) -> None:
        self.strategies.append(strategy)

    def evaluate(self, match: FieldMatch, page: PageGlyphs) -> List[Optional[PrecisionBounds]]:
        """Candidate bounds in registration order, ``None`` where a strategy failed."""
        if self.max_workers > 1 and len(self.strategies) > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                return list(executor.map(lambda strategy: self._run(strategy, match, page), self.strategies))
        return [self._run(strategy, match, page) for strategy in self.strategies]

    def locate(self, match: FieldMatch, page: PageGlyphs) -> LocateOutcome:
        results = self.evaluate(match, page)
        candidates = [
            self.selector.score(bounds, strategy.weight)
            for strategy, bounds in zip(self.strategies, results)
            if bounds is not None
        ]
        selected = self.selector.select(candidates)

        for candidate in candidates:
            self.logger.debug(
                f"Bounds score {candidate.score:.2f} for {candidate.bounds.strategy}",
                extra={"field_id": match.field_id, "bounds": candidate.bounds.to_dict()},
            )
        if selected is not None:
            self.logger.debug(f"Selected {selected.bounds} for {match.field_id}")
        return LocateOutcome(match=match, selected=selected, candidates=candidates)

    def _run(self, strategy: LocatorStrategy, match: FieldMatch, page: PageGlyphs) -> Optional[PrecisionBounds]:
        try:
            return strategy.locate(match, page)
        except (ValueError, IndexError, KeyError, TypeError) as exc:
            self.logger.warning(
                f"Strategy {strategy.name} failed: {exc}",
                extra={"field_id": match.field_id, "value": match.value},
                exc_info=True,
            )
            return None
