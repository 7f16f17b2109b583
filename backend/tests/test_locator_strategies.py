from __future__ import annotations

import pytest

from fieldmask.services.redaction.field_matcher import FieldMatch, FieldPatternMatcher
from fieldmask.services.redaction.glyph_collector import GlyphPositionCollector, GlyphRecord, PageGlyphs
from fieldmask.services.redaction.locator_strategies import (
    CharacterSequenceStrategy,
    ContextBasedStrategy,
    IndexBasedStrategy,
    LocatorStrategy,
    MultiStrategyLocator,
    PatternBasedStrategy,
    find_email_glyphs,
    find_name_glyphs,
)
from fieldmask.services.redaction.scoring import CHARACTER_SEQUENCE, CONTEXT_BASED, INDEX_BASED
from fieldmask.services.redaction.settings import DEFAULT_FIELD_PATTERNS


def _page(*rows: tuple[str, float], separator: str | None = None) -> PageGlyphs:
    """Monospaced rows starting at x=72 with a 6pt advance and 12pt font."""
    collector = GlyphPositionCollector()
    for row_index, (text, y) in enumerate(rows):
        if row_index and separator:
            collector.record_separator(separator)
        for i, ch in enumerate(text):
            collector.record_glyph(
                GlyphRecord(text=ch, x=72.0 + i * 6.0, y=y, width=6.0, height=12.0, font_size=12.0)
            )
    return collector.snapshot()


def _first_match(page: PageGlyphs, field_id: str) -> FieldMatch:
    matcher = FieldPatternMatcher({field_id: DEFAULT_FIELD_PATTERNS[field_id]})
    return matcher.find_matches(page.text)[0]


def test_index_based_selects_value_glyphs():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    bounds = IndexBasedStrategy().locate(match, page)

    assert bounds is not None
    assert bounds.strategy == INDEX_BASED
    assert bounds.glyph_count == 10
    assert bounds.x == pytest.approx(107.0)
    assert bounds.width == pytest.approx(62.0)
    assert bounds.y == pytest.approx(695.8)
    assert bounds.height == pytest.approx(14.4)


def test_index_and_sequence_agree_when_offsets_are_aligned():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    by_index = IndexBasedStrategy().locate(match, page)
    by_sequence = CharacterSequenceStrategy().locate(match, page)

    assert by_sequence.strategy == CHARACTER_SEQUENCE
    assert abs(by_index.x - by_sequence.x) <= 2.0
    assert abs(by_index.right - by_sequence.right) <= 2.0
    assert by_index.y == pytest.approx(by_sequence.y)


def test_index_based_follows_offsets_across_separators():
    page = _page(("Ref John Smith", 720.0), ("Name: John Smith", 700.0), separator="\n")
    match = _first_match(page, "name")

    bounds = IndexBasedStrategy().locate(match, page)

    assert page.text[match.start : match.end] == "John Smith"
    assert bounds.y == pytest.approx(695.8)
    assert bounds.x == pytest.approx(107.0)


def test_index_based_rejects_offsets_that_disagree_with_glyphs():
    page = _page(("Name: John Smith", 700.0))
    shifted = FieldMatch("name", "Name: John Smith", "John Smith", start=0, end=10)

    assert IndexBasedStrategy().locate(shifted, page) is None


def test_index_based_fails_past_the_glyph_stream():
    page = _page(("Name", 700.0))
    match = FieldMatch("name", "Name: Ghost", "Ghost", start=20, end=25)

    assert IndexBasedStrategy().locate(match, page) is None


def test_context_strategy_uses_the_value_after_the_label():
    page = _page(("John Smith met us. ", 750.0), ("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    by_index = IndexBasedStrategy().locate(match, page)
    by_context = ContextBasedStrategy().locate(match, page)
    by_sequence = CharacterSequenceStrategy().locate(match, page)

    assert by_index.y == pytest.approx(695.8)
    assert by_index.x == pytest.approx(107.0)
    assert by_context.strategy == CONTEXT_BASED
    assert by_context.y == pytest.approx(695.8)
    assert by_context.x == pytest.approx(107.0)
    # Plain sequence search stops at the first occurrence on the page
    assert by_sequence.y == pytest.approx(745.8)


def test_context_strategy_picks_the_label_occurrence_of_the_match():
    page = _page(("Name: Ann Lee", 750.0), ("Name: Bob Ray", 700.0), separator="\n")
    matcher = FieldPatternMatcher({"name": DEFAULT_FIELD_PATTERNS["name"]})
    second = matcher.find_matches(page.text)[1]

    bounds = ContextBasedStrategy().locate(second, page)

    assert second.value == "Bob Ray"
    assert bounds.y == pytest.approx(695.8)


def test_context_strategy_needs_a_label_separator():
    page = _page(("SSN 123-45-6789", 700.0))
    match = FieldMatch("ssn", "SSN 123-45-6789", "123-45-6789", start=4, end=15)

    assert ContextBasedStrategy().locate(match, page) is None


def test_name_pattern_respects_word_boundaries():
    page = _page(("John Smithe. ", 750.0), ("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    glyphs = find_name_glyphs(match, page, 1.0)
    tag, _ = PatternBasedStrategy().find_glyphs(match, page)

    assert tag == "Name-Pattern"
    assert glyphs and all(glyph.y == 700.0 for glyph in glyphs)


def test_email_pattern_anchors_on_at_sign():
    page = _page(("x jane@example.co; jane@example.com", 700.0))
    match = FieldMatch("email", "Email: jane@example.com", "jane@example.com", start=0, end=16)

    glyphs = find_email_glyphs(match, page, 1.0)

    assert "".join(glyph.text for glyph in glyphs) == "jane@example.com"
    assert glyphs[0].x == pytest.approx(72.0 + 19 * 6.0)


def test_pattern_strategy_falls_back_to_generic_finder():
    page = _page(("Phone: 555-123-4567", 700.0))
    match = _first_match(page, "phone")

    bounds = PatternBasedStrategy().locate(match, page)

    assert bounds.strategy == "Generic-Pattern"
    assert bounds.glyph_count == 12


def test_locator_prefers_index_based_when_everything_succeeds():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    outcome = MultiStrategyLocator().locate(match, page)

    assert outcome.bounds.strategy == INDEX_BASED
    assert [candidate.bounds.strategy for candidate in outcome.candidates] == [
        INDEX_BASED,
        CHARACTER_SEQUENCE,
        CONTEXT_BASED,
        "Name-Pattern",
    ]
    assert outcome.selected.score == pytest.approx(100 - 62.0 * 14.4 / 10 + 10 * 5 + 50)


def test_locator_result_is_deterministic():
    page = _page(("John Smith met us. ", 750.0), ("Name: John Smith", 700.0))
    match = _first_match(page, "name")
    locator = MultiStrategyLocator()

    assert locator.locate(match, page).bounds == locator.locate(match, page).bounds


def test_threaded_evaluation_matches_sequential():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")

    sequential = MultiStrategyLocator().evaluate(match, page)
    threaded = MultiStrategyLocator(max_workers=4).evaluate(match, page)

    assert threaded == sequential


class _BrokenStrategy(LocatorStrategy):
    name = "Broken"

    def find_glyphs(self, match, page):
        raise IndexError("no glyph here")


def test_failing_strategy_counts_as_no_candidate():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")
    locator = MultiStrategyLocator([_BrokenStrategy(), CharacterSequenceStrategy()])

    outcome = locator.locate(match, page)

    assert outcome.bounds.strategy == CHARACTER_SEQUENCE
    assert len(outcome.candidates) == 1


def test_all_strategies_failing_leaves_no_bounds():
    page = _page(("Nothing to see", 700.0))
    match = FieldMatch("name", "Name: Ghost", "Ghost", start=0, end=5)

    assert MultiStrategyLocator().locate(match, page).bounds is None


class _LabelStrategy(LocatorStrategy):
    name = "Label-Only"
    weight = 500.0

    def find_glyphs(self, match, page):
        return self.name, list(page.glyphs[:5])


def test_registered_strategy_is_scored_with_its_weight():
    page = _page(("Name: John Smith", 700.0))
    match = _first_match(page, "name")
    locator = MultiStrategyLocator()
    locator.register(_LabelStrategy())

    outcome = locator.locate(match, page)

    assert [candidate.bounds.strategy for candidate in outcome.candidates][-1] == "Label-Only"
    assert outcome.bounds.strategy == "Label-Only"
    selected = outcome.selected
    assert selected.score == pytest.approx(max(0.0, 100 - selected.bounds.area / 10) + 5 * 5 + 500.0)
