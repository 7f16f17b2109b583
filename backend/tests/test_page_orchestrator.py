from __future__ import annotations

import time

import pytest

from fieldmask.services.redaction.glyph_collector import GlyphRecord
from fieldmask.services.redaction.page_orchestrator import PageRedactionOrchestrator
from fieldmask.services.redaction.scoring import INDEX_BASED
from fieldmask.services.redaction.settings import RedactionSettings
from fieldmask.utils.exceptions import PageExtractionFailed


class StaticTextSource:
    """Replays rows of monospaced glyphs; plain strings are recorded as separators."""

    def __init__(self, *items):
        self.items = items

    def extract(self, collector) -> None:
        for item in self.items:
            if isinstance(item, str):
                collector.record_separator(item)
                continue
            text, y = item
            for i, ch in enumerate(text):
                collector.record_glyph(
                    GlyphRecord(text=ch, x=72.0 + i * 6.0, y=y, width=6.0, height=12.0, font_size=12.0)
                )


class FailingSource:
    def extract(self, collector) -> None:
        collector.record_glyph(GlyphRecord(text="x", x=0, y=0, width=1, height=1, font_size=1))
        raise RuntimeError("content stream is corrupt")


class RecordingSurface:
    def __init__(self) -> None:
        self.calls = []

    def set_fill_color(self, color):
        self.calls.append(("set_fill_color", color))

    def fill_rectangle(self, x, y, width, height):
        self.calls.append(("fill_rectangle", x, y, width, height))

    def set_font(self, family, size):
        self.calls.append(("set_font", family, size))

    def draw_text(self, x, y, text):
        self.calls.append(("draw_text", x, y, text))


def test_page_with_single_name_is_masked():
    orchestrator = PageRedactionOrchestrator()
    surface = RecordingSurface()

    result = orchestrator.redact_page(StaticTextSource(("Name: John Smith", 700.0)), surface, ["name"])

    (bounds,) = result.field_bounds["name"]
    assert bounds.strategy == INDEX_BASED
    assert bounds.x == pytest.approx(107.0)
    assert result.drawn
    assert [call[0] for call in surface.calls] == [
        "set_fill_color",
        "fill_rectangle",
        "set_fill_color",
        "fill_rectangle",
        "set_font",
        "set_fill_color",
        "draw_text",
    ]


def test_absent_field_has_no_entry():
    orchestrator = PageRedactionOrchestrator()
    result = orchestrator.analyze_page(StaticTextSource(("Name: John Smith", 700.0)), ["name", "ssn"])

    assert "ssn" not in result.field_bounds
    assert "ssn" not in result.overlays
    assert list(result.field_bounds) == ["name"]


def test_no_drawing_when_nothing_matches():
    orchestrator = PageRedactionOrchestrator()
    surface = RecordingSurface()

    result = orchestrator.redact_page(StaticTextSource(("Quarterly summary", 700.0)), surface)

    assert result.field_bounds == {}
    assert surface.calls == []
    assert not result.drawn


def test_every_occurrence_is_masked():
    orchestrator = PageRedactionOrchestrator()
    source = StaticTextSource(("Email: a@b.io", 720.0), "\n", ("Email: c@d.io", 700.0))

    result = orchestrator.analyze_page(source, ["email"])

    ys = sorted(bounds.y for bounds in result.field_bounds["email"])
    assert ys == pytest.approx([695.8, 715.8])


def test_value_after_label_wins_over_earlier_identical_text():
    orchestrator = PageRedactionOrchestrator()
    source = StaticTextSource(("Ref John Smith", 720.0), "\n", ("Name: John Smith", 700.0))

    result = orchestrator.analyze_page(source, ["name"])

    (bounds,) = result.field_bounds["name"]
    assert bounds.strategy == INDEX_BASED
    assert bounds.y == pytest.approx(695.8)


def test_repeated_identical_values_map_to_their_own_rows():
    orchestrator = PageRedactionOrchestrator()
    source = StaticTextSource(("Email: a@b.io", 720.0), "\n", ("Email: a@b.io", 700.0))

    result = orchestrator.analyze_page(source, ["email"])

    found = result.field_bounds["email"]
    assert [bounds.strategy for bounds in found] == [INDEX_BASED, INDEX_BASED]
    assert [bounds.y for bounds in found] == pytest.approx([715.8, 695.8])


def test_unlocatable_occurrence_is_recorded_as_omission():
    orchestrator = PageRedactionOrchestrator()
    # Text reaches the collector without any glyph behind it
    result = orchestrator.analyze_page(StaticTextSource("Name: Ghost Writer"), ["name"])

    assert result.field_bounds == {}
    assert [match.value for match in result.omissions] == ["Ghost Writer"]
    assert result.to_dict()["omissions"] == [{"field_id": "name", "value_length": 12, "start": 6}]


def test_extraction_failure_is_reported_and_collector_is_cleared():
    orchestrator = PageRedactionOrchestrator()

    with pytest.raises(PageExtractionFailed) as excinfo:
        orchestrator.analyze_page(FailingSource(), page_index=3)

    assert excinfo.value.page_index == 3
    assert orchestrator.collector.glyphs == ()
    assert orchestrator.collector.text == ""


def test_no_state_leaks_between_pages():
    orchestrator = PageRedactionOrchestrator()
    orchestrator.analyze_page(StaticTextSource(("Name: John Smith", 700.0)), page_index=0)
    with pytest.raises(PageExtractionFailed):
        orchestrator.analyze_page(FailingSource(), page_index=1)

    result = orchestrator.analyze_page(StaticTextSource(("Phone: 555-123-4567", 700.0)), page_index=2)

    assert result.glyph_count == len("Phone: 555-123-4567")
    assert list(result.field_bounds) == ["phone"]


def test_settings_drive_the_overlay():
    settings = RedactionSettings(filler_char="#", filler_font="Courier")
    orchestrator = PageRedactionOrchestrator(settings)
    surface = RecordingSurface()

    orchestrator.redact_page(StaticTextSource(("SSN: 123-45-6789", 700.0)), surface, ["ssn"])

    assert ("set_font", "Courier", 12.0) in surface.calls
    texts = [call[3] for call in surface.calls if call[0] == "draw_text"]
    assert texts and set(texts[0]) == {"#"}


def test_large_page_stays_fast():
    rows = []
    for row in range(150):
        if row:
            rows.append("\n")
        rows.append((f"Email: user{row:03d}@example.com Phone: 555-010-{row:04d}", 800.0 - row * 5.0))
    orchestrator = PageRedactionOrchestrator()

    started = time.perf_counter()
    result = orchestrator.analyze_page(StaticTextSource(*rows), ["email", "phone"])
    elapsed = time.perf_counter() - started

    assert len(result.field_bounds["email"]) == 150
    assert len(result.field_bounds["phone"]) == 150
    assert not result.omissions
    assert elapsed < 20.0, f"page analysis took {elapsed:.1f}s"
