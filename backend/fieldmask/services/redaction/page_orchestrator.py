from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ...utils.exceptions import PageExtractionFailed
from ...utils.logging import get_logger
from .bounds import PrecisionBounds
from .drawing_surface import DrawingSurface
from .field_matcher import FieldMatch, FieldPatternMatcher
from .glyph_collector import GlyphPositionCollector, PageGlyphs
from .locator_strategies import MultiStrategyLocator
from .overlay_builder import OverlayInstruction, RedactionOverlayBuilder, replay
from .settings import RedactionSettings
from .text_source import PageTextSource

FieldBoundsIndex = Dict[str, List[PrecisionBounds]]


@dataclass
class PageRedactionResult:
    page_index: int
    field_bounds: FieldBoundsIndex = field(default_factory=dict)
    overlays: Dict[str, List[OverlayInstruction]] = field(default_factory=dict)
    omissions: List[FieldMatch] = field(default_factory=list)
    glyph_count: int = 0
    drawn: bool = False

    @property
    def masked_count(self) -> int:
        return sum(len(bounds) for bounds in self.field_bounds.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_index": self.page_index,
            "glyph_count": self.glyph_count,
            "masked_count": self.masked_count,
            "fields": {
                field_id: [bounds.to_dict() for bounds in bounds_list]
                for field_id, bounds_list in self.field_bounds.items()
            },
            "omissions": [
                {"field_id": match.field_id, "value_length": len(match.value), "start": match.start}
                for match in self.omissions
            ],
        }


class PageRedactionOrchestrator:
    """Runs extraction, matching, locating and overlay emission for one page at a time.

    The collector belongs to the orchestrator and is cleared before and after
    every page, so nothing survives from one page into the next (failed pages
    included).
    """

    def __init__(
        self,
        settings: Optional[RedactionSettings] = None,
        *,
        collector: Optional[GlyphPositionCollector] = None,
        matcher: Optional[FieldPatternMatcher] = None,
        locator: Optional[MultiStrategyLocator] = None,
        overlay_builder: Optional[RedactionOverlayBuilder] = None,
    ) -> None:
        self.settings = settings or RedactionSettings()
        self.logger = get_logger(__name__)
        self.collector = collector or GlyphPositionCollector()
        self.matcher = matcher or FieldPatternMatcher(self.settings.field_patterns)
        self.locator = locator or MultiStrategyLocator(
            max_workers=self.settings.max_workers,
            tolerance=self.settings.position_tolerance,
        )
        self.overlay_builder = overlay_builder or RedactionOverlayBuilder(
            filler_char=self.settings.filler_char,
            filler_font=self.settings.filler_font,
            cover_color=self.settings.cover_color,
            filler_color=self.settings.filler_color,
        )

    def analyze_page(
        self,
        source: PageTextSource,
        fields: Optional[Iterable[str]] = None,
        page_index: int = 0,
    ) -> PageRedactionResult:
        self.collector.reset()
        try:
            try:
                source.extract(self.collector)
            except Exception as exc:  # noqa: BLE001 - any extractor fault fails this page only
                raise PageExtractionFailed(page_index, str(exc)) from exc
            page = self.collector.snapshot()
            return self._analyze(page, page_index, fields)
        finally:
            self.collector.reset()

    def redact_page(
        self,
        source: PageTextSource,
        surface: DrawingSurface,
        fields: Optional[Iterable[str]] = None,
        page_index: int = 0,
    ) -> PageRedactionResult:
        result = self.analyze_page(source, fields, page_index)
        if not result.field_bounds:
            self.logger.debug(f"No fields found to mask on page {page_index}")
            return result

        for field_id, instructions in result.overlays.items():
            replay(instructions, surface)
            self.logger.debug(
                f"Masked {len(result.field_bounds[field_id])} occurrence(s) of {field_id}",
                extra={"page_index": page_index},
            )
        result.drawn = True
        return result

    def _analyze(
        self,
        page: PageGlyphs,
        page_index: int,
        fields: Optional[Iterable[str]],
    ) -> PageRedactionResult:
        result = PageRedactionResult(page_index=page_index, glyph_count=len(page))

        matches = self.matcher.find_matches(page.text, fields)
        for match in matches:
            outcome = self.locator.locate(match, page)
            if outcome.bounds is None:
                result.omissions.append(match)
                self.logger.warning(
                    "Field occurrence could not be located on the page",
                    extra={
                        "page_index": page_index,
                        "field_id": match.field_id,
                        "start": match.start,
                        "end": match.end,
                    },
                )
                continue
            result.field_bounds.setdefault(match.field_id, []).append(outcome.bounds)

        for field_id, bounds_list in result.field_bounds.items():
            result.overlays[field_id] = self.overlay_builder.build_all(bounds_list)

        self.logger.info(
            "Page analysed",
            extra={
                "page_index": page_index,
                "glyphs": len(page),
                "matches": len(matches),
                "masked": result.masked_count,
                "omitted": len(result.omissions),
            },
        )
        return result
