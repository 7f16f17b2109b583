from __future__ import annotations

from .bounds import PrecisionBounds, compute_precision_bounds
from .document_service import DocumentRedactionService, RedactionReport
from .field_matcher import FieldMatch, FieldPatternMatcher
from .glyph_collector import GlyphPositionCollector, GlyphRecord, PageGlyphs
from .locator_strategies import (
    CharacterSequenceStrategy,
    ContextBasedStrategy,
    IndexBasedStrategy,
    LocatorStrategy,
    MultiStrategyLocator,
    PatternBasedStrategy,
    default_strategies,
)
from .overlay_builder import RedactionOverlayBuilder
from .page_orchestrator import PageRedactionOrchestrator, PageRedactionResult
from .scoring import BoundsSelector, score_bounds
from .settings import DEFAULT_FIELD_PATTERNS, RedactionSettings

__all__ = [
    "BoundsSelector",
    "CharacterSequenceStrategy",
    "ContextBasedStrategy",
    "DEFAULT_FIELD_PATTERNS",
    "DocumentRedactionService",
    "FieldMatch",
    "FieldPatternMatcher",
    "GlyphPositionCollector",
    "GlyphRecord",
    "IndexBasedStrategy",
    "LocatorStrategy",
    "MultiStrategyLocator",
    "PageGlyphs",
    "PageRedactionOrchestrator",
    "PageRedactionResult",
    "PatternBasedStrategy",
    "PrecisionBounds",
    "RedactionOverlayBuilder",
    "RedactionReport",
    "RedactionSettings",
    "compute_precision_bounds",
    "default_strategies",
    "score_bounds",
]
