from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from .bounds import PrecisionBounds

INDEX_BASED = "Index-Based"
CHARACTER_SEQUENCE = "Character-Sequence"
CONTEXT_BASED = "Context-Based"
PATTERN_BASED = "Pattern-Based"

STRATEGY_WEIGHTS: Mapping[str, float] = {
    INDEX_BASED: 50.0,
    CHARACTER_SEQUENCE: 40.0,
    CONTEXT_BASED: 30.0,
}
DEFAULT_STRATEGY_WEIGHT = 20.0


@dataclass(frozen=True)
class ScoredBounds:
    bounds: PrecisionBounds
    score: float


def strategy_weight(tag: str, weights: Mapping[str, float] = STRATEGY_WEIGHTS) -> float:
    return weights.get(tag, DEFAULT_STRATEGY_WEIGHT)


def score_bounds(bounds: PrecisionBounds, weight: Optional[float] = None) -> float:
    """Smaller boxes and more contributing glyphs earn more confidence."""
    if weight is None:
        weight = strategy_weight(bounds.strategy)
    score = max(0.0, 100.0 - bounds.area / 10.0)
    score += bounds.glyph_count * 5
    score += weight
    return score


class BoundsSelector:
    def __init__(self, weights: Mapping[str, float] = STRATEGY_WEIGHTS) -> None:
        self.weights = dict(weights)

    def score(self, bounds: PrecisionBounds, weight: Optional[float] = None) -> ScoredBounds:
        if weight is None:
            weight = strategy_weight(bounds.strategy, self.weights)
        return ScoredBounds(bounds=bounds, score=score_bounds(bounds, weight))

    def select(self, candidates: Iterable[Optional[ScoredBounds | PrecisionBounds]]) -> Optional[ScoredBounds]:
        """Pick the best candidate; earlier candidates win ties."""
        best: Optional[ScoredBounds] = None
        for candidate in candidates:
            if candidate is None:
                continue
            scored = candidate if isinstance(candidate, ScoredBounds) else self.score(candidate)
            if best is None or scored.score > best.score:
                best = scored
        return best
