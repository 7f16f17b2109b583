from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

RGB = Tuple[float, float, float]

# Each pattern captures exactly one group: the value to mask.
DEFAULT_FIELD_PATTERNS: Dict[str, str] = {
    "name": r"(?i)\bname[ \t]*:?[ \t]*([A-Za-z][A-Za-z .'\-]*[A-Za-z])",
    "email": r"(?i)\bemail[ \t]*:?[ \t]*([A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,})",
    "phone": r"(?i)\bphone[ \t]*:?[ \t]*([0-9+()][0-9+() \-]{8,13}[0-9])",
    "ssn": r"(?i)\bssn[ \t]*:?[ \t]*([0-9]{3}-?[0-9]{2}-?[0-9]{4})",
    "address": r"(?i)\baddress[ \t]*:?[ \t]*([A-Za-z0-9][A-Za-z0-9 ,.\-]{9,99})",
    "dob": r"(?i)\b(?:dob|date of birth)[ \t]*:?[ \t]*([0-9]{1,2}[/\-][0-9]{1,2}[/\-][0-9]{2,4})",
}

WHITE: RGB = (1.0, 1.0, 1.0)
BLACK: RGB = (0.0, 0.0, 0.0)


def parse_color(value: Any, default: RGB) -> RGB:
    """Accept ``(r, g, b)`` sequences or ``"r,g,b"`` strings with 0..1 components."""
    if value is None or value == "":
        return default
    if isinstance(value, str):
        parts = [part.strip() for part in value.split(",") if part.strip()]
    else:
        parts = list(value)
    if len(parts) != 3:
        raise ValueError(f"Expected three color components, got {value!r}")
    components = tuple(min(1.0, max(0.0, float(part))) for part in parts)
    return components  # type: ignore[return-value]


@dataclass
class RedactionSettings:
    """Per-run configuration for locating and masking field values."""

    field_patterns: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_FIELD_PATTERNS))
    filler_char: str = "█"
    filler_font: str = "Helvetica-Bold"
    cover_color: RGB = WHITE
    filler_color: RGB = BLACK
    position_tolerance: float = 1.0
    max_workers: int = 0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any], patterns: Optional[Mapping[str, str]] = None) -> "RedactionSettings":
        defaults = cls()
        field_patterns = patterns if patterns is not None else config.get("FIELD_PATTERNS")
        return cls(
            field_patterns=dict(field_patterns or defaults.field_patterns),
            filler_char=config.get("REDACTION_FILLER_CHAR") or defaults.filler_char,
            filler_font=config.get("REDACTION_FILLER_FONT") or defaults.filler_font,
            cover_color=parse_color(config.get("REDACTION_COVER_COLOR"), defaults.cover_color),
            filler_color=parse_color(config.get("REDACTION_FILLER_COLOR"), defaults.filler_color),
            position_tolerance=float(config.get("REDACTION_POSITION_TOLERANCE") or defaults.position_tolerance),
            max_workers=int(config.get("REDACTION_MAX_WORKERS") or defaults.max_workers),
        )
