from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Pattern

from ...utils.exceptions import FieldPatternError
from ...utils.logging import get_logger


@dataclass(frozen=True)
class FieldMatch:
    field_id: str
    full_text: str
    value: str
    start: int
    end: int
    full_start: int = 0


def compile_field_patterns(patterns: Mapping[str, str]) -> Dict[str, Pattern[str]]:
    """Compile the field table, rejecting anything without exactly one capturing group."""
    compiled: Dict[str, Pattern[str]] = {}
    for field_id, expression in patterns.items():
        if not field_id:
            raise FieldPatternError(str(field_id), "field identifier must not be empty")
        try:
            pattern = re.compile(expression)
        except (re.error, TypeError) as exc:
            raise FieldPatternError(field_id, str(exc)) from exc
        if pattern.groups != 1:
            raise FieldPatternError(
                field_id,
                f"expected exactly one capturing group, found {pattern.groups}",
            )
        compiled[field_id] = pattern
    return compiled


class FieldPatternMatcher:
    def __init__(self, patterns: Mapping[str, str]) -> None:
        self.logger = get_logger(__name__)
        self._patterns = compile_field_patterns(patterns)
        self._warned_unknown: set[str] = set()

    @property
    def field_ids(self) -> List[str]:
        return list(self._patterns)

    def resolve_fields(self, fields: Optional[Iterable[str]] = None) -> List[str]:
        if fields is None:
            return list(self._patterns)

        selected: List[str] = []
        for field_id in fields:
            if field_id in self._patterns:
                if field_id not in selected:
                    selected.append(field_id)
                continue
            if field_id not in self._warned_unknown:
                self._warned_unknown.add(field_id)
                self.logger.warning(
                    "Ignoring unknown field identifier",
                    extra={"field_id": field_id, "known_fields": list(self._patterns)},
                )
        # Configuration order wins over request order
        return [field_id for field_id in self._patterns if field_id in selected]

    def find_matches(self, text: str, fields: Optional[Iterable[str]] = None) -> List[FieldMatch]:
        matches: List[FieldMatch] = []
        if not text:
            return matches

        for field_id in self.resolve_fields(fields):
            pattern = self._patterns[field_id]
            for found in pattern.finditer(text):
                match = _build_match(field_id, found)
                if match is not None:
                    matches.append(match)
        return matches


def _build_match(field_id: str, found: re.Match[str]) -> Optional[FieldMatch]:
    raw_value = found.group(1)
    if raw_value is None:
        return None
    value = raw_value.strip()
    if not value:
        return None

    # Offsets track the trimmed value, not the raw group
    leading = len(raw_value) - len(raw_value.lstrip())
    start = found.start(1) + leading
    return FieldMatch(
        field_id=field_id,
        full_text=found.group(0),
        value=value,
        start=start,
        end=start + len(value),
        full_start=found.start(0),
    )
