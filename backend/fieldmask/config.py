from __future__ import annotations

import json
import os
from typing import Any, Dict

from .services.redaction.settings import DEFAULT_FIELD_PATTERNS
from .utils.exceptions import FieldPatternError

FIELD_PATTERNS_ENV = "FIELDMASK_FIELD_PATTERNS"


def _parse_field_patterns() -> Dict[str, str]:
    """``FIELDMASK_FIELD_PATTERNS`` holds a JSON object of field id -> regex."""
    raw = os.getenv(FIELD_PATTERNS_ENV)
    if not raw:
        return dict(DEFAULT_FIELD_PATTERNS)
    try:
        patterns = json.loads(raw)
    except ValueError as exc:
        raise FieldPatternError(FIELD_PATTERNS_ENV, f"not valid JSON: {exc}") from exc
    if not isinstance(patterns, dict):
        raise FieldPatternError(FIELD_PATTERNS_ENV, "expected a JSON object of field id to regex")
    return {str(key): str(value) for key, value in patterns.items()}


class BaseConfig:
    SECRET_KEY = os.getenv("FIELDMASK_SECRET_KEY", "dev-secret-key")
    JSON_SORT_KEYS = False
    MAX_CONTENT_LENGTH = int(os.getenv("FIELDMASK_MAX_UPLOAD_MB", "50")) * 1024 * 1024
    LOG_LEVEL = os.getenv("FIELDMASK_LOG_LEVEL", "INFO")
    REDACTION_LOG_LEVEL = os.getenv("FIELDMASK_REDACTION_LOG_LEVEL")
    REDACTION_AUDIT_LOG = os.getenv("FIELDMASK_AUDIT_LOG")
    FIELD_PATTERNS: Dict[str, str] = _parse_field_patterns()
    REDACTION_FILLER_CHAR = os.getenv("FIELDMASK_FILLER_CHAR", "█")
    # Base-14 font name or a path to a TTF/OTF file that contains the filler glyph
    REDACTION_FILLER_FONT = os.getenv("FIELDMASK_FILLER_FONT", "Helvetica-Bold")
    REDACTION_COVER_COLOR = os.getenv("FIELDMASK_COVER_COLOR", "1,1,1")
    REDACTION_FILLER_COLOR = os.getenv("FIELDMASK_FILLER_COLOR", "0,0,0")
    REDACTION_POSITION_TOLERANCE = float(os.getenv("FIELDMASK_POSITION_TOLERANCE", "1.0"))
    REDACTION_MAX_WORKERS = int(os.getenv("FIELDMASK_MAX_WORKERS", "0"))
    OUTPUT_FILENAME_SUFFIX = os.getenv("FIELDMASK_OUTPUT_SUFFIX", "_masked")


class TestConfig(BaseConfig):
    TESTING = True
    LOG_LEVEL = "DEBUG"
    REDACTION_AUDIT_LOG = None
    FIELD_PATTERNS: Dict[str, str] = dict(DEFAULT_FIELD_PATTERNS)


class DevConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = "DEBUG"


config_by_name: Dict[str, Any] = {
    "development": DevConfig,
    "testing": TestConfig,
    "production": BaseConfig,
}


def get_config(config_name: str | None = None):
    if not config_name:
        config_name = os.getenv("FIELDMASK_ENV", "development")
    return config_by_name.get(config_name.lower(), BaseConfig)
