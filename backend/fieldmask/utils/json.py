from __future__ import annotations

from typing import Any

import orjson
from flask.json.provider import DefaultJSONProvider

_DEFAULT_OPTIONS = orjson.OPT_INDENT_2


def _fallback(value: Any) -> Any:
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Type is not JSON serializable: {type(value).__name__}")


class ORJSONProvider(DefaultJSONProvider):
    """Flask JSON provider backed by orjson; understands redaction report values."""

    def dumps(self, obj: Any, *, option: int | None = None, **kwargs: Any) -> str:
        opts = option or _DEFAULT_OPTIONS
        return orjson.dumps(obj, default=_fallback, option=opts).decode()

    def loads(self, s: str | bytes | bytearray, **kwargs: Any) -> Any:
        return orjson.loads(s)
