from __future__ import annotations


class RedactionError(Exception):
    """Base class for redaction-related errors."""


class FieldPatternError(RedactionError):
    def __init__(self, field_id: str, message: str):
        super().__init__(f"Field '{field_id}' has an invalid pattern: {message}")
        self.field_id = field_id
        self.message = message


class PageExtractionFailed(RedactionError):
    def __init__(self, page_index: int, message: str):
        super().__init__(f"Text extraction failed on page {page_index}: {message}")
        self.page_index = page_index
        self.message = message


class DocumentReadError(RedactionError):
    pass


class DocumentWriteError(RedactionError):
    pass
