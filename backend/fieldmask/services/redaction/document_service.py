from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import fitz

from ...utils.exceptions import DocumentReadError, DocumentWriteError, PageExtractionFailed
from ...utils.logging import get_logger
from .drawing_surface import PyMuPDFDrawingSurface
from .field_matcher import FieldPatternMatcher
from .page_orchestrator import PageRedactionOrchestrator, PageRedactionResult
from .settings import RedactionSettings
from .text_source import PyMuPDFPageTextSource


@dataclass
class PageFailure:
    page_index: int
    message: str


@dataclass
class RedactionReport:
    page_count: int = 0
    pages: List[PageRedactionResult] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)

    @property
    def masked_count(self) -> int:
        return sum(page.masked_count for page in self.pages)

    @property
    def omitted_count(self) -> int:
        return sum(len(page.omissions) for page in self.pages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_count": self.page_count,
            "masked_count": self.masked_count,
            "omitted_count": self.omitted_count,
            "pages": [page.to_dict() for page in self.pages if page.field_bounds or page.omissions],
            "failed_pages": [
                {"page_index": failure.page_index, "error": failure.message} for failure in self.failures
            ],
        }


class DocumentRedactionService:
    """Masks configured fields across every page of a PDF."""

    def __init__(self, settings: Optional[RedactionSettings] = None) -> None:
        self.settings = settings or RedactionSettings()
        self.logger = get_logger(__name__)
        self.matcher = FieldPatternMatcher(self.settings.field_patterns)

    def redact_file(
        self,
        input_path: Path | str,
        output_path: Path | str,
        fields: Optional[Iterable[str]] = None,
    ) -> RedactionReport:
        source = Path(input_path)
        if not source.exists():
            raise DocumentReadError(f"Input PDF file not found: {source}")
        try:
            pdf_bytes = source.read_bytes()
        except OSError as exc:
            raise DocumentReadError(f"Unable to read {source}: {exc}") from exc

        output_bytes, report = self.redact_bytes(pdf_bytes, fields)

        destination = Path(output_path)
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(output_bytes)
        except OSError as exc:
            raise DocumentWriteError(f"Unable to write {destination}: {exc}") from exc

        self.logger.info(
            "Masked PDF saved",
            extra={"input": str(source), "output": str(destination), "masked": report.masked_count},
        )
        return report

    def redact_bytes(
        self,
        pdf_bytes: bytes,
        fields: Optional[Iterable[str]] = None,
    ) -> Tuple[bytes, RedactionReport]:
        doc = self._open(pdf_bytes)
        try:
            report = self._process(doc, fields, draw=True)
            try:
                output = doc.tobytes(garbage=4, deflate=True)
            except (RuntimeError, ValueError) as exc:
                raise DocumentWriteError(f"Unable to serialize redacted document: {exc}") from exc
        finally:
            doc.close()
        return output, report

    def preview_bytes(self, pdf_bytes: bytes, fields: Optional[Iterable[str]] = None) -> RedactionReport:
        doc = self._open(pdf_bytes)
        try:
            return self._process(doc, fields, draw=False)
        finally:
            doc.close()

    def validate_masked_pdf(self, original_path: Path | str, masked_path: Path | str) -> bool:
        """Masking only appends overlays, so the page structure must be unchanged."""
        try:
            with fitz.open(original_path) as original, fitz.open(masked_path) as masked:
                if original.page_count != masked.page_count:
                    self.logger.error(
                        "Page count mismatch after masking",
                        extra={"original": original.page_count, "masked": masked.page_count},
                    )
                    return False
        except (OSError, RuntimeError, ValueError) as exc:
            self.logger.error(f"Error validating PDF: {exc}")
            return False
        return True

    def _open(self, pdf_bytes: bytes) -> fitz.Document:
        if not pdf_bytes:
            raise DocumentReadError("Document is empty")
        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except (fitz.FileDataError, RuntimeError, ValueError) as exc:
            raise DocumentReadError(f"Unable to open PDF: {exc}") from exc
        if doc.needs_pass:
            doc.close()
            raise DocumentReadError("Encrypted documents are not supported")
        if doc.page_count == 0:
            doc.close()
            raise DocumentReadError("Document has no pages")
        return doc

    def _process(
        self,
        doc: fitz.Document,
        fields: Optional[Iterable[str]],
        *,
        draw: bool,
    ) -> RedactionReport:
        selected = self.matcher.resolve_fields(fields)
        orchestrator = PageRedactionOrchestrator(self.settings, matcher=self.matcher)
        report = RedactionReport(page_count=doc.page_count)

        self.logger.info(f"Processing PDF with {doc.page_count} pages", extra={"fields": selected})

        for page_index in range(doc.page_count):
            page = doc.load_page(page_index)
            source = PyMuPDFPageTextSource(page, page_index)
            try:
                if draw:
                    result = orchestrator.redact_page(source, PyMuPDFDrawingSurface(page), selected, page_index)
                else:
                    result = orchestrator.analyze_page(source, selected, page_index)
            except PageExtractionFailed as exc:
                self.logger.error(str(exc), extra={"page_index": page_index}, exc_info=True)
                report.failures.append(PageFailure(page_index=page_index, message=exc.message))
                continue
            report.pages.append(result)

        return report
