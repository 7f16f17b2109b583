from __future__ import annotations

import io
from http import HTTPStatus
from pathlib import Path
from typing import List, Optional

from flask import Blueprint, current_app, jsonify, request, send_file
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..services.redaction.document_service import DocumentRedactionService
from ..utils.exceptions import DocumentReadError, DocumentWriteError, FieldPatternError
from ..utils.logging import get_logger

logger = get_logger(__name__)

bp = Blueprint("redactions", __name__, url_prefix="/redactions")


def init_app(api_bp: Blueprint) -> None:
    api_bp.register_blueprint(bp)


def _service() -> DocumentRedactionService:
    return current_app.extensions["fieldmask.redaction_service"]


def _requested_fields() -> Optional[List[str]]:
    """Accept repeated ``fields`` values as well as a comma separated list."""
    fields: List[str] = []
    for raw in request.form.getlist("fields") or request.args.getlist("fields"):
        fields.extend(part.strip() for part in raw.split(",") if part.strip())
    return fields or None


def _error(message: str, status: HTTPStatus):
    return jsonify({"error": message}), status


@bp.errorhandler(FieldPatternError)
def handle_field_pattern_error(exc: FieldPatternError):
    return _error(str(exc), HTTPStatus.BAD_REQUEST)


@bp.errorhandler(DocumentReadError)
def handle_document_read_error(exc: DocumentReadError):
    return _error(str(exc), HTTPStatus.UNPROCESSABLE_ENTITY)


@bp.errorhandler(DocumentWriteError)
def handle_document_write_error(exc: DocumentWriteError):
    logger.error("Failed to write redacted document", exc_info=True)
    return _error(str(exc), HTTPStatus.INTERNAL_SERVER_ERROR)


@bp.get("/fields")
def list_fields():
    service = _service()
    patterns = service.settings.field_patterns
    return jsonify(
        {
            "fields": [
                {"field_id": field_id, "pattern": patterns[field_id]}
                for field_id in service.matcher.field_ids
            ]
        }
    )


@bp.post("")
def redact_document():
    uploaded: FileStorage | None = request.files.get("document")
    if uploaded is None or not uploaded.filename:
        return _error("A PDF must be uploaded as 'document'", HTTPStatus.BAD_REQUEST)

    fields = _requested_fields()
    output, report = _service().redact_bytes(uploaded.read(), fields)

    stem = Path(secure_filename(uploaded.filename) or "document.pdf").stem or "document"
    suffix = current_app.config.get("OUTPUT_FILENAME_SUFFIX", "_masked")
    response = send_file(
        io.BytesIO(output),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=f"{stem}{suffix}.pdf",
    )
    response.headers["X-Fieldmask-Masked"] = str(report.masked_count)
    response.headers["X-Fieldmask-Omitted"] = str(report.omitted_count)
    response.headers["X-Fieldmask-Failed-Pages"] = str(len(report.failures))

    logger.info(
        "Document redacted",
        extra={
            "upload_name": uploaded.filename,
            "pages": report.page_count,
            "masked": report.masked_count,
            "omitted": report.omitted_count,
        },
    )
    return response


@bp.post("/preview")
def preview_document():
    uploaded: FileStorage | None = request.files.get("document")
    if uploaded is None or not uploaded.filename:
        return _error("A PDF must be uploaded as 'document'", HTTPStatus.BAD_REQUEST)

    report = _service().preview_bytes(uploaded.read(), _requested_fields())
    return jsonify(report.to_dict())
