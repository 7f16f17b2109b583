from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

load_dotenv(Path.cwd() / ".env")

from .config import get_config
from .utils.json import ORJSONProvider
from .utils.logging import configure_audit_logging, configure_logging


def create_app(config_name: str | None = None) -> Flask:
    config_class = get_config(config_name)
    app = Flask(__name__)
    app.config.from_object(config_class)

    app.json = ORJSONProvider(app)

    configure_logging(app)
    configure_audit_logging(app)

    from .api import register_blueprints
    register_blueprints(app)

    register_error_handlers(app)

    # A bad field pattern fails startup
    from .services.redaction.document_service import DocumentRedactionService
    from .services.redaction.settings import RedactionSettings

    service = DocumentRedactionService(RedactionSettings.from_mapping(app.config))
    app.extensions["fieldmask.redaction_service"] = service
    app.logger.info(f"Redaction service initialized with {len(service.matcher.field_ids)} field patterns")

    return app


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(413)
    def handle_too_large(error):
        return jsonify({"error": "Uploaded document is too large"}), 413

    @app.errorhandler(500)
    def handle_server_error(error):
        app.logger.exception("Unhandled server error")
        return jsonify({"error": "Internal server error"}), 500
