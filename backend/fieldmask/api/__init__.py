from __future__ import annotations

from flask import Blueprint, Flask

from . import redaction_routes


def register_blueprints(app: Flask) -> None:
    api_bp = Blueprint("api", __name__, url_prefix="/api")
    redaction_routes.init_app(api_bp)
    app.register_blueprint(api_bp)
