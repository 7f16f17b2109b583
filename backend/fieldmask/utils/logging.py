from __future__ import annotations

import logging
import os
from typing import Any

from pythonjsonlogger import jsonlogger
import structlog

REDACTION_LOGGER_NAME = "fieldmask.services.redaction"


def configure_logging(app: Any | None = None) -> None:
    """Configure application-wide logging using structlog."""
    log_level = (app.config.get("LOG_LEVEL") if app else os.getenv("FIELDMASK_LOG_LEVEL")) or "INFO"

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    handler.setFormatter(formatter)

    # Replace existing handlers to avoid duplicate logs during reloads
    root_logger.handlers = [handler]

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def configure_audit_logging(app: Any) -> None:
    """Mirror redaction events into a rotating JSON audit file when configured."""
    from logging.handlers import RotatingFileHandler
    from pathlib import Path

    audit_path = app.config.get("REDACTION_AUDIT_LOG")
    if not audit_path:
        return

    log_file = Path(audit_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = RotatingFileHandler(
        str(log_file),
        maxBytes=10_000_000,  # 10MB
        backupCount=5,
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    redaction_logger = logging.getLogger(REDACTION_LOGGER_NAME)
    redaction_logger.addHandler(file_handler)
    redaction_logger.setLevel(app.config.get("REDACTION_LOG_LEVEL") or logging.INFO)

    app.logger.info(f"Redaction audit logging configured: {log_file}")
