"""
Logging setup shared by the CLI, the web app and the services.

Records may carry context through ``extra=``: the document ``path`` a message
is about, the validation ``rule`` that produced it, a saved ``model_id`` or
the storage ``uri``. The JSON format emits these as top-level keys; the text
format appends them as ``key=value`` pairs.
"""

import logging
import os
import json
from datetime import datetime, timezone

# Keys lifted from ``LogRecord`` attributes when present
CONTEXT_FIELDS = ("path", "rule", "model_id", "uri")

DEFAULT_TEXT_FMT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s%(context)s"


def record_context(record: logging.LogRecord) -> dict:
    """Return the context fields set on ``record`` through ``extra=``."""
    return {
        key: getattr(record, key)
        for key in CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class ContextFilter(logging.Filter):
    """Render the context fields into ``%(context)s`` for text output."""

    def filter(self, record):
        context = record_context(record)
        record.context = (
            " (" + ", ".join(f"{k}={v}" for k, v in context.items()) + ")"
            if context
            else ""
        )
        return True


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record: timestamp (ISO 8601, UTC), level, name,
    message, plus any context fields.
    """

    def format(self, record):
        record_dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        record_dict.update(record_context(record))
        if record.exc_info:
            record_dict["exception"] = self.formatException(record.exc_info)
        return json.dumps(record_dict, default=str)


class Logger:
    """
    Central logging setup for restorecalc.
    """

    _configured = False

    @staticmethod
    def setup(
        level: int | None = None,
        fmt: str | None = None,
        datefmt: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        """
        Configure the root logger once.

        ``level`` defaults to RESTORECALC_LOG_LEVEL and ``fmt`` to
        RESTORECALC_LOG_FMT; ``fmt="json"`` selects :class:`JSONFormatter`,
        anything else is used as a text format string.
        """
        if Logger._configured:
            return
        if level is None:
            env_level = os.getenv("RESTORECALC_LOG_LEVEL", "INFO").upper()
            effective_level = getattr(logging, env_level, logging.INFO)
        else:
            effective_level = level

        fmt_mode = fmt if fmt is not None else os.getenv("RESTORECALC_LOG_FMT", "")
        root = logging.getLogger()
        root.handlers.clear()

        handler = logging.StreamHandler()
        if fmt_mode.lower() == "json":
            handler.setFormatter(JSONFormatter(datefmt=datefmt))
        else:
            handler.addFilter(ContextFilter())
            handler.setFormatter(
                logging.Formatter(fmt_mode or DEFAULT_TEXT_FMT, datefmt=datefmt)
            )
        root.addHandler(handler)
        root.setLevel(effective_level)
        Logger._configured = True

    @staticmethod
    def get_logger(
        name: str = "restorecalc", *, level: int | None = None, fmt: str | None = None
    ) -> logging.Logger:
        """Return the logger ``name``, configuring logging on first use."""
        Logger.setup(level=level, fmt=fmt)
        return logging.getLogger(name)
