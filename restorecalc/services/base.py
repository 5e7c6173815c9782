from __future__ import annotations

"""Service base class carrying a logger."""

import logging
from restorecalc.core.logger import Logger


class BaseService:
    """Base class for the session, store and export services."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or Logger.get_logger(__name__)
