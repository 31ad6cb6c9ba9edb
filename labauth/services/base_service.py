"""
Base Service Class.

Shared constructor for the store-backed services (user administration,
profile provisioning).  The pure components (import validation,
reconciliation, session rules) are plain functions and do not use it.
"""

from __future__ import annotations

from labauth.logger import StructuredLogger


class BaseService:
    """Holds the injected logger as ``self._logger``."""

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger: StructuredLogger = logger
