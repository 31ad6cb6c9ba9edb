"""
Base Repository.

Provides shared infrastructure for all repositories:
- SupabaseGateway reference
- Logger reference
- Convenience property for the PostgREST client
- Uniform logging of failed store calls
"""

from __future__ import annotations

from typing import Callable, TypeVar

from supabase import Client as SupabaseClient

from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger

T = TypeVar("T")


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, gateway: SupabaseGateway, logger: StructuredLogger) -> None:
        self._gateway = gateway
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client for table operations."""
        return self._gateway.supabase

    def _execute(self, operation: Callable[[], T], *, operation_name: str) -> T:
        """Run a store call, logging and re-raising any failure.

        Repositories never swallow store errors: the service layer decides
        whether a failure is fatal for the operation at hand.

        Parameters
        ----------
        operation:
            Zero-argument callable that performs the PostgREST query.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"get_by_id (users)"``.
        """
        try:
            return operation()
        except Exception as exc:
            self._logger.error(
                "Store operation %s failed: %s", operation_name, exc,
            )
            raise
