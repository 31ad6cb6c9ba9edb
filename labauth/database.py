"""
Supabase Gateway.

Owns the single Supabase client used by the repository layer (PostgREST
tables) and by the admin services (``auth.admin`` API).  This module only
manages the client; it contains no query logic.

When the URL or key is empty the client is **not** created.  Accessing
``supabase`` then raises ``RuntimeError``, which the service layer maps to a
"backend unavailable" result.

Usage (dependency injection at startup)::

    from labauth.database import SupabaseGateway
    from labauth.logger import StructuredLogger

    gateway = SupabaseGateway(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )
"""

from __future__ import annotations

from typing import Optional

from supabase import Client as SupabaseClient
from supabase import create_client

from labauth.logger import StructuredLogger


class SupabaseGateway:
    """Holds the Supabase client for the lifetime of the process.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The service-role key (admin operations) or anon key (read-only use).
    logger:
        A ``StructuredLogger`` for structured JSON log output.
    client:
        A pre-built client.  When given, URL and key are ignored; tests use
        this to inject an in-memory fake.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        client: Optional[SupabaseClient] = None,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._supabase: Optional[SupabaseClient] = client

        if self._supabase is not None:
            return

        if supabase_url and supabase_key:
            try:
                self._supabase = create_client(supabase_url, supabase_key)
                self._logger.info("Supabase client initialized.")
            except (ValueError, TypeError) as exc:
                self._logger.warning(
                    "Supabase credential format error: %s. Store access disabled.",
                    exc,
                )
            except Exception as exc:
                self._logger.error(
                    "Unexpected Supabase initialization failure: %s. "
                    "Store access disabled.",
                    exc,
                    exc_info=True,
                )
        else:
            self._logger.warning(
                "Supabase credentials not configured; store access disabled."
            )

    @property
    def supabase(self) -> SupabaseClient:
        """Return the initialised Supabase client.

        Raises
        ------
        RuntimeError
            If the client was not initialised.
        """
        if self._supabase is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Check SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY."
            )
        return self._supabase

    @property
    def is_configured(self) -> bool:
        """``True`` when the Supabase client is available."""
        return self._supabase is not None
