"""
User Repository.

Data access for the hosted ``users`` table via the Supabase PostgREST
client.  Every row leaving this module is validated into a
``StoredProfile``; raw dicts never reach the service layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional

from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger
from labauth.models.user import StoredProfile
from labauth.repositories.base_repository import BaseRepository
from labauth.utils.string_helpers import normalize_email


class UserRepository(BaseRepository):
    """Data access layer for user profiles.

    The primary key is the identity provider's user UUID, so a profile and
    its auth identity always share ``id``.
    """

    TABLE = "users"

    def __init__(
        self,
        gateway: SupabaseGateway,
        logger: StructuredLogger,
        table: Optional[str] = None,
    ) -> None:
        super().__init__(gateway, logger)
        if table:
            self.TABLE = table

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, user_id: str) -> Optional[StoredProfile]:
        """Fetch a profile by primary key, or ``None`` when absent."""
        def _query() -> Optional[StoredProfile]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("id", user_id)
                .maybe_single()
                .execute()
            )
            return _first_or_none(response)

        return self._execute(_query, operation_name=f"get_by_id ({self.TABLE})")

    def get_by_email(self, email: str) -> Optional[StoredProfile]:
        """Fetch a profile by email address (trimmed, lower-cased)."""
        normalized_email = normalize_email(email)

        def _query() -> Optional[StoredProfile]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .eq("email", normalized_email)
                .maybe_single()
                .execute()
            )
            return _first_or_none(response)

        return self._execute(_query, operation_name=f"get_by_email ({self.TABLE})")

    def get_all(self) -> list[StoredProfile]:
        """Fetch every profile, newest first."""
        def _query() -> list[StoredProfile]:
            response = (
                self.supabase.table(self.TABLE)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
            return [StoredProfile.model_validate(row) for row in response.data or []]

        return self._execute(_query, operation_name=f"get_all ({self.TABLE})")

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, row: Mapping[str, object]) -> StoredProfile:
        """Insert a new profile row and return the stored version."""
        def _query() -> StoredProfile:
            response = self.supabase.table(self.TABLE).insert(dict(row)).execute()
            return StoredProfile.model_validate(response.data[0])

        profile = self._execute(_query, operation_name=f"insert ({self.TABLE})")
        self._logger.info("User profile inserted: %s", profile.id)
        return profile

    def update(self, user_id: str, changes: Mapping[str, object]) -> Optional[StoredProfile]:
        """Apply *changes* to one profile; ``None`` when the id is unknown."""
        def _query() -> Optional[StoredProfile]:
            response = (
                self.supabase.table(self.TABLE)
                .update(dict(changes))
                .eq("id", user_id)
                .execute()
            )
            if not response.data:
                return None
            return StoredProfile.model_validate(response.data[0])

        return self._execute(_query, operation_name=f"update ({self.TABLE})")

    def set_active(self, user_id: str, is_active: bool) -> Optional[StoredProfile]:
        return self.update(user_id, {"is_active": is_active})

    def record_login(self, user_id: str, at: datetime) -> Optional[StoredProfile]:
        return self.update(user_id, {"last_login": at.isoformat()})

    def delete(self, user_id: str) -> bool:
        """Hard-delete a profile row.  Returns ``True`` if a row was removed."""
        def _query() -> bool:
            response = (
                self.supabase.table(self.TABLE)
                .delete()
                .eq("id", user_id)
                .execute()
            )
            return bool(response.data)

        deleted = self._execute(_query, operation_name=f"delete ({self.TABLE})")
        if deleted:
            self._logger.info("User profile deleted: %s", user_id)
        return deleted


def _first_or_none(response: object) -> Optional[StoredProfile]:
    # ``maybe_single().execute()`` returns ``None`` instead of an empty
    # response on some client versions.
    data = getattr(response, "data", None) if response is not None else None
    if not data:
        return None
    if isinstance(data, list):
        data = data[0]
    return StoredProfile.model_validate(data)
