"""
User Management Service.

Handles the admin console: listing and filtering users, activation,
approval and rejection of pending accounts, deletion, and CSV
import/export.

Architectural notes:
    - Profile rows go through UserRepository.
    - Auth identities are created and deleted through the Supabase Auth
      admin API (``gateway.supabase.auth.admin``); both must stay in step
      because a profile's ``id`` is its identity's UUID.
    - Every method returns a ``ServiceResult``; store exceptions are logged
      and reported, never raised to the caller.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional, Sequence, Union

from labauth.config import AppConfig
from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger
from labauth.models.service_models import (
    CsvDownload,
    ImportFailure,
    ImportSummary,
    ServiceResult,
)
from labauth.models.user import ExportRow, ReconciledProfile, StoredProfile, UserRecord
from labauth.repositories.user_repository import UserRepository
from labauth.services.approval import filter_users
from labauth.services.base_service import BaseService
from labauth.services.user_import import UserImportError, validate_import
from labauth.utils.audit import log_audit_event
from labauth.utils.csv_codec import (
    EXPORT_HEADERS,
    decode_csv,
    encode_csv,
    generate_user_template,
)
from labauth.utils.string_helpers import format_role, normalize_email

Actor = Union[StoredProfile, ReconciledProfile]

TEMPLATE_FILENAME: str = "user-import-template.csv"


def build_export_row(user: StoredProfile) -> ExportRow:
    """Flatten a stored profile into display strings for export."""
    return ExportRow(
        email=user.email or "",
        first_name=user.first_name or "",
        last_name=user.last_name or "",
        role=format_role(user.role) if user.role else "",
        department=user.department or "",
        employee_id=user.employee_id or "",
        student_id=user.student_id or "",
        phone_number=user.phone_number or "",
        is_active="Inactive" if user.is_active is False else "Active",
        created_at=user.created_at.date().isoformat() if user.created_at else "",
        last_login=user.last_login.date().isoformat() if user.last_login else "Never",
    )


def build_import_row(user_id: str, record: UserRecord) -> dict[str, object]:
    """Profile columns for an account created by bulk import."""
    return {
        "id": user_id,
        "email": record.email,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "role": record.role.value,
        "department": record.department,
        "employee_id": record.employee_id,
        "student_id": record.student_id,
        "phone_number": record.phone_number,
        "auth_provider": "email",
        "registration_completed": True,
        "profile_completed": True,
        "email_verified": True,
        "is_active": True,
    }


class UserAdminService(BaseService):
    """Service layer for admin user management operations."""

    def __init__(
        self,
        repo: UserRepository,
        gateway: SupabaseGateway,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._gateway = gateway
        self._config = config

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def list_users(
        self,
        current_user: Actor,
        *,
        search: Optional[str] = None,
        role: Optional[str] = None,
        status: Optional[str] = None,
        department: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ServiceResult[list[StoredProfile]]:
        """Fetch all users, newest first, with the console filters applied."""
        denied = self._require_admin(current_user)
        if denied is not None:
            return denied

        try:
            users = self._repo.get_all()
        except RuntimeError:
            return self._unavailable()
        except Exception as exc:
            return ServiceResult(
                success=False,
                error=f"Database error fetching users: {exc}",
                status_code=500,
            )

        filtered = filter_users(
            users,
            now or datetime.now(timezone.utc),
            search=search,
            role=role,
            status=status,
            department=department,
            window_days=self._config.APPROVAL_WINDOW_DAYS,
        )
        return ServiceResult(success=True, data=filtered)

    # ------------------------------------------------------------------
    # Status changes
    # ------------------------------------------------------------------

    def set_user_active(
        self,
        user_id: str,
        is_active: bool,
        current_user: Actor,
    ) -> ServiceResult[StoredProfile]:
        """Activate or deactivate an account."""
        return self._change_status(
            user_id,
            is_active,
            current_user,
            action="ACTIVATE_USER" if is_active else "DEACTIVATE_USER",
        )

    def approve_user(self, user_id: str, current_user: Actor) -> ServiceResult[StoredProfile]:
        """Approve a pending account (activates it)."""
        return self._change_status(user_id, True, current_user, action="APPROVE_USER")

    def reject_user(self, user_id: str, current_user: Actor) -> ServiceResult[dict[str, str]]:
        """Reject a pending registration by deleting the account."""
        result = self.delete_user(user_id, current_user)
        if result.success:
            log_audit_event(
                logger=self._logger,
                action="REJECT_USER",
                entity_type="User",
                entity_id=user_id,
                user_id=current_user.id,
            )
            result = ServiceResult(
                success=True,
                data={"message": "User registration rejected."},
            )
        return result

    def delete_user(self, user_id: str, current_user: Actor) -> ServiceResult[dict[str, str]]:
        """Delete the auth identity, then the profile row."""
        denied = self._require_admin(current_user)
        if denied is not None:
            return denied
        if user_id == current_user.id:
            return ServiceResult(
                success=False,
                error="Administrators cannot delete their own account.",
                status_code=400,
            )

        try:
            self._gateway.supabase.auth.admin.delete_user(user_id)
            self._repo.delete(user_id)
        except RuntimeError:
            return self._unavailable()
        except Exception as exc:
            self._logger.error("Failed to delete user %s: %s", user_id, exc)
            return ServiceResult(
                success=False,
                error=f"Could not delete user: {exc}",
                status_code=500,
            )

        log_audit_event(
            logger=self._logger,
            action="DELETE_USER",
            entity_type="User",
            entity_id=user_id,
            user_id=current_user.id,
        )
        return ServiceResult(success=True, data={"message": "User deleted successfully."})

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def import_users(self, csv_text: str, current_user: Actor) -> ServiceResult[ImportSummary]:
        """Create accounts for every valid row of *csv_text*.

        The file is validated as a whole first; a structural or row error
        rejects it with status 400 before any account is touched.  After
        that, each user is handled independently: emails already present in
        the store or earlier in the file are skipped as duplicates, and a
        store failure for one user does not stop the others.
        """
        denied = self._require_admin(current_user)
        if denied is not None:
            return denied

        try:
            records = validate_import(
                decode_csv(csv_text),
                enforce_role_ids=self._config.IMPORT_ENFORCE_ROLE_IDS,
                logger=self._logger,
            )
        except UserImportError as exc:
            self._logger.warning("Rejected user import: %s", exc.message)
            return ServiceResult(success=False, error=exc.message, status_code=400)

        if not self._gateway.is_configured:
            return self._unavailable()

        summary = ImportSummary()
        seen: set[str] = set()

        for record in records:
            key = normalize_email(record.email)
            if key in seen:
                summary.duplicates.append(record.email)
                continue
            seen.add(key)

            user_id: Optional[str] = None
            try:
                if self._repo.get_by_email(key) is not None:
                    summary.duplicates.append(record.email)
                    continue
                user_id = self._create_auth_user(record)
                self._repo.insert(build_import_row(user_id, record))
            except Exception as exc:
                self._logger.error("Error importing user %s: %s", record.email, exc)
                if user_id is not None:
                    self._remove_auth_user(user_id, record.email)
                summary.failures.append(ImportFailure(email=record.email, reason=str(exc)))
                continue

            summary.created.append(record.email)
            log_audit_event(
                logger=self._logger,
                action="IMPORT_USER",
                entity_type="User",
                entity_id=user_id,
                user_id=current_user.id,
                details={"email": record.email, "role": record.role.value},
            )

        self._logger.info(
            "Import completed: %d users imported, %d errors",
            summary.success_count,
            summary.error_count,
        )
        return ServiceResult(success=True, data=summary)

    def export_users(
        self,
        users: Sequence[StoredProfile],
        *,
        today: Optional[date] = None,
    ) -> ServiceResult[CsvDownload]:
        """Serialise *users* (typically a filtered ``list_users`` result)."""
        rows = [build_export_row(user) for user in users]
        stamp = (today or datetime.now(timezone.utc).date()).isoformat()
        download = CsvDownload(
            filename=f"users-export-{stamp}.csv",
            content=encode_csv(rows, EXPORT_HEADERS),
            row_count=len(rows),
        )
        self._logger.info("Exported %d users", len(rows))
        return ServiceResult(success=True, data=download)

    def download_template(self) -> ServiceResult[CsvDownload]:
        return ServiceResult(
            success=True,
            data=CsvDownload(
                filename=TEMPLATE_FILENAME,
                content=generate_user_template(),
                row_count=1,
            ),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_admin(self, current_user: Actor) -> Optional[ServiceResult]:
        if current_user.role not in self._config.ADMIN_ROLES:
            return ServiceResult(
                success=False,
                error="You do not have permission to access user management.",
                status_code=403,
            )
        return None

    def _unavailable(self) -> ServiceResult:
        self._logger.error("Supabase client not initialized for user management.")
        return ServiceResult(
            success=False,
            error="Supabase credentials not configured.",
            status_code=503,
        )

    def _change_status(
        self,
        user_id: str,
        is_active: bool,
        current_user: Actor,
        *,
        action: str,
    ) -> ServiceResult[StoredProfile]:
        denied = self._require_admin(current_user)
        if denied is not None:
            return denied

        try:
            updated = self._repo.set_active(user_id, is_active)
        except RuntimeError:
            return self._unavailable()
        except Exception as exc:
            return ServiceResult(
                success=False,
                error=f"Failed to update user status: {exc}",
                status_code=500,
            )

        if updated is None:
            return ServiceResult(success=False, error="User not found.", status_code=404)

        log_audit_event(
            logger=self._logger,
            action=action,
            entity_type="User",
            entity_id=user_id,
            user_id=current_user.id,
            details={"is_active": is_active},
        )
        return ServiceResult(success=True, data=updated)

    def _create_auth_user(self, record: UserRecord) -> str:
        """Create a confirmed email/password identity and return its id."""
        response = self._gateway.supabase.auth.admin.create_user({
            "email": record.email,
            "password": self._config.IMPORT_TEMPORARY_PASSWORD.get_secret_value(),
            "email_confirm": True,
            "user_metadata": {
                "first_name": record.first_name,
                "last_name": record.last_name,
                "role": record.role.value,
            },
        })
        return response.user.id

    def _remove_auth_user(self, user_id: str, email: str) -> None:
        """Delete an identity whose profile row could not be created."""
        try:
            self._gateway.supabase.auth.admin.delete_user(user_id)
        except Exception as exc:
            self._logger.error(
                "Could not remove orphaned auth user %s (%s): %s", user_id, email, exc,
            )
