"""
Profile Provisioning Service.

Runs once per authentication event: looks up the stored profile for the
principal, reconciles it with the defaults derived from the session, and
creates the profile on first sight.

Sync strategy:
    - The merge decision is delegated to :func:`reconcile` (pure).
    - A missing profile is inserted from the reconciled default.
    - An existing profile is never rewritten here; stored values already
      won the merge, and admin-managed columns (``role``, ``is_active``)
      must not be reset by a sign-in.
    - Race condition handling: if the insert fails, retry the lookup once.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from labauth.config import AppConfig
from labauth.logger import StructuredLogger
from labauth.models.auth_models import SessionPrincipal
from labauth.models.forms import ProfileCompletionForm
from labauth.models.user import ReconciledProfile, StoredProfile
from labauth.repositories.user_repository import UserRepository
from labauth.services.base_service import BaseService
from labauth.services.reconciliation import reconcile
from labauth.utils.audit import log_audit_event


class ProfileProvisioningError(Exception):
    """Raised when a profile cannot be read or created in the store."""

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.message: str = message
        self.original_error: Optional[Exception] = original_error
        super().__init__(self.message)


class ProfileProvisioningService(BaseService):
    """Maps authenticated principals to stored application profiles."""

    def __init__(
        self,
        repo: UserRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._config = config

    def ensure_profile(
        self,
        principal: SessionPrincipal,
        login_at: Optional[datetime] = None,
    ) -> ReconciledProfile:
        """Return the reconciled profile for *principal*, creating it if needed.

        Args:
            principal: The authenticated identity.
            login_at: When given, recorded as the profile's ``last_login``.

        Raises:
            ProfileProvisioningError: If the store cannot be read or written.
        """
        try:
            stored = self._repo.get_by_id(principal.id)
        except Exception as exc:
            raise ProfileProvisioningError(
                f"Could not load profile for {principal.email}: {exc}",
                original_error=exc,
            ) from exc

        profile = reconcile(principal, stored, self._config)

        if stored is None:
            stored = self._create_profile(profile)
            profile = reconcile(principal, stored, self._config)

        if login_at is not None:
            self._record_login(principal.id, login_at)

        return profile

    def complete_profile(
        self,
        user_id: str,
        form: ProfileCompletionForm,
    ) -> StoredProfile:
        """Persist the profile-completion form and mark the profile complete.

        Raises:
            ProfileProvisioningError: If the profile is missing or the update
                fails.
        """
        changes: dict[str, object] = form.model_dump(mode="json")
        changes.update(profile_completed=True, registration_completed=True)

        try:
            updated = self._repo.update(user_id, changes)
        except Exception as exc:
            raise ProfileProvisioningError(
                f"Could not complete profile {user_id}: {exc}",
                original_error=exc,
            ) from exc

        if updated is None:
            raise ProfileProvisioningError(f"Profile {user_id} does not exist")

        log_audit_event(
            logger=self._logger,
            action="COMPLETE_PROFILE",
            entity_type="User",
            entity_id=user_id,
            user_id=user_id,
            details={"role": form.role.value},
        )
        return updated

    # ------------------------------------------------------------------
    # Private implementation
    # ------------------------------------------------------------------

    def _create_profile(self, profile: ReconciledProfile) -> StoredProfile:
        self._logger.info(
            "Provisioning: creating profile for %s (ID: %s)", profile.email, profile.id,
        )
        try:
            created = self._repo.insert(profile.to_row())
        except Exception as exc:
            # Possible race: a concurrent sign-in created the row first.
            self._logger.warning(
                "Provisioning: insert failed for %s, retrying lookup. Error: %s",
                profile.email,
                exc,
            )
            try:
                retried = self._repo.get_by_id(profile.id)
            except Exception as retry_exc:
                raise ProfileProvisioningError(
                    f"Failed to create profile for {profile.email}: {retry_exc}",
                    original_error=retry_exc,
                ) from retry_exc
            if retried is None:
                raise ProfileProvisioningError(
                    f"Failed to create profile for {profile.email}",
                    original_error=exc,
                ) from exc
            return retried

        log_audit_event(
            logger=self._logger,
            action="CREATE_PROFILE",
            entity_type="User",
            entity_id=profile.id,
            user_id=profile.id,
            details={
                "email": profile.email,
                "auth_provider": profile.auth_provider,
                "role": profile.role.value,
            },
        )
        return created

    def _record_login(self, user_id: str, login_at: datetime) -> None:
        try:
            self._repo.record_login(user_id, login_at)
        except Exception as exc:
            self._logger.warning(
                "Provisioning: could not record login for %s: %s", user_id, exc,
            )
