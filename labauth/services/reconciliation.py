"""
Identity Reconciliation.

Maps an authenticated ``SessionPrincipal`` to the application's
``ReconciledProfile``.

Strategy:
    - A default profile is always derived from the principal: names and
      avatar come from provider metadata via ordered key fallbacks, the
      role is always ``student`` (never taken from external claims), and
      the account starts active.
    - Without a stored profile the default is authoritative and is the
      candidate for creation.
    - With a stored profile, each stored value wins only when it is present
      (not ``None``, not an empty string), so legacy rows with null columns
      never blank out a sensible default.

Everything here is a pure function of its inputs: no I/O, no clock.
"""

from __future__ import annotations

from typing import Mapping, Optional, Union

from labauth.config import AppConfig
from labauth.models.auth_models import SessionPrincipal
from labauth.models.enums import AuthProvider, UserRole
from labauth.models.user import ReconciledProfile, StoredProfile
from labauth.utils.string_helpers import first_non_empty, is_blank

__all__ = [
    "AVATAR_KEYS",
    "FIRST_NAME_KEYS",
    "LAST_NAME_KEYS",
    "PROVIDER_ID_KEYS",
    "build_default_profile",
    "classify_auth_provider",
    "reconcile",
]

# Metadata claim names in priority order; providers are inconsistent.
FIRST_NAME_KEYS: tuple[str, ...] = ("first_name", "given_name")
LAST_NAME_KEYS: tuple[str, ...] = ("last_name", "family_name")
AVATAR_KEYS: tuple[str, ...] = ("avatar_url", "picture")
PROVIDER_ID_KEYS: tuple[str, ...] = ("provider_id", "sub")

StoredInput = Union[StoredProfile, Mapping[str, object], None]


def classify_auth_provider(principal: SessionPrincipal, config: AppConfig) -> str:
    """Decide which sign-in flow produced *principal*.

    An explicit non-email provider reported by the identity service is used
    as-is.  Otherwise the email domain is looked up in
    ``config.PROVIDER_EMAIL_DOMAINS`` (``gmail.com`` -> ``google``), falling
    back to ``email``.
    """
    reported = principal.provider.strip().lower()
    if reported and reported != AuthProvider.EMAIL:
        return reported
    return config.PROVIDER_EMAIL_DOMAINS.get(principal.email_domain, AuthProvider.EMAIL.value)


def build_default_profile(principal: SessionPrincipal, config: AppConfig) -> ReconciledProfile:
    """The profile a first-time principal would be created with."""
    metadata = principal.user_metadata
    auth_provider = classify_auth_provider(principal, config)

    return ReconciledProfile(
        id=principal.id,
        email=principal.email,
        first_name=first_non_empty(metadata, FIRST_NAME_KEYS) or "",
        last_name=first_non_empty(metadata, LAST_NAME_KEYS) or "",
        role=UserRole.STUDENT,
        profile_image_url=first_non_empty(metadata, AVATAR_KEYS),
        provider_id=first_non_empty(metadata, PROVIDER_ID_KEYS),
        is_active=True,
        auth_provider=auth_provider,
        # OAuth sign-ins are usable immediately; email sign-ups wait for
        # verification.
        registration_completed=auth_provider != AuthProvider.EMAIL,
        profile_completed=False,
        email_verified=(
            auth_provider in config.TRUSTED_OAUTH_PROVIDERS
            or principal.email_confirmed_at is not None
        ),
    )


def reconcile(
    principal: SessionPrincipal,
    stored: StoredInput,
    config: AppConfig,
) -> ReconciledProfile:
    """Merge *stored* over the default profile for *principal*.

    *stored* may be a ``StoredProfile`` or a raw table row; raw rows are
    validated first (a missing ``id`` is taken from the principal).

    The result always carries the principal's ``id``.
    """
    default = build_default_profile(principal, config)
    profile = _coerce_stored(principal, stored)
    if profile is None:
        return default

    merged: dict[str, object] = default.model_dump()
    for field, value in profile.model_dump(exclude={"id"}).items():
        if field in merged and not is_blank(value):
            merged[field] = value
    return ReconciledProfile(**merged)


def _coerce_stored(principal: SessionPrincipal, stored: StoredInput) -> Optional[StoredProfile]:
    if stored is None or isinstance(stored, StoredProfile):
        return stored
    return StoredProfile.model_validate({"id": principal.id, **stored})
