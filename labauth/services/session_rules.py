"""
Session Routing Rules.

Pure decisions the UI layer makes after every authentication event:
whether the profile still needs completing, whether the email still needs
verifying, whether the user may enter the application, and where to send
them next.
"""

from __future__ import annotations

from typing import Optional

from labauth.models.auth_models import SessionPrincipal
from labauth.models.enums import AuthProvider
from labauth.models.user import ReconciledProfile

LOGIN_PATH: str = "/auth/login"
COMPLETE_PROFILE_PATH: str = "/auth/complete-profile"
VERIFY_EMAIL_PATH: str = "/auth/verify-email"
DASHBOARD_PATH: str = "/dashboard"

_TRUSTED_PROVIDERS: frozenset[str] = frozenset({AuthProvider.GOOGLE, AuthProvider.APPLE})


def needs_profile_completion(profile: Optional[ReconciledProfile]) -> bool:
    """OAuth users must fill in their profile; email users must finish
    registration.
    """
    if profile is None:
        return True
    if profile.auth_provider != AuthProvider.EMAIL:
        return (
            not profile.profile_completed
            or not profile.first_name
            or not profile.last_name
            or not profile.role
        )
    return not profile.registration_completed


def needs_email_verification(
    principal: Optional[SessionPrincipal],
    profile: Optional[ReconciledProfile],
) -> bool:
    """Trusted OAuth providers are considered verified; everyone else needs
    both the identity service and the profile to agree.
    """
    if principal is None or profile is None:
        return True
    if profile.auth_provider in _TRUSTED_PROVIDERS:
        return False
    return principal.email_confirmed_at is None or not profile.email_verified


def can_access_application(
    principal: Optional[SessionPrincipal],
    profile: Optional[ReconciledProfile],
) -> bool:
    if principal is None or profile is None:
        return False
    if profile.auth_provider == AuthProvider.EMAIL and needs_email_verification(principal, profile):
        return False
    if needs_profile_completion(profile):
        return False
    return profile.is_active


def get_redirect_path(
    principal: Optional[SessionPrincipal],
    profile: Optional[ReconciledProfile],
) -> str:
    """Next page for a user in the given state."""
    if principal is None:
        return LOGIN_PATH
    if profile is None:
        return COMPLETE_PROFILE_PATH
    if needs_email_verification(principal, profile):
        return VERIFY_EMAIL_PATH
    if needs_profile_completion(profile):
        return COMPLETE_PROFILE_PATH
    return DASHBOARD_PATH


def registration_source_message(profile: Optional[ReconciledProfile]) -> str:
    if profile is None:
        return ""
    if profile.auth_provider == AuthProvider.GOOGLE:
        return "You signed up using Google. Please complete your profile to continue."
    if profile.auth_provider == AuthProvider.APPLE:
        return "You signed up using Apple. Please complete your profile to continue."
    if profile.auth_provider == AuthProvider.EMAIL:
        if not profile.registration_completed:
            return "Please complete your registration by verifying your email address."
        return "Welcome back! You can sign in with your email and password."
    return "Please complete your profile to continue."
