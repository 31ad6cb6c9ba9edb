"""
Authentication Pipeline Models.

Pydantic models for the identity side of the core: the principal handed over
by the identity provider, and the password strength result returned to
the UI layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Mapping, Optional, Protocol

from pydantic import BaseModel, ConfigDict, Field


class AuthUserLike(Protocol):
    """Structural type of the user object returned by ``supabase.auth``."""

    id: str
    email: Optional[str]
    app_metadata: Mapping[str, object]
    user_metadata: Mapping[str, object]
    email_confirmed_at: Optional[datetime]


# ---------------------------------------------------------------------------
# Session principal
# ---------------------------------------------------------------------------

class SessionPrincipal(BaseModel):
    """An authenticated identity, before it is mapped to a profile.

    Issued by the identity collaborator and read-only to this core.

    Attributes
    ----------
    id:
        The identity provider's user UUID; also the profile primary key.
    email:
        The email address the identity was authenticated with.
    provider:
        Sign-in provider reported by the identity service (``email``,
        ``google``, ``apple``, ...).
    user_metadata:
        Free-form claims supplied by the provider (``given_name``,
        ``avatar_url``, custom claims, ...).
    email_confirmed_at:
        Set once the identity service has verified the email address.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    provider: str = "email"
    user_metadata: dict[str, object] = Field(default_factory=dict)
    email_confirmed_at: Optional[datetime] = None

    @property
    def email_domain(self) -> str:
        """Lower-cased part after the last ``@`` (empty when absent)."""
        _, _, domain = self.email.rpartition("@")
        return domain.strip().lower()

    @classmethod
    def from_auth_user(cls, user: AuthUserLike) -> "SessionPrincipal":
        """Build a principal from a ``supabase.auth`` user object."""
        app_metadata = user.app_metadata or {}
        return cls(
            id=user.id,
            email=user.email or "",
            provider=str(app_metadata.get("provider") or "email"),
            user_metadata=dict(user.user_metadata or {}),
            email_confirmed_at=user.email_confirmed_at,
        )


# ---------------------------------------------------------------------------
# Password strength
# ---------------------------------------------------------------------------

class PasswordStrength(BaseModel):
    """Score of a candidate password against the five-rule policy.

    ``score`` counts satisfied rules (0-5); ``feedback`` lists a hint for
    every unmet rule in policy order; ``is_valid`` requires all five.
    """

    score: int = Field(ge=0, le=5)
    feedback: list[str] = Field(default_factory=list)
    is_valid: bool = False
    label: str = "Very Weak"
