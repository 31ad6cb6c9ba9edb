"""
String Helpers.

Small, dependency-free helpers shared by the import, reconciliation and
admin layers: ordered-fallback lookups, email normalisation and role labels.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

__all__ = [
    "first_non_empty",
    "format_role",
    "is_blank",
    "normalize_email",
]


def is_blank(value: object) -> bool:
    """``True`` for ``None`` and for strings that are empty after trimming."""
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def first_non_empty(source: Mapping[str, object], keys: Sequence[str]) -> Optional[str]:
    """Return the first non-blank value of *keys* in *source*, as a string.

    Identity providers disagree on claim names (``given_name`` vs.
    ``first_name``); callers pass the candidates in priority order::

        first_non_empty(metadata, ["first_name", "given_name"])
    """
    for key in keys:
        value = source.get(key)
        if not is_blank(value):
            return str(value)
    return None


def normalize_email(email: str) -> str:
    """Lower-case and trim an email address for lookups and comparisons."""
    return email.strip().lower()


def format_role(role: str) -> str:
    """Human label for a role value: ``lab_manager`` -> ``Lab Manager``."""
    return " ".join(part.capitalize() for part in str(role).split("_") if part)
