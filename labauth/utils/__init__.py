"""Shared utility functions and models for the lab portal identity core.

This package provides convenience re-exports so that consumers can import
directly from ``labauth.utils`` (e.g. ``from labauth.utils import decode_csv``)
while full absolute imports (e.g. ``from labauth.utils.csv_codec import
decode_csv``) remain supported.
"""

from labauth.utils.audit import AuditEvent, log_audit_event
from labauth.utils.csv_codec import decode_csv, encode_csv, generate_user_template
from labauth.utils.string_helpers import (
    first_non_empty,
    format_role,
    is_blank,
    normalize_email,
)

__all__ = [
    "AuditEvent",
    "decode_csv",
    "encode_csv",
    "first_non_empty",
    "format_role",
    "generate_user_template",
    "is_blank",
    "log_audit_event",
    "normalize_email",
]
