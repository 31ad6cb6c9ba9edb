"""
Data Models Package.

Re-exports the Pydantic models for convenient imports:
    from labauth.models import UserRole, UserRecord, SessionPrincipal
    from labauth.models import StoredProfile, ReconciledProfile, ServiceResult
"""

from labauth.models.auth_models import PasswordStrength, SessionPrincipal
from labauth.models.enums import AuthProvider, UserRole, UserStatus
from labauth.models.service_models import CsvDownload, ImportSummary, ServiceResult
from labauth.models.user import ExportRow, ReconciledProfile, StoredProfile, UserRecord

__all__ = [
    "AuthProvider",
    "CsvDownload",
    "ExportRow",
    "ImportSummary",
    "PasswordStrength",
    "ReconciledProfile",
    "ServiceResult",
    "SessionPrincipal",
    "StoredProfile",
    "UserRecord",
    "UserRole",
    "UserStatus",
]
