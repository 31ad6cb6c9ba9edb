"""
Service Layer Data Transfer Objects.

Pydantic models for validated output at service boundaries.
Replaces raw dict passing between layers.
"""

from __future__ import annotations

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")

__all__ = [
    "CsvDownload",
    "ImportFailure",
    "ImportSummary",
    "ServiceResult",
]


class ServiceResult(BaseModel, Generic[T]):
    """
    Standard service return envelope.

    All admin service methods return this, providing a consistent contract
    for the caller.  ``status_code`` follows HTTP semantics so a web layer
    can pass it through unchanged.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    status_code: int = 200


# ---------------------------------------------------------------------------
# Import / export payloads
# ---------------------------------------------------------------------------

class ImportFailure(BaseModel):
    """A validated row that could not be turned into an account."""

    email: str
    reason: str


class ImportSummary(BaseModel):
    """Outcome of a bulk import.

    ``created`` lists the emails that received new accounts.  Rows skipped
    because the email already exists (in the store or earlier in the same
    file) are listed under ``duplicates``; store failures under ``failures``.
    """

    created: list[str] = Field(default_factory=list)
    duplicates: list[str] = Field(default_factory=list)
    failures: list[ImportFailure] = Field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.created)

    @property
    def error_count(self) -> int:
        return len(self.duplicates) + len(self.failures)


class CsvDownload(BaseModel):
    """CSV text plus the file name and MIME type a download should use."""

    filename: str
    content: str
    mime_type: str = "text/csv"
    row_count: int = 0
