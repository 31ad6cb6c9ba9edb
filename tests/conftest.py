"""
Pytest configuration and shared fixtures.

The store-backed services are exercised against ``FakeSupabase``, an
in-memory stand-in for the Supabase client that supports the chained
PostgREST calls the repository uses (``table().select().eq()...execute()``)
and the two ``auth.admin`` calls the admin service makes.
"""
from __future__ import annotations

import io
import uuid
from types import SimpleNamespace
from typing import Optional

import pytest

from labauth.config import AppConfig
from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger
from labauth.models.auth_models import SessionPrincipal
from labauth.models.user import StoredProfile
from labauth.repositories.user_repository import UserRepository
from labauth.services.provisioning import ProfileProvisioningService
from labauth.services.users import UserAdminService


class FakeResponse:
    def __init__(self, data: object) -> None:
        self.data = data


class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Optional[dict] = None
        self._filters: list[tuple[str, object]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._single = False

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op = "select"
        return self

    def insert(self, row: dict) -> "FakeQuery":
        self._op = "insert"
        self._payload = row
        return self

    def update(self, changes: dict) -> "FakeQuery":
        self._op = "update"
        self._payload = changes
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: object) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = True
        return self

    def _matches(self, row: dict) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def execute(self) -> Optional[FakeResponse]:
        if self._op in self._client.failing_ops:
            # Plain Exception: RuntimeError means "client not configured".
            raise Exception(f"simulated {self._op} failure")

        rows = self._client.tables.setdefault(self._table, [])

        if self._op == "insert":
            row = dict(self._payload or {})
            if row.get("email") in self._client.failing_insert_emails:
                raise Exception("duplicate key value violates unique constraint")
            if any(existing["id"] == row["id"] for existing in rows):
                raise Exception("duplicate key value violates unique constraint")
            row.setdefault("created_at", "2024-01-01T00:00:00+00:00")
            rows.append(row)
            return FakeResponse([dict(row)])

        matched = [row for row in rows if self._matches(row)]

        if self._op == "update":
            for row in matched:
                row.update(self._payload or {})
            return FakeResponse([dict(row) for row in matched])

        if self._op == "delete":
            self._client.tables[self._table] = [row for row in rows if not self._matches(row)]
            return FakeResponse([dict(row) for row in matched])

        if self._order is not None:
            column, desc = self._order
            matched.sort(key=lambda row: row.get(column) or "", reverse=desc)
        if self._single:
            return FakeResponse(dict(matched[0])) if matched else None
        return FakeResponse([dict(row) for row in matched])


class FakeAuthAdmin:
    def __init__(self) -> None:
        self.created: list[dict] = []
        self.deleted: list[str] = []
        self.failing_emails: set[str] = set()

    def create_user(self, attributes: dict) -> SimpleNamespace:
        if attributes["email"] in self.failing_emails:
            raise Exception("A user with this email address has already been registered")
        self.created.append(attributes)
        return SimpleNamespace(user=SimpleNamespace(id=str(uuid.uuid4())))

    def delete_user(self, user_id: str) -> None:
        self.deleted.append(user_id)


class FakeSupabase:
    """Minimal in-memory Supabase client."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {}
        self.failing_ops: set[str] = set()
        self.failing_insert_emails: set[str] = set()
        self.auth = SimpleNamespace(admin=FakeAuthAdmin())

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)


@pytest.fixture()
def config() -> AppConfig:
    return AppConfig(_env_file=None, SUPABASE_URL="https://example.supabase.co")


@pytest.fixture()
def logger() -> StructuredLogger:
    return StructuredLogger(name="labauth.tests", stream=io.StringIO())


@pytest.fixture()
def fake_supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def gateway(fake_supabase: FakeSupabase, logger: StructuredLogger) -> SupabaseGateway:
    return SupabaseGateway("", "", logger=logger, client=fake_supabase)  # type: ignore[arg-type]


@pytest.fixture()
def user_repo(gateway: SupabaseGateway, logger: StructuredLogger) -> UserRepository:
    return UserRepository(gateway=gateway, logger=logger)


@pytest.fixture()
def admin_service(
    user_repo: UserRepository,
    gateway: SupabaseGateway,
    config: AppConfig,
    logger: StructuredLogger,
) -> UserAdminService:
    return UserAdminService(repo=user_repo, gateway=gateway, config=config, logger=logger)


@pytest.fixture()
def provisioning_service(
    user_repo: UserRepository,
    config: AppConfig,
    logger: StructuredLogger,
) -> ProfileProvisioningService:
    return ProfileProvisioningService(repo=user_repo, config=config, logger=logger)


@pytest.fixture()
def admin_user() -> StoredProfile:
    return StoredProfile(
        id="admin-1",
        email="admin@university.edu",
        first_name="Ada",
        last_name="Admin",
        role="admin",
        is_active=True,
    )


@pytest.fixture()
def student_user() -> StoredProfile:
    return StoredProfile(
        id="student-1",
        email="sam@university.edu",
        first_name="Sam",
        last_name="Student",
        role="student",
        is_active=True,
    )


@pytest.fixture()
def principal() -> SessionPrincipal:
    return SessionPrincipal(
        id="u1",
        email="a@b.com",
        user_metadata={"given_name": "Ann"},
    )
