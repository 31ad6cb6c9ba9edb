"""
Tests for UserAdminService against the in-memory Supabase fake:
permission checks, bulk import bookkeeping, export and account lifecycle.
"""
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from labauth.database import SupabaseGateway
from labauth.models.user import StoredProfile
from labauth.repositories.user_repository import UserRepository
from labauth.services.users import UserAdminService, build_export_row

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)

IMPORT_CSV = (
    "email,first_name,last_name,role,department\n"
    "ann@lab.edu,Ann,Lee,student,Computer Science\n"
    "bob@lab.edu,Bob,Ray,instructor,\n"
)


def _seed(fake_supabase, *rows: dict) -> None:
    fake_supabase.tables.setdefault("users", []).extend(dict(row) for row in rows)


@pytest.fixture()
def seeded(fake_supabase):
    _seed(
        fake_supabase,
        {
            "id": "admin-1",
            "email": "admin@university.edu",
            "first_name": "Ada",
            "last_name": "Admin",
            "role": "admin",
            "is_active": True,
            "created_at": "2023-01-01T00:00:00+00:00",
            "last_login": "2024-06-01T08:00:00+00:00",
        },
        {
            "id": "staff-1",
            "email": "pat@university.edu",
            "first_name": "Pat",
            "last_name": "Pending",
            "role": "lab_staff",
            "department": "Data Science",
            "is_active": False,
            "created_at": "2024-06-10T00:00:00+00:00",
        },
        {
            "id": "staff-2",
            "email": "old@university.edu",
            "first_name": "Olly",
            "last_name": "Old",
            "role": "instructor",
            "is_active": False,
            "created_at": "2023-03-01T00:00:00+00:00",
            "last_login": "2023-04-01T00:00:00+00:00",
        },
        {
            "id": "student-1",
            "email": "sam@university.edu",
            "first_name": "Sam",
            "last_name": "Student",
            "role": "student",
            "student_id": "CS2024001",
            "is_active": True,
            "created_at": "2024-02-01T00:00:00+00:00",
        },
    )
    return fake_supabase


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------


def test_non_admin_is_rejected_everywhere(admin_service, student_user):
    results = [
        admin_service.list_users(student_user),
        admin_service.import_users(IMPORT_CSV, student_user),
        admin_service.approve_user("x", student_user),
        admin_service.delete_user("x", student_user),
    ]
    assert all(r.success is False and r.status_code == 403 for r in results)


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


def test_list_users_newest_first(admin_service, admin_user, seeded):
    result = admin_service.list_users(admin_user, now=NOW)

    assert result.success is True
    assert [u.id for u in result.data] == ["staff-1", "student-1", "staff-2", "admin-1"]


def test_list_users_status_filters_use_approval_heuristic(admin_service, admin_user, seeded):
    pending = admin_service.list_users(admin_user, status="pending", now=NOW)
    inactive = admin_service.list_users(admin_user, status="inactive", now=NOW)
    active = admin_service.list_users(admin_user, status="active", now=NOW)

    assert [u.id for u in pending.data] == ["staff-1"]
    assert [u.id for u in inactive.data] == ["staff-2"]
    assert {u.id for u in active.data} == {"admin-1", "student-1"}


def test_list_users_search_and_role_filters(admin_service, admin_user, seeded):
    by_search = admin_service.list_users(admin_user, search="cs2024", now=NOW)
    by_role = admin_service.list_users(admin_user, role="instructor", now=NOW)
    by_department = admin_service.list_users(admin_user, department="Data Science", now=NOW)
    everyone = admin_service.list_users(admin_user, role="all", status="all", now=NOW)

    assert [u.id for u in by_search.data] == ["student-1"]
    assert [u.id for u in by_role.data] == ["staff-2"]
    assert [u.id for u in by_department.data] == ["staff-1"]
    assert len(everyone.data) == 4


def test_list_users_reports_store_failure(admin_service, admin_user, fake_supabase):
    fake_supabase.failing_ops.add("select")

    result = admin_service.list_users(admin_user)

    assert result.success is False
    assert result.status_code == 500


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


def test_import_creates_identities_and_profiles(admin_service, admin_user, fake_supabase):
    result = admin_service.import_users(IMPORT_CSV, admin_user)

    assert result.success is True
    assert result.data.created == ["ann@lab.edu", "bob@lab.edu"]
    assert result.data.error_count == 0

    created = fake_supabase.auth.admin.created
    assert [attrs["email"] for attrs in created] == ["ann@lab.edu", "bob@lab.edu"]
    assert all(attrs["email_confirm"] is True for attrs in created)
    assert created[0]["password"] == "TempPassword123!"

    rows = {row["email"]: row for row in fake_supabase.tables["users"]}
    assert rows["ann@lab.edu"]["department"] == "Computer Science"
    assert rows["bob@lab.edu"]["department"] is None
    assert rows["bob@lab.edu"]["role"] == "instructor"
    assert rows["ann@lab.edu"]["profile_completed"] is True


def test_import_skips_duplicates_and_collects_failures(
    admin_service, admin_user, fake_supabase, seeded,
):
    fake_supabase.auth.admin.failing_emails.add("bad@lab.edu")
    csv_text = (
        "email,first_name,last_name,role\n"
        "sam@university.edu,Sam,Again,student\n"
        "new@lab.edu,New,User,student\n"
        "NEW@lab.edu,New,Twice,student\n"
        "bad@lab.edu,Bad,Luck,student\n"
    )

    result = admin_service.import_users(csv_text, admin_user)

    summary = result.data
    assert result.success is True
    assert summary.created == ["new@lab.edu"]
    assert summary.duplicates == ["sam@university.edu", "NEW@lab.edu"]
    assert [f.email for f in summary.failures] == ["bad@lab.edu"]
    assert "already been registered" in summary.failures[0].reason
    assert summary.success_count == 1
    assert summary.error_count == 3
    assert fake_supabase.auth.admin.deleted == []


def test_import_rejects_invalid_file_before_touching_store(
    admin_service, admin_user, fake_supabase,
):
    csv_text = (
        "email,first_name,last_name,role\n"
        "ok@lab.edu,Ok,User,student\n"
        "x@lab.edu,X,Y,wizard\n"
    )

    result = admin_service.import_users(csv_text, admin_user)

    assert result.success is False
    assert result.status_code == 400
    assert 'Invalid role "wizard" in row 3' in result.error
    assert fake_supabase.auth.admin.created == []
    assert fake_supabase.tables.get("users", []) == []


def test_import_reports_missing_headers(admin_service, admin_user):
    result = admin_service.import_users("email,first_name\na@b.com,A\n", admin_user)

    assert result.status_code == 400
    assert result.error == "Missing required headers: last_name, role"


def test_import_requires_configured_store(config, logger, admin_user):
    gateway = SupabaseGateway("", "", logger=logger)
    service = UserAdminService(
        repo=UserRepository(gateway=gateway, logger=logger),
        gateway=gateway,
        config=config,
        logger=logger,
    )

    result = service.import_users(IMPORT_CSV, admin_user)

    assert result.success is False
    assert result.status_code == 503


def test_import_honours_role_id_setting(fake_supabase, gateway, logger, admin_user, config):
    strict = config.model_copy(update={"IMPORT_ENFORCE_ROLE_IDS": True})
    service = UserAdminService(
        repo=UserRepository(gateway=gateway, logger=logger),
        gateway=gateway,
        config=strict,
        logger=logger,
    )

    result = service.import_users(IMPORT_CSV, admin_user)

    assert result.status_code == 400
    assert "student_id" in result.error


def test_import_removes_identity_when_profile_insert_fails(
    admin_service, admin_user, fake_supabase,
):
    fake_supabase.failing_insert_emails.add("ann@lab.edu")

    result = admin_service.import_users(IMPORT_CSV, admin_user)

    summary = result.data
    assert summary.created == ["bob@lab.edu"]
    assert [f.email for f in summary.failures] == ["ann@lab.edu"]
    assert len(fake_supabase.auth.admin.created) == 2
    (removed,) = fake_supabase.auth.admin.deleted
    assert [row["email"] for row in fake_supabase.tables["users"]] == ["bob@lab.edu"]
    assert all(row["id"] != removed for row in fake_supabase.tables["users"])


# ---------------------------------------------------------------------------
# Export / template
# ---------------------------------------------------------------------------


def test_export_row_formats_display_values():
    user = StoredProfile(
        id="u1",
        email="pat@lab.edu",
        first_name="Pat",
        last_name="Lee",
        role="lab_manager",
        is_active=False,
        created_at="2024-02-03T10:00:00+00:00",
    )

    row = build_export_row(user)

    assert row.role == "Lab Manager"
    assert row.is_active == "Inactive"
    assert row.created_at == "2024-02-03"
    assert row.last_login == "Never"


def test_export_users_produces_dated_download(admin_service, admin_user, seeded):
    listed = admin_service.list_users(admin_user, role="student", now=NOW)

    result = admin_service.export_users(listed.data, today=date(2024, 6, 15))

    download = result.data
    assert download.filename == "users-export-2024-06-15.csv"
    assert download.mime_type == "text/csv"
    assert download.row_count == 1
    header, line = download.content.split("\n")
    assert header == (
        "email,first_name,last_name,role,department,employee_id,student_id,"
        "phone_number,is_active,created_at,last_login"
    )
    assert line == "sam@university.edu,Sam,Student,Student,,,CS2024001,,Active,2024-02-01,Never"


def test_export_of_no_users_is_header_only(admin_service):
    download = admin_service.export_users([], today=date(2024, 1, 1)).data
    assert download.row_count == 0
    assert "\n" not in download.content


def test_download_template(admin_service):
    download = admin_service.download_template().data
    assert download.filename == "user-import-template.csv"
    assert download.content.startswith("email,first_name,last_name,role,")


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def test_approve_user_activates_account(admin_service, admin_user, fake_supabase, seeded):
    result = admin_service.approve_user("staff-1", admin_user)

    assert result.success is True
    assert result.data.is_active is True
    stored = next(r for r in fake_supabase.tables["users"] if r["id"] == "staff-1")
    assert stored["is_active"] is True


def test_set_user_active_unknown_user_is_404(admin_service, admin_user, seeded):
    result = admin_service.set_user_active("missing", False, admin_user)
    assert result.status_code == 404


def test_reject_user_deletes_identity_and_profile(
    admin_service, admin_user, fake_supabase, seeded,
):
    result = admin_service.reject_user("staff-1", admin_user)

    assert result.success is True
    assert result.data == {"message": "User registration rejected."}
    assert fake_supabase.auth.admin.deleted == ["staff-1"]
    assert all(r["id"] != "staff-1" for r in fake_supabase.tables["users"])


def test_admin_cannot_delete_self(admin_service, admin_user, fake_supabase, seeded):
    result = admin_service.delete_user("admin-1", admin_user)

    assert result.status_code == 400
    assert fake_supabase.auth.admin.deleted == []


def test_delete_failure_is_reported(admin_service, admin_user, fake_supabase, seeded):
    fake_supabase.failing_ops.add("delete")

    result = admin_service.delete_user("staff-2", admin_user)

    assert result.success is False
    assert result.status_code == 500
