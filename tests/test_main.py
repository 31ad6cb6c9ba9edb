"""Tests for the command-line entry point."""
from __future__ import annotations

from labauth.config import AppConfig
from labauth.utils.csv_codec import generate_user_template
from main import run


def test_template_command_writes_file_without_store(tmp_path):
    output = tmp_path / "template.csv"

    exit_code = run(["template", str(output)], AppConfig(_env_file=None))

    assert exit_code == 0
    assert output.read_text(encoding="utf-8") == generate_user_template()


def test_admin_commands_fail_cleanly_without_store(tmp_path):
    csv_file = tmp_path / "users.csv"
    csv_file.write_text(generate_user_template(), encoding="utf-8")
    config = AppConfig(_env_file=None)

    assert run(["export", "--admin-id", "admin-1", str(tmp_path / "out.csv")], config) == 1
    assert run(["import", "--admin-id", "admin-1", str(csv_file)], config) == 1
    assert not (tmp_path / "out.csv").exists()
