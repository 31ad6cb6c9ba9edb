"""
Application Configuration.

Pydantic Settings model for the lab portal identity core.
All configuration is loaded from environment variables and .env files.
Construct one ``AppConfig`` at the composition root and inject it into the
components that need it; nothing here is cached at module level.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings


class AppConfig(BaseSettings):
    """Central configuration loaded from environment variables and defaults."""

    # --- Supabase ---
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: SecretStr = SecretStr("")
    SUPABASE_SERVICE_ROLE_KEY: SecretStr = SecretStr("")  # Required for auth.admin calls
    USERS_TABLE: str = "users"

    # --- Logging ---
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""  # Empty disables the rotating file handler
    LOG_MAX_BYTES: int = 5_242_880  # 5 MB
    LOG_BACKUP_COUNT: int = 3

    # --- Identity reconciliation ---
    # Consumer webmail domains whose sign-in flow is tied to one provider.
    PROVIDER_EMAIL_DOMAINS: dict[str, str] = Field(default_factory=lambda: {
        "gmail.com": "google",
        "googlemail.com": "google",
        "icloud.com": "apple",
        "me.com": "apple",
        "mac.com": "apple",
    })
    TRUSTED_OAUTH_PROVIDERS: frozenset[str] = frozenset({"google", "apple"})

    # --- User administration ---
    ADMIN_ROLES: frozenset[str] = frozenset({"admin", "super_admin"})
    APPROVAL_WINDOW_DAYS: int = 30
    IMPORT_TEMPORARY_PASSWORD: SecretStr = SecretStr("TempPassword123!")
    IMPORT_ENFORCE_ROLE_IDS: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    @model_validator(mode="after")
    def _warn_missing_env(self) -> "AppConfig":
        """Emit a startup warning when critical configuration is empty."""
        _log = logging.getLogger("labauth.config")

        if not Path(".env").exists():
            _log.warning(
                "No .env file found; all configuration loaded from "
                "environment variables or defaults."
            )

        if not self.SUPABASE_URL:
            _log.warning(
                "SUPABASE_URL is empty; store-backed services will report "
                "the backend as unavailable."
            )

        return self

    @property
    def log_level(self) -> int:
        """Numeric ``logging`` level for ``LOG_LEVEL`` (defaults to INFO)."""
        level = logging.getLevelName(self.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO

    def validate_supabase_config(self) -> None:
        """Validate that the admin-capable Supabase settings are complete.

        Raises:
            ValueError: If the URL or the service-role key is missing.
        """
        if not self.SUPABASE_URL:
            raise ValueError("SUPABASE_URL must be set")
        if not self.SUPABASE_SERVICE_ROLE_KEY.get_secret_value():
            raise ValueError("SUPABASE_SERVICE_ROLE_KEY must be set")


def load_config() -> AppConfig:
    """Build a fresh ``AppConfig`` from the environment and ``.env``."""
    return AppConfig()
