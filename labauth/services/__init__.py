"""
Business Logic Services Package.

Pure components (CSV import validation, identity reconciliation, session
rules, approval heuristic, password strength) live in their own modules and
need no wiring.  The store-backed services depend on the repository layer.

The ``create_services()`` factory wires every repository and service
together, returning a typed dict that the application layer can consume
without knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from labauth.config import AppConfig
from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger
from labauth.repositories.user_repository import UserRepository
from labauth.services.provisioning import ProfileProvisioningService
from labauth.services.users import UserAdminService


class ServiceContainer(TypedDict):
    """Typed container for all store-backed services."""

    user_repository: UserRepository
    user_admin_service: UserAdminService
    provisioning_service: ProfileProvisioningService


def create_services(
    gateway: SupabaseGateway,
    config: AppConfig,
    logger: StructuredLogger,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.

    Args:
        gateway: Supabase gateway (may be unconfigured; services then
            report the store as unavailable).
        config: Application configuration, injected into every service.
        logger: Structured logger shared by the service layer.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    user_repo = UserRepository(gateway=gateway, logger=logger, table=config.USERS_TABLE)

    return ServiceContainer(
        user_repository=user_repo,
        user_admin_service=UserAdminService(
            repo=user_repo,
            gateway=gateway,
            config=config,
            logger=logger,
        ),
        provisioning_service=ProfileProvisioningService(
            repo=user_repo,
            config=config,
            logger=logger,
        ),
    )
