"""
Lab Portal User Administration Entry Point.

Bootstraps the dependency graph via constructor injection and runs one
administrative command.  Every subsystem is wired here; there are no module-level
globals.

Usage::

    python main.py template [OUTPUT]
    python main.py export --admin-id UUID [--role ROLE] [--status STATUS] [OUTPUT]
    python main.py import --admin-id UUID FILE
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from labauth.config import AppConfig, load_config
from labauth.database import SupabaseGateway
from labauth.logger import StructuredLogger, get_logger
from labauth.models.service_models import CsvDownload, ServiceResult
from labauth.models.user import StoredProfile
from labauth.services import ServiceContainer, create_services


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="labauth", description=__doc__.splitlines()[1])
    commands = parser.add_subparsers(dest="command", required=True)

    template = commands.add_parser("template", help="Write the CSV import template")
    template.add_argument("output", nargs="?", type=Path)

    export = commands.add_parser("export", help="Export users to CSV")
    export.add_argument("--admin-id", required=True)
    export.add_argument("--search")
    export.add_argument("--role")
    export.add_argument("--status")
    export.add_argument("--department")
    export.add_argument("output", nargs="?", type=Path)

    import_ = commands.add_parser("import", help="Import users from CSV")
    import_.add_argument("--admin-id", required=True)
    import_.add_argument("file", type=Path)

    return parser


def _write_download(download: CsvDownload, output: Optional[Path], logger: StructuredLogger) -> None:
    target = output or Path(download.filename)
    target.write_text(download.content, encoding="utf-8")
    logger.info("Wrote %d rows to %s", download.row_count, target)


def _load_admin(
    services: ServiceContainer,
    admin_id: str,
    logger: StructuredLogger,
) -> Optional[StoredProfile]:
    try:
        admin = services["user_repository"].get_by_id(admin_id)
    except RuntimeError as exc:
        logger.error("Store unavailable: %s", exc)
        return None
    if admin is None:
        logger.error("No user with id %s", admin_id)
    return admin


def _report(result: ServiceResult, logger: StructuredLogger) -> int:
    if result.success:
        return 0
    logger.error("Command failed (%d): %s", result.status_code, result.error)
    return 1


def run(argv: Sequence[str], config: AppConfig) -> int:
    """Execute one command; returns the process exit code."""
    args = _build_parser().parse_args(argv)
    logger = get_logger("labauth", config)

    gateway = SupabaseGateway(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        logger=get_logger("labauth.database", config),
    )
    services = create_services(gateway=gateway, config=config, logger=logger)
    admin_service = services["user_admin_service"]

    if args.command == "template":
        result = admin_service.download_template()
        if result.success and result.data is not None:
            _write_download(result.data, args.output, logger)
        return _report(result, logger)

    admin = _load_admin(services, args.admin_id, logger)
    if admin is None:
        return 1

    if args.command == "export":
        listed = admin_service.list_users(
            admin,
            search=args.search,
            role=args.role,
            status=args.status,
            department=args.department,
        )
        if not listed.success or listed.data is None:
            return _report(listed, logger)
        result = admin_service.export_users(listed.data)
        if result.success and result.data is not None:
            _write_download(result.data, args.output, logger)
        return _report(result, logger)

    result = admin_service.import_users(args.file.read_text(encoding="utf-8"), admin)
    return _report(result, logger)


def main() -> None:
    """Application entry point."""
    sys.exit(run(sys.argv[1:], load_config()))


if __name__ == "__main__":
    main()
