#!/usr/bin/env python3

from db.manager import (
    apply_migration,
    get_applied_migrations,
    get_available_migrations,
    init_schema_migrations_table,
)
from logger import get_logger

logger = get_logger()


def cmd_status(args, db_manager):
    """Show migration status."""
    db_path = db_manager.get_db_path()

    if not db_path.exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    with db_manager.connect() as conn:
        init_schema_migrations_table(conn)
        applied = get_applied_migrations(conn)
        available = get_available_migrations(db_manager.get_migrations_dir())

        if not available:
            logger.info("No migrations found.")
            return

        logger.info("Migration Status:")
        for migration in available:
            status_text = "APPLIED" if migration in applied else "PENDING"
            logger.info(f"  {migration}: {status_text}")

        pending_count = len([m for m in available if m not in applied])
        logger.info(
            f"\n{len(available)} migrations: {len(applied)} applied, {pending_count} pending"
        )


def cmd_apply(args, db_manager):
    """Apply pending migrations."""
    migrations_dir = db_manager.get_migrations_dir()

    with db_manager.connect() as conn:
        init_schema_migrations_table(conn)
        applied = get_applied_migrations(conn)
        pending = [
            m for m in get_available_migrations(migrations_dir) if m not in applied
        ]

        if not pending:
            logger.info("No pending migrations.")
            return

        logger.info(f"Applying {len(pending)} migration(s)...")
        for migration in pending:
            try:
                apply_migration(conn, migrations_dir, migration)
            except Exception as e:
                logger.error(f"Error applying migration {migration}: {e}")
                raise
            logger.info(f"Applied migration: {migration}")

        logger.info(f"Successfully applied {len(pending)} migration(s).")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Manage database schema migrations",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser(
        "status", help="Show migration status"
    )
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser(
        "apply", help="Apply pending migrations"
    )
    apply_parser.set_defaults(func=cmd_apply)
