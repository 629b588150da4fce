#!/usr/bin/env python3

import sys
from logger import get_logger

logger = get_logger()

ACCOUNT_TYPES = ("checking", "savings", "credit", "brokerage", "loan")


def cmd_list(args, services):
    """List all accounts in the database."""
    accounts = services.accounts.find_all()

    if not accounts:
        logger.info("No accounts found.")
        return

    logger.info("\nAccounts:")
    logger.info("=" * 80)
    for account in accounts:
        logger.info(f"ID: {account.id}")
        logger.info(f"Name: {account.name}")
        logger.info(f"Type: {account.type}")
        logger.info(f"Description: {account.description}")
        logger.info("-" * 80)

    logger.info(f"\nTotal accounts: {len(accounts)}")


def cmd_create(args, services):
    """Create a new account."""
    name = args.name.strip()
    if not name:
        logger.error("Account name cannot be empty.")
        sys.exit(1)

    if services.accounts.find_by_name(name):
        logger.error(f"Account '{name}' already exists.")
        sys.exit(1)

    account = services.accounts.create(name, args.type, args.description)

    logger.info(f"\n✓ Account created successfully with ID: {account.id}")
    logger.info(f"  Name: {account.name}")
    logger.info(f"  Type: {account.type}")
    logger.info(f"  Description: {account.description}")


def cmd_delete(args, services):
    """Delete an account with its imports and transactions."""
    account = services.accounts.find_by_name(args.name)
    if not account:
        logger.error(f"Account '{args.name}' not found.")
        sys.exit(1)

    count = len(services.transactions.find_by_account(account.id))
    if not args.yes:
        confirm = (
            input(f"Delete account '{account.name}' and {count} transaction(s)? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    services.accounts.delete(account.id)
    logger.info(f"✓ Account '{account.name}' deleted ({count} transaction(s) removed)")


def cmd_imports(args, services):
    """List the sync files ingested into an account."""
    account = services.accounts.find_by_name(args.name)
    if not account:
        logger.error(f"Account '{args.name}' not found.")
        sys.exit(1)

    imports = services.data_imports.find_by_account(account.id)
    if not imports:
        logger.info(f"No imports for account '{account.name}'.")
        return

    for data_import in imports:
        source = data_import.filename if data_import.is_archived else "(not archived)"
        count = services.data_imports.count_transactions(data_import.id)
        logger.info(
            f"{data_import.id:>5}  {data_import.created_at:%Y-%m-%d %H:%M}  "
            f"{count:>5} txns  {source}"
        )


def setup_parser(subparsers):
    """Setup accounts subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "accounts",
        help="Manage accounts",
        description="Create, list and delete financial accounts",
    )

    accounts_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available account commands",
        dest="subcommand",
        required=True,
    )

    # accounts list
    list_parser = accounts_subparsers.add_parser("list", help="List all accounts")
    list_parser.set_defaults(func=cmd_list)

    # accounts create
    create_parser = accounts_subparsers.add_parser("create", help="Create a new account")
    create_parser.add_argument("name", help="Account name in [a-z_] form, e.g. chase_checking")
    create_parser.add_argument("--type", required=True, choices=ACCOUNT_TYPES)
    create_parser.add_argument(
        "--description", default="", help="Human readable description"
    )
    create_parser.set_defaults(func=cmd_create)

    # accounts delete
    delete_parser = accounts_subparsers.add_parser(
        "delete", help="Delete an account and its transactions"
    )
    delete_parser.add_argument("name", help="Account name")
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # accounts imports
    imports_parser = accounts_subparsers.add_parser(
        "imports", help="List sync files ingested into an account"
    )
    imports_parser.add_argument("name", help="Account name")
    imports_parser.set_defaults(func=cmd_imports)
