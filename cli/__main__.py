#!/usr/bin/env python3
"""
Ledgerly CLI - command-line interface for classifying and reviewing transactions.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    accounts     Manage accounts
    transactions Import, review and edit transactions
    categories   Manage categories
    merchants    Manage learned merchant mappings
    recurring    Detect and manage recurring charges
    maintenance  Re-run classification over stored transactions
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories seed
    python -m cli accounts create chase_checking --type checking
    python -m cli transactions ingest sync.json --account-name chase_checking
    python -m cli recurring detect
    python -m cli maintenance recategorize
"""

import sys
import argparse
from cli import accounts, transactions, categories, merchants, recurring, maintenance, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Ledgerly - Personal finance transaction intelligence",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    for module in (accounts, transactions, categories, merchants, recurring, maintenance, migrate):
        module.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # migrate works on the raw database; everything else uses services
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
