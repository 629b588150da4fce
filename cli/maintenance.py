#!/usr/bin/env python3

from classification.patterns import load_pattern_library
from tools.maintenance import (
    assign_type_categories,
    clear_transfer_categories,
    reclassify_transactions,
    recategorize_all,
)
from logger import get_logger

logger = get_logger()


def cmd_reclassify(args, services):
    """Recompute transaction types from amount, merchant and description."""
    patterns = load_pattern_library(services.config.patterns_file)
    result = reclassify_transactions(services, force=args.force, patterns=patterns)

    logger.info(f"✓ Reclassified: {result.reclassified}")
    logger.info(f"  Unchanged: {result.unchanged}")
    logger.info(f"  Skipped: {result.skipped}")
    logger.info(f"  Failed: {result.failed}")
    for transaction_type, count in sorted(result.breakdown.items()):
        logger.info(f"    {transaction_type}: {count}")


def cmd_assign_type_categories(args, services):
    """Give uncategorized income and investment transactions their category."""
    result = assign_type_categories(services)
    for transaction_type, count in result.updated.items():
        found = "" if result.categories_found[transaction_type] else " (category missing)"
        logger.info(f"✓ {transaction_type}: {count} updated{found}")


def cmd_clear_transfer_categories(args, services):
    """Remove categories from transfer transactions."""
    result = clear_transfer_categories(services)
    logger.info(f"✓ Cleared categories for {result.cleared} transfer transactions")


def cmd_recategorize(args, services):
    """Re-run category assignment over expense transactions."""
    patterns = load_pattern_library(services.config.patterns_file)
    result = recategorize_all(
        services, skip_manual=not args.include_manual, force=args.force, patterns=patterns
    )

    logger.info(f"✓ Recategorized: {result.recategorized}")
    logger.info(f"  Unchanged: {result.unchanged}")
    logger.info(f"  Skipped: {result.skipped}")
    logger.info(f"  Marked for review: {result.marked_for_review}")
    logger.info(f"  Failed: {result.failed}")
    for name, count in result.category_breakdown.most_common():
        logger.info(f"    {name}: {count}")


def setup_parser(subparsers):
    """Setup maintenance subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "maintenance",
        help="Re-run classification over stored transactions",
        description="Maintenance jobs. Each is safe to run repeatedly.",
    )

    maintenance_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available maintenance jobs",
        dest="subcommand",
        required=True,
    )

    reclassify_parser = maintenance_subparsers.add_parser(
        "reclassify", help="Recompute transaction types"
    )
    reclassify_parser.add_argument(
        "--force",
        action="store_true",
        help="Also reclassify returns and types set by hand",
    )
    reclassify_parser.set_defaults(func=cmd_reclassify)

    assign_parser = maintenance_subparsers.add_parser(
        "assign-type-categories",
        help="Backfill Income/Investment categories",
    )
    assign_parser.set_defaults(func=cmd_assign_type_categories)

    clear_parser = maintenance_subparsers.add_parser(
        "clear-transfer-categories",
        help="Remove categories left on transfers",
    )
    clear_parser.set_defaults(func=cmd_clear_transfer_categories)

    recategorize_parser = maintenance_subparsers.add_parser(
        "recategorize", help="Re-run category assignment for expenses"
    )
    recategorize_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-evaluate every expense, not just uncategorized or flagged ones",
    )
    recategorize_parser.add_argument(
        "--include-manual",
        action="store_true",
        help="Also re-evaluate merchants with a learned mapping",
    )
    recategorize_parser.set_defaults(func=cmd_recategorize)
