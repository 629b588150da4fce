#!/usr/bin/env python3

import sys
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List learned merchant mappings."""
    mappings = services.merchant_mappings.find_all()

    if not mappings:
        logger.info("No merchant mappings found.")
        return

    names = {c.id: c.name for c in services.categories.find_all()}
    for mapping in mappings:
        logger.info(
            f"{mapping.id:>4}  {mapping.original_name:<30} -> {mapping.display_name:<24} "
            f"{names.get(mapping.default_category_id, '-')}"
        )
    logger.info(f"\nTotal mappings: {len(mappings)}")


def cmd_set(args, services):
    """Create or update the mapping for a merchant."""
    category_id = None
    if args.category:
        category = services.categories.find_by_name(args.category)
        if not category:
            logger.error(f"Category '{args.category}' not found.")
            sys.exit(1)
        category_id = category.id

    mapping = services.merchant_mappings.upsert(
        args.merchant, args.display_name or args.merchant, category_id
    )
    logger.info(f"✓ {mapping.original_name} -> {mapping.display_name}")


def cmd_delete(args, services):
    """Forget a merchant mapping."""
    if not services.merchant_mappings.delete(args.mapping_id):
        logger.error(f"Merchant mapping with ID {args.mapping_id} not found.")
        sys.exit(1)
    logger.info(f"✓ Merchant mapping {args.mapping_id} deleted")


def setup_parser(subparsers):
    """Setup merchants subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "merchants",
        help="Manage learned merchant mappings",
        description="Display names and default categories remembered per merchant",
    )

    merchants_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available merchant commands",
        dest="subcommand",
        required=True,
    )

    list_parser = merchants_subparsers.add_parser("list", help="List merchant mappings")
    list_parser.set_defaults(func=cmd_list)

    set_parser = merchants_subparsers.add_parser(
        "set", help="Create or update a merchant mapping"
    )
    set_parser.add_argument("merchant", help="Raw merchant text, e.g. 'AMZN Mktp US'")
    set_parser.add_argument("--display-name", help="Name to show (default: merchant)")
    set_parser.add_argument("--category", help="Default category name")
    set_parser.set_defaults(func=cmd_set)

    delete_parser = merchants_subparsers.add_parser(
        "delete", help="Delete a merchant mapping"
    )
    delete_parser.add_argument("mapping_id", type=int)
    delete_parser.set_defaults(func=cmd_delete)
