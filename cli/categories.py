#!/usr/bin/env python3

import sys
import json
import sqlite3
from pathlib import Path
from typing import Tuple
from config import get_seed_dir
from logger import get_logger

logger = get_logger()


def cmd_list(args, services):
    """List all categories in the database."""
    categories = services.categories.find_all()

    if not categories:
        logger.info("No categories found.")
        return

    logger.info("\nCategories:")
    logger.info("=" * 80)
    for category in categories:
        default = " (default)" if category.is_default else ""
        logger.info(
            f"{category.id:>4}  {category.name:<20} {category.icon:<16} {category.color}{default}"
        )

    logger.info(f"\nTotal categories: {len(categories)}")


def cmd_create(args, services):
    """Create a new category."""
    name = args.name.strip()
    if not name:
        logger.error("Category name cannot be empty.")
        sys.exit(1)

    if services.categories.find_by_name(name):
        logger.error(f"Category '{name}' already exists.")
        sys.exit(1)

    category = services.categories.create(name, args.icon, args.color)
    logger.info(f"✓ Category created successfully with ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info(f"  Icon: {category.icon}")
    logger.info(f"  Color: {category.color}")


def cmd_delete(args, services):
    """Delete a category by ID."""
    category_id = args.category_id

    category = services.categories.find(category_id)
    if not category:
        logger.error(f"Category with ID {category_id} not found.")
        sys.exit(1)

    logger.info("\nCategory to delete:")
    logger.info(f"  ID: {category.id}")
    logger.info(f"  Name: {category.name}")
    logger.info("Transactions and merchant mappings using it will lose their category.")

    if not args.yes:
        confirm = (
            input("\nAre you sure you want to delete this category? (yes/no): ")
            .strip()
            .lower()
        )
        if confirm != "yes":
            logger.info("Deletion cancelled.")
            return

    if services.categories.delete(category_id):
        logger.info(f"✓ Category '{category.name}' deleted successfully.")
    else:
        logger.error("Failed to delete category.")
        sys.exit(1)


def seed_categories(services, seed_file: Path) -> Tuple[int, int]:
    """Create the categories listed in a seed file, skipping existing names.

    Returns:
        (created, skipped)
    """
    with open(seed_file, "r") as f:
        categories_data = json.load(f)

    created_count = 0
    skipped_count = 0

    for category_data in categories_data:
        name = category_data.get("name")
        if not name:
            logger.warning("Skipping category with no name")
            continue

        if services.categories.find_by_name(name):
            logger.info(f"⊘ Skipped '{name}' (already exists)")
            skipped_count += 1
            continue

        try:
            category = services.categories.create(
                name,
                category_data.get("icon", "tag"),
                category_data.get("color", "#64748b"),
                is_default=True,
            )
        except sqlite3.Error as e:
            logger.error(f"Error creating category '{name}': {e}")
            continue

        logger.info(f"✓ Created '{name}' (ID: {category.id})")
        created_count += 1

    return created_count, skipped_count


def cmd_seed(args, services):
    """Seed the default categories."""
    seed_file = get_seed_dir() / "categories.json"

    if not seed_file.exists():
        logger.error(f"Seed file not found: {seed_file}")
        sys.exit(1)

    logger.info("\nSeeding categories from db/seed/categories.json")
    logger.info("=" * 80)

    try:
        created_count, skipped_count = seed_categories(services, seed_file)
    except json.JSONDecodeError as e:
        logger.error(f"Error parsing JSON file: {e}")
        sys.exit(1)

    logger.info("=" * 80)
    logger.info("\nSeeding complete!")
    logger.info(f"Created: {created_count}")
    logger.info(f"Skipped: {skipped_count}")


def setup_parser(subparsers):
    """Setup categories subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "categories",
        help="Manage categories",
        description="Create, list, seed and delete spending categories",
    )

    categories_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available category commands",
        dest="subcommand",
        required=True,
    )

    # categories list
    list_parser = categories_subparsers.add_parser("list", help="List all categories")
    list_parser.set_defaults(func=cmd_list)

    # categories create
    create_parser = categories_subparsers.add_parser(
        "create", help="Create a new category"
    )
    create_parser.add_argument("name", help="Category name (e.g., Pets)")
    create_parser.add_argument("--icon", default="tag", help="Icon name")
    create_parser.add_argument("--color", default="#64748b", help="Hex color")
    create_parser.set_defaults(func=cmd_create)

    # categories delete
    delete_parser = categories_subparsers.add_parser(
        "delete", help="Delete a category by ID"
    )
    delete_parser.add_argument(
        "category_id",
        type=int,
        help="ID of the category to delete",
    )
    delete_parser.add_argument(
        "--yes", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(func=cmd_delete)

    # categories seed
    seed_parser = categories_subparsers.add_parser(
        "seed", help="Create the default categories"
    )
    seed_parser.set_defaults(func=cmd_seed)
