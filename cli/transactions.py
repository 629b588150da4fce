#!/usr/bin/env python3

import sys
import gzip
import shutil
from pathlib import Path
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from classification.patterns import load_pattern_library
from detection.duplicates import find_duplicates, remove_duplicates
from ingestion import ingest_records, load_sync_file
from models.transaction import TRANSACTION_TYPES, TransactionSplit, effective_amount
from tools.edits import TransactionEdit, edit_transaction
from tools.transactions import get_period_summary
from logger import get_logger

logger = get_logger()


def _resolve_category(services, category_input):
    """Look up a category by ID or name, exiting if it does not exist."""
    try:
        category = services.categories.find(int(category_input))
    except ValueError:
        category = services.categories.find_by_name(category_input)

    if not category:
        logger.error(f"Category '{category_input}' not found.")
        logger.info("Use 'python -m cli categories list' to see available categories.")
        sys.exit(1)
    return category


def _resolve_account(services, account_name):
    account = services.accounts.find_by_name(account_name)
    if not account:
        logger.error(f"Account '{account_name}' not found.")
        logger.info("Use 'python -m cli accounts list' to see available accounts.")
        sys.exit(1)
    return account


def _parse_month(value):
    """Parse YYYY/MM into (year, month)."""
    try:
        year, month = (int(part) for part in value.split("/"))
    except ValueError:
        logger.error(f"Invalid month '{value}', expected YYYY/MM")
        sys.exit(1)
    if month < 1 or month > 12:
        logger.error("Month must be between 1 and 12")
        sys.exit(1)
    return year, month


def _parse_date(value):
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        logger.error(f"Invalid date '{value}', expected YYYY-MM-DD")
        sys.exit(1)


def cmd_ingest(args, services):
    """Ingest provider sync records from a JSON file for a specific account."""
    sync_path = Path(args.sync_file)
    if not sync_path.exists():
        logger.error(f"File not found: {args.sync_file}")
        sys.exit(1)

    account = _resolve_account(services, args.account_name)

    logger.info(
        f"Ingesting transactions for account: {account.name} (ID: {account.id})"
    )
    logger.info(f"Sync file: {args.sync_file}")
    logger.info("-" * 80)

    records = load_sync_file(sync_path)
    if not records:
        logger.info("No transactions to import.")
        return

    archive_filename = None
    config = services.config
    if config.archive_enabled:
        config.archive_dir.mkdir(parents=True, exist_ok=True)

        # {account_name}_{timestamp}_{original_filename}.gz
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        archive_filename = f"{account.name}_{timestamp}_{sync_path.name}.gz"
        archive_path = config.archive_dir / archive_filename

        with open(sync_path, "rb") as f_in:
            with gzip.open(archive_path, "wb") as f_out:
                shutil.copyfileobj(f_in, f_out)

        logger.info(f"Archived sync file to: {archive_path}")

    data_import = services.data_imports.create(account.id, archive_filename)
    logger.info(f"Created data import record (ID: {data_import.id})")

    patterns = load_pattern_library(config.patterns_file)
    inserted_count = ingest_records(
        services, account.id, records, data_import_id=data_import.id, patterns=patterns
    )

    logger.info(f"✓ Successfully inserted {inserted_count} transactions")
    if inserted_count < len(records):
        logger.info(f"  ({len(records) - inserted_count} duplicate transaction(s) skipped)")


def cmd_list(args, services):
    """List transactions for a month, or those needing review."""
    if args.needs_review:
        transactions = services.transactions.find_needs_review()
    else:
        year, month = _parse_month(args.month) if args.month else (
            date.today().year,
            date.today().month,
        )
        account_id = _resolve_account(services, args.account).id if args.account else None
        transactions = services.transactions.get_transactions_by_month(
            year, month, account_id=account_id, transaction_type=args.type
        )

    if not transactions:
        logger.info("No transactions found.")
        return

    names = {c.id: c.name for c in services.categories.find_all()}
    for t in transactions:
        flags = "".join(
            flag
            for flag, enabled in (("R", t.is_recurring), ("S", t.is_split), ("?", t.needs_review))
            if enabled
        )
        logger.info(
            f"{t.id[:12]}  {t.transaction_date}  {t.effective_merchant[:28]:<28} "
            f"{t.amount:>10}  {t.type:<10} {names.get(t.category_id, '-'):<16} {flags}"
        )
    logger.info(f"\nTotal transactions: {len(transactions)}")


def cmd_edit(args, services):
    """Edit a transaction's category, name, type, recurring flag or notes."""
    edit = TransactionEdit(
        category_id=_resolve_category(services, args.category).id if args.category else None,
        display_name=args.display_name,
        type=args.type,
        is_recurring=args.recurring,
        notes=args.notes,
    )
    txn = edit_transaction(services, args.transaction_id, edit, apply_to_all=args.apply_to_all)
    logger.info(f"✓ Updated transaction {txn.id[:12]} ({txn.effective_merchant})")


def cmd_split(args, services):
    """Replace the splits of a transaction.

    Each --share is AMOUNT[:DESCRIPTION]; --other marks shares that are not
    the user's own spending.
    """
    txn = services.transactions.find(args.transaction_id)
    if not txn:
        logger.error(f"Transaction with ID '{args.transaction_id}' not found.")
        sys.exit(1)

    splits = []
    for share_text, is_my_share in [(s, True) for s in args.share or []] + [
        (s, False) for s in args.other or []
    ]:
        amount_text, _, description = share_text.partition(":")
        try:
            amount = Decimal(amount_text)
        except InvalidOperation:
            logger.error(f"Invalid split amount: {amount_text}")
            sys.exit(1)
        splits.append(
            TransactionSplit(
                parent_transaction_id=txn.id,
                amount=amount,
                description=description or None,
                is_my_share=is_my_share,
            )
        )

    stored = services.splits.replace(txn.id, splits)
    txn.is_split = True
    logger.info(
        f"✓ Split {txn.effective_merchant} ({abs(txn.amount)}) into {len(stored)} part(s); "
        f"your share: {effective_amount(txn, stored)}"
    )


def cmd_unsplit(args, services):
    """Remove all splits from a transaction."""
    removed = services.splits.delete_for_transaction(args.transaction_id)
    logger.info(f"✓ Removed {removed} split(s)")


def cmd_duplicates(args, services):
    """Show groups of likely duplicate transactions."""
    account_id = _resolve_account(services, args.account).id if args.account else None
    groups = find_duplicates(
        services, _parse_date(args.start_date), _parse_date(args.end_date), account_id
    )

    if not groups:
        logger.info("No duplicates found.")
        return

    for group in groups:
        day, amount, merchant = group.key
        logger.info(f"\n{day}  {amount}  {merchant}")
        for txn in group.transactions:
            action = "keep  " if txn is group.kept else "remove"
            source = "import" if txn.is_imported else "sync"
            logger.info(f"  {action} {txn.id[:12]} created {txn.created_at:%Y-%m-%d %H:%M:%S} ({source})")

    logger.info(f"\n{len(groups)} duplicate group(s)")


def cmd_remove_duplicates(args, services):
    """Delete duplicate transactions, keeping the earliest of each group."""
    account_id = _resolve_account(services, args.account).id if args.account else None
    groups = find_duplicates(
        services, _parse_date(args.start_date), _parse_date(args.end_date), account_id
    )
    if args.transaction_id:
        groups = [
            g for g in groups if any(t.id == args.transaction_id for t in g.transactions)
        ]

    if not groups:
        logger.info("No duplicates found.")
        return

    removed, failed = remove_duplicates(services, groups)
    logger.info(f"✓ Removed {removed} duplicate transaction(s)")
    if failed:
        logger.error(f"{failed} group(s) could not be removed")
        sys.exit(1)


def cmd_delete(args, services):
    """Delete transactions and their splits."""
    deleted = services.transactions.bulk_delete(args.transaction_ids)
    logger.info(f"✓ Deleted {deleted} transaction(s)")
    if deleted < len(args.transaction_ids):
        logger.error(f"{len(args.transaction_ids) - deleted} transaction(s) not found")
        sys.exit(1)


def cmd_summary(args, services):
    """Show monthly income, spending and investment totals."""
    start_year, start_month = _parse_month(args.start_month)
    end_year, end_month = _parse_month(args.end_month or args.start_month)

    summary = get_period_summary(
        services, date(start_year, start_month, 1), date(end_year, end_month, 1)
    )
    names = {c.id: c.name for c in services.categories.find_all()}

    for month_key, month in summary.items():
        logger.info(f"\n{month_key}")
        logger.info(f"  Income:      {month['income_total']:>12}")
        logger.info(f"  Spending:    {month['expense_total']:>12}")
        logger.info(f"  Investments: {month['investment_total']:>12}")
        logger.info(f"  Net:         {month['net']:>12}")
        for category_id, total in sorted(
            month["expenses_by_category"].items(), key=lambda item: -item[1]
        ):
            logger.info(f"    {names.get(category_id, 'Uncategorized'):<20} {total:>12}")


def setup_parser(subparsers):
    """Setup transactions subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "transactions",
        help="Import and manage transactions",
        description="Import, review and edit transactions",
    )

    transactions_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available transaction commands",
        dest="subcommand",
        required=True,
    )

    # transactions ingest
    ingest_parser = transactions_subparsers.add_parser(
        "ingest",
        help="Ingest provider sync records from a JSON file",
        epilog="""
Examples:
  python -m cli transactions ingest sync.json --account-name chase_checking
        """,
    )
    ingest_parser.add_argument("sync_file", help="Path to the JSON sync file")
    ingest_parser.add_argument(
        "--account-name",
        required=True,
        help="Name of the account to import transactions for",
    )
    ingest_parser.set_defaults(func=cmd_ingest)

    # transactions list
    list_parser = transactions_subparsers.add_parser("list", help="List transactions")
    list_parser.add_argument("--month", help="Month in YYYY/MM format (default: current)")
    list_parser.add_argument("--account", help="Account name to filter by")
    list_parser.add_argument("--type", choices=TRANSACTION_TYPES)
    list_parser.add_argument(
        "--needs-review", action="store_true", help="Only transactions needing review"
    )
    list_parser.set_defaults(func=cmd_list)

    # transactions edit
    edit_parser = transactions_subparsers.add_parser(
        "edit",
        help="Edit a transaction",
        description="Change category, display name, type, recurring flag or notes. "
        "Category and display name changes are remembered for the merchant.",
    )
    edit_parser.add_argument("transaction_id", help="Transaction ID (SHA256 hash)")
    edit_parser.add_argument("--category", help="Category name or ID")
    edit_parser.add_argument("--display-name")
    edit_parser.add_argument("--type", choices=TRANSACTION_TYPES)
    recurring_group = edit_parser.add_mutually_exclusive_group()
    recurring_group.add_argument(
        "--recurring", dest="recurring", action="store_true", default=None
    )
    recurring_group.add_argument(
        "--not-recurring", dest="recurring", action="store_false"
    )
    edit_parser.add_argument("--notes")
    edit_parser.add_argument(
        "--apply-to-all",
        action="store_true",
        help="Apply category/display name to every transaction from this merchant",
    )
    edit_parser.set_defaults(func=cmd_edit, recurring=None)

    # transactions split
    split_parser = transactions_subparsers.add_parser(
        "split",
        help="Split a transaction into shares",
        epilog="""
Examples:
  # $100 dinner, $60 was mine
  python -m cli transactions split 3f2a... --share 60:dinner --other 40:Alex
        """,
    )
    split_parser.add_argument("transaction_id", help="Transaction ID (SHA256 hash)")
    split_parser.add_argument(
        "--share", action="append", help="AMOUNT[:DESCRIPTION] counted as yours"
    )
    split_parser.add_argument(
        "--other", action="append", help="AMOUNT[:DESCRIPTION] owed by someone else"
    )
    split_parser.set_defaults(func=cmd_split)

    # transactions unsplit
    unsplit_parser = transactions_subparsers.add_parser(
        "unsplit", help="Remove the splits of a transaction"
    )
    unsplit_parser.add_argument("transaction_id", help="Transaction ID (SHA256 hash)")
    unsplit_parser.set_defaults(func=cmd_unsplit)

    # transactions duplicates / remove-duplicates
    for name, func, help_text in (
        ("duplicates", cmd_duplicates, "Show likely duplicate transactions"),
        ("remove-duplicates", cmd_remove_duplicates, "Delete duplicates, keeping the earliest"),
    ):
        dup_parser = transactions_subparsers.add_parser(name, help=help_text)
        dup_parser.add_argument("--start-date", help="YYYY-MM-DD")
        dup_parser.add_argument("--end-date", help="YYYY-MM-DD")
        dup_parser.add_argument("--account", help="Account name to filter by")
        if name == "remove-duplicates":
            dup_parser.add_argument(
                "--transaction-id", help="Only resolve the group containing this transaction"
            )
        dup_parser.set_defaults(func=func)

    # transactions delete
    delete_parser = transactions_subparsers.add_parser(
        "delete", help="Delete transactions by ID"
    )
    delete_parser.add_argument("transaction_ids", nargs="+")
    delete_parser.set_defaults(func=cmd_delete)

    # transactions summary
    summary_parser = transactions_subparsers.add_parser(
        "summary", help="Monthly income, spending and investment totals"
    )
    summary_parser.add_argument("start_month", help="YYYY/MM")
    summary_parser.add_argument("end_month", nargs="?", help="YYYY/MM (default: start_month)")
    summary_parser.set_defaults(func=cmd_summary)
