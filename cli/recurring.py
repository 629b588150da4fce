#!/usr/bin/env python3

import sys
from datetime import date
from detection.recurring import detect_recurring_transactions
from logger import get_logger

logger = get_logger()


def cmd_detect(args, services):
    """Detect recurring charges from the trailing year of expenses."""
    as_of = date.fromisoformat(args.as_of) if args.as_of else None
    result = detect_recurring_transactions(services, as_of=as_of)

    for record in result.recurring:
        logger.info(
            f"  {record.merchant_display_name:<30} {record.average_amount:>10} "
            f"{record.frequency:<8} last seen {record.last_seen}"
        )
    logger.info(
        f"\n✓ {result.upserted} recurring charge(s), "
        f"{result.transactions_marked} transaction(s) marked"
    )
    if result.failed:
        logger.error(f"{result.failed} write(s) failed; see log for details")
        sys.exit(1)


def cmd_list(args, services):
    """List recurring charges, largest first."""
    records = services.recurring.find_all(active_only=not args.all)

    if not records:
        logger.info("No recurring charges found.")
        return

    for record in records:
        hidden = "" if record.is_active else " (hidden)"
        logger.info(
            f"{record.id:>4}  {record.merchant_display_name:<30} {record.average_amount:>10} "
            f"{record.frequency:<8} last seen {record.last_seen}{hidden}"
        )
    logger.info(f"\nTotal recurring charges: {len(records)}")


def cmd_hide(args, services):
    """Hide a recurring charge. The next detection run shows it again if it recurs."""
    if not services.recurring.set_active(args.recurring_id, False):
        logger.error(f"Recurring charge with ID {args.recurring_id} not found.")
        sys.exit(1)
    logger.info(f"✓ Recurring charge {args.recurring_id} hidden")


def setup_parser(subparsers):
    """Setup recurring subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "recurring",
        help="Detect and manage recurring charges",
        description="Detect subscription-like charges and manage the detected list",
    )

    recurring_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available recurring commands",
        dest="subcommand",
        required=True,
    )

    detect_parser = recurring_subparsers.add_parser(
        "detect", help="Run recurring charge detection"
    )
    detect_parser.add_argument(
        "--as-of", help="End of the lookback window, YYYY-MM-DD (default: today)"
    )
    detect_parser.set_defaults(func=cmd_detect)

    list_parser = recurring_subparsers.add_parser("list", help="List recurring charges")
    list_parser.add_argument("--all", action="store_true", help="Include hidden charges")
    list_parser.set_defaults(func=cmd_list)

    hide_parser = recurring_subparsers.add_parser("hide", help="Hide a recurring charge")
    hide_parser.add_argument("recurring_id", type=int)
    hide_parser.set_defaults(func=cmd_hide)
