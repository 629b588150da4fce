"""Maintenance jobs over stored transactions.

Every job is re-entrant: running it again with no intervening edits changes
nothing. Storage errors on a single row are logged and counted as failed;
the job carries on with the remaining rows.
"""

import sqlite3
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Optional

from categorization import build_assigner
from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from classification.transaction_type import classify_transaction_type
from models.transaction import EXPENSE, INCOME, INVESTMENT, RETURN, TRANSFER
from logger import get_logger

logger = get_logger()


@dataclass
class ReclassifyResult:
    reclassified: int = 0
    unchanged: int = 0
    skipped: int = 0
    failed: int = 0
    breakdown: Counter = field(default_factory=Counter)


@dataclass
class AssignTypeCategoriesResult:
    updated: Dict[str, int] = field(default_factory=dict)
    categories_found: Dict[str, bool] = field(default_factory=dict)


@dataclass
class ClearTransferCategoriesResult:
    cleared: int = 0


@dataclass
class RecategorizeResult:
    recategorized: int = 0
    unchanged: int = 0
    skipped: int = 0
    marked_for_review: int = 0
    failed: int = 0
    category_breakdown: Counter = field(default_factory=Counter)


def reclassify_transactions(
    services, force: bool = False, patterns: PatternLibrary = DEFAULT_PATTERNS
) -> ReclassifyResult:
    """Recompute the type of every transaction from amount, merchant and description.

    Stored provider hints are ignored.

    Args:
        services: Services container.
        force: Also reclassify return transactions and user-set types.
        patterns: Rule set to classify with.
    """
    transactions = services.transactions.find_all()
    logger.info(f"Reclassifying {len(transactions)} transactions (force={force})")

    result = ReclassifyResult()
    for txn in transactions:
        if not force and (txn.type == RETURN or txn.is_type_manual):
            result.skipped += 1
            continue

        detected = classify_transaction_type(
            txn.amount,
            txn.merchant_name,
            description=txn.description,
            patterns=patterns,
        )
        if detected == txn.type:
            result.unchanged += 1
            continue

        txn.type = detected
        txn.is_type_manual = False
        try:
            services.transactions.update(txn, ["transaction_type", "is_type_manual"])
        except sqlite3.Error as e:
            logger.error(f"Failed to reclassify transaction {txn.id}: {e}")
            result.failed += 1
            continue

        result.reclassified += 1
        result.breakdown[detected] += 1

    logger.info(
        f"Reclassified {result.reclassified}, unchanged {result.unchanged}, "
        f"skipped {result.skipped}, failed {result.failed}: {dict(result.breakdown)}"
    )
    return result


def assign_type_categories(services) -> AssignTypeCategoriesResult:
    """Backfill the configured Income/Investment categories on uncategorized rows."""
    config = services.config
    result = AssignTypeCategoriesResult()

    for transaction_type, category_name in (
        (INCOME, config.income_category),
        (INVESTMENT, config.investment_category),
    ):
        category = services.categories.find_by_name(category_name)
        result.categories_found[transaction_type] = category is not None
        if category is None:
            logger.warning(f"Category '{category_name}' not found - skipping {transaction_type}")
            result.updated[transaction_type] = 0
            continue

        result.updated[transaction_type] = (
            services.transactions.assign_category_to_uncategorized(
                transaction_type, category.id
            )
        )

    logger.info(f"Assigned type categories: {result.updated}")
    return result


def clear_transfer_categories(services) -> ClearTransferCategoriesResult:
    """Remove categories left on transfer transactions."""
    cleared = services.transactions.clear_categories(TRANSFER)
    logger.info(f"Cleared categories for {cleared} transfer transactions")
    return ClearTransferCategoriesResult(cleared=cleared)


def recategorize_all(
    services,
    skip_manual: bool = True,
    force: bool = False,
    patterns: Optional[PatternLibrary] = None,
) -> RecategorizeResult:
    """Re-run category resolution over expense transactions.

    Args:
        services: Services container.
        skip_manual: Skip transactions whose merchant has a Merchant Memory
            entry, preserving user corrections.
        force: Re-evaluate every expense. Otherwise only those flagged for
            review or without a category.
        patterns: Rule set to categorize with (default library if None).
    """
    assigner = build_assigner(services, patterns or DEFAULT_PATTERNS)
    if force:
        transactions = services.transactions.find_by_type(EXPENSE)
    else:
        transactions = services.transactions.find_needing_categorization(EXPENSE)

    logger.info(
        f"Recategorizing {len(transactions)} expense transactions "
        f"(skip_manual={skip_manual}, force={force})"
    )

    result = RecategorizeResult()
    for txn in transactions:
        if skip_manual and assigner.memory.lookup(txn.merchant_name) is not None:
            result.skipped += 1
            continue

        assignment = assigner.assign(txn)
        if (
            assignment.category_id == txn.category_id
            and assignment.needs_review == txn.needs_review
        ):
            result.unchanged += 1
            continue

        txn.category_id = assignment.category_id
        txn.needs_review = assignment.needs_review
        try:
            services.transactions.update(txn, ["category_id", "needs_review"])
        except sqlite3.Error as e:
            logger.error(f"Failed to recategorize transaction {txn.id}: {e}")
            result.failed += 1
            continue

        result.recategorized += 1
        result.category_breakdown[assignment.category_name] += 1
        if assignment.needs_review:
            result.marked_for_review += 1

    logger.info(
        f"Recategorized {result.recategorized}, unchanged {result.unchanged}, "
        f"skipped {result.skipped}, marked for review {result.marked_for_review}, "
        f"failed {result.failed}"
    )
    return result
