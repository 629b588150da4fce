"""Auto-categorization of new transactions.

Runs the Category Assigner over freshly classified transactions before they
are stored. Merchant Memory (learned from user edits) is consulted first and
its category is applied without review; everything else goes through the
rule categorizer, which may flag the transaction for review.

Only expense and return transactions are touched. Income, investment and
transfer transactions keep whatever category they arrived with (normally
none); maintenance jobs backfill those.
"""

from typing import List, Optional
from classification.assigner import MEMORY, CategoryAssigner
from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from models.transaction import Transaction
from logger import get_logger

logger = get_logger()


def build_assigner(services, patterns: PatternLibrary = DEFAULT_PATTERNS) -> CategoryAssigner:
    """Create an assigner from the current merchant mappings and categories."""
    return CategoryAssigner(
        services.merchant_mappings.load_memory(),
        services.categories.get_name_to_id_map(),
        patterns,
    )


def auto_categorize(
    transactions: List[Transaction],
    assigner: Optional[CategoryAssigner],
) -> List[Transaction]:
    """Assign categories to transactions in place.

    Args:
        transactions: Newly classified transactions (type already set).
        assigner: Category Assigner to use. If None, categorization is skipped.

    Returns:
        The same list, with category_id and needs_review set on every
        expense and return transaction.
    """
    logger.info(f"Auto-categorization called with {len(transactions)} transactions")

    if assigner is None:
        logger.info("No assigner provided - skipping categorization")
        return transactions

    from_memory = 0
    flagged = 0
    for txn in transactions:
        assignment = assigner.assign(txn)
        if assignment is None:
            continue

        txn.category_id = assignment.category_id
        txn.needs_review = assignment.needs_review
        if assignment.source == MEMORY:
            from_memory += 1
        if assignment.needs_review:
            flagged += 1
            logger.debug(
                f"Transaction {txn.id[:8]}... ({txn.merchant_name}) needs review "
                f"as {assignment.category_name}"
            )

    logger.info(
        f"Categorized {len(transactions)} transactions: "
        f"{from_memory} from merchant memory, {flagged} flagged for review"
    )
    return transactions
