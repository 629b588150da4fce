"""Recurring pattern detection.

Finds subscription-like charges in the trailing year of expense history.
Each run is a full recompute: candidate groups are rebuilt from scratch and
upserted, so re-running after new transactions arrive is safe.
"""

import sqlite3
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from models.recurring_transaction import MONTHLY, WEEKLY, YEARLY, RecurringTransaction
from models.transaction import EXPENSE, Transaction
from logger import get_logger

logger = get_logger()

# Inclusive bounds on the mean gap between charges, in days
FREQUENCY_WINDOWS = (
    (WEEKLY, 5, 10),
    (MONTHLY, 25, 35),
    (YEARLY, 350, 380),
)


@dataclass
class RecurringCandidate:
    """A merchant group that passed detection."""

    merchant: str
    average_amount: Decimal
    frequency: str
    last_seen: date
    transactions: List[Transaction]


@dataclass
class DetectionResult:
    recurring: List[RecurringTransaction] = field(default_factory=list)
    upserted: int = 0
    transactions_marked: int = 0
    failed: int = 0


def classify_frequency(mean_gap: float) -> Optional[str]:
    """Map a mean gap in days to weekly/monthly/yearly, or None."""
    for frequency, low, high in FREQUENCY_WINDOWS:
        if low <= mean_gap <= high:
            return frequency
    return None


def _mean_gap(dates: Sequence[date]) -> Optional[float]:
    ordered = sorted(dates)
    gaps = [(later - earlier).days for earlier, later in zip(ordered, ordered[1:])]
    if not gaps:
        return None
    return sum(gaps) / len(gaps)


def _is_amount_stable(amounts: Sequence[Decimal], mean: Decimal, tolerance: Decimal) -> bool:
    # strict: an amount exactly at the tolerance edge is unstable
    return all(abs(amount - mean) < tolerance * mean for amount in amounts)


def find_recurring_candidates(
    transactions: Sequence[Transaction],
    tolerance: Decimal = Decimal("0.10"),
    subscription_category_id: Optional[int] = None,
) -> List[RecurringCandidate]:
    """Group transactions by merchant and keep the groups that look recurring.

    A group qualifies when it has at least two members, every absolute amount
    is within ``tolerance`` of the mean, and the mean gap between dates falls
    in a frequency window. A group holding any transaction in the
    subscription category qualifies regardless, defaulting to monthly.

    Args:
        transactions: Transactions to scan. Callers pick the window.
        tolerance: Allowed relative deviation from the mean amount.
        subscription_category_id: Category that marks known subscriptions.

    Returns:
        Candidates ordered by merchant name.
    """
    groups: Dict[str, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        groups[txn.effective_merchant].append(txn)

    candidates = []
    for merchant in sorted(groups):
        members = groups[merchant]
        is_subscription = subscription_category_id is not None and any(
            txn.category_id == subscription_category_id for txn in members
        )
        if len(members) < 2 and not is_subscription:
            continue

        amounts = [abs(txn.amount) for txn in members]
        mean = sum(amounts, Decimal("0")) / len(amounts)
        if not is_subscription and not _is_amount_stable(amounts, mean, tolerance):
            continue

        mean_gap = _mean_gap([txn.transaction_date for txn in members])
        frequency = classify_frequency(mean_gap) if mean_gap is not None else None
        if frequency is None:
            if not is_subscription:
                continue
            frequency = MONTHLY

        candidates.append(
            RecurringCandidate(
                merchant=merchant,
                average_amount=mean.quantize(Decimal("0.01")),
                frequency=frequency,
                last_seen=max(txn.transaction_date for txn in members),
                transactions=members,
            )
        )

    return candidates


def detect_recurring_transactions(services, as_of: Optional[date] = None) -> DetectionResult:
    """Detect recurring charges, upsert them and tag their transactions.

    Each upsert and each merchant + amount tag is its own atomic write; a
    failing write is logged, counted and skipped.

    Args:
        services: Services container.
        as_of: End of the lookback window (default: today).

    Returns:
        DetectionResult with the stored records and write counts.
    """
    config = services.config
    as_of = as_of or date.today()
    start = as_of - relativedelta(days=config.recurring_lookback_days)

    logger.info(f"Detecting recurring transactions from {start} to {as_of}")

    transactions = services.transactions.get_transactions_by_date_range(
        start.isoformat(), as_of.isoformat(), transaction_type=EXPENSE
    )
    subscription = services.categories.find_by_name(config.subscription_category)

    candidates = find_recurring_candidates(
        transactions,
        tolerance=Decimal(str(config.recurring_amount_tolerance)),
        subscription_category_id=subscription.id if subscription else None,
    )

    result = DetectionResult()
    for candidate in candidates:
        try:
            record = services.recurring.upsert(
                candidate.merchant,
                candidate.average_amount,
                candidate.frequency,
                candidate.last_seen,
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to upsert recurring charge for {candidate.merchant}: {e}")
            result.failed += 1
            continue

        result.recurring.append(record)
        result.upserted += 1

        pairs = sorted({(txn.merchant_name, txn.amount) for txn in candidate.transactions})
        for merchant_name, amount in pairs:
            try:
                result.transactions_marked += services.transactions.mark_recurring(
                    merchant_name, amount
                )
            except sqlite3.Error as e:
                logger.error(
                    f"Failed to mark {merchant_name} ({amount}) as recurring: {e}"
                )
                result.failed += 1

    logger.info(
        f"Recurring detection: {len(transactions)} transactions scanned, "
        f"{result.upserted} recurring charges, {result.transactions_marked} "
        f"transactions marked, {result.failed} failed"
    )
    return result
