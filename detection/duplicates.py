"""Duplicate grouping.

Transactions sharing (date, amount, normalized merchant) are likely the same
charge imported or synced twice. The grouper only proposes: the earliest
created member of a group is kept and the rest are removal candidates.
Nothing is deleted until ``remove_duplicates`` is called explicitly.
"""

import sqlite3
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.merchant_mapping import normalize_merchant_name
from models.transaction import Transaction
from logger import get_logger

logger = get_logger()

DuplicateKey = Tuple[date, Decimal, str]


@dataclass
class DuplicateGroup:
    """Transactions that look like copies of one charge.

    Attributes:
        key: (date, amount, normalized merchant) shared by all members.
        transactions: Members ordered by creation time, oldest first.
    """

    key: DuplicateKey
    transactions: List[Transaction]

    @property
    def kept(self) -> Transaction:
        return self.transactions[0]

    @property
    def to_remove(self) -> List[Transaction]:
        return self.transactions[1:]


def duplicate_key(transaction: Transaction) -> DuplicateKey:
    return (
        transaction.transaction_date,
        transaction.amount,
        normalize_merchant_name(transaction.merchant_name),
    )


def find_duplicate_groups(transactions: Iterable[Transaction]) -> List[DuplicateGroup]:
    """Group transactions by duplicate key and return groups of two or more.

    Returns:
        Groups ordered by date (newest first), then merchant.
    """
    buckets: Dict[DuplicateKey, List[Transaction]] = defaultdict(list)
    for txn in transactions:
        buckets[duplicate_key(txn)].append(txn)

    groups = [
        DuplicateGroup(key, sorted(members, key=lambda t: (t.created_at, t.id)))
        for key, members in buckets.items()
        if len(members) >= 2
    ]
    groups.sort(key=lambda g: (-g.key[0].toordinal(), g.key[2], g.key[1]))
    return groups


def find_duplicates(
    services,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    account_id: Optional[int] = None,
) -> List[DuplicateGroup]:
    """Find duplicate groups in stored transactions, optionally within a window."""
    transactions = services.transactions.get_transactions_by_date_range(
        start_date.isoformat() if start_date else None,
        end_date.isoformat() if end_date else None,
        account_id=account_id,
    )
    groups = find_duplicate_groups(transactions)
    logger.info(
        f"Found {len(groups)} duplicate groups in {len(transactions)} transactions"
    )
    return groups


def remove_duplicates(services, groups: Sequence[DuplicateGroup]) -> Tuple[int, int]:
    """Delete the removal candidates of each group, keeping the earliest member.

    Each group is deleted in its own database transaction; a failing group
    is logged and counted.

    Returns:
        (transactions removed, groups failed)
    """
    removed = 0
    failed = 0
    for group in groups:
        ids = [txn.id for txn in group.to_remove]
        try:
            removed += services.transactions.bulk_delete(ids)
        except sqlite3.Error as e:
            logger.error(f"Failed to remove duplicates of {group.kept.id}: {e}")
            failed += 1

    logger.info(f"Removed {removed} duplicate transactions ({failed} groups failed)")
    return removed, failed
