"""Ingestion of provider sync records.

A sync file is a JSON array of records as the aggregation provider returns
them::

    [
      {
        "transaction_id": "tx-123",
        "date": "2024-01-15",
        "amount": 15.49,
        "merchant_name": "Netflix",
        "name": "NETFLIX.COM",
        "original_description": "NETFLIX.COM 866-579-7172 CA",
        "pending": false,
        "personal_finance_category": {
          "primary": "ENTERTAINMENT",
          "detailed": "ENTERTAINMENT_TV_AND_MOVIES"
        },
        "category": ["Service", "Subscription"]
      }
    ]

Amounts follow the provider sign convention (positive = money out).
"""

import json
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional, TextIO

from categorization import auto_categorize, build_assigner
from classification.categorizer import clean_merchant_name
from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from classification.transaction_type import classify_transaction_type
from models.transaction import ProviderCategory, Transaction
from logger import get_logger

logger = get_logger()


@dataclass
class SyncedTransaction:
    """One provider record, before classification."""

    transaction_id: str
    transaction_date: date
    amount: Decimal
    merchant_name: str
    name: Optional[str] = None
    original_description: Optional[str] = None
    pending: bool = False
    provider_category: Optional[ProviderCategory] = None
    legacy_categories: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> "SyncedTransaction":
        """Build a record from provider JSON.

        Raises:
            KeyError: If transaction_id, date or amount is missing.
            ValueError: If the date, amount or merchant is unusable.
        """
        merchant_name = data.get("merchant_name") or data.get("name")
        if not merchant_name:
            raise ValueError("record has neither merchant_name nor name")

        try:
            amount = Decimal(str(data["amount"]))
        except InvalidOperation:
            raise ValueError(f"invalid amount: {data['amount']!r}")
        if not amount.is_finite():
            raise ValueError(f"invalid amount: {data['amount']!r}")

        return cls(
            transaction_id=str(data["transaction_id"]),
            transaction_date=date.fromisoformat(data["date"]),
            amount=amount,
            merchant_name=merchant_name,
            name=data.get("name"),
            original_description=data.get("original_description"),
            # only a JSON true counts; strings like "false" do not
            pending=data.get("pending") is True,
            provider_category=ProviderCategory.from_dict(
                data.get("personal_finance_category")
            ),
            legacy_categories=list(data.get("category") or []),
        )


def parse_sync_records(source: TextIO) -> List[SyncedTransaction]:
    """Parse a JSON array of provider records, skipping malformed ones.

    Raises:
        ValueError: If the document is not a JSON array.
    """
    data = json.load(source)
    if not isinstance(data, list):
        raise ValueError("sync file must contain a JSON array of records")

    records = []
    for index, item in enumerate(data):
        try:
            records.append(SyncedTransaction.from_dict(item))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping malformed record {index}: {e}")

    logger.info(f"Parsed {len(records)} of {len(data)} sync records")
    return records


def load_sync_file(path: Path) -> List[SyncedTransaction]:
    with open(path, "r") as f:
        return parse_sync_records(f)


def to_transaction(
    record: SyncedTransaction,
    account_id: Optional[int],
    memory,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
    data_import_id: Optional[int] = None,
) -> Transaction:
    """Classify a record and turn it into an uncategorized Transaction."""
    transaction_type = classify_transaction_type(
        record.amount,
        record.merchant_name,
        description=record.name,
        legacy_categories=record.legacy_categories,
        provider_category=record.provider_category,
        original_description=record.original_description,
        patterns=patterns,
    )

    mapping = memory.lookup(record.merchant_name)
    display_name = mapping.display_name if mapping else clean_merchant_name(record.merchant_name)

    return Transaction.create_with_checksum(
        raw_data=f"{account_id}:{record.transaction_id}",
        account_id=account_id,
        transaction_date=record.transaction_date,
        merchant_name=record.merchant_name,
        amount=record.amount,
        type=transaction_type,
        description=record.original_description or record.name,
        display_name=display_name,
        pending=record.pending,
        provider_category=record.provider_category,
        data_import_id=data_import_id,
    )


def ingest_records(
    services,
    account_id: int,
    records: List[SyncedTransaction],
    data_import_id: Optional[int] = None,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
) -> int:
    """Classify, categorize and store provider records.

    Records already stored for the account (same provider transaction id)
    are skipped.

    Returns:
        Number of transactions inserted.
    """
    assigner = build_assigner(services, patterns)

    transactions = [
        to_transaction(record, account_id, assigner.memory, patterns, data_import_id)
        for record in records
    ]
    auto_categorize(transactions, assigner)

    inserted = services.transactions.bulk_create(transactions)
    logger.info(
        f"Ingested {inserted} transactions for account {account_id} "
        f"({len(transactions) - inserted} already present)"
    )
    return inserted
