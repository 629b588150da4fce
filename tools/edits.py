"""User edits to transactions, and the merchant memory they teach."""

from dataclasses import dataclass
from typing import List, Optional

from models.transaction import INCOME, INVESTMENT, TRANSACTION_TYPES, TRANSFER, Transaction
from logger import get_logger

logger = get_logger()


@dataclass
class TransactionEdit:
    """Fields a user may change. None leaves a field as it is."""

    category_id: Optional[int] = None
    display_name: Optional[str] = None
    type: Optional[str] = None
    is_recurring: Optional[bool] = None
    notes: Optional[str] = None


def _type_category_id(services, transaction_type: str) -> Optional[int]:
    name = {
        INCOME: services.config.income_category,
        INVESTMENT: services.config.investment_category,
    }[transaction_type]
    category = services.categories.find_by_name(name)
    return category.id if category else None


def edit_transaction(
    services, transaction_id: str, edit: TransactionEdit, apply_to_all: bool = False
) -> Transaction:
    """Apply a user edit to a transaction.

    A new category or display name clears the review flag and is remembered
    as a merchant mapping, so future transactions from the same merchant pick
    it up. With apply_to_all, the category/display name is also written to
    every stored transaction with the same raw merchant text.

    Args:
        services: Services container.
        transaction_id: ID of the transaction to edit.
        edit: Fields to change.
        apply_to_all: Propagate category/display name to the merchant's
            other transactions.

    Returns:
        The updated transaction.

    Raises:
        ValueError: If the transaction, category or type is unknown.
    """
    txn = services.transactions.find(transaction_id)
    if txn is None:
        raise ValueError(f"Transaction {transaction_id} not found")

    if edit.type is not None and edit.type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type: {edit.type}")

    if edit.category_id is not None and services.categories.find(edit.category_id) is None:
        raise ValueError(f"Category {edit.category_id} not found")

    fields: List[str] = []
    category_id = edit.category_id

    if edit.type is not None:
        txn.type = edit.type
        txn.is_type_manual = True
        fields += ["transaction_type", "is_type_manual"]
        if edit.type in (INCOME, INVESTMENT) and category_id is None:
            category_id = _type_category_id(services, edit.type)
        elif edit.type == TRANSFER:
            txn.category_id = None
            fields.append("category_id")

    if category_id is not None and txn.type != TRANSFER:
        txn.category_id = category_id
        if "category_id" not in fields:
            fields.append("category_id")

    if edit.display_name is not None:
        txn.display_name = edit.display_name
        fields.append("display_name")

    if edit.is_recurring is not None:
        txn.is_recurring = edit.is_recurring
        fields.append("is_recurring")

    if edit.notes is not None:
        txn.notes = edit.notes
        fields.append("notes")

    if edit.category_id is not None or edit.display_name is not None:
        txn.needs_review = False
        fields.append("needs_review")
        _remember_merchant(services, txn, edit)

        if apply_to_all:
            values = {"needs_review": False}
            if edit.category_id is not None:
                values["category_id"] = edit.category_id
            if edit.display_name is not None:
                values["display_name"] = edit.display_name
            count = services.transactions.update_by_merchant(txn.merchant_name, values)
            logger.info(f"Applied edit to {count} transactions from {txn.merchant_name}")

    if fields:
        services.transactions.update(txn, fields)

    return txn


def _remember_merchant(services, txn: Transaction, edit: TransactionEdit) -> None:
    existing = services.merchant_mappings.find_by_merchant(txn.merchant_name)

    display_name = (
        edit.display_name
        or (existing.display_name if existing else None)
        or txn.display_name
        or txn.merchant_name
    )
    category_id = edit.category_id
    if category_id is None and existing:
        category_id = existing.default_category_id

    services.merchant_mappings.upsert(txn.merchant_name, display_name, category_id)
    logger.debug(f"Remembered {txn.merchant_name} as {display_name} ({category_id})")
