"""Transaction service for database operations."""

import json
import calendar
from typing import Dict, Iterable, List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.transaction import ProviderCategory, Transaction

# SQL Query Constants
_TRANSACTION_FIELDS = """id, account_id, data_import_id, transaction_date, merchant_name,
       description, display_name, category_id, amount, transaction_type, is_split,
       is_recurring, needs_review, pending, is_type_manual, provider_category, notes,
       created_at"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_FIELDS.split(',')))})"
)

# Column name -> Transaction attribute for fields batch_update may change
_UPDATABLE_FIELDS = {
    "category_id": "category_id",
    "display_name": "display_name",
    "transaction_type": "type",
    "needs_review": "needs_review",
    "is_recurring": "is_recurring",
    "is_split": "is_split",
    "is_type_manual": "is_type_manual",
    "notes": "notes",
}

_BOOLEAN_FIELDS = {"needs_review", "is_recurring", "is_split", "is_type_manual"}


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def create(self, transaction: Transaction) -> Transaction:
        """Create a single transaction in the database.

        Args:
            transaction: Transaction object to insert.

        Returns:
            The same Transaction object (already has its ID from checksum).

        Raises:
            sqlite3.Error: If creation fails (e.g., duplicate ID).
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO transactions ({_TRANSACTION_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                self._transaction_to_row(transaction),
            )
            conn.commit()

        return transaction

    def bulk_create(self, transactions: List[Transaction]) -> int:
        """Create multiple transactions in a single database transaction.

        Rows whose ID already exists are skipped.

        Args:
            transactions: List of Transaction objects to insert.

        Returns:
            Number of transactions actually inserted.
        """
        if not transactions:
            return 0

        with self.db_manager.connect() as conn:
            cursor = conn.executemany(
                f"""
                INSERT OR IGNORE INTO transactions ({_TRANSACTION_FIELDS})
                VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                """,
                [self._transaction_to_row(t) for t in transactions],
            )
            conn.commit()

            return cursor.rowcount

    def batch_update(
        self, transactions: List[Transaction], field_names: List[str]
    ) -> int:
        """Update specified fields for multiple transactions.

        Args:
            transactions: List of Transaction objects to update.
            field_names: Column names to update. Supported fields: category_id,
                        display_name, transaction_type, needs_review, is_recurring,
                        is_split, is_type_manual, notes.

        Returns:
            Number of transactions successfully updated.

        Raises:
            ValueError: If field_names is empty or has unsupported names.
        """
        if not transactions:
            return 0

        if not field_names:
            raise ValueError("field_names cannot be empty")

        invalid_fields = set(field_names) - set(_UPDATABLE_FIELDS)
        if invalid_fields:
            raise ValueError(f"Unsupported field names: {invalid_fields}")

        set_clause = ", ".join([f"{field} = ?" for field in field_names])

        data = []
        for t in transactions:
            row_data = []
            for field in field_names:
                value = getattr(t, _UPDATABLE_FIELDS[field])
                if field in _BOOLEAN_FIELDS:
                    value = int(bool(value))
                row_data.append(value)
            row_data.append(t.id)
            data.append(tuple(row_data))

        with self.db_manager.connect() as conn:
            cursor = conn.executemany(
                f"""
                UPDATE transactions
                SET {set_clause}
                WHERE id = ?
                """,
                data,
            )
            conn.commit()

            return cursor.rowcount

    def update(self, transaction: Transaction, field_names: List[str]) -> bool:
        """Update specified fields for a single transaction.

        Returns:
            True if a row was updated, False otherwise.
        """
        count = self.batch_update([transaction], field_names)
        return count > 0

    def update_by_merchant(self, merchant_name: str, values: Dict[str, object]) -> int:
        """Set the same column values on every transaction with this raw merchant.

        Args:
            merchant_name: Raw merchant text to match exactly.
            values: Column name -> new value. Same columns as batch_update.

        Returns:
            Number of transactions updated.

        Raises:
            ValueError: If values is empty or names unsupported columns.
        """
        if not values:
            raise ValueError("values cannot be empty")

        invalid_fields = set(values) - set(_UPDATABLE_FIELDS)
        if invalid_fields:
            raise ValueError(f"Unsupported field names: {invalid_fields}")

        set_clause = ", ".join([f"{field} = ?" for field in values])
        params = [
            int(bool(value)) if field in _BOOLEAN_FIELDS else value
            for field, value in values.items()
        ]
        params.append(merchant_name)

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"UPDATE transactions SET {set_clause} WHERE merchant_name = ?",
                params,
            )
            conn.commit()
            return cursor.rowcount

    def mark_recurring(self, merchant_name: str, amount: Decimal) -> int:
        """Flag every transaction with this raw merchant and amount as recurring.

        This is a merchant + amount match, not an id match, so an unrelated
        charge from the same merchant for the same amount is flagged too.

        Returns:
            Number of transactions updated.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET is_recurring = 1
                WHERE merchant_name = ? AND amount = ?
                """,
                (merchant_name, float(amount)),
            )
            conn.commit()
            return cursor.rowcount

    def assign_category_to_uncategorized(
        self, transaction_type: str, category_id: int
    ) -> int:
        """Set category_id on transactions of a type that have no category.

        Returns:
            Number of transactions updated.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET category_id = ?
                WHERE transaction_type = ? AND category_id IS NULL
                """,
                (category_id, transaction_type),
            )
            conn.commit()
            return cursor.rowcount

    def clear_categories(self, transaction_type: str) -> int:
        """Remove the category from every transaction of the given type.

        Returns:
            Number of transactions that had a category.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE transactions
                SET category_id = NULL
                WHERE transaction_type = ? AND category_id IS NOT NULL
                """,
                (transaction_type,),
            )
            conn.commit()
            return cursor.rowcount

    def delete(self, transaction_id: str) -> bool:
        """Delete a transaction and its splits.

        Returns:
            True if the transaction was deleted, False if not found.
        """
        return self.bulk_delete([transaction_id]) > 0

    def bulk_delete(self, transaction_ids: Iterable[str]) -> int:
        """Delete several transactions and their splits in one database transaction.

        Returns:
            Number of transactions deleted.
        """
        ids = [(transaction_id,) for transaction_id in transaction_ids]
        if not ids:
            return 0

        with self.db_manager.connect() as conn:
            conn.executemany(
                "DELETE FROM transaction_splits WHERE parent_transaction_id = ?", ids
            )
            cursor = conn.executemany("DELETE FROM transactions WHERE id = ?", ids)
            conn.commit()
            return cursor.rowcount

    def find(self, transaction_id: str) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_FIELDS}
                FROM transactions
                WHERE id = ?
                """,
                (transaction_id,),
            )
            row = cursor.fetchone()

            if row:
                return self._row_to_transaction(row)
            return None

    def find_all(self) -> List[Transaction]:
        """Get every transaction, newest first."""
        return self._query("", [])

    def find_by_account(self, account_id: int) -> List[Transaction]:
        """Get all transactions for a specific account.

        Returns:
            List of Transaction objects ordered by transaction_date (newest first).
        """
        return self._query("WHERE account_id = ?", [account_id])

    def find_by_merchant(self, merchant_name: str) -> List[Transaction]:
        """Get all transactions whose raw merchant text matches exactly."""
        return self._query("WHERE merchant_name = ?", [merchant_name])

    def find_by_type(self, transaction_type: str) -> List[Transaction]:
        return self._query("WHERE transaction_type = ?", [transaction_type])

    def find_needing_categorization(self, transaction_type: str) -> List[Transaction]:
        """Get transactions of a type that are flagged for review or uncategorized."""
        return self._query(
            "WHERE transaction_type = ? AND (needs_review = 1 OR category_id IS NULL)",
            [transaction_type],
        )

    def find_needs_review(self) -> List[Transaction]:
        return self._query("WHERE needs_review = 1", [])

    def get_transactions_by_date_range(
        self,
        start_date: Optional[str],
        end_date: Optional[str],
        *,
        account_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        category_ids: Optional[List[int]] = None,
    ) -> List[Transaction]:
        """Get transactions within an optional date range.

        Args:
            start_date: Start date in ISO format (YYYY-MM-DD), or None for unbounded.
            end_date: End date in ISO format (YYYY-MM-DD), or None for unbounded.
            account_id: Optional account ID to filter by.
            transaction_type: Optional transaction type to filter by.
            category_ids: Optional list of category IDs to filter by.

        Returns:
            List of Transaction objects ordered by date (newest first).
        """
        conditions = []
        params: List[object] = []

        if start_date is not None:
            conditions.append("transaction_date >= ?")
            params.append(start_date)

        if end_date is not None:
            conditions.append("transaction_date <= ?")
            params.append(end_date)

        if account_id is not None:
            conditions.append("account_id = ?")
            params.append(account_id)

        if transaction_type is not None:
            conditions.append("transaction_type = ?")
            params.append(transaction_type)

        if category_ids:
            placeholders = ", ".join(["?"] * len(category_ids))
            conditions.append(f"category_id IN ({placeholders})")
            params.extend(category_ids)

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        return self._query(where, params)

    def get_transactions_by_month(
        self,
        year: int,
        month: int,
        *,
        account_id: Optional[int] = None,
        transaction_type: Optional[str] = None,
        category_ids: Optional[List[int]] = None,
    ) -> List[Transaction]:
        """Get transactions for a specific month (newest first)."""
        start_date = f"{year:04d}-{month:02d}-01"
        last_day = calendar.monthrange(year, month)[1]
        end_date = f"{year:04d}-{month:02d}-{last_day:02d}"

        return self.get_transactions_by_date_range(
            start_date,
            end_date,
            account_id=account_id,
            transaction_type=transaction_type,
            category_ids=category_ids,
        )

    def _query(self, where: str, params: List[object]) -> List[Transaction]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_TRANSACTION_FIELDS}
                FROM transactions
                {where}
                ORDER BY transaction_date DESC, created_at, id
                """,
                params,
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def _transaction_to_row(self, t: Transaction) -> tuple:
        return (
            t.id,
            t.account_id,
            t.data_import_id,
            t.transaction_date.isoformat(),
            t.merchant_name,
            t.description,
            t.display_name,
            t.category_id,
            float(t.amount),
            t.type,
            int(t.is_split),
            int(t.is_recurring),
            int(t.needs_review),
            int(t.pending),
            int(t.is_type_manual),
            json.dumps(t.provider_category.to_dict()) if t.provider_category else None,
            t.notes,
            t.created_at.isoformat(),
        )

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            account_id=row[1],
            data_import_id=row[2],
            transaction_date=date.fromisoformat(row[3]),
            merchant_name=row[4],
            description=row[5],
            display_name=row[6],
            category_id=row[7],
            amount=Decimal(str(row[8])),
            type=row[9],
            is_split=bool(row[10]),
            is_recurring=bool(row[11]),
            needs_review=bool(row[12]),
            pending=bool(row[13]),
            is_type_manual=bool(row[14]),
            provider_category=ProviderCategory.from_dict(
                json.loads(row[15]) if row[15] else None
            ),
            notes=row[16],
            created_at=datetime.fromisoformat(row[17]),
        )
