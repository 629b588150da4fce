"""Recurring transaction service for database operations."""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from models.recurring_transaction import FREQUENCIES, RecurringTransaction

_RECURRING_FIELDS = "id, merchant_display_name, average_amount, frequency, last_seen, is_active"


class RecurringTransactionService:
    """Service for managing detected recurring charges."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def upsert(
        self,
        merchant_display_name: str,
        average_amount: Decimal,
        frequency: str,
        last_seen: date,
    ) -> RecurringTransaction:
        """Create or refresh the recurring charge for a merchant and mark it active.

        A single INSERT ... ON CONFLICT statement, so each upsert is atomic.

        Raises:
            ValueError: If frequency is not weekly, monthly or yearly.
            sqlite3.Error: If the write fails.
        """
        if frequency not in FREQUENCIES:
            raise ValueError(f"Unknown frequency: {frequency}")

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO recurring_transactions
                    (merchant_display_name, average_amount, frequency, last_seen, is_active)
                VALUES (?, ?, ?, ?, 1)
                ON CONFLICT(merchant_display_name) DO UPDATE SET
                    average_amount = excluded.average_amount,
                    frequency = excluded.frequency,
                    last_seen = excluded.last_seen,
                    is_active = 1
                """,
                (
                    merchant_display_name,
                    float(average_amount),
                    frequency,
                    last_seen.isoformat(),
                ),
            )
            conn.commit()
            cursor = conn.execute(
                f"SELECT {_RECURRING_FIELDS} FROM recurring_transactions "
                "WHERE merchant_display_name = ?",
                (merchant_display_name,),
            )
            return self._row_to_recurring(cursor.fetchone())

    def find_all(self, active_only: bool = True) -> List[RecurringTransaction]:
        """Get recurring charges, largest average amount first."""
        where = "WHERE is_active = 1" if active_only else ""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_RECURRING_FIELDS}
                FROM recurring_transactions
                {where}
                ORDER BY average_amount DESC, merchant_display_name
                """
            )
            return [self._row_to_recurring(row) for row in cursor.fetchall()]

    def find(self, recurring_id: int) -> Optional[RecurringTransaction]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_RECURRING_FIELDS} FROM recurring_transactions WHERE id = ?",
                (recurring_id,),
            )
            row = cursor.fetchone()
            return self._row_to_recurring(row) if row else None

    def find_by_merchant(
        self, merchant_display_name: str
    ) -> Optional[RecurringTransaction]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_RECURRING_FIELDS} FROM recurring_transactions "
                "WHERE merchant_display_name = ?",
                (merchant_display_name,),
            )
            row = cursor.fetchone()
            return self._row_to_recurring(row) if row else None

    def set_active(self, recurring_id: int, is_active: bool) -> bool:
        """Hide or unhide a recurring charge. Rows are never deleted.

        Returns:
            True if the row exists, False otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "UPDATE recurring_transactions SET is_active = ? WHERE id = ?",
                (int(is_active), recurring_id),
            )
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_recurring(self, row: tuple) -> RecurringTransaction:
        return RecurringTransaction(
            id=row[0],
            merchant_display_name=row[1],
            average_amount=Decimal(str(row[2])),
            frequency=row[3],
            last_seen=date.fromisoformat(row[4]),
            is_active=bool(row[5]),
        )
