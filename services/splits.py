"""Split service for the shares of a split transaction."""

from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable, List
from models.transaction import TransactionSplit


class SplitService:
    """Service for managing transaction splits."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def replace(
        self, transaction_id: str, splits: List[TransactionSplit]
    ) -> List[TransactionSplit]:
        """Replace all splits of a transaction and mark it as split.

        Split amounts are not required to add up to the parent amount.

        Args:
            transaction_id: ID of the parent transaction.
            splits: New split entries; their parent_transaction_id is overwritten.

        Returns:
            The stored splits with ids populated.

        Raises:
            ValueError: If splits is empty (use delete_for_transaction instead).
        """
        if not splits:
            raise ValueError("splits cannot be empty")

        stored = []
        with self.db_manager.connect() as conn:
            conn.execute(
                "DELETE FROM transaction_splits WHERE parent_transaction_id = ?",
                (transaction_id,),
            )
            for split in splits:
                cursor = conn.execute(
                    """
                    INSERT INTO transaction_splits
                        (parent_transaction_id, amount, description, is_my_share)
                    VALUES (?, ?, ?, ?)
                    """,
                    (
                        transaction_id,
                        float(split.amount),
                        split.description,
                        int(split.is_my_share),
                    ),
                )
                stored.append(
                    TransactionSplit(
                        id=cursor.lastrowid,
                        parent_transaction_id=transaction_id,
                        amount=split.amount,
                        description=split.description,
                        is_my_share=split.is_my_share,
                    )
                )
            conn.execute(
                "UPDATE transactions SET is_split = 1 WHERE id = ?", (transaction_id,)
            )
            conn.commit()

        return stored

    def delete_for_transaction(self, transaction_id: str) -> int:
        """Remove every split of a transaction and clear its is_split flag.

        Returns:
            Number of splits deleted.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM transaction_splits WHERE parent_transaction_id = ?",
                (transaction_id,),
            )
            conn.execute(
                "UPDATE transactions SET is_split = 0 WHERE id = ?", (transaction_id,)
            )
            conn.commit()
            return cursor.rowcount

    def find_for_transaction(self, transaction_id: str) -> List[TransactionSplit]:
        return self.find_for_transactions([transaction_id]).get(transaction_id, [])

    def find_for_transactions(
        self, transaction_ids: Iterable[str]
    ) -> Dict[str, List[TransactionSplit]]:
        """Get splits grouped by parent transaction ID."""
        ids = list(transaction_ids)
        if not ids:
            return {}

        placeholders = ", ".join(["?"] * len(ids))
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT id, parent_transaction_id, amount, description, is_my_share
                FROM transaction_splits
                WHERE parent_transaction_id IN ({placeholders})
                ORDER BY id
                """,
                ids,
            )
            rows = cursor.fetchall()

        grouped: Dict[str, List[TransactionSplit]] = defaultdict(list)
        for row in rows:
            grouped[row[1]].append(
                TransactionSplit(
                    id=row[0],
                    parent_transaction_id=row[1],
                    amount=Decimal(str(row[2])),
                    description=row[3],
                    is_my_share=bool(row[4]),
                )
            )
        return dict(grouped)
