"""Account service for database operations."""

from typing import List, Optional
from models.account import Account

_ACCOUNT_FIELDS = "id, name, type, description"


class AccountService:
    """Service for managing accounts transactions are synced into."""

    def __init__(self, db_manager):
        """Initialize the account service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[Account]:
        """Get all accounts, ordered by id."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(f"SELECT {_ACCOUNT_FIELDS} FROM accounts ORDER BY id")
            return [self._row_to_account(row) for row in cursor.fetchall()]

    def find(self, account_id: int) -> Optional[Account]:
        return self._find_one("id = ?", account_id)

    def find_by_name(self, name: str) -> Optional[Account]:
        return self._find_one("name = ?", name)

    def create(self, name: str, account_type: str, description: str) -> Account:
        """Create a new account.

        Args:
            name: Account name (unique).
            account_type: Kind of account, e.g. "checking" or "credit".
            description: Human-readable description.

        Returns:
            The created Account object with id populated.

        Raises:
            sqlite3.IntegrityError: If the name is already taken.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO accounts (name, type, description) VALUES (?, ?, ?)",
                (name, account_type, description),
            )
            conn.commit()

            return Account(
                id=cursor.lastrowid,
                name=name,
                type=account_type,
                description=description,
            )

    def delete(self, account_id: int) -> bool:
        """Delete an account and every transaction synced into it.

        Returns:
            True if account was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                DELETE FROM transaction_splits WHERE parent_transaction_id IN
                    (SELECT id FROM transactions WHERE account_id = ?)
                """,
                (account_id,),
            )
            conn.execute("DELETE FROM transactions WHERE account_id = ?", (account_id,))
            conn.execute("DELETE FROM data_imports WHERE account_id = ?", (account_id,))
            cursor = conn.execute("DELETE FROM accounts WHERE id = ?", (account_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _find_one(self, condition: str, value) -> Optional[Account]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_ACCOUNT_FIELDS} FROM accounts WHERE {condition}", (value,)
            )
            row = cursor.fetchone()
            return self._row_to_account(row) if row else None

    def _row_to_account(self, row: tuple) -> Account:
        return Account(id=row[0], name=row[1], type=row[2], description=row[3])
