"""DataImport service: records of files whose transactions were ingested."""

from typing import List, Optional
from datetime import datetime
from models.data_import import DataImport

_IMPORT_FIELDS = "id, account_id, filename, created_at"


class DataImportService:
    """Service for managing data import records."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def create(self, account_id: int, filename: Optional[str]) -> DataImport:
        """Create a new data import record.

        Args:
            account_id: ID of the account this import belongs to.
            filename: Name of the archived file (None if archiving disabled).

        Returns:
            The created DataImport object with id and created_at populated.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO data_imports (account_id, filename) VALUES (?, ?)",
                (account_id, filename),
            )
            conn.commit()

            # created_at is filled in by the database default
            cursor = conn.execute(
                f"SELECT {_IMPORT_FIELDS} FROM data_imports WHERE id = ?",
                (cursor.lastrowid,),
            )
            return self._row_to_data_import(cursor.fetchone())

    def find(self, data_import_id: int) -> Optional[DataImport]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_IMPORT_FIELDS} FROM data_imports WHERE id = ?",
                (data_import_id,),
            )
            row = cursor.fetchone()
            return self._row_to_data_import(row) if row else None

    def find_by_account(self, account_id: int) -> List[DataImport]:
        """Get all data imports for an account, newest first."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_IMPORT_FIELDS}
                FROM data_imports
                WHERE account_id = ?
                ORDER BY created_at DESC, id DESC
                """,
                (account_id,),
            )
            return [self._row_to_data_import(row) for row in cursor.fetchall()]

    def count_transactions(self, data_import_id: int) -> int:
        """Number of transactions that arrived through this import."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE data_import_id = ?",
                (data_import_id,),
            )
            return cursor.fetchone()[0]

    def _row_to_data_import(self, row: tuple) -> DataImport:
        return DataImport(
            id=row[0],
            account_id=row[1],
            filename=row[2],
            created_at=datetime.fromisoformat(row[3]),
        )
