"""Helper utilities for tests."""

import itertools
import sqlite3
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Optional

from models.transaction import Transaction


def run_migrations(conn: sqlite3.Connection, migrations_dir: Path) -> None:
    """Run all SQL migrations in order.

    Args:
        conn: SQLite connection to run migrations against.
        migrations_dir: Path to directory containing .sql migration files.
    """
    # Get all .sql files and sort them
    migration_files = sorted(migrations_dir.glob("*.sql"))

    for migration_file in migration_files:
        with open(migration_file, "r") as f:
            sql = f.read()

        # Execute the migration
        conn.executescript(sql)

    conn.commit()


_sequence = itertools.count(1)


def make_transaction(
    merchant_name: str = "Coffee Shop",
    amount: Decimal = Decimal("5.00"),
    transaction_date: date = date(2024, 1, 15),
    account_id: Optional[int] = None,
    **kwargs,
) -> Transaction:
    """Build a transaction with a unique checksum ID."""
    raw_data = f"{next(_sequence)},{transaction_date},{merchant_name},{amount}"
    return Transaction.create_with_checksum(
        raw_data=raw_data,
        account_id=account_id,
        transaction_date=transaction_date,
        merchant_name=merchant_name,
        amount=Decimal(amount),
        **kwargs,
    )
