import sqlite3

import pytest

from config import get_migrations_dir
from db.manager import (
    DatabaseManager,
    apply_migration,
    get_applied_migrations,
    get_available_migrations,
    init_schema_migrations_table,
)


class TestMigrations:
    """Tests for the migration helpers."""

    def test_available_migrations_sorted(self):
        """Test shipped migrations are listed in apply order."""
        available = get_available_migrations(get_migrations_dir())

        assert available == sorted(available)
        assert available[0].startswith("001_")
        assert "004_create_merchant_mappings.sql" in available

    def test_missing_dir(self, tmp_path):
        """Test a missing migrations directory lists nothing."""
        assert get_available_migrations(tmp_path / "missing") == []

    def test_apply_all(self, test_db):
        """Test every migration applies once and is recorded."""
        init_schema_migrations_table(test_db)
        migrations_dir = get_migrations_dir()
        available = get_available_migrations(migrations_dir)

        for migration in available:
            apply_migration(test_db, migrations_dir, migration)

        assert get_applied_migrations(test_db) == set(available)
        tables = {
            row[0]
            for row in test_db.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        }
        assert {
            "accounts",
            "data_imports",
            "categories",
            "transactions",
            "transaction_splits",
            "merchant_mappings",
            "recurring_transactions",
        } <= tables

    def test_failed_migration_not_recorded(self, test_db, tmp_path):
        """Test a broken script raises and is not marked applied."""
        init_schema_migrations_table(test_db)
        (tmp_path / "001_broken.sql").write_text("CREATE TABLE (;")

        with pytest.raises(sqlite3.Error):
            apply_migration(test_db, tmp_path, "001_broken.sql")

        assert get_applied_migrations(test_db) == set()


class TestDatabaseManager:
    """Tests for DatabaseManager connections."""

    def test_connect_creates_data_dir(self, test_config):
        """Test the database directory is created on first connect."""
        manager = DatabaseManager(test_config)

        with manager.connect() as conn:
            conn.execute("SELECT 1")

        assert manager.get_db_path().exists()
        assert manager.get_db_path() == test_config.db_data_dir / "test.db"
