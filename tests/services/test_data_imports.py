from datetime import datetime

from tests.helpers import make_transaction


class TestDataImportService:
    """Tests for DataImportService."""

    def test_create_data_import_with_filename(self, services):
        """Test creating a data import with an archive filename."""
        account = services.accounts.create("checking", "checking", "Checking")

        data_import = services.data_imports.create(
            account.id, "checking_20250101_120000_sync.json.gz"
        )

        assert data_import.id is not None
        assert data_import.id > 0
        assert data_import.account_id == account.id
        assert data_import.filename == "checking_20250101_120000_sync.json.gz"
        assert data_import.is_archived is True
        assert isinstance(data_import.created_at, datetime)

    def test_create_data_import_without_filename(self, services):
        """Test creating a data import without a filename (archiving disabled)."""
        account = services.accounts.create("checking", "checking", "Checking")

        data_import = services.data_imports.create(account.id, None)

        assert data_import.filename is None
        assert data_import.is_archived is False
        assert isinstance(data_import.created_at, datetime)

    def test_find_data_import_by_id(self, services):
        """Test finding a data import by ID."""
        account = services.accounts.create("checking", "checking", "Checking")
        created = services.data_imports.create(account.id, "sync.json.gz")

        found = services.data_imports.find(created.id)

        assert found == created

    def test_find_data_import_by_id_not_found(self, services):
        """Test finding a non-existent data import returns None."""
        assert services.data_imports.find(9999) is None

    def test_find_by_account_only_returns_account_imports(self, services):
        """Test that find_by_account only returns imports for the specified account."""
        account1 = services.accounts.create("account1", "checking", "Account 1")
        account2 = services.accounts.create("account2", "credit", "Account 2")

        import1_a1 = services.data_imports.create(account1.id, "a1_first.json.gz")
        import2_a2 = services.data_imports.create(account2.id, "a2_first.json.gz")
        import3_a1 = services.data_imports.create(account1.id, "a1_second.json.gz")

        # Newest first; same-second imports fall back to ID order
        assert [i.id for i in services.data_imports.find_by_account(account1.id)] == [
            import3_a1.id,
            import1_a1.id,
        ]
        assert [i.id for i in services.data_imports.find_by_account(account2.id)] == [
            import2_a2.id
        ]
        assert services.data_imports.find_by_account(9999) == []

    def test_count_transactions(self, services):
        """Test counting the transactions that arrived through an import."""
        account = services.accounts.create("checking", "checking", "Checking")
        data_import = services.data_imports.create(account.id, None)
        services.transactions.bulk_create(
            [
                make_transaction(account_id=account.id, data_import_id=data_import.id),
                make_transaction(account_id=account.id, data_import_id=data_import.id),
                make_transaction(account_id=account.id),
            ]
        )

        assert services.data_imports.count_transactions(data_import.id) == 2
