import sqlite3
from decimal import Decimal

import pytest

from models.transaction import TransactionSplit
from tests.helpers import make_transaction


class TestAccountService:
    """Tests for AccountService."""

    def test_create_account(self, services):
        """Test creating a new account."""
        account = services.accounts.create("chase_checking", "checking", "Chase Checking")

        assert account.id is not None
        assert account.id > 0
        assert account.name == "chase_checking"
        assert account.type == "checking"
        assert account.description == "Chase Checking"

    def test_find_account_by_id(self, services):
        """Test finding an account by ID."""
        created = services.accounts.create("sapphire", "credit", "Chase Sapphire Card")

        found = services.accounts.find(created.id)

        assert found == created

    def test_find_account_by_id_not_found(self, services):
        """Test finding a non-existent account by ID returns None."""
        assert services.accounts.find(9999) is None

    def test_find_by_name_case_sensitive(self, services):
        """Test that account name lookup is exact and case-sensitive."""
        services.accounts.create("brokerage", "brokerage", "Brokerage")

        assert services.accounts.find_by_name("brokerage").type == "brokerage"
        assert services.accounts.find_by_name("Brokerage") is None

    def test_find_all_ordered_by_id(self, services):
        """Test that find_all returns accounts in creation order, not by name."""
        services.accounts.create("zebra", "checking", "Zebra")
        services.accounts.create("alpha", "credit", "Alpha")
        services.accounts.create("beta", "savings", "Beta")

        assert [a.name for a in services.accounts.find_all()] == ["zebra", "alpha", "beta"]

    def test_find_all_empty(self, services):
        """Test finding all accounts when database is empty."""
        assert services.accounts.find_all() == []

    def test_create_duplicate_name_raises_error(self, services):
        """Test that creating an account with duplicate name raises an error."""
        services.accounts.create("duplicate", "checking", "First")

        with pytest.raises(sqlite3.IntegrityError):
            services.accounts.create("duplicate", "credit", "Second")

    def test_create_account_with_special_characters(self, services):
        """Test creating account with special characters in description."""
        description = "Account with 'quotes' and \"double quotes\" & special chars!"
        account = services.accounts.create("special", "checking", description)

        assert services.accounts.find(account.id).description == description

    def test_delete_account(self, services):
        """Test deleting an account removes its transactions, splits and imports."""
        account = services.accounts.create("to_delete", "credit", "Will be deleted")
        keep = services.accounts.create("keep", "checking", "Keep This")
        data_import = services.data_imports.create(account.id, None)
        doomed = make_transaction(account_id=account.id, data_import_id=data_import.id)
        kept = make_transaction(account_id=keep.id)
        services.transactions.bulk_create([doomed, kept])
        services.splits.replace(doomed.id, [TransactionSplit(doomed.id, Decimal("2.50"))])

        assert services.accounts.delete(account.id) is True

        assert services.accounts.find(account.id) is None
        assert services.transactions.find(doomed.id) is None
        assert services.splits.find_for_transaction(doomed.id) == []
        assert services.data_imports.find(data_import.id) is None
        assert services.transactions.find(kept.id) is not None
        assert [a.id for a in services.accounts.find_all()] == [keep.id]

    def test_delete_nonexistent_account(self, services):
        """Test deleting a non-existent account returns False."""
        assert services.accounts.delete(9999) is False
