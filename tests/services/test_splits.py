from decimal import Decimal

import pytest

from models.transaction import TransactionSplit, effective_amount
from tests.helpers import make_transaction


class TestSplitService:
    """Tests for SplitService."""

    def test_replace_marks_parent_split(self, services):
        """Test storing splits sets is_split and returns stored IDs."""
        txn = make_transaction(amount=Decimal("100"))
        services.transactions.create(txn)

        stored = services.splits.replace(
            txn.id,
            [
                TransactionSplit("ignored", Decimal("60"), "mine"),
                TransactionSplit("ignored", Decimal("40"), "Alex", is_my_share=False),
            ],
        )

        assert all(split.id is not None for split in stored)
        assert all(split.parent_transaction_id == txn.id for split in stored)
        assert services.transactions.find(txn.id).is_split is True
        assert services.splits.find_for_transaction(txn.id) == stored

    def test_replace_overwrites(self, services):
        """Test replacing splits drops the previous set."""
        txn = make_transaction(amount=Decimal("100"))
        services.transactions.create(txn)
        services.splits.replace(txn.id, [TransactionSplit(txn.id, Decimal("10"))])

        services.splits.replace(txn.id, [TransactionSplit(txn.id, Decimal("25"), "new")])

        splits = services.splits.find_for_transaction(txn.id)
        assert [(s.amount, s.description) for s in splits] == [(Decimal("25"), "new")]

    def test_replace_requires_splits(self, services):
        """Test an empty split list is rejected."""
        with pytest.raises(ValueError):
            services.splits.replace("any", [])

    def test_delete_for_transaction(self, services):
        """Test removing splits clears the parent flag."""
        txn = make_transaction(amount=Decimal("100"))
        services.transactions.create(txn)
        services.splits.replace(
            txn.id,
            [TransactionSplit(txn.id, Decimal("60")), TransactionSplit(txn.id, Decimal("40"))],
        )

        assert services.splits.delete_for_transaction(txn.id) == 2
        assert services.splits.find_for_transaction(txn.id) == []
        assert services.transactions.find(txn.id).is_split is False

    def test_find_for_transactions_groups_by_parent(self, services):
        """Test splits are grouped by parent and parents without splits are absent."""
        first, second, plain = (make_transaction() for _ in range(3))
        services.transactions.bulk_create([first, second, plain])
        services.splits.replace(first.id, [TransactionSplit(first.id, Decimal("1"))])
        services.splits.replace(
            second.id,
            [TransactionSplit(second.id, Decimal("2")), TransactionSplit(second.id, Decimal("3"))],
        )

        grouped = services.splits.find_for_transactions([first.id, second.id, plain.id])

        assert set(grouped) == {first.id, second.id}
        assert [s.amount for s in grouped[second.id]] == [Decimal("2"), Decimal("3")]
        assert services.splits.find_for_transactions([]) == {}


class TestEffectiveAmount:
    """Tests for effective_amount."""

    def test_unsplit_uses_absolute_amount(self):
        """Test money in and money out both count by magnitude."""
        assert effective_amount(make_transaction(amount=Decimal("-12.50"))) == Decimal("12.50")

    def test_split_counts_my_shares(self):
        """Test only the user's shares count once a transaction is split."""
        txn = make_transaction(amount=Decimal("100"), is_split=True)
        splits = [
            TransactionSplit(txn.id, Decimal("30")),
            TransactionSplit(txn.id, Decimal("30")),
            TransactionSplit(txn.id, Decimal("40"), is_my_share=False),
        ]

        assert effective_amount(txn, splits) == Decimal("60")

    def test_split_flag_without_splits(self):
        """Test a split flag with no stored splits falls back to the full amount."""
        txn = make_transaction(amount=Decimal("100"), is_split=True)

        assert effective_amount(txn, []) == Decimal("100")
