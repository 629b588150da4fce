import sqlite3
from decimal import Decimal

from tests.helpers import make_transaction
from tools.maintenance import (
    assign_type_categories,
    clear_transfer_categories,
    reclassify_transactions,
    recategorize_all,
)


class TestReclassifyTransactions:
    """Tests for reclassify_transactions."""

    def test_reclassifies_by_rule(self, services):
        """Test stored types are recomputed from merchant, description and amount."""
        payment = make_transaction(merchant_name="Credit Card Payment", amount=Decimal("500"))
        broker = make_transaction(merchant_name="Robinhood-Debits-123", amount=Decimal("100"))
        coffee = make_transaction(merchant_name="Blue Bottle", amount=Decimal("4.50"))
        services.transactions.bulk_create([payment, broker, coffee])

        result = reclassify_transactions(services)

        assert result.reclassified == 2
        assert result.unchanged == 1
        assert result.breakdown == {"transfer": 1, "investment": 1}
        assert services.transactions.find(payment.id).type == "transfer"
        assert services.transactions.find(broker.id).type == "investment"

    def test_second_run_changes_nothing(self, services):
        """Test reclassification is re-entrant."""
        services.transactions.bulk_create(
            [make_transaction(merchant_name="Zelle Payment", amount=Decimal("40"))]
        )

        reclassify_transactions(services)
        result = reclassify_transactions(services)

        assert result.reclassified == 0
        assert result.unchanged == 1

    def test_skips_returns_and_manual_types(self, services):
        """Test returns and user-set types are kept unless forced."""
        refund = make_transaction(merchant_name="Target", amount=Decimal("-25"), type="return")
        manual = make_transaction(
            merchant_name="Zelle Rent Share", amount=Decimal("800"), is_type_manual=True
        )
        services.transactions.bulk_create([refund, manual])

        result = reclassify_transactions(services)

        assert result.skipped == 2
        assert services.transactions.find(refund.id).type == "return"
        assert services.transactions.find(manual.id).type == "expense"

    def test_force(self, services):
        """Test force reclassifies user-set types and clears the manual flag."""
        manual = make_transaction(
            merchant_name="Zelle Rent Share", amount=Decimal("800"), is_type_manual=True
        )
        services.transactions.bulk_create([manual])

        result = reclassify_transactions(services, force=True)

        stored = services.transactions.find(manual.id)
        assert result.reclassified == 1
        assert stored.type == "transfer"
        assert stored.is_type_manual is False

    def test_failed_update_is_counted(self, services, monkeypatch):
        """Test a storage error on one row is counted and the rest are written."""
        payment = make_transaction(merchant_name="Credit Card Payment", amount=Decimal("500"))
        broker = make_transaction(merchant_name="Robinhood-Debits-123", amount=Decimal("100"))
        services.transactions.bulk_create([payment, broker])
        update = services.transactions.update

        def failing_update(txn, field_names):
            if txn.id == payment.id:
                raise sqlite3.OperationalError("database is locked")
            return update(txn, field_names)

        monkeypatch.setattr(services.transactions, "update", failing_update)

        result = reclassify_transactions(services)

        assert result.failed == 1
        assert result.reclassified == 1
        assert result.breakdown == {"investment": 1}
        assert services.transactions.find(payment.id).type == "expense"
        assert services.transactions.find(broker.id).type == "investment"


class TestAssignTypeCategories:
    """Tests for assign_type_categories."""

    def test_backfills_income_and_investment(self, seeded_services, category_ids):
        """Test uncategorized income and investment rows get their category."""
        services = seeded_services
        pay = make_transaction(merchant_name="Employer", amount=Decimal("-2500"), type="income")
        broker = make_transaction(merchant_name="Vanguard", amount=Decimal("300"), type="investment")
        tagged = make_transaction(
            merchant_name="Refund Co",
            amount=Decimal("-20"),
            type="income",
            category_id=category_ids["Shopping"],
        )
        services.transactions.bulk_create([pay, broker, tagged])

        result = assign_type_categories(services)

        assert result.updated == {"income": 1, "investment": 1}
        assert result.categories_found == {"income": True, "investment": True}
        assert services.transactions.find(pay.id).category_id == category_ids["Income"]
        assert services.transactions.find(broker.id).category_id == category_ids["Investment"]
        assert services.transactions.find(tagged.id).category_id == category_ids["Shopping"]

    def test_missing_categories(self, services):
        """Test missing type categories are reported, not created."""
        services.transactions.bulk_create(
            [make_transaction(merchant_name="Employer", amount=Decimal("-2500"), type="income")]
        )

        result = assign_type_categories(services)

        assert result.updated == {"income": 0, "investment": 0}
        assert result.categories_found == {"income": False, "investment": False}


class TestClearTransferCategories:
    """Tests for clear_transfer_categories."""

    def test_clears_only_transfers(self, seeded_services, category_ids):
        """Test categories are removed from transfers and nothing else."""
        services = seeded_services
        transfer = make_transaction(
            merchant_name="Card Payment", type="transfer", category_id=category_ids["Shopping"]
        )
        expense = make_transaction(merchant_name="Target", category_id=category_ids["Shopping"])
        services.transactions.bulk_create([transfer, expense])

        assert clear_transfer_categories(services).cleared == 1
        assert clear_transfer_categories(services).cleared == 0
        assert services.transactions.find(transfer.id).category_id is None
        assert services.transactions.find(expense.id).category_id == category_ids["Shopping"]


class TestRecategorizeAll:
    """Tests for recategorize_all."""

    def _setup(self, services, category_ids):
        services.merchant_mappings.upsert("Amazn Mktp", "Amazon", category_ids["Shopping"])
        netflix = make_transaction(merchant_name="Netflix", amount=Decimal("15.49"))
        unknown = make_transaction(merchant_name="XYZZY", amount=Decimal("9.99"))
        amazon = make_transaction(merchant_name="Amazn Mktp", amount=Decimal("23.99"), needs_review=True)
        settled = make_transaction(
            merchant_name="Chevron", amount=Decimal("40"), category_id=category_ids["Dining"]
        )
        services.transactions.bulk_create([netflix, unknown, amazon, settled])
        return netflix, unknown, amazon, settled

    def test_recategorizes_pending_rows(self, seeded_services, category_ids):
        """Test uncategorized and flagged expenses are resolved."""
        services = seeded_services
        netflix, unknown, amazon, settled = self._setup(services, category_ids)

        result = recategorize_all(services)

        assert result.recategorized == 2
        assert result.skipped == 1
        assert result.marked_for_review == 1
        assert result.category_breakdown == {"Entertainment": 1, "Other": 1}
        assert services.transactions.find(netflix.id).category_id == category_ids["Entertainment"]
        assert services.transactions.find(unknown.id).needs_review is True
        assert services.transactions.find(amazon.id).category_id is None
        assert services.transactions.find(settled.id).category_id == category_ids["Dining"]

    def test_idempotent(self, seeded_services, category_ids):
        """Test a second run with no edits in between changes nothing."""
        services = seeded_services
        self._setup(services, category_ids)

        recategorize_all(services)
        result = recategorize_all(services)

        assert result.recategorized == 0
        assert result.marked_for_review == 0
        assert result.unchanged == 1
        assert result.skipped == 1

    def test_include_manual(self, seeded_services, category_ids):
        """Test skip_manual=False applies learned mappings."""
        services = seeded_services
        _, _, amazon, _ = self._setup(services, category_ids)

        recategorize_all(services, skip_manual=False)

        stored = services.transactions.find(amazon.id)
        assert stored.category_id == category_ids["Shopping"]
        assert stored.needs_review is False

    def test_force(self, seeded_services, category_ids):
        """Test force re-evaluates already categorized expenses."""
        services = seeded_services
        _, _, _, settled = self._setup(services, category_ids)

        result = recategorize_all(services, force=True)

        assert services.transactions.find(settled.id).category_id == category_ids["Transportation"]
        assert result.recategorized == 3

    def test_failed_update_is_counted(self, seeded_services, category_ids, monkeypatch):
        """Test a storage error on one row is counted and the rest are written."""
        services = seeded_services
        netflix, unknown, _, _ = self._setup(services, category_ids)
        update = services.transactions.update

        def failing_update(txn, field_names):
            if txn.id == netflix.id:
                raise sqlite3.OperationalError("database is locked")
            return update(txn, field_names)

        monkeypatch.setattr(services.transactions, "update", failing_update)

        result = recategorize_all(services)

        assert result.failed == 1
        assert result.recategorized == 1
        assert result.category_breakdown == {"Other": 1}
        assert services.transactions.find(netflix.id).category_id is None
        assert services.transactions.find(unknown.id).category_id == category_ids["Other"]
