from decimal import Decimal

from categorization import auto_categorize, build_assigner
from tests.helpers import make_transaction


class TestAutoCategorize:
    """Tests for auto_categorize."""

    def test_categorizes_spending_only(self, seeded_services, category_ids):
        """Test expenses and returns are categorized and other types are left alone."""
        assigner = build_assigner(seeded_services)
        expense = make_transaction(merchant_name="Starbucks")
        refund = make_transaction(merchant_name="Target", amount=Decimal("-15"), type="return")
        unknown = make_transaction(merchant_name="XYZZY")
        income = make_transaction(merchant_name="Payroll", amount=Decimal("-2000"), type="income")

        result = auto_categorize([expense, refund, unknown, income], assigner)

        assert result == [expense, refund, unknown, income]
        assert expense.category_id == category_ids["Dining"]
        assert expense.needs_review is False
        assert refund.category_id == category_ids["Groceries"]
        assert unknown.category_id == category_ids["Other"]
        assert unknown.needs_review is True
        assert income.category_id is None
        assert income.needs_review is False

    def test_uses_merchant_memory(self, seeded_services, category_ids):
        """Test a stored mapping wins over the rules."""
        seeded_services.merchant_mappings.upsert("Target", "Target", category_ids["Shopping"])
        txn = make_transaction(merchant_name="TARGET")

        auto_categorize([txn], build_assigner(seeded_services))

        assert txn.category_id == category_ids["Shopping"]

    def test_without_assigner(self):
        """Test categorization is skipped when no assigner is given."""
        txn = make_transaction(merchant_name="Starbucks")

        auto_categorize([txn], None)

        assert txn.category_id is None
