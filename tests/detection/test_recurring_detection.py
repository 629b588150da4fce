import sqlite3
from datetime import date
from decimal import Decimal

from dateutil.relativedelta import relativedelta

from detection.recurring import (
    classify_frequency,
    detect_recurring_transactions,
    find_recurring_candidates,
)
from tests.helpers import make_transaction


def _monthly(merchant, amounts, start=date(2024, 1, 15), **kwargs):
    return [
        make_transaction(
            merchant_name=merchant,
            amount=Decimal(amount),
            transaction_date=start + relativedelta(months=i),
            **kwargs,
        )
        for i, amount in enumerate(amounts)
    ]


class TestClassifyFrequency:
    """Tests for mapping mean gaps to frequencies."""

    def test_windows(self):
        """Test each window including its bounds."""
        assert classify_frequency(5) == "weekly"
        assert classify_frequency(7) == "weekly"
        assert classify_frequency(10) == "weekly"
        assert classify_frequency(25) == "monthly"
        assert classify_frequency(30.4) == "monthly"
        assert classify_frequency(35) == "monthly"
        assert classify_frequency(350) == "yearly"
        assert classify_frequency(380) == "yearly"

    def test_outside_windows(self):
        """Test gaps between windows are not recurring."""
        for gap in (1, 4.9, 14, 20, 36, 90, 349, 381):
            assert classify_frequency(gap) is None, gap


class TestFindRecurringCandidates:
    """Tests for grouping and filtering candidate merchants."""

    def test_monthly_subscription(self):
        """Test twelve identical monthly charges are detected."""
        transactions = _monthly("Netflix", ["15.49"] * 12)

        candidates = find_recurring_candidates(transactions)

        assert len(candidates) == 1
        assert candidates[0].merchant == "Netflix"
        assert candidates[0].frequency == "monthly"
        assert candidates[0].average_amount == Decimal("15.49")
        assert candidates[0].last_seen == date(2024, 12, 15)

    def test_unstable_amounts_rejected(self):
        """Test a merchant with widely varying amounts is rejected."""
        transactions = _monthly("Costco", ["150.00", "80.00", "210.00"])

        assert find_recurring_candidates(transactions) == []

    def test_amounts_within_tolerance(self):
        """Test small price changes stay within the 10% band."""
        transactions = _monthly("Spotify", ["100.00", "110.00"])

        candidates = find_recurring_candidates(transactions)

        assert len(candidates) == 1
        assert candidates[0].average_amount == Decimal("105.00")

    def test_varying_monthly_amounts(self):
        """Test monthly charges drifting within 5% of 15.49 are detected."""
        transactions = _monthly(
            "Netflix",
            ["15.49", "15.99", "14.99", "15.49", "16.19", "15.49",
             "14.79", "15.49", "15.99", "15.49", "15.19", "15.49"],
        )

        candidates = find_recurring_candidates(transactions)

        assert len(candidates) == 1
        assert candidates[0].frequency == "monthly"
        assert candidates[0].average_amount == Decimal("15.51")
        assert len(candidates[0].transactions) == 12

    def test_frequent_unstable_merchant_rejected(self):
        """Test weekly charges with wildly different amounts are rejected."""
        transactions = [
            make_transaction(
                merchant_name="Costco",
                amount=Decimal(amount),
                transaction_date=date(2024, 3, 1) + relativedelta(days=7 * i),
            )
            for i, amount in enumerate(["40", "180", "22", "95", "310"])
        ]

        assert find_recurring_candidates(transactions) == []

    def test_deviation_at_tolerance_rejected(self):
        """Test an amount exactly 10% from the mean is outside the band."""
        transactions = _monthly("Spotify", ["90.00", "110.00"])

        assert find_recurring_candidates(transactions) == []

    def test_weekly_and_yearly(self):
        """Test weekly and yearly cadences."""
        weekly = [
            make_transaction(
                merchant_name="Farmers Box",
                amount=Decimal("30.00"),
                transaction_date=date(2024, 3, 1) + relativedelta(days=7 * i),
            )
            for i in range(4)
        ]
        yearly = [
            make_transaction(
                merchant_name="Costco Membership",
                amount=Decimal("65.00"),
                transaction_date=date(2023, 2, 1) + relativedelta(years=i),
            )
            for i in range(2)
        ]

        candidates = {c.merchant: c for c in find_recurring_candidates(weekly + yearly)}

        assert candidates["Farmers Box"].frequency == "weekly"
        assert candidates["Costco Membership"].frequency == "yearly"

    def test_irregular_interval_rejected(self):
        """Test same-amount charges at an irregular interval are rejected."""
        transactions = [
            make_transaction(
                merchant_name="Car Wash", amount=Decimal("12.00"), transaction_date=day
            )
            for day in (date(2024, 1, 1), date(2024, 1, 16))
        ]

        assert find_recurring_candidates(transactions) == []

    def test_single_transaction_rejected(self):
        """Test a lone charge is never recurring by itself."""
        assert find_recurring_candidates(_monthly("Hulu", ["7.99"])) == []

    def test_groups_by_display_name(self):
        """Test raw merchant variants with one display name form one group."""
        transactions = _monthly("NETFLIX.COM 866-579", ["15.49"] * 3, display_name="Netflix")
        transactions[1].merchant_name = "NETFLIX.COM 1234"

        candidates = find_recurring_candidates(transactions)

        assert [c.merchant for c in candidates] == ["Netflix"]

    def test_subscription_category_overrides(self):
        """Test a subscription-category charge is accepted alone, defaulting to monthly."""
        transactions = _monthly("Hulu", ["7.99"], category_id=8)

        candidates = find_recurring_candidates(transactions, subscription_category_id=8)

        assert len(candidates) == 1
        assert candidates[0].frequency == "monthly"

    def test_subscription_category_ignores_amount_stability(self):
        """Test a subscription merchant with changing prices is still accepted."""
        transactions = _monthly("Gym", ["20.00", "45.00", "20.00"])
        transactions[0].category_id = 8

        candidates = find_recurring_candidates(transactions, subscription_category_id=8)

        assert len(candidates) == 1
        assert candidates[0].frequency == "monthly"


class TestDetectRecurringTransactions:
    """Tests for the stored detection run."""

    def test_detect_upserts_and_marks(self, seeded_services):
        """Test detection stores one record and tags every member."""
        services = seeded_services
        account = services.accounts.create("checking", "checking", "Checking")
        services.transactions.bulk_create(
            _monthly("Netflix", ["15.49"] * 12, account_id=account.id)
            + _monthly("Costco", ["150.00", "80.00", "210.00"], account_id=account.id)
        )

        result = detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert result.upserted == 1
        assert result.failed == 0
        assert result.transactions_marked == 12
        record = services.recurring.find_by_merchant("Netflix")
        assert record.frequency == "monthly"
        assert record.average_amount == Decimal("15.49")
        assert record.last_seen == date(2024, 12, 15)
        assert record.is_active is True
        assert all(t.is_recurring for t in services.transactions.find_by_merchant("Netflix"))
        assert not any(t.is_recurring for t in services.transactions.find_by_merchant("Costco"))

    def test_rerun_is_idempotent(self, seeded_services):
        """Test running detection twice keeps a single record per merchant."""
        services = seeded_services
        services.transactions.bulk_create(_monthly("Netflix", ["15.49"] * 6))

        detect_recurring_transactions(services, as_of=date(2024, 12, 31))
        detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert len(services.recurring.find_all(active_only=False)) == 1

    def test_only_expenses_in_window(self, seeded_services):
        """Test income and charges older than the lookback window are ignored."""
        services = seeded_services
        services.transactions.bulk_create(
            _monthly("Employer Payroll", ["-2500.00"] * 6, type="income")
            + _monthly("Old Gym", ["30.00"] * 6, start=date(2022, 1, 5))
        )

        result = detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert result.upserted == 0
        assert services.recurring.find_all() == []

    def test_marks_by_merchant_and_amount(self, seeded_services):
        """Test tagging matches merchant and amount, including older charges."""
        services = seeded_services
        older = make_transaction(
            merchant_name="Netflix", amount=Decimal("15.49"), transaction_date=date(2023, 6, 15)
        )
        different_amount = make_transaction(
            merchant_name="Netflix", amount=Decimal("22.99"), transaction_date=date(2023, 7, 15)
        )
        services.transactions.bulk_create(
            _monthly("Netflix", ["15.49"] * 3, start=date(2024, 9, 15)) + [older, different_amount]
        )

        detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert services.transactions.find(older.id).is_recurring is True
        assert services.transactions.find(different_amount.id).is_recurring is False

    def test_hidden_record_reactivated(self, seeded_services):
        """Test a hidden recurring charge is shown again when it is detected again."""
        services = seeded_services
        services.transactions.bulk_create(_monthly("Netflix", ["15.49"] * 3))
        detect_recurring_transactions(services, as_of=date(2024, 12, 31))
        record = services.recurring.find_by_merchant("Netflix")
        services.recurring.set_active(record.id, False)

        detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert services.recurring.find(record.id).is_active is True

    def test_subscription_category_from_config(self, seeded_services, category_ids):
        """Test the configured subscription category enables the override."""
        services = seeded_services
        services.transactions.bulk_create(
            _monthly("Hulu", ["7.99"], start=date(2024, 11, 3), category_id=category_ids["Subscriptions"])
        )

        result = detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert result.upserted == 1
        assert services.recurring.find_by_merchant("Hulu").frequency == "monthly"

    def test_varying_amounts_all_marked(self, seeded_services):
        """Test every member is tagged when the amounts differ month to month."""
        services = seeded_services
        services.transactions.bulk_create(
            _monthly("Netflix", ["15.49", "15.99", "14.99", "15.49", "16.19", "15.49",
                                 "14.79", "15.49", "15.99", "15.49", "15.19", "15.49"])
        )

        result = detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert result.upserted == 1
        assert result.transactions_marked == 12
        assert all(t.is_recurring for t in services.transactions.find_by_merchant("Netflix"))

    def test_failed_upsert_is_counted(self, seeded_services, monkeypatch):
        """Test a storage error on one merchant is counted and the rest are stored."""
        services = seeded_services
        services.transactions.bulk_create(
            _monthly("Hulu", ["7.99"] * 3) + _monthly("Netflix", ["15.49"] * 3)
        )
        upsert = services.recurring.upsert

        def failing_upsert(merchant, *args):
            if merchant == "Hulu":
                raise sqlite3.OperationalError("database is locked")
            return upsert(merchant, *args)

        monkeypatch.setattr(services.recurring, "upsert", failing_upsert)

        result = detect_recurring_transactions(services, as_of=date(2024, 12, 31))

        assert result.failed == 1
        assert result.upserted == 1
        assert result.transactions_marked == 3
        assert services.recurring.find_by_merchant("Hulu") is None
        assert services.recurring.find_by_merchant("Netflix") is not None
        assert not any(t.is_recurring for t in services.transactions.find_by_merchant("Hulu"))
