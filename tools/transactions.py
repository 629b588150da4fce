"""Transaction analysis tools."""

from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional
from models.transaction import (
    EXPENSE,
    INCOME,
    INVESTMENT,
    RETURN,
    Transaction,
    TransactionSplit,
    effective_amount,
)


def get_period_transactions(
    services,
    start_month: date,
    end_month: date,
    category_ids: Optional[List[int]] = None,
) -> Dict[str, List[Transaction]]:
    """Get transactions for a period, organized by month.

    Args:
        services: Services container with transaction service.
        start_month: Start of period (date object, day component ignored).
        end_month: End of period (date object, day component ignored).
        category_ids: Optional list of category IDs to filter by.

    Returns:
        Month keys (format: "YYYY/MM") mapped to transaction lists, e.g.
        {"2024/01": [Transaction(...), ...], "2024/02": [...]}
    """
    result = {}

    current_year = start_month.year
    current_month = start_month.month

    while (current_year, current_month) <= (end_month.year, end_month.month):
        month_key = f"{current_year:04d}/{current_month:02d}"
        result[month_key] = services.transactions.get_transactions_by_month(
            current_year,
            current_month,
            category_ids=category_ids,
        )

        current_month += 1
        if current_month > 12:
            current_month = 1
            current_year += 1

    return result


def summarize_transactions(
    transactions: Iterable[Transaction],
    splits_by_transaction: Optional[Dict[str, List[TransactionSplit]]] = None,
) -> Dict[str, object]:
    """Aggregate transactions into income, spending and investment totals.

    Amounts are split-aware (see ``effective_amount``). Returns reduce the
    spending of their category, never below zero. Transfers are ignored.

    Returns:
        Dictionary with:
        - "income_total": Total income (Decimal)
        - "expense_total": Net spending after returns (Decimal)
        - "investment_total": Money moved into investments (Decimal)
        - "net": income_total - expense_total (Decimal)
        - "expenses_by_category": category_id -> net spending (Decimal)
          (category_id=0 for uncategorized transactions)
    """
    splits_by_transaction = splits_by_transaction or {}

    income_total = Decimal("0")
    investment_total = Decimal("0")
    expenses_by_category: Dict[int, Decimal] = {}

    for transaction in transactions:
        amount = effective_amount(
            transaction, splits_by_transaction.get(transaction.id)
        )

        if transaction.type == INCOME:
            income_total += amount
        elif transaction.type == INVESTMENT:
            investment_total += amount
        elif transaction.type in (EXPENSE, RETURN):
            category_id = (
                transaction.category_id if transaction.category_id is not None else 0
            )
            signed = amount if transaction.type == EXPENSE else -amount
            expenses_by_category[category_id] = (
                expenses_by_category.get(category_id, Decimal("0")) + signed
            )

    expenses_by_category = {
        category_id: max(total, Decimal("0"))
        for category_id, total in expenses_by_category.items()
    }
    expense_total = sum(expenses_by_category.values(), Decimal("0"))

    return {
        "income_total": income_total,
        "expense_total": expense_total,
        "investment_total": investment_total,
        "net": income_total - expense_total,
        "expenses_by_category": expenses_by_category,
    }


def get_period_summary(
    services,
    start_month: date,
    end_month: date,
    category_ids: Optional[List[int]] = None,
) -> Dict[str, Dict[str, object]]:
    """Get summarized transaction data for a period, organized by month.

    Args:
        services: Services container.
        start_month: Start of period (date object, day component ignored).
        end_month: End of period (date object, day component ignored).
        category_ids: Optional list of category IDs to filter by.

    Returns:
        Month keys ("YYYY/MM") mapped to ``summarize_transactions`` output.

    Example:
        {
            "2024/01": {
                "income_total": Decimal("1000.00"),
                "expense_total": Decimal("460.00"),
                "investment_total": Decimal("200.00"),
                "net": Decimal("540.00"),
                "expenses_by_category": {1: Decimal("160.00"), 2: Decimal("300.00")},
            },
            "2024/02": {...},
        }
    """
    transactions_by_month = get_period_transactions(
        services, start_month, end_month, category_ids
    )

    result = {}
    for month_key, transactions in transactions_by_month.items():
        split_ids = [t.id for t in transactions if t.is_split]
        splits = services.splits.find_for_transactions(split_ids) if split_ids else {}
        result[month_key] = summarize_transactions(transactions, splits)

    return result
