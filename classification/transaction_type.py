"""Type classifier: decides whether a raw transaction is an expense, income,
transfer or investment.

Rules are tried in a fixed order and the first match wins:

1. transfer text patterns (merchant, description, full description)
2. investment text patterns
3. provider detailed category mentioning investment/retirement
4. provider primary category that is transfer-like, then INCOME
5. legacy provider category list containing a transfer term
6. sign of the amount: money in is income, money out is expense

"return" is never produced here; refunds get that type from the user or a
file import.
"""

from decimal import Decimal
from typing import Iterable, Optional, Union

from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from models.transaction import EXPENSE, INCOME, INVESTMENT, TRANSFER, ProviderCategory


def classify_transaction_type(
    amount: Union[Decimal, float, int],
    merchant_name: Optional[str],
    description: Optional[str] = None,
    legacy_categories: Optional[Iterable[str]] = None,
    provider_category: Optional[ProviderCategory] = None,
    original_description: Optional[str] = None,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
) -> str:
    """Classify one transaction.

    Args:
        amount: Signed amount (positive = money out, negative = money in).
        merchant_name: Raw merchant text.
        description: Bank description, if any.
        legacy_categories: Legacy provider category strings, if any.
        provider_category: Structured provider hint, if any.
        original_description: Full original description, if any.
        patterns: Rule set to classify with.

    Returns:
        One of "transfer", "investment", "income" or "expense". Never raises
        for missing optional input.
    """
    texts = [text for text in (merchant_name, description, original_description) if text]

    if patterns.matches_transfer(texts):
        return TRANSFER

    if patterns.matches_investment(texts):
        return INVESTMENT

    primary = provider_category.primary if provider_category else None
    detailed = provider_category.detailed if provider_category else None

    if detailed and any(term in detailed for term in patterns.investment_details):
        return INVESTMENT

    if primary:
        if any(primary.startswith(prefix) for prefix in patterns.transfer_primaries):
            return TRANSFER
        if primary in patterns.income_primaries:
            return INCOME

    if legacy_categories and any(
        term in category
        for category in legacy_categories
        if category
        for term in patterns.transfer_legacy_categories
    ):
        return TRANSFER

    if amount < 0:
        return INCOME

    return EXPENSE
