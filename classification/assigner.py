"""Category Assigner: Merchant Memory first, rule categorizer second."""

from dataclasses import dataclass
from typing import Dict, Optional

from classification.categorizer import categorize
from classification.merchant_memory import MerchantMemory
from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from models.transaction import SPENDING_TYPES, Transaction

MEMORY = "memory"
RULES = "rules"


@dataclass(frozen=True)
class CategoryAssignment:
    """Outcome of assigning a category to one transaction.

    Attributes:
        category_id: Chosen category, or None if the name is unknown.
        needs_review: Whether a human should confirm the choice.
        source: "memory" or "rules".
        category_name: Name the category was resolved from.
    """

    category_id: Optional[int]
    needs_review: bool
    source: str
    category_name: Optional[str] = None


class CategoryAssigner:
    """Resolves categories for expense and return transactions."""

    def __init__(
        self,
        memory: MerchantMemory,
        category_ids: Dict[str, int],
        patterns: PatternLibrary = DEFAULT_PATTERNS,
    ):
        self.memory = memory
        self.category_ids = category_ids
        self.patterns = patterns
        self._names = {category_id: name for name, category_id in category_ids.items()}

    def applies_to(self, transaction: Transaction) -> bool:
        return transaction.type in SPENDING_TYPES

    def assign(
        self, transaction: Transaction, use_provider_hint: bool = True
    ) -> Optional[CategoryAssignment]:
        """Assign a category, or return None for types that carry none."""
        if not self.applies_to(transaction):
            return None

        mapping = self.memory.lookup(transaction.merchant_name)
        if mapping and mapping.default_category_id is not None:
            return CategoryAssignment(
                category_id=mapping.default_category_id,
                needs_review=False,
                source=MEMORY,
                category_name=self._names.get(mapping.default_category_id),
            )

        result = categorize(
            transaction.merchant_name,
            transaction.description,
            transaction.provider_category if use_provider_hint else None,
            self.patterns,
        )
        category_id = self.category_ids.get(result.category_name)
        return CategoryAssignment(
            category_id=category_id,
            needs_review=result.needs_review or category_id is None,
            source=RULES,
            category_name=result.category_name,
        )
