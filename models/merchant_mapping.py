"""MerchantMapping model: what the user taught us about a merchant."""

from dataclasses import dataclass
from typing import Optional


def normalize_merchant_name(name: Optional[str]) -> str:
    """Key used to match raw merchant text case-insensitively."""
    return (name or "").strip().lower()


@dataclass
class MerchantMapping:
    """Learned display name and default category for a raw merchant string.

    Attributes:
        id: Unique identifier (auto-generated).
        original_name: Raw merchant text as it arrived from the provider.
        display_name: Name the user prefers to see.
        default_category_id: Category applied to future transactions, if any.
    """

    id: Optional[int]
    original_name: str
    display_name: str
    default_category_id: Optional[int] = None

    @property
    def normalized_name(self) -> str:
        return normalize_merchant_name(self.original_name)
