"""Category model for transaction categorization."""

from dataclasses import dataclass


@dataclass
class Category:
    """A spending or type category.

    Attributes:
        id: Unique identifier (auto-generated).
        name: Category name (unique).
        icon: Icon name shown by the dashboard.
        color: Hex color shown by the dashboard.
        is_default: Whether the category ships with the default seed set.
    """

    id: int
    name: str
    icon: str = "tag"
    color: str = "#64748b"
    is_default: bool = False
