"""RecurringTransaction model produced by the recurring pattern detector."""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"

FREQUENCIES = (WEEKLY, MONTHLY, YEARLY)


@dataclass
class RecurringTransaction:
    """One subscription-like charge, keyed by merchant display name.

    Attributes:
        id: Unique identifier (auto-generated).
        merchant_display_name: Effective merchant name of the group.
        average_amount: Mean absolute amount of the group's transactions.
        frequency: One of "weekly", "monthly", "yearly".
        last_seen: Date of the most recent transaction in the group.
        is_active: False once the user hides it.
    """

    id: Optional[int]
    merchant_display_name: str
    average_amount: Decimal
    frequency: str
    last_seen: date
    is_active: bool = True
