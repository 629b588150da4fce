from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional
import hashlib

EXPENSE = "expense"
INCOME = "income"
TRANSFER = "transfer"
INVESTMENT = "investment"
RETURN = "return"

TRANSACTION_TYPES = (EXPENSE, INCOME, TRANSFER, INVESTMENT, RETURN)

# Types that carry a spending category assigned by the Category Assigner
SPENDING_TYPES = (EXPENSE, RETURN)


@dataclass(frozen=True)
class ProviderCategory:
    """Structured category hint from the aggregation provider.

    Attributes:
        primary: Coarse label, e.g. "TRANSFER_OUT" or "FOOD_AND_DRINK".
        detailed: Fine label, e.g. "FOOD_AND_DRINK_GROCERIES".
    """

    primary: Optional[str] = None
    detailed: Optional[str] = None

    def to_dict(self) -> dict:
        return {"primary": self.primary, "detailed": self.detailed}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["ProviderCategory"]:
        if not data:
            return None
        return cls(primary=data.get("primary"), detailed=data.get("detailed"))


@dataclass
class TransactionSplit:
    """A share of a parent transaction.

    Attributes:
        parent_transaction_id: ID of the split transaction.
        amount: Amount of this share.
        description: What the share is for, e.g. "Alex's half".
        is_my_share: Whether this share counts as the user's own spending.
        id: Database ID (None until stored).
    """

    parent_transaction_id: str
    amount: Decimal
    description: Optional[str] = None
    is_my_share: bool = True
    id: Optional[int] = None


@dataclass
class Transaction:
    id: str  # checksum of the provider record
    account_id: Optional[int]
    transaction_date: date
    merchant_name: str
    amount: Decimal  # signed: positive = money out, negative = money in
    type: str = EXPENSE
    description: Optional[str] = None  # full bank description
    display_name: Optional[str] = None
    category_id: Optional[int] = None
    is_split: bool = False
    is_recurring: bool = False
    needs_review: bool = False
    pending: bool = False
    is_type_manual: bool = False
    provider_category: Optional[ProviderCategory] = None
    notes: Optional[str] = None
    data_import_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def create_with_checksum(
        cls,
        raw_data: str,
        account_id: Optional[int],
        transaction_date: date,
        merchant_name: str,
        amount: Decimal,
        **kwargs,
    ) -> "Transaction":
        """Create a Transaction with auto-generated checksum ID."""
        transaction_id = hashlib.sha256(raw_data.encode("utf-8")).hexdigest()
        return cls(
            id=transaction_id,
            account_id=account_id,
            transaction_date=transaction_date,
            merchant_name=merchant_name,
            amount=amount,
            **kwargs,
        )

    @property
    def effective_merchant(self) -> str:
        """Display name when the user or cleaner set one, else the raw merchant."""
        return self.display_name or self.merchant_name

    @property
    def is_imported(self) -> bool:
        """Whether the transaction came from a file import rather than a sync."""
        return self.data_import_id is not None


def effective_amount(
    transaction: Transaction, splits: Optional[Iterable[TransactionSplit]] = None
) -> Decimal:
    """Amount that counts toward the user.

    A split transaction counts only the splits flagged as the user's share;
    everything else counts its absolute amount.
    """
    splits = list(splits or [])
    if transaction.is_split and splits:
        return sum(
            (abs(split.amount) for split in splits if split.is_my_share),
            Decimal("0"),
        )
    return abs(transaction.amount)
