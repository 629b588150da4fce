from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class DataImport:
    """One sync file ingested into an account.

    Transactions that arrived through the file carry its ID, which is how
    imported transactions are told apart from ones synced directly.
    """

    id: int
    account_id: int
    filename: Optional[str]  # archive name, None when archiving is off
    created_at: datetime

    @property
    def is_archived(self) -> bool:
        return self.filename is not None
