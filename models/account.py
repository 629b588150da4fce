from dataclasses import dataclass


@dataclass
class Account:
    id: int
    name: str  # [a-z_] format, e.g., "chase_checking"
    type: str  # e.g., "checking", "credit", "brokerage"
    description: str  # human readable, e.g., "Chase Checking Account"
