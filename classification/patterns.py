"""Pattern library for transaction classification.

All rules used by the type classifier and the rule-based categorizer live in
a single immutable ``PatternLibrary``. Classifiers take the library as an
argument, so their output is a function of (input, library) only. The
default library can be partially replaced from a TOML rules file::

    transfer_patterns = ['credit\\s*card[- ]?payment', 'zelle']
    investment_patterns = ['vanguard']

    [category_keywords]
    Dining = ['restaurant', 'cafe']

Keys that are absent keep their default rules.
"""

import re
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Iterable, Optional, Pattern, Sequence, Tuple

from logger import get_logger

logger = get_logger()

# Checked first: transfer semantics override everything, including
# transactions that originate at an investment platform.
DEFAULT_TRANSFER_PATTERNS = (
    r"credit\s*card[- ]?auto[- ]?pay",
    r"credit\s*card[- ]?payment",
    r"card[- ]?payment",
    r"payment.*thank\s*you",
    r"autopay",
    r"auto[- ]?pay",
    r"credit\s*crd",
    r"crd\s*autopay",
    r"epayment",
    r"e-payment",
    r"\btransfer\b",
    r"wire\s*transfer",
    r"^payment$",
    r"bill\s*pay",
    r"billpay",
    r"direct\s*debit",
    r"loan\s*payment",
    r"mortgage\s*payment",
    r"\bpmt\b",
    r"zelle",
    r"cash\s*app",
    r"venmo",
    r"acctverify",
    r"account\s*verification",
    r"bank\s*xfer",
    r"mobile\s*pmt",
    r"-ach\s*pmt",
    r"money\s*out\s*cash",
    r"money\s*in\s*cash",
    r"\bfund\b.*money\s*(out|in)",
)

DEFAULT_INVESTMENT_PATTERNS = (
    r"robinhood[- ]?debits?",
    r"fidelity",
    r"vanguard",
    r"schwab",
    r"etrade",
    r"e-trade",
    r"td\s*ameritrade",
    r"coinbase",
    r"webull",
    r"acorns",
    r"betterment",
)

# Substrings of the provider's detailed category that mean investment
DEFAULT_INVESTMENT_DETAILS = ("INVESTMENT", "RETIREMENT")

# Provider primary categories treated as transfers
DEFAULT_TRANSFER_PRIMARIES = ("TRANSFER_IN", "TRANSFER_OUT", "LOAN_PAYMENTS", "BANK_FEES")

DEFAULT_INCOME_PRIMARIES = ("INCOME",)

# Terms in the legacy provider category list that mean transfer
DEFAULT_TRANSFER_LEGACY_CATEGORIES = ("Transfer", "Payment", "Credit Card", "Loan Payments")

# Ordered: the first category with a matching keyword wins
DEFAULT_CATEGORY_KEYWORDS = (
    ("Housing", (
        "rent", "mortgage", "landlord", "property", "apartment", "lease",
        "hoa", "homeowner", "housing", "real estate", "realty", "zillow",
        "bilt", "condo", "tenant", "rental",
    )),
    ("Dining", (
        "restaurant", "cafe", "coffee", "starbucks", "dunkin", "mcdonald",
        "chipotle", "subway", "pizza", "burger", "sushi", "thai", "chinese",
        "indian", "mexican", "doordash", "ubereats", "grubhub", "seamless",
        "postmates", "caviar", "bar", "pub", "grill", "kitchen", "eatery",
        "diner", "bakery", "taco", "wing", "noodle", "ramen", "pho",
    )),
    ("Groceries", (
        "grocery", "supermarket", "whole foods", "trader joe", "safeway",
        "kroger", "walmart", "target", "costco", "aldi", "publix", "wegmans",
        "market", "fresh", "organic", "instacart", "amazon fresh",
    )),
    ("Transportation", (
        "uber", "lyft", "taxi", "cab", "parking", "gas", "shell", "chevron",
        "exxon", "mobil", "bp", "citgo", "metro", "transit", "bus",
        "train", "amtrak", "airline", "toll", "car wash", "auto",
    )),
    ("Entertainment", (
        "netflix", "hulu", "disney", "hbo", "spotify", "apple music", "youtube",
        "twitch", "movie", "theater", "cinema", "concert", "ticket", "game",
        "steam", "playstation", "xbox", "nintendo", "arcade", "bowling",
    )),
    ("Shopping", (
        "amazon", "ebay", "etsy", "best buy", "apple store",
        "nike", "adidas", "zara", "h&m", "uniqlo", "nordstrom", "macy", "gap",
        "old navy", "tj maxx", "marshall", "ross", "home depot", "lowes", "ikea",
    )),
    ("Utilities", (
        "electric", "water", "internet", "comcast", "verizon", "at&t",
        "t-mobile", "sprint", "phone", "utility", "power", "energy", "sewage",
    )),
    ("Subscriptions", (
        "subscription", "membership", "monthly", "annual", "recurring", "premium",
        "plus", "pro", "patreon", "substack", "medium", "gym", "fitness",
    )),
    ("Travel", (
        "hotel", "airbnb", "vrbo", "expedia", "booking", "kayak", "tripadvisor",
        "united", "delta", "american", "southwest", "jetblue",
        "spirit", "frontier", "rental car", "hertz", "enterprise", "avis",
    )),
    ("Healthcare", (
        "pharmacy", "cvs", "walgreens", "rite aid", "doctor", "hospital", "clinic",
        "medical", "dental", "dentist", "vision", "eye", "health", "insurance",
        "prescription", "rx", "urgent care", "lab", "therapy",
    )),
)

# Provider category prefix -> category name. Longest matching prefix wins,
# so detailed entries refine their primary.
DEFAULT_PROVIDER_CATEGORY_MAP = (
    ("FOOD_AND_DRINK", "Dining"),
    ("FOOD_AND_DRINK_GROCERIES", "Groceries"),
    ("GENERAL_MERCHANDISE", "Shopping"),
    ("HOME_IMPROVEMENT", "Shopping"),
    ("TRANSPORTATION", "Transportation"),
    ("TRAVEL", "Travel"),
    ("ENTERTAINMENT", "Entertainment"),
    ("ENTERTAINMENT_TV_AND_MOVIES", "Subscriptions"),
    ("RENT_AND_UTILITIES", "Utilities"),
    ("RENT_AND_UTILITIES_RENT", "Housing"),
    ("MEDICAL", "Healthcare"),
    ("PERSONAL_CARE_GYMS_AND_FITNESS_CENTERS", "Subscriptions"),
)

FALLBACK_CATEGORY = "Other"


@dataclass(frozen=True)
class PatternLibrary:
    """Ordered, immutable rule sets consulted by the classifiers."""

    transfer_patterns: Tuple[Pattern, ...]
    investment_patterns: Tuple[Pattern, ...]
    investment_details: Tuple[str, ...]
    transfer_primaries: Tuple[str, ...]
    income_primaries: Tuple[str, ...]
    transfer_legacy_categories: Tuple[str, ...]
    category_keywords: Tuple[Tuple[str, Tuple[str, ...]], ...]
    provider_category_map: Tuple[Tuple[str, str], ...]
    fallback_category: str = FALLBACK_CATEGORY

    @classmethod
    def from_rules(
        cls,
        transfer_patterns: Iterable[str] = DEFAULT_TRANSFER_PATTERNS,
        investment_patterns: Iterable[str] = DEFAULT_INVESTMENT_PATTERNS,
        investment_details: Iterable[str] = DEFAULT_INVESTMENT_DETAILS,
        transfer_primaries: Iterable[str] = DEFAULT_TRANSFER_PRIMARIES,
        income_primaries: Iterable[str] = DEFAULT_INCOME_PRIMARIES,
        transfer_legacy_categories: Iterable[str] = DEFAULT_TRANSFER_LEGACY_CATEGORIES,
        category_keywords: Iterable[Tuple[str, Sequence[str]]] = DEFAULT_CATEGORY_KEYWORDS,
        provider_category_map: Iterable[Tuple[str, str]] = DEFAULT_PROVIDER_CATEGORY_MAP,
        fallback_category: str = FALLBACK_CATEGORY,
    ) -> "PatternLibrary":
        """Compile plain-string rules into a library.

        Raises:
            re.error: If a pattern is not a valid regular expression.
        """
        return cls(
            transfer_patterns=_compile(transfer_patterns),
            investment_patterns=_compile(investment_patterns),
            investment_details=tuple(investment_details),
            transfer_primaries=tuple(transfer_primaries),
            income_primaries=tuple(income_primaries),
            transfer_legacy_categories=tuple(transfer_legacy_categories),
            category_keywords=tuple(
                (name, tuple(keyword.lower() for keyword in keywords))
                for name, keywords in category_keywords
            ),
            provider_category_map=tuple(
                sorted(provider_category_map, key=lambda item: -len(item[0]))
            ),
            fallback_category=fallback_category,
        )

    def matches_transfer(self, texts: Sequence[str]) -> bool:
        return _any_match(self.transfer_patterns, texts)

    def matches_investment(self, texts: Sequence[str]) -> bool:
        return _any_match(self.investment_patterns, texts)

    def keyword_category(self, texts: Sequence[str]) -> Optional[str]:
        """First category whose keyword appears in any of the texts."""
        lowered = [text.lower() for text in texts if text]
        for name, keywords in self.category_keywords:
            for keyword in keywords:
                if any(keyword in text for text in lowered):
                    return name
        return None

    def provider_category_name(
        self, primary: Optional[str], detailed: Optional[str]
    ) -> Optional[str]:
        """Category name for a provider hint, preferring the detailed label."""
        for label in (detailed, primary):
            if not label:
                continue
            for prefix, name in self.provider_category_map:
                if label.startswith(prefix):
                    return name
        return None


def _compile(patterns: Iterable[str]) -> Tuple[Pattern, ...]:
    return tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)


def _any_match(patterns: Sequence[Pattern], texts: Sequence[str]) -> bool:
    return any(pattern.search(text) for text in texts if text for pattern in patterns)


DEFAULT_PATTERNS = PatternLibrary.from_rules()


def load_pattern_library(path: Optional[Path]) -> PatternLibrary:
    """Load a pattern library, replacing defaults with rules from a TOML file.

    Args:
        path: TOML rules file, or None for the default library.

    Returns:
        The default library when path is None, else one with the file's
        rule sets swapped in.

    Raises:
        FileNotFoundError: If path does not exist.
        re.error: If the file holds an invalid regular expression.
    """
    if path is None:
        return DEFAULT_PATTERNS

    with open(path, "rb") as f:
        data = tomllib.load(f)

    overrides: Dict[str, object] = {}
    for key in ("transfer_patterns", "investment_patterns"):
        if key in data:
            overrides[key] = _compile(data[key])
    for key in (
        "investment_details",
        "transfer_primaries",
        "income_primaries",
        "transfer_legacy_categories",
    ):
        if key in data:
            overrides[key] = tuple(data[key])
    if "category_keywords" in data:
        overrides["category_keywords"] = tuple(
            (name, tuple(keyword.lower() for keyword in keywords))
            for name, keywords in data["category_keywords"].items()
        )
    if "provider_category_map" in data:
        overrides["provider_category_map"] = tuple(
            sorted(data["provider_category_map"].items(), key=lambda item: -len(item[0]))
        )
    if "fallback_category" in data:
        overrides["fallback_category"] = data["fallback_category"]

    logger.info(f"Loaded classification rules from {path}: {sorted(overrides)}")
    return replace(DEFAULT_PATTERNS, **overrides)
