"""Rule-based categorizer and merchant name cleaner."""

import re
from dataclasses import dataclass
from typing import Optional

from classification.patterns import DEFAULT_PATTERNS, PatternLibrary
from models.transaction import ProviderCategory

HIGH = "high"
MEDIUM = "medium"
LOW = "low"

_CLEANUP_RULES = (
    (re.compile(r"\s*Money\s*(In|Out)\s*Dda_transaction\s*$", re.IGNORECASE), ""),
    (re.compile(r"\s*Dda_transaction\s*$", re.IGNORECASE), ""),
    # transfer ids
    (re.compile(r"-[a-z0-9]{10,}", re.IGNORECASE), ""),
    (re.compile(r"-acctverify", re.IGNORECASE), " Verification"),
    (re.compile(r"-transfer\b", re.IGNORECASE), " Transfer"),
    # store numbers, card suffixes, zip and state codes
    (re.compile(r"\s*#\d+"), ""),
    (re.compile(r"\s*\*\d+"), ""),
    (re.compile(r"\s*-\s*\d+"), ""),
    (re.compile(r"\s+\d{4,}"), ""),
    (re.compile(r"\s*(US|USA|CA|NY|TX|FL|IL)\s*$", re.IGNORECASE), ""),
    (re.compile(r"\s*\d{5}(-\d{4})?\s*$"), ""),
    (re.compile(r"\bEnterta-edi\b", re.IGNORECASE), "Entertainment"),
    (re.compile(r"\bPymnts?\b", re.IGNORECASE), "Payment"),
    (re.compile(r"\bPmt\b", re.IGNORECASE), "Payment"),
    (re.compile(r"\bXfer\b", re.IGNORECASE), "Transfer"),
    (re.compile(r"\bDep\b", re.IGNORECASE), "Deposit"),
    (re.compile(r"\bWdrl\b", re.IGNORECASE), "Withdrawal"),
)

# Substring of the cleaned name -> canonical merchant. First match wins.
KNOWN_MERCHANTS = (
    ("amzn mktp", "Amazon"),
    ("amazon.com", "Amazon"),
    ("amzn", "Amazon"),
    ("wm supercenter", "Walmart"),
    ("wal-mart", "Walmart"),
    ("tgt", "Target"),
    ("starbucks store", "Starbucks"),
    ("sbux", "Starbucks"),
    ("mcdonalds", "McDonald's"),
    ("chick-fil-a", "Chick-fil-A"),
    ("dd donut", "Dunkin'"),
    ("dunkin", "Dunkin'"),
    ("capital one verification", "Capital One (Verification)"),
    ("capital one transfer", "Capital One Transfer"),
)


@dataclass(frozen=True)
class CategorizationResult:
    """Category name chosen by the rules and how sure they are."""

    category_name: str
    confidence: str

    @property
    def needs_review(self) -> bool:
        return self.confidence == LOW


def clean_merchant_name(raw_name: Optional[str]) -> str:
    """Turn raw merchant text into a readable display name.

    >>> clean_merchant_name("AMZN Mktp US*2K4")
    'Amazon'
    >>> clean_merchant_name("SHELL OIL 57444 TX")
    'Shell Oil'
    """
    cleaned = raw_name or ""
    for pattern, replacement in _CLEANUP_RULES:
        cleaned = pattern.sub(replacement, cleaned)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()

    lowered = cleaned.lower()
    for alias, name in KNOWN_MERCHANTS:
        if alias in lowered:
            return name

    return " ".join(word[:1].upper() + word[1:].lower() for word in cleaned.split(" "))


def categorize(
    merchant_name: Optional[str],
    description: Optional[str] = None,
    provider_category: Optional[ProviderCategory] = None,
    patterns: PatternLibrary = DEFAULT_PATTERNS,
) -> CategorizationResult:
    """Pick a spending category from the provider hint or keyword rules.

    Falls back to the library's fallback category with low confidence, so
    this never fails for sparse input.
    """
    if provider_category:
        name = patterns.provider_category_name(
            provider_category.primary, provider_category.detailed
        )
        if name:
            return CategorizationResult(name, HIGH)

    name = patterns.keyword_category([merchant_name, description])
    if name:
        return CategorizationResult(name, MEDIUM)

    return CategorizationResult(patterns.fallback_category, LOW)
