"""In-memory view of learned merchant mappings."""

from typing import Dict, Iterable, Optional

from models.merchant_mapping import MerchantMapping, normalize_merchant_name


class MerchantMemory:
    """Exact lookup of user-taught merchant mappings.

    Keys are normalized raw merchant text, so "Amazn Mktp " and "amazn mktp"
    hit the same entry. Later mappings for the same key replace earlier ones.
    """

    def __init__(self, mappings: Iterable[MerchantMapping] = ()):
        self._mappings: Dict[str, MerchantMapping] = {}
        for mapping in mappings:
            self._mappings[mapping.normalized_name] = mapping

    def lookup(self, merchant_name: Optional[str]) -> Optional[MerchantMapping]:
        key = normalize_merchant_name(merchant_name)
        if not key:
            return None
        return self._mappings.get(key)

    def __contains__(self, merchant_name: object) -> bool:
        return isinstance(merchant_name, str) and self.lookup(merchant_name) is not None

    def __len__(self) -> int:
        return len(self._mappings)
