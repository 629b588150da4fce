"""Merchant mapping service: storage for the learned merchant memory."""

from typing import List, Optional
from classification.merchant_memory import MerchantMemory
from models.merchant_mapping import MerchantMapping, normalize_merchant_name

_MAPPING_FIELDS = "id, original_name, display_name, default_category_id"


class MerchantMappingService:
    """Service for managing merchant mappings."""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def find_all(self) -> List[MerchantMapping]:
        """Get all mappings ordered by display name."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_MAPPING_FIELDS} FROM merchant_mappings ORDER BY display_name"
            )
            return [self._row_to_mapping(row) for row in cursor.fetchall()]

    def find_by_merchant(self, merchant_name: str) -> Optional[MerchantMapping]:
        """Find the mapping for raw merchant text, ignoring case and padding."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_MAPPING_FIELDS} FROM merchant_mappings WHERE normalized_name = ?",
                (normalize_merchant_name(merchant_name),),
            )
            row = cursor.fetchone()
            return self._row_to_mapping(row) if row else None

    def upsert(
        self,
        original_name: str,
        display_name: str,
        default_category_id: Optional[int] = None,
    ) -> MerchantMapping:
        """Create or replace the mapping for a merchant.

        Runs as a single statement, so a mapping is never half written.

        Raises:
            ValueError: If original_name is blank.
        """
        normalized = normalize_merchant_name(original_name)
        if not normalized:
            raise ValueError("original_name cannot be empty")

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                INSERT INTO merchant_mappings
                    (original_name, normalized_name, display_name, default_category_id)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(normalized_name) DO UPDATE SET
                    display_name = excluded.display_name,
                    default_category_id = excluded.default_category_id,
                    updated_at = CURRENT_TIMESTAMP
                """,
                (original_name, normalized, display_name, default_category_id),
            )
            conn.commit()
            cursor = conn.execute(
                f"SELECT {_MAPPING_FIELDS} FROM merchant_mappings WHERE normalized_name = ?",
                (normalized,),
            )
            return self._row_to_mapping(cursor.fetchone())

    def delete(self, mapping_id: int) -> bool:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM merchant_mappings WHERE id = ?", (mapping_id,)
            )
            conn.commit()
            return cursor.rowcount > 0

    def load_memory(self) -> MerchantMemory:
        """Snapshot every mapping into an in-memory lookup table."""
        return MerchantMemory(self.find_all())

    def _row_to_mapping(self, row: tuple) -> MerchantMapping:
        return MerchantMapping(
            id=row[0],
            original_name=row[1],
            display_name=row[2],
            default_category_id=row[3],
        )
