"""Category service for database operations."""

from typing import Dict, List, Optional
from models.category import Category

_CATEGORY_FIELDS = "id, name, icon, color, is_default"


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
        """
        self.db_manager = db_manager

    def find_all(self) -> List[Category]:
        """Get all categories from the database.

        Returns:
            List of Category objects, ordered by name.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_FIELDS} FROM categories ORDER BY name"
            )
            return [self._row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()
            return self._row_to_category(row) if row else None

    def find_by_name(self, name: str) -> Optional[Category]:
        """Get a single category by name (case-sensitive).

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_FIELDS} FROM categories WHERE name = ?",
                (name,),
            )
            row = cursor.fetchone()
            return self._row_to_category(row) if row else None

    def get_name_to_id_map(self) -> Dict[str, int]:
        """Map every category name to its ID."""
        return {category.name: category.id for category in self.find_all()}

    def create(
        self,
        name: str,
        icon: str = "tag",
        color: str = "#64748b",
        is_default: bool = False,
    ) -> Category:
        """Create a new category.

        Returns:
            The created Category object with id populated.

        Raises:
            sqlite3.IntegrityError: If the name already exists.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (name, icon, color, is_default) VALUES (?, ?, ?, ?)",
                (name, icon, color, int(is_default)),
            )
            conn.commit()

            return Category(
                id=cursor.lastrowid,
                name=name,
                icon=icon,
                color=color,
                is_default=is_default,
            )

    def delete(self, category_id: int) -> bool:
        """Delete a category by ID.

        Transactions and merchant mappings pointing at it lose their category.

        Returns:
            True if category was deleted, False if not found.
        """
        with self.db_manager.connect() as conn:
            conn.execute(
                "UPDATE transactions SET category_id = NULL WHERE category_id = ?",
                (category_id,),
            )
            conn.execute(
                "UPDATE merchant_mappings SET default_category_id = NULL "
                "WHERE default_category_id = ?",
                (category_id,),
            )
            cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category_id,))
            conn.commit()
            return cursor.rowcount > 0

    def _row_to_category(self, row: tuple) -> Category:
        return Category(
            id=row[0], name=row[1], icon=row[2], color=row[3], is_default=bool(row[4])
        )
