"""Catalog repository: promotion of staged rows into the live menu"""

from dataclasses import dataclass, field
from typing import Optional
from uuid import UUID

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from ...models.menu import Menu, MenuCategory, MenuItem
from ...models.menu_item_staging import MenuItemStaging

UNCATEGORISED = "Uncategorised"


def _matches(column, value):
    return column.is_(None) if value is None else column == value


@dataclass
class CatalogPublishStats:
    items_upserted: int = 0
    categories_created: int = 0
    version: int = 0
    item_ids: list[UUID] = field(default_factory=list)


class CatalogRepository:
    """Repository for the versioned live catalog (menu, menu_category, menu_item)."""

    def __init__(self, db: Session):
        self.db = db

    def get_menu(self, menu_id: UUID) -> Optional[Menu]:
        return self.db.get(Menu, menu_id)

    def _find_category(self, menu_id: UUID, name: str) -> Optional[MenuCategory]:
        query = select(MenuCategory).where(
            MenuCategory.menu_id == menu_id,
            MenuCategory.name == name,
        )
        return self.db.execute(query).scalars().first()

    def _next_category_position(self, menu_id: UUID) -> int:
        query = select(func.max(MenuCategory.position)).where(MenuCategory.menu_id == menu_id)
        current = self.db.execute(query).scalar()
        return 0 if current is None else current + 1

    def _find_item(
        self,
        menu_id: UUID,
        staged: MenuItemStaging,
        exclude_ids: set[UUID],
    ) -> Optional[MenuItem]:
        """Live item with the staged row's identity (name, price, currency)."""
        query = select(MenuItem).where(
            MenuItem.menu_id == menu_id,
            func.lower(MenuItem.name) == staged.name.strip().lower(),
            _matches(MenuItem.price_cents, staged.price_cents),
            _matches(MenuItem.currency, staged.currency),
        )
        if exclude_ids:
            query = query.where(MenuItem.id.not_in(exclude_ids))
        return self.db.execute(query.order_by(MenuItem.created_at, MenuItem.id)).scalars().first()

    def publish_staged_items(
        self,
        menu: Menu,
        staged_items: list[MenuItemStaging],
    ) -> CatalogPublishStats:
        """Upsert staged rows into the menu and bump its version.

        Categories are found or created by name (null → Uncategorised). Items
        are matched on the merge identity (lower-cased name, price, currency)
        anywhere in the menu and updated in place, moving to the staged
        category; unmatched rows are inserted. Every staged row yields its own
        live item. Staged rows are deleted.

        Only flushes: the caller owns the transaction so that the ingestion
        status change and lifecycle event commit together with the catalog
        writes.

        Args:
            menu: Target menu
            staged_items: Rows to promote, in review order

        Returns:
            CatalogPublishStats with counts, new version and touched item ids
        """
        stats = CatalogPublishStats()
        categories: dict[str, MenuCategory] = {}

        for staged in staged_items:
            category_name = staged.category_name or UNCATEGORISED
            category = categories.get(category_name)
            if category is None:
                category = self._find_category(menu.id, category_name)
                if category is None:
                    category = MenuCategory(
                        menu_id=menu.id,
                        name=category_name,
                        position=self._next_category_position(menu.id),
                    )
                    self.db.add(category)
                    self.db.flush()
                    stats.categories_created += 1
                categories[category_name] = category

            # Rows already written in this publish are never matched again
            item = self._find_item(menu.id, staged, set(stats.item_ids))
            if item is None:
                item = MenuItem(menu_id=menu.id, category_id=category.id, name=staged.name)
                self.db.add(item)

            item.category_id = category.id
            item.name = staged.name
            item.description = staged.description
            item.price_cents = staged.price_cents
            item.currency = staged.currency
            item.allergens = list(staged.allergens or [])
            item.tags = list(staged.tags or [])
            item.is_alcohol = bool(staged.is_alcohol)
            item.media_url = staged.media_url
            self.db.flush()

            stats.items_upserted += 1
            stats.item_ids.append(item.id)

        for staged in staged_items:
            self.db.delete(staged)

        menu.version = (menu.version or 0) + 1
        self.db.flush()

        stats.version = menu.version
        return stats

    def get_items(self, item_ids: list[UUID]) -> list[MenuItem]:
        if not item_ids:
            return []
        query = select(MenuItem).where(MenuItem.id.in_(item_ids))
        return list(self.db.execute(query).scalars().all())
