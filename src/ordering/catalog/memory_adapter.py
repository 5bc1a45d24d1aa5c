"""In-memory catalog for development and testing."""

import time
from decimal import Decimal

from ordering.catalog.port import CatalogLookup, MenuItemInfo
from ordering.money import to_decimal


class InMemoryCatalog(CatalogLookup):
    """Catalog backed by a dict, with knobs for price changes and latency."""

    def __init__(self, items: dict[str, tuple[str, Decimal]] | None = None) -> None:
        self._items: dict[str, tuple[str, Decimal]] = {}
        self.delay: float = 0.0
        self.lookups: list[str] = []
        for menu_item_id, (name, price) in (items or {}).items():
            self.set_item(menu_item_id, price, name)

    def set_item(self, menu_item_id, price, name: str = "") -> None:
        self._items[str(menu_item_id)] = (name or f"Item {menu_item_id}", to_decimal(price, "price"))

    def remove_item(self, menu_item_id) -> None:
        self._items.pop(str(menu_item_id), None)

    def get_menu_item(self, menu_item_id: str) -> MenuItemInfo:
        self.lookups.append(str(menu_item_id))
        if self.delay:
            time.sleep(self.delay)

        entry = self._items.get(str(menu_item_id))
        if entry is None:
            return MenuItemInfo(menu_item_id=str(menu_item_id), exists=False)

        name, price = entry
        return MenuItemInfo(menu_item_id=str(menu_item_id), exists=True, price=price, name=name)
