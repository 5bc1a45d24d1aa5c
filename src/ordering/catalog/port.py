"""Catalog lookup port: read-only price and availability source for menu items."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class MenuItemInfo:
    """What the cart needs to know about a menu item at add time."""

    menu_item_id: str
    exists: bool
    price: Decimal | None = None
    name: str = ""


class CatalogLookup(ABC):
    """Abstract catalog interface."""

    @abstractmethod
    def get_menu_item(self, menu_item_id: str) -> MenuItemInfo:
        """Return price and existence of a menu item.

        Unknown items come back with ``exists=False``; transport problems raise
        ``CatalogUnavailableError``.
        """
        ...
