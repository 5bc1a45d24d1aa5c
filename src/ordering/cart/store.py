"""Cart Store: the entry point for every cart mutation and read.

Mutations for one owner are serialized through ``cart_locks``; the catalog is
consulted (under a timeout) before the cart command runs, so the unit of work
itself never waits on the network.
"""

from dataclasses import dataclass
from decimal import Decimal

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from ordering.cart.items import AddCartItem, AdjustCartItemQuantity, ClearCart, RemoveCartLine, load_cart
from ordering.catalog import get_catalog
from ordering.config import get_settings
from ordering.exceptions import CatalogUnavailableError, NotFoundError
from ordering.money import from_minor_units, to_minor_units
from ordering.utils.locks import cart_locks
from ordering.utils.timeouts import call_with_timeout

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CartLineView:
    line_id: str
    menu_item_id: str
    name: str
    quantity: int
    unit_price: Decimal
    line_subtotal: Decimal


@dataclass(frozen=True)
class CartSnapshot:
    owner_id: str
    lines: tuple[CartLineView, ...]
    total: Decimal

    @property
    def is_empty(self) -> bool:
        return not self.lines


class CartStore:
    def add_item(self, owner_id, menu_item_id, quantity) -> str:
        """Add ``quantity`` of a menu item to the owner's cart; returns the line id."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

        with cart_locks.hold(owner_id):
            item = self._lookup(menu_item_id)
            line_id = current_domain.process(
                AddCartItem(
                    owner_id=owner_id,
                    menu_item_id=menu_item_id,
                    quantity=quantity,
                    unit_price_cents=to_minor_units(item.price, "price"),
                    name=item.name,
                ),
                asynchronous=False,
            )

        logger.info("Cart item added", owner_id=str(owner_id), menu_item_id=str(menu_item_id), quantity=quantity)
        return line_id

    def adjust_quantity(self, owner_id, menu_item_id, delta) -> None:
        if not delta:
            raise ValidationError({"delta": ["Quantity change must be non-zero"]})

        with cart_locks.hold(owner_id):
            current_domain.process(
                AdjustCartItemQuantity(owner_id=owner_id, menu_item_id=menu_item_id, delta=delta),
                asynchronous=False,
            )

    def remove_item(self, owner_id, line_id) -> None:
        with cart_locks.hold(owner_id):
            current_domain.process(RemoveCartLine(owner_id=owner_id, line_id=line_id), asynchronous=False)

    def clear(self, owner_id) -> None:
        with cart_locks.hold(owner_id):
            current_domain.process(ClearCart(owner_id=owner_id), asynchronous=False)

    def snapshot(self, owner_id) -> CartSnapshot:
        """Current lines and a freshly computed total."""
        cart = load_cart(owner_id)
        lines = tuple(
            CartLineView(
                line_id=str(line.id),
                menu_item_id=str(line.menu_item_id),
                name=line.name or "",
                quantity=line.quantity,
                unit_price=from_minor_units(line.unit_price_cents),
                line_subtotal=from_minor_units(line.line_subtotal_cents),
            )
            for line in cart.lines
        )
        return CartSnapshot(
            owner_id=str(owner_id),
            lines=lines,
            total=from_minor_units(sum(line.line_subtotal_cents for line in cart.lines)),
        )

    def _lookup(self, menu_item_id):
        catalog = get_catalog()
        item = call_with_timeout(
            lambda: catalog.get_menu_item(str(menu_item_id)),
            timeout=get_settings().catalog_timeout_seconds,
            error_cls=CatalogUnavailableError,
            operation="catalog lookup",
        )
        if not item.exists:
            raise NotFoundError({"menu_item_id": [f"Menu item {menu_item_id} does not exist"]})
        return item
