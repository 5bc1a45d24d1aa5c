"""Domain events for the Cart aggregate."""

from protean.fields import Identifier, Integer, String

from ordering.domain import ordering


@ordering.event(part_of="Cart")
class CartItemAdded:
    """A menu item was added to a cart, or merged into its existing line."""

    __version__ = 1

    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    quantity = Integer(required=True)
    line_quantity = Integer(required=True)
    unit_price_cents = Integer(required=True)


@ordering.event(part_of="Cart")
class CartItemQuantityAdjusted:
    """A cart line's quantity changed. A new quantity of zero means the line was removed."""

    __version__ = 1

    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    previous_quantity = Integer(required=True)
    new_quantity = Integer(required=True)


@ordering.event(part_of="Cart")
class CartLineRemoved:
    __version__ = 1

    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)


@ordering.event(part_of="Cart")
class CartCleared:
    """All lines were removed, either explicitly or because an order was placed."""

    __version__ = 1

    owner_id = Identifier(required=True)
    line_count = Integer(required=True)
    reason = String(max_length=50)
