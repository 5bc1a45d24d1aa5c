"""Cart line management: commands and handler.

Prices are resolved against the catalog before the command is issued, so the
handler only records what the customer picked at the price they saw.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.cart.cart import Cart
from ordering.domain import ordering
from ordering.exceptions import NotFoundError


@ordering.command(part_of="Cart")
class AddCartItem:
    owner_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    name = String(max_length=255)


@ordering.command(part_of="Cart")
class AdjustCartItemQuantity:
    owner_id = Identifier(required=True)
    menu_item_id = Identifier(required=True)
    delta = Integer(required=True)


@ordering.command(part_of="Cart")
class RemoveCartLine:
    owner_id = Identifier(required=True)
    line_id = Identifier(required=True)


@ordering.command(part_of="Cart")
class ClearCart:
    owner_id = Identifier(required=True)


def load_cart(owner_id):
    """Fetch the owner's cart or raise ``NotFoundError``."""
    try:
        return current_domain.repository_for(Cart).get(owner_id)
    except ObjectNotFoundError:
        raise NotFoundError({"cart": [f"No cart exists for customer {owner_id}"]}) from None


@ordering.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(AddCartItem)
    def add_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        try:
            cart = repo.get(command.owner_id)
        except ObjectNotFoundError:
            cart = Cart.create(owner_id=command.owner_id)

        line = cart.add_item(
            menu_item_id=command.menu_item_id,
            quantity=command.quantity,
            unit_price_cents=command.unit_price_cents,
            name=command.name,
        )
        repo.add(cart)
        return str(line.id)

    @handle(AdjustCartItemQuantity)
    def adjust_cart_item_quantity(self, command):
        cart = load_cart(command.owner_id)
        cart.adjust_quantity(menu_item_id=command.menu_item_id, delta=command.delta)
        current_domain.repository_for(Cart).add(cart)

    @handle(RemoveCartLine)
    def remove_cart_line(self, command):
        cart = load_cart(command.owner_id)
        cart.remove_line(command.line_id)
        current_domain.repository_for(Cart).add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        try:
            cart = repo.get(command.owner_id)
        except ObjectNotFoundError:
            return

        if cart.lines:
            cart.clear()
            repo.add(cart)
