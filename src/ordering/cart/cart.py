"""Cart aggregate (CQRS): a customer's mutable selection of menu items.

One cart per customer: the owner id is the aggregate identity, so a second
cart for the same customer cannot exist. Lines capture the unit price at the
moment they are added; the cart total is always derived from the lines.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, Identifier, Integer, String

from ordering.cart.events import CartCleared, CartItemAdded, CartItemQuantityAdjusted, CartLineRemoved
from ordering.domain import ordering
from ordering.exceptions import NotFoundError


@ordering.entity(part_of="Cart")
class CartLine:
    menu_item_id = Identifier(required=True)
    name = String(max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price_cents = Integer(required=True, min_value=0)
    added_at = DateTime()

    @property
    def line_subtotal_cents(self) -> int:
        return self.unit_price_cents * self.quantity


@ordering.aggregate
class Cart:
    owner_id = Identifier(identifier=True, required=True)
    lines = HasMany(CartLine)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------
    @classmethod
    def create(cls, owner_id):
        now = datetime.now(UTC)
        return cls(owner_id=owner_id, created_at=now, updated_at=now)

    @property
    def total_cents(self) -> int:
        return sum(line.line_subtotal_cents for line in self.lines)

    def line_for(self, menu_item_id):
        return next((line for line in self.lines if str(line.menu_item_id) == str(menu_item_id)), None)

    # -------------------------------------------------------------------
    # Line management
    # -------------------------------------------------------------------
    def add_item(self, menu_item_id, quantity, unit_price_cents, name=""):
        """Add a menu item, merging into the existing line for the same item."""
        if quantity is None or quantity <= 0:
            raise ValidationError({"quantity": ["Quantity must be greater than zero"]})

        now = datetime.now(UTC)
        line = self.line_for(menu_item_id)

        if line:
            line.quantity += quantity
        else:
            line = CartLine(
                menu_item_id=menu_item_id,
                name=name,
                quantity=quantity,
                unit_price_cents=unit_price_cents,
                added_at=now,
            )
            self.add_lines(line)

        self.updated_at = now

        self.raise_(
            CartItemAdded(
                owner_id=str(self.owner_id),
                line_id=str(line.id),
                menu_item_id=str(menu_item_id),
                quantity=quantity,
                line_quantity=line.quantity,
                unit_price_cents=line.unit_price_cents,
            )
        )
        return line

    def adjust_quantity(self, menu_item_id, delta):
        """Change a line's quantity by ``delta``; the line goes away at zero or below."""
        line = self.line_for(menu_item_id)
        if line is None:
            raise NotFoundError({"menu_item_id": [f"No cart line for menu item {menu_item_id}"]})

        previous_quantity = line.quantity
        new_quantity = previous_quantity + delta

        if new_quantity <= 0:
            self.remove_lines(line)
        else:
            line.quantity = new_quantity

        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartItemQuantityAdjusted(
                owner_id=str(self.owner_id),
                line_id=str(line.id),
                menu_item_id=str(menu_item_id),
                previous_quantity=previous_quantity,
                new_quantity=max(new_quantity, 0),
            )
        )

    def remove_line(self, line_id):
        line = next((line for line in self.lines if str(line.id) == str(line_id)), None)
        if line is None:
            raise NotFoundError({"line_id": [f"Cart line {line_id} does not belong to this cart"]})

        self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartLineRemoved(
                owner_id=str(self.owner_id),
                line_id=str(line_id),
                menu_item_id=str(line.menu_item_id),
            )
        )

    def clear(self, reason="cleared"):
        """Empty the cart. Clearing an empty cart changes nothing."""
        if not self.lines:
            return

        line_count = len(self.lines)
        for line in list(self.lines):
            self.remove_lines(line)
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CartCleared(
                owner_id=str(self.owner_id),
                line_count=line_count,
                reason=reason,
            )
        )
