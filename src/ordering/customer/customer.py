"""Customer aggregate: the ordering context's view of an account holder.

Identity itself is owned elsewhere; this record keeps what ordering needs:
where to deliver, who to email, and whether the account may still order.
"""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Identifier, String, Text

from ordering.customer.events import AccountDeactivated, CustomerRegistered, DeliveryAddressUpdated
from ordering.domain import ordering


@ordering.aggregate
class Customer:
    customer_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=150)
    email = String(required=True, max_length=254)
    delivery_address = Text()
    is_active = Boolean(default=True)
    registered_at = DateTime()
    deactivated_at = DateTime()

    @classmethod
    def register(cls, customer_id, name, email, delivery_address=None):
        if "@" not in (email or ""):
            raise ValidationError({"email": ["Enter a valid email address"]})

        customer = cls(
            customer_id=customer_id,
            name=name,
            email=email,
            delivery_address=delivery_address,
            is_active=True,
            registered_at=datetime.now(UTC),
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer_id),
                name=name,
                email=email,
            )
        )
        return customer

    @property
    def has_delivery_address(self) -> bool:
        return bool(self.delivery_address and self.delivery_address.strip())

    def update_delivery_address(self, address):
        if not address or not address.strip():
            raise ValidationError({"delivery_address": ["Delivery address cannot be blank"]})

        self.delivery_address = address.strip()
        self.raise_(DeliveryAddressUpdated(customer_id=str(self.customer_id), delivery_address=self.delivery_address))

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"customer": ["Account is already deactivated"]})

        self.is_active = False
        self.deactivated_at = datetime.now(UTC)
        self.raise_(
            AccountDeactivated(
                customer_id=str(self.customer_id),
                name=self.name,
                email=self.email,
                deactivated_at=self.deactivated_at,
            )
        )
