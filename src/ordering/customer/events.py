"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String, Text

from ordering.domain import ordering


@ordering.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    email = String(required=True)


@ordering.event(part_of="Customer")
class DeliveryAddressUpdated:
    __version__ = 1

    customer_id = Identifier(required=True)
    delivery_address = Text(required=True)


@ordering.event(part_of="Customer")
class AccountDeactivated:
    """The customer's account was closed; they are told by email."""

    __version__ = 1

    customer_id = Identifier(required=True)
    name = String(required=True)
    email = String(required=True)
    deactivated_at = DateTime(required=True)
