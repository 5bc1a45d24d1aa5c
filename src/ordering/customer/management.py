"""Customer profile management: commands and handler."""

from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from ordering.customer.customer import Customer
from ordering.domain import ordering
from ordering.exceptions import NotFoundError


@ordering.command(part_of="Customer")
class RegisterCustomer:
    customer_id = Identifier(required=True)
    name = String(required=True, max_length=150)
    email = String(required=True, max_length=254)
    delivery_address = Text()


@ordering.command(part_of="Customer")
class UpdateDeliveryAddress:
    customer_id = Identifier(required=True)
    delivery_address = Text(required=True)


@ordering.command(part_of="Customer")
class DeactivateAccount:
    customer_id = Identifier(required=True)


def load_customer(customer_id):
    try:
        return current_domain.repository_for(Customer).get(customer_id)
    except ObjectNotFoundError:
        raise NotFoundError({"customer": [f"Customer {customer_id} does not exist"]}) from None


@ordering.command_handler(part_of=Customer)
class ManageCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        repo = current_domain.repository_for(Customer)
        try:
            repo.get(command.customer_id)
        except ObjectNotFoundError:
            pass
        else:
            raise ValidationError({"customer_id": [f"Customer {command.customer_id} is already registered"]})

        customer = Customer.register(
            customer_id=command.customer_id,
            name=command.name,
            email=command.email,
            delivery_address=command.delivery_address,
        )
        repo.add(customer)
        return str(customer.customer_id)

    @handle(UpdateDeliveryAddress)
    def update_delivery_address(self, command):
        customer = load_customer(command.customer_id)
        customer.update_delivery_address(command.delivery_address)
        current_domain.repository_for(Customer).add(customer)

    @handle(DeactivateAccount)
    def deactivate_account(self, command):
        customer = load_customer(command.customer_id)
        customer.deactivate()
        current_domain.repository_for(Customer).add(customer)
