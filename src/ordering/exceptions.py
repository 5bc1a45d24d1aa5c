"""Error taxonomy for the ordering engine.

Client-correctable rule violations extend Protean's ``ValidationError`` and
carry the same ``{"field": ["message"]}`` payload. Missing records extend
``ObjectNotFoundError``. Upstream dependency failures are plain exceptions so
they are never mistaken for bad input.
"""

from protean.exceptions import ObjectNotFoundError, ValidationError


class NotFoundError(ObjectNotFoundError):
    """A cart, cart line, order, order item, payment or customer does not exist."""


class EmptyCartError(ValidationError):
    """An order was requested from a cart with no lines."""


class AlreadyPaidError(ValidationError):
    """Payment was requested for an order whose payment already completed."""


class InvalidTransitionError(ValidationError):
    """The requested status change is not allowed by the order state machine."""


class GatewayError(Exception):
    """The payment gateway failed, timed out or answered with an error.

    Retryable: the order is left untouched and the caller may try again.
    """


class CatalogUnavailableError(GatewayError):
    """The catalog lookup failed or did not answer within its timeout."""
