"""Payment gateway factory.

Provides get_gateway() / set_gateway() to swap implementations:
- FakeGateway for development and testing
- StripeGateway when STRIPE_API_KEY is configured
"""

from ordering.gateway.fake_adapter import FakeGateway
from ordering.gateway.port import PaymentGateway

_current_gateway: PaymentGateway | None = None


def get_gateway() -> PaymentGateway:
    """Return the current payment gateway. Defaults to FakeGateway."""
    global _current_gateway
    if _current_gateway is None:
        from ordering.config import get_settings

        settings = get_settings()
        if settings.stripe_api_key:
            from ordering.gateway.stripe_adapter import StripeGateway

            _current_gateway = StripeGateway(
                api_key=settings.stripe_api_key,
                webhook_secret=settings.stripe_webhook_secret,
            )
        else:
            _current_gateway = FakeGateway()
    return _current_gateway


def set_gateway(gateway: PaymentGateway) -> None:
    """Override the active payment gateway (useful for tests)."""
    global _current_gateway
    _current_gateway = gateway


def reset_gateway() -> None:
    """Reset to default gateway."""
    global _current_gateway
    _current_gateway = None
