"""Stripe payment gateway adapter, backed by the stripe-python SDK.

PaymentIntents are created per call with the adapter's own API key, so the
SDK's module-level ``stripe.api_key`` is never touched. Webhook payloads are
checked against Stripe's ``t=<timestamp>,v1=<hmac>`` signature header before
anything parses them.
"""

import stripe
import structlog

from ordering.exceptions import GatewayError
from ordering.gateway.port import PaymentGateway, PaymentIntent

logger = structlog.get_logger(__name__)

SIGNATURE_TOLERANCE_SECONDS = 300


class StripeGateway(PaymentGateway):
    """Production Stripe gateway adapter."""

    name = "STRIPE"

    def __init__(self, api_key: str, webhook_secret: str | None = None) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount_minor_units,
                currency=currency.lower(),
                metadata={key: str(value) for key, value in metadata.items()},
                api_key=self.api_key,
            )
        except stripe.APIConnectionError as exc:
            logger.warning("Stripe unreachable", error=str(exc))
            raise GatewayError("Payment gateway unavailable") from exc
        except stripe.StripeError as exc:
            message = exc.user_message or str(exc)
            logger.error("Stripe rejected payment intent", http_status=exc.http_status, error=message)
            raise GatewayError(f"Payment gateway error: {message}") from exc

        client_secret = getattr(intent, "client_secret", None)
        if not client_secret:
            raise GatewayError("Payment gateway returned no client secret")
        return PaymentIntent(client_secret=client_secret, intent_id=getattr(intent, "id", None))

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:
        if not self.webhook_secret or not signature:
            return False

        # Signature only: the callback body is ours, not a Stripe Event.
        # Malformed headers can surface as ValueError or IndexError.
        try:
            stripe.WebhookSignature.verify_header(
                payload,
                signature,
                self.webhook_secret,
                tolerance=SIGNATURE_TOLERANCE_SECONDS,
            )
        except (stripe.SignatureVerificationError, ValueError, IndexError) as exc:
            logger.warning("Stripe webhook signature rejected", error=str(exc))
            return False
        return True
