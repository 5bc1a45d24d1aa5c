"""Configurable fake payment gateway for development and testing.

Simulates intent creation without any external calls. It can be configured
at runtime to fail or to stall, which exercises the engine's error and
timeout paths.
"""

import time
from uuid import uuid4

from ordering.exceptions import GatewayError
from ordering.gateway.port import PaymentGateway, PaymentIntent

TEST_SIGNATURE = "test-signature"


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    name = "FAKE"

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Gateway unavailable"
        self.delay: float = 0.0
        self.calls: list[dict] = []

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Gateway unavailable",
        delay: float = 0.0,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.delay = delay

    def create_intent(
        self,
        amount_minor_units: int,
        currency: str,
        metadata: dict[str, str],
    ) -> PaymentIntent:
        self.calls.append(
            {
                "method": "create_intent",
                "amount_minor_units": amount_minor_units,
                "currency": currency,
                "metadata": dict(metadata),
            }
        )

        if self.delay:
            time.sleep(self.delay)

        if not self.should_succeed:
            raise GatewayError(self.failure_reason)

        intent_id = f"pi_fake_{uuid4().hex[:12]}"
        return PaymentIntent(client_secret=f"{intent_id}_secret_{uuid4().hex[:8]}", intent_id=intent_id)

    def verify_webhook_signature(self, payload: str, signature: str) -> bool:  # noqa: ARG002
        return signature == TEST_SIGNATURE
