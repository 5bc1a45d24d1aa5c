"""Ordering bounded context: carts, orders, payments and the customer profile.

Carts are converted into immutable order snapshots; the order and payment
state machines are coordinated here, and lifecycle events are handed to the
notification dispatcher after each transaction commits.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
