"""Storefront bounded context: shopping cart and checkout.

Carts are persisted through the domain's repositories; which database backs
them is set in ``domain.toml`` and can be overridden at startup from
``STOREFRONT_DATABASE_URL``.
"""

import structlog
from protean.domain import Domain

storefront = Domain(name="storefront")

logger = structlog.get_logger(__name__)
