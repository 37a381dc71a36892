"""Delivery block from shipping details."""
from __future__ import annotations

import structlog

from ..models import source
from ..models.document import Delivery, Party, Telephone
from .party import new_address

logger = structlog.get_logger(__name__)


def new_receiver(shipping: source.ShippingDetails) -> Party | None:
    """Build the receiver, or None when it lacks a name or a locatable address."""
    address = new_address(shipping.address)
    if not shipping.name or address is None or not address.is_complete():
        return None
    return Party(
        name=shipping.name,
        addresses=[address],
        telephones=[Telephone(number=shipping.phone)] if shipping.phone else None,
    )


def from_shipping_details(shipping: source.ShippingDetails | None) -> Delivery | None:
    if shipping is None:
        return None
    receiver = new_receiver(shipping)
    if receiver is None:
        logger.debug("delivery_receiver_invalid", has_name=bool(shipping.name), has_address=shipping.address is not None)
        return None
    return Delivery(receiver=receiver)


def new_delivery(invoice: source.Invoice | None) -> Delivery | None:
    """Explicit shipping details win over the customer's default shipping address."""
    if invoice is None:
        return None
    if invoice.shipping_details is not None:
        return from_shipping_details(invoice.shipping_details)
    if invoice.customer_shipping is not None:
        return from_shipping_details(invoice.customer_shipping)
    return None
