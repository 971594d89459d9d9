"""Create an order for the winner of an auction, skipping checkout.

Payment is taken offline, so the order is placed on the "cash on delivery"
gateway and moved straight to ``processing``. Afterwards the auction listing
is stamped with the bookkeeping the auction engine expects from a sale.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping

from sqlalchemy.orm import Session

from app.config import settings
from app.events import AuctionClosedViaBuyNow, AuctionWon, EventBus
from app.models import Order, Product, User
from app.models.order import ADDRESS_FIELDS, OrderStatus
from app.models.product import VISIBILITY_BUY_NOW, VISIBILITY_FINISHED
from app.services import orders
from app.services.payment_gateways import COD_GATEWAY_ID, PaymentGateway, get_payment_gateways

logger = logging.getLogger(__name__)

AUTO_ORDER_NOTE = "Auto Order on Auction End - "
CREATED_VIA = "automatic"


class AuctionOrderError(Exception):
    pass


class ListingNotFoundError(AuctionOrderError):
    def __init__(self, listing_id: int):
        super().__init__(f"Listing {listing_id} not found")
        self.listing_id = listing_id


@dataclass(frozen=True)
class OrderContext:
    """Everything the order creator would otherwise read from global state."""

    payment_gateways: Mapping[str, PaymentGateway]
    currency: str
    customer_ip: str | None = None
    customer_user_agent: str | None = None
    shipping_cost: Decimal = Decimal("0")
    shipping_method: str = ""
    payment_method_id: str = COD_GATEWAY_ID

    @classmethod
    def from_settings(cls, customer_ip: str | None = None, customer_user_agent: str | None = None) -> "OrderContext":
        return cls(
            payment_gateways=get_payment_gateways(),
            currency=settings.STORE_CURRENCY,
            customer_ip=customer_ip,
            customer_user_agent=customer_user_agent,
            shipping_cost=Decimal(settings.AUTO_ORDER_SHIPPING_COST or "0"),
            shipping_method=settings.AUTO_ORDER_SHIPPING_METHOD,
        )


def _bidder_address(bidder: User | None) -> dict[str, str]:
    if bidder is None:
        return dict.fromkeys(ADDRESS_FIELDS, "")
    return {
        "first_name": bidder.first_name or "",
        "last_name": bidder.last_name or "",
        "email": bidder.email or "",
        "address_1": bidder.billing_address_1 or "",
        "address_2": bidder.billing_address_2 or "",
        "city": bidder.billing_city or "",
        "state": bidder.billing_state or "",
        "postcode": bidder.billing_postcode or "",
        "country": bidder.billing_country or "",
    }


def create_order_for_won_auction(listing_id: int, db: Session, context: OrderContext, bus: EventBus) -> int:
    """Build, persist and stamp an order for the listing's winning bidder.

    Nothing here is caught: data errors, a missing payment gateway and
    persistence failures all propagate to the caller, which owns rollback.
    Returns the new order id.
    """
    listing = db.get(Product, listing_id)
    if listing is None:
        raise ListingNotFoundError(listing_id)

    bidder_id = int(listing.auction_current_bidder_id or 0)
    if not bidder_id:
        logger.warning("Listing %s has no winning bidder recorded; creating order without customer", listing_id)
    bidder = db.get(User, bidder_id) if bidder_id else None

    # Must start at the first status; everything after only moves forward.
    order = orders.create_order(db, customer_id=bidder_id, status=OrderStatus.PENDING_PAYMENT)
    orders.add_product(order, listing)

    address = _bidder_address(bidder)
    orders.set_address(order, address, "billing")
    orders.set_address(order, address, "shipping")

    if context.shipping_cost > 0:
        orders.add_shipping(order, context.shipping_cost, context.shipping_method)

    orders.set_payment_method(order, context.payment_gateways[context.payment_method_id])
    orders.calculate_totals(order)

    order.customer_ip_address = context.customer_ip
    order.customer_user_agent = context.customer_user_agent
    order.currency = context.currency
    order.customer_id = bidder_id or None
    order.created_via = CREATED_VIA

    orders.update_status(order, OrderStatus.PROCESSING, AUTO_ORDER_NOTE, True, db=db, bus=bus)
    order_id = orders.save(order, db)
    logger.info("Created order %s for listing %s (bidder %s)", order_id, listing_id, bidder_id)

    stamp_auction_order_metadata(order_id, db, bus)
    return order_id


def stamp_auction_order_metadata(order_id: int, db: Session, bus: EventBus) -> None:
    """Mark the order as an auction order and close its listings as sold."""
    order = db.get(Order, order_id)
    if order is None:
        return

    closed: list[int] = []
    for item in order.items:
        listing = db.get(Product, item.product_id) if item.product_id else None
        if listing is None or not listing.is_auction:
            continue

        order.is_auction_order = True
        if not listing.auction_order_id:
            listing.auction_order_id = order.id
        listing.auction_emails_suppressed = True

        if not listing.is_finished:
            listing.add_visibility_terms(VISIBILITY_BUY_NOW, VISIBILITY_FINISHED)
            listing.auction_bought_now = True
            listing.auction_dates_to = datetime.now(timezone.utc)
            closed.append(listing.id)

    db.commit()

    for listing_id in closed:
        logger.info("Listing %s closed via buy-now by order %s", listing_id, order_id)
        bus.emit(AuctionClosedViaBuyNow(listing_id=listing_id), db=db)


def handle_auction_won(command: AuctionWon, *, db: Session, context: OrderContext, bus: EventBus) -> int:
    return create_order_for_won_auction(command.listing_id, db, context, bus)


def register_handlers(bus: EventBus) -> None:
    bus.register_command(AuctionWon, handle_auction_won)
