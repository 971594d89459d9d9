from decimal import Decimal

import pytest

from app.events import AuctionClosedViaBuyNow, AuctionWon, OrderStatusChanged
from app.models import Order, OrderItem, Product, User
from app.models.order import OrderStatus
from app.models.product import PRODUCT_TYPE_AUCTION
from app.services import orders
from app.services.auction_orders import (
    ListingNotFoundError,
    OrderContext,
    create_order_for_won_auction,
    stamp_auction_order_metadata,
)
from app.services.payment_gateways import PaymentGateway


@pytest.fixture
def closed_events(bus):
    emitted = []
    bus.subscribe(AuctionClosedViaBuyNow, lambda event, **_: emitted.append(event.listing_id))
    return emitted


def test_creates_processing_order_for_winning_bidder(db, bus, context, listing, bidder):
    """Listing 42 won by bidder 7 yields one processing order for that bidder."""
    order_id = create_order_for_won_auction(listing.id, db, context, bus)

    order = db.get(Order, order_id)
    assert order.customer_id == 7
    assert order.status == OrderStatus.PROCESSING.value
    assert order.billing.city == "Springfield"
    assert len(order.items) == 1
    assert order.items[0].product_id == 42
    assert order.items[0].name == "Faberge Egg Replica"
    assert db.query(Order).count() == 1


def test_billing_and_shipping_copy_bidder_profile(db, bus, context, listing, bidder):
    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    expected = {
        "first_name": "Jane",
        "last_name": "Doe",
        "email": "jane@example.com",
        "address_1": "742 Evergreen Terrace",
        "address_2": "",
        "city": "Springfield",
        "state": "OR",
        "postcode": "97403",
        "country": "US",
    }
    assert order.billing.as_dict() == expected
    assert order.shipping.as_dict() == expected


def test_missing_profile_fields_become_empty_strings(db, bus, context):
    user = User(id=11, email="sparse@example.com")
    listing = Product(
        id=60,
        name="Pocket Watch",
        slug="pocket-watch",
        product_type=PRODUCT_TYPE_AUCTION,
        regular_price=Decimal("40.00"),
        auction_current_bidder_id=11,
    )
    db.add_all([user, listing])
    db.commit()

    order = db.get(Order, create_order_for_won_auction(60, db, context, bus))

    assert order.billing.email == "sparse@example.com"
    assert order.billing.first_name == ""
    assert order.billing.city == ""
    assert order.shipping.as_dict() == order.billing.as_dict()


def test_status_passes_through_pending_payment(db, bus, context, listing):
    transitions = []
    bus.subscribe(OrderStatusChanged, lambda event, **_: transitions.append((event.old_status, event.new_status)))

    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    assert transitions == [("pending-payment", "processing")]
    assert [note.content for note in order.notes] == [
        "Auto Order on Auction End - Order status changed from Pending payment to Processing."
    ]
    assert order.notes[0].added_manually is True


def test_payment_totals_and_audit_metadata(db, bus, context, listing):
    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    assert order.payment_method == "cod"
    assert order.payment_method_title == "Cash on delivery"
    assert order.items[0].total == Decimal("250.00")
    assert order.subtotal == Decimal("250.00")
    assert order.total == Decimal("250.00")
    assert order.currency == "EUR"
    assert order.customer_ip_address == "203.0.113.9"
    assert order.customer_user_agent == "auction-engine/2.1"
    assert order.created_via == "automatic"


def test_line_item_uses_regular_price_without_bid(db, bus, context, listing):
    listing.auction_current_bid = None
    db.commit()

    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    assert order.total == Decimal("100.00")


def test_shipping_line_is_added_to_totals(db, bus, listing):
    context = OrderContext(
        payment_gateways={"cod": PaymentGateway(id="cod", title="Cash on delivery", enabled=True)},
        currency="USD",
        shipping_cost=Decimal("5"),
        shipping_method="Fedex",
    )

    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    assert order.shipping_total == Decimal("5.00")
    assert order.shipping_method_title == "Fedex"
    assert order.total == Decimal("255.00")
    assert order.currency == "USD"


def test_missing_cod_gateway_raises_and_nothing_is_committed(db, bus, listing):
    context = OrderContext(payment_gateways={}, currency="EUR")

    with pytest.raises(KeyError):
        create_order_for_won_auction(listing.id, db, context, bus)
    db.rollback()

    assert db.query(Order).count() == 0
    assert db.query(OrderItem).count() == 0


def test_unknown_listing_raises_before_creating_order(db, bus, context):
    with pytest.raises(ListingNotFoundError, match="Listing 999 not found"):
        create_order_for_won_auction(999, db, context, bus)

    assert db.query(Order).count() == 0


def test_listing_without_bidder_creates_order_without_customer(db, bus, context, listing):
    listing.auction_current_bidder_id = None
    db.commit()

    order = db.get(Order, create_order_for_won_auction(listing.id, db, context, bus))

    assert order.customer_id is None
    assert order.status == OrderStatus.PROCESSING.value
    assert order.billing.as_dict() == dict.fromkeys(order.billing.as_dict(), "")


def test_creation_closes_listing(db, bus, context, listing, closed_events):
    order_id = create_order_for_won_auction(listing.id, db, context, bus)

    db.refresh(listing)
    order = db.get(Order, order_id)
    assert order.is_auction_order is True
    assert listing.auction_order_id == order_id
    assert listing.auction_emails_suppressed is True
    assert listing.auction_bought_now is True
    assert listing.term_names == {"buy-now", "finished"}
    assert closed_events == [42]


def test_dispatch_routes_auction_won_to_creator(db, bus, context, listing):
    order_id = bus.dispatch(AuctionWon(listing_id=listing.id), db=db, context=context, bus=bus)

    assert db.get(Order, order_id).customer_id == listing.auction_current_bidder_id


def _bare_order(db, product):
    order = orders.create_order(db, customer_id=None)
    orders.add_product(order, product)
    db.commit()
    return order


def test_bookkeeping_missing_order_is_noop(db, bus, listing, closed_events):
    stamp_auction_order_metadata(12345, db, bus)

    db.refresh(listing)
    assert listing.auction_order_id is None
    assert listing.auction_emails_suppressed is False
    assert listing.term_names == set()
    assert closed_events == []


def test_bookkeeping_is_idempotent(db, bus, listing, closed_events):
    order = _bare_order(db, listing)

    stamp_auction_order_metadata(order.id, db, bus)
    stamp_auction_order_metadata(order.id, db, bus)

    db.refresh(listing)
    db.refresh(order)
    assert order.is_auction_order is True
    assert sorted(term.term for term in listing.visibility_terms) == ["buy-now", "finished"]
    assert closed_events == [listing.id]


def test_bookkeeping_keeps_existing_back_link(db, bus, listing):
    first = _bare_order(db, listing)
    listing.auction_order_id = first.id
    db.commit()
    second = _bare_order(db, listing)

    stamp_auction_order_metadata(second.id, db, bus)

    db.refresh(listing)
    assert listing.auction_order_id == first.id


def test_bookkeeping_already_finished_listing_not_reclosed(db, bus, listing, closed_events):
    listing.add_visibility_terms("finished")
    original_end = listing.auction_dates_to
    db.commit()
    order = _bare_order(db, listing)

    stamp_auction_order_metadata(order.id, db, bus)

    db.refresh(listing)
    assert closed_events == []
    assert listing.auction_bought_now is False
    assert listing.term_names == {"finished"}
    assert listing.auction_dates_to == original_end
    assert listing.auction_order_id == order.id
    assert listing.auction_emails_suppressed is True


def test_bookkeeping_skips_non_auction_items(db, bus, simple_product, closed_events):
    order = _bare_order(db, simple_product)

    stamp_auction_order_metadata(order.id, db, bus)

    db.refresh(simple_product)
    db.refresh(order)
    assert order.is_auction_order is False
    assert simple_product.auction_order_id is None
    assert simple_product.auction_emails_suppressed is False
    assert simple_product.term_names == set()
    assert closed_events == []
