"""Order construction and lifecycle operations.

Status only ever moves forward along
``pending-payment -> processing -> on-hold -> completed``; ``cancelled``,
``refunded`` and ``failed`` are terminal. Listeners of ``OrderStatusChanged``
may create orders themselves, so moving an order back to an earlier status
would let them run a second time and produce a duplicate order.

``update_status`` emits ``OrderStatusChanged`` before ``save`` commits. Its
listeners, the customer email included, therefore run against uncommitted
state; if the commit then fails, a notification may already have gone out
for an order that was rolled back.
"""

import logging
from decimal import Decimal
from typing import Mapping

from sqlalchemy.orm import Session

from app.events import EventBus, OrderStatusChanged
from app.models import Order, OrderAddress, OrderItem, OrderNote, Product
from app.models.order import ADDRESS_FIELDS, OrderStatus
from app.services.payment_gateways import PaymentGateway

logger = logging.getLogger(__name__)

STATUS_PROGRESSION = (
    OrderStatus.PENDING_PAYMENT,
    OrderStatus.PROCESSING,
    OrderStatus.ON_HOLD,
    OrderStatus.COMPLETED,
)
TERMINAL_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED, OrderStatus.FAILED})

STATUS_LABELS = {
    OrderStatus.PENDING_PAYMENT: "Pending payment",
    OrderStatus.PROCESSING: "Processing",
    OrderStatus.ON_HOLD: "On hold",
    OrderStatus.COMPLETED: "Completed",
    OrderStatus.CANCELLED: "Cancelled",
    OrderStatus.REFUNDED: "Refunded",
    OrderStatus.FAILED: "Failed",
}

CENTS = Decimal("0.01")


class OrderStatusError(ValueError):
    pass


def _money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS)


def is_forward_transition(old: OrderStatus, new: OrderStatus) -> bool:
    if old in TERMINAL_STATUSES:
        return False
    if new in TERMINAL_STATUSES:
        return True
    return STATUS_PROGRESSION.index(new) > STATUS_PROGRESSION.index(old)


def create_order(
    db: Session,
    customer_id: int | None,
    status: OrderStatus = OrderStatus.PENDING_PAYMENT,
) -> Order:
    """Create an order row and flush it so it has an id before it is populated."""
    order = Order(customer_id=customer_id or None, status=OrderStatus(status).value)
    db.add(order)
    db.flush()
    return order


def add_product(order: Order, product: Product, quantity: int = 1) -> OrderItem:
    line_total = _money(product.price) * quantity
    item = OrderItem(
        product_id=product.id,
        name=product.name,
        quantity=quantity,
        subtotal=line_total,
        total=line_total,
    )
    order.items.append(item)
    return item


def set_address(order: Order, address: Mapping[str, str | None], address_type: str = "billing") -> OrderAddress:
    if address_type not in {"billing", "shipping"}:
        raise ValueError(f"Unknown address type: {address_type}")
    target = order.get_address(address_type)
    if target is None:
        target = OrderAddress(address_type=address_type)
        order.addresses.append(target)
    for field in ADDRESS_FIELDS:
        setattr(target, field, address.get(field) or "")
    return target


def set_payment_method(order: Order, gateway: PaymentGateway) -> None:
    order.payment_method = gateway.id
    order.payment_method_title = gateway.title


def add_shipping(order: Order, cost, method_title: str = "") -> None:
    order.shipping_total = _money(cost)
    order.shipping_method_title = method_title or None


def calculate_totals(order: Order) -> Decimal:
    subtotal = sum((_money(item.total) for item in order.items), Decimal("0.00"))
    order.subtotal = subtotal
    order.total = subtotal + _money(order.shipping_total)
    return order.total


def add_order_note(order: Order, content: str, is_customer_note: bool = False, manual: bool = False) -> OrderNote:
    note = OrderNote(content=content, is_customer_note=is_customer_note, added_manually=manual)
    order.notes.append(note)
    return note


def update_status(
    order: Order,
    new_status: OrderStatus | str,
    note: str = "",
    manual: bool = False,
    *,
    db: Session,
    bus: EventBus,
) -> None:
    new = OrderStatus(new_status)
    old = OrderStatus(order.status)

    if new == old:
        if note:
            add_order_note(order, note, manual=manual)
        return

    if not is_forward_transition(old, new):
        raise OrderStatusError(
            f"Order {order.id}: cannot move status from {old.value} to {new.value}"
        )

    order.status = new.value
    add_order_note(
        order,
        f"{note}Order status changed from {STATUS_LABELS[old]} to {STATUS_LABELS[new]}.",
        manual=manual,
    )
    logger.info("Order %s status changed %s -> %s", order.id, old.value, new.value)
    bus.emit(
        OrderStatusChanged(order_id=order.id, old_status=old.value, new_status=new.value, manual=manual),
        db=db,
    )


def save(order: Order, db: Session) -> int:
    db.commit()
    db.refresh(order)
    return order.id
