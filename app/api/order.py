from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.dependencies import get_current_user
from app.models import Order, OrderAddress, User, get_db
from app.schemas.orders import (
    OrderAddressResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderNoteResponse,
    OrderResponse,
)

router = APIRouter()


def _address_response(address: OrderAddress | None) -> OrderAddressResponse | None:
    if address is None:
        return None
    return OrderAddressResponse(**address.as_dict())


def _isoformat(value) -> str:
    return value.isoformat() if value else ""


@router.get(
    "/me",
    response_model=list[OrderResponse],
    summary="List my orders",
)
def my_orders(
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Returns the orders placed for the current user, newest first."""
    orders = (
        db.query(Order)
        .filter(Order.customer_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .all()
    )
    return [
        OrderResponse(
            id=o.id,
            status=o.status,
            currency=o.currency,
            total=o.total,
            payment_method=o.payment_method,
            payment_method_title=o.payment_method_title,
            is_auction_order=o.is_auction_order,
            created_at=_isoformat(o.created_at),
        )
        for o in orders
    ]


@router.get(
    "/{order_id}",
    response_model=OrderDetailResponse,
    summary="Get order details",
)
def order_detail(
    order_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
):
    """Returns one of the current user's orders with items, addresses and customer notes."""
    order = db.query(Order).filter(Order.id == order_id, Order.customer_id == current_user.id).first()
    if not order:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Order not found")
    return OrderDetailResponse(
        id=order.id,
        status=order.status,
        currency=order.currency,
        subtotal=order.subtotal,
        shipping_total=order.shipping_total,
        shipping_method_title=order.shipping_method_title,
        total=order.total,
        payment_method=order.payment_method,
        payment_method_title=order.payment_method_title,
        is_auction_order=order.is_auction_order,
        created_via=order.created_via,
        created_at=_isoformat(order.created_at),
        items=[
            OrderItemResponse(
                id=item.id,
                product_id=item.product_id,
                name=item.name,
                quantity=item.quantity,
                subtotal=item.subtotal,
                total=item.total,
            )
            for item in order.items
        ],
        billing=_address_response(order.billing),
        shipping=_address_response(order.shipping),
        notes=[
            OrderNoteResponse(id=note.id, content=note.content, created_at=_isoformat(note.created_at))
            for note in order.notes
            if note.is_customer_note
        ],
    )
