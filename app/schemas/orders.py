from decimal import Decimal

from pydantic import BaseModel, field_serializer


class _MoneyModel(BaseModel):
    @field_serializer("subtotal", "total", "shipping_total", check_fields=False)
    def serialize_money(self, value: Decimal) -> str:
        return format(value.quantize(Decimal("0.01")), "f")


class AuctionWonResponse(BaseModel):
    received: bool = True
    order_id: int

    model_config = {"json_schema_extra": {"examples": [{"received": True, "order_id": 17}]}}


class OrderAddressResponse(BaseModel):
    first_name: str
    last_name: str
    email: str
    address_1: str
    address_2: str
    city: str
    state: str
    postcode: str
    country: str


class OrderItemResponse(_MoneyModel):
    id: int
    product_id: int | None = None
    name: str
    quantity: int
    subtotal: Decimal
    total: Decimal


class OrderNoteResponse(BaseModel):
    id: int
    content: str
    created_at: str


class OrderResponse(_MoneyModel):
    id: int
    status: str
    currency: str
    total: Decimal
    payment_method: str | None = None
    payment_method_title: str | None = None
    is_auction_order: bool
    created_at: str


class OrderDetailResponse(OrderResponse):
    subtotal: Decimal
    shipping_total: Decimal
    shipping_method_title: str | None = None
    created_via: str | None = None
    items: list[OrderItemResponse]
    billing: OrderAddressResponse | None = None
    shipping: OrderAddressResponse | None = None
    notes: list[OrderNoteResponse]
