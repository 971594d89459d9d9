from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, field_serializer


class ListingResponse(BaseModel):
    id: int
    name: str
    slug: str
    product_type: str
    price: Decimal
    current_bidder_id: int | None = None
    dates_from: datetime | None = None
    dates_to: datetime | None = None
    is_finished: bool
    bought_now: bool
    emails_suppressed: bool
    order_id: int | None = None
    visibility_terms: list[str]

    @field_serializer("price")
    def serialize_price(self, value: Decimal) -> str:
        return format(value.quantize(Decimal("0.01")), "f")
