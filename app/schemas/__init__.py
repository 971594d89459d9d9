from app.schemas.listings import ListingResponse
from app.schemas.orders import (
    AuctionWonResponse,
    OrderAddressResponse,
    OrderDetailResponse,
    OrderItemResponse,
    OrderNoteResponse,
    OrderResponse,
)

__all__ = [
    "ListingResponse",
    "AuctionWonResponse",
    "OrderAddressResponse",
    "OrderDetailResponse",
    "OrderItemResponse",
    "OrderNoteResponse",
    "OrderResponse",
]
