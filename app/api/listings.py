from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.models import Product, get_db
from app.models.product import PRODUCT_TYPE_AUCTION
from app.schemas.listings import ListingResponse

router = APIRouter()


def listing_to_response(listing: Product) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        name=listing.name,
        slug=listing.slug,
        product_type=listing.product_type,
        price=listing.price,
        current_bidder_id=listing.auction_current_bidder_id,
        dates_from=listing.auction_dates_from,
        dates_to=listing.auction_dates_to,
        is_finished=listing.is_finished,
        bought_now=listing.auction_bought_now,
        emails_suppressed=listing.auction_emails_suppressed,
        order_id=listing.auction_order_id,
        visibility_terms=sorted(listing.term_names),
    )


@router.get(
    "",
    response_model=list[ListingResponse],
    summary="List auction listings",
)
def list_listings(
    db: Annotated[Session, Depends(get_db)],
):
    """Returns all auction listings with their bidding and closing state."""
    listings = (
        db.query(Product)
        .filter(Product.product_type == PRODUCT_TYPE_AUCTION)
        .order_by(Product.id)
        .all()
    )
    return [listing_to_response(listing) for listing in listings]


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Get listing by ID",
)
def get_listing(
    listing_id: int,
    db: Annotated[Session, Depends(get_db)],
):
    listing = db.get(Product, listing_id)
    if listing is None or not listing.is_auction:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    return listing_to_response(listing)
