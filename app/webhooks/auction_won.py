import hashlib
import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy.orm import Session

from app.config import settings
from app.dependencies import get_event_bus
from app.events import AuctionWon, EventBus
from app.models import get_db
from app.schemas.orders import AuctionWonResponse
from app.services.auction_orders import ListingNotFoundError, OrderContext

router = APIRouter()
logger = logging.getLogger(__name__)


def _verify_signature(raw_body: bytes, signature: str | None) -> None:
    """Validate HMAC SHA-256 signature when AUCTION_WEBHOOK_SECRET is configured."""
    if not settings.AUCTION_WEBHOOK_SECRET:
        logger.warning("AUCTION_WEBHOOK_SECRET is not set, skipping webhook verification")
        return

    if not signature:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing webhook signature")

    expected = hmac.new(
        settings.AUCTION_WEBHOOK_SECRET.encode("utf-8"),
        raw_body,
        hashlib.sha256,
    ).hexdigest()

    if not hmac.compare_digest(signature, expected):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")


@router.post(
    "/auction-won",
    response_model=AuctionWonResponse,
    summary="Auction won notification",
)
async def auction_won_webhook(
    request: Request,
    db: Session = Depends(get_db),
    bus: EventBus = Depends(get_event_bus),
):
    """
    Called by the auction engine when a listing closes with at least one bid.
    Creates a processing order for the winning bidder and closes the listing.
    """
    raw_body = await request.body()
    _verify_signature(raw_body, request.headers.get("x-auction-signature"))

    try:
        command = AuctionWon.model_validate_json(raw_body)
    except ValidationError as e:
        logger.error("Invalid auction-won payload: %s", e)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="listing_id must be a positive integer")

    try:
        context = OrderContext.from_settings(
            customer_ip=request.client.host if request.client else None,
            customer_user_agent=request.headers.get("user-agent"),
        )
        # Order creation talks to the database and SMTP; keep it off the event loop.
        order_id = await run_in_threadpool(bus.dispatch, command, db=db, context=context, bus=bus)
    except ListingNotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception:
        logger.exception("Failed to create order for listing %s", command.listing_id)
        db.rollback()
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error")

    return AuctionWonResponse(order_id=order_id)
