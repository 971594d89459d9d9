from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.database import Base

PRODUCT_TYPE_SIMPLE = "simple"
PRODUCT_TYPE_AUCTION = "auction"

VISIBILITY_BUY_NOW = "buy-now"
VISIBILITY_FINISHED = "finished"


class Product(Base):
    """A sellable catalog entry. Auction listings are products of type ``auction``."""

    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    product_type = Column(String(32), nullable=False, default=PRODUCT_TYPE_SIMPLE)  # simple | auction
    regular_price = Column(Numeric(10, 2), nullable=False, default=0)
    auction_current_bid = Column(Numeric(10, 2), nullable=True)
    auction_current_bidder_id = Column(Integer, nullable=True)
    auction_dates_from = Column(DateTime(timezone=True), nullable=True)
    auction_dates_to = Column(DateTime(timezone=True), nullable=True)
    auction_bought_now = Column(Boolean, default=False, nullable=False)
    auction_emails_suppressed = Column(Boolean, default=False, nullable=False)
    auction_order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    visibility_terms = relationship(
        "ProductVisibilityTerm",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def is_auction(self) -> bool:
        return self.product_type == PRODUCT_TYPE_AUCTION

    @property
    def term_names(self) -> set[str]:
        return {term.term for term in self.visibility_terms}

    @property
    def is_finished(self) -> bool:
        return VISIBILITY_FINISHED in self.term_names

    @property
    def price(self):
        """Winning bid for a closed auction, regular price otherwise."""
        if self.is_auction and self.auction_current_bid is not None:
            return self.auction_current_bid
        return self.regular_price

    def add_visibility_terms(self, *terms: str) -> None:
        present = self.term_names
        for term in terms:
            if term not in present:
                self.visibility_terms.append(ProductVisibilityTerm(term=term))
                present.add(term)


class ProductVisibilityTerm(Base):
    __tablename__ = "product_visibility_terms"
    __table_args__ = (UniqueConstraint("product_id", "term", name="uq_product_visibility_term"),)

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(String(64), nullable=False)

    product = relationship("Product", back_populates="visibility_terms")
