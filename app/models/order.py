from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.models.database import Base


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending-payment"
    PROCESSING = "processing"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"
    FAILED = "failed"


ADDRESS_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "address_1",
    "address_2",
    "city",
    "state",
    "postcode",
    "country",
)


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    status = Column(String(50), nullable=False, default=OrderStatus.PENDING_PAYMENT.value)
    currency = Column(String(3), nullable=False, default="EUR")
    payment_method = Column(String(50), nullable=True)
    payment_method_title = Column(String(255), nullable=True)
    shipping_method_title = Column(String(255), nullable=True)
    shipping_total = Column(Numeric(10, 2), nullable=False, default=0)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    customer_ip_address = Column(String(64), nullable=True)
    customer_user_agent = Column(String(512), nullable=True)
    created_via = Column(String(32), nullable=True)
    is_auction_order = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    addresses = relationship(
        "OrderAddress",
        back_populates="order",
        cascade="all, delete-orphan",
    )
    notes = relationship(
        "OrderNote",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderNote.id",
    )

    def get_address(self, address_type: str = "billing") -> "OrderAddress | None":
        for address in self.addresses:
            if address.address_type == address_type:
                return address
        return None

    @property
    def billing(self) -> "OrderAddress | None":
        return self.get_address("billing")

    @property
    def shipping(self) -> "OrderAddress | None":
        return self.get_address("shipping")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=True)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False, default=0)

    order = relationship("Order", back_populates="items")


class OrderAddress(Base):
    __tablename__ = "order_addresses"
    __table_args__ = (UniqueConstraint("order_id", "address_type", name="uq_order_address_type"),)

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    address_type = Column(String(16), nullable=False)  # billing | shipping
    first_name = Column(String(255), nullable=False, default="")
    last_name = Column(String(255), nullable=False, default="")
    email = Column(String(255), nullable=False, default="")
    address_1 = Column(String(255), nullable=False, default="")
    address_2 = Column(String(255), nullable=False, default="")
    city = Column(String(255), nullable=False, default="")
    state = Column(String(255), nullable=False, default="")
    postcode = Column(String(32), nullable=False, default="")
    country = Column(String(2), nullable=False, default="")

    order = relationship("Order", back_populates="addresses")

    def as_dict(self) -> dict[str, str]:
        return {field: getattr(self, field) or "" for field in ADDRESS_FIELDS}


class OrderNote(Base):
    __tablename__ = "order_notes"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_customer_note = Column(Boolean, default=False, nullable=False)
    added_manually = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    order = relationship("Order", back_populates="notes")
