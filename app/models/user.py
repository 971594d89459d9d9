from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.sql import func

from app.models.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    display_name = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    billing_address_1 = Column(String(255), nullable=True)
    billing_address_2 = Column(String(255), nullable=True)
    billing_city = Column(String(255), nullable=True)
    billing_state = Column(String(255), nullable=True)
    billing_postcode = Column(String(32), nullable=True)
    billing_country = Column(String(2), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
