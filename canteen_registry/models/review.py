"""Review model."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from canteen_registry.db.base import Base


class Review(Base):
    """One client's review of one canteen."""

    __tablename__ = "reviews"

    # uuid5 of (canteen key, client id), so a second insert for the same pair collides
    id = Column(String(32), primary_key=True)
    canteen_key = Column(
        String(255), ForeignKey("canteens.address_key", ondelete="CASCADE"), nullable=False, index=True
    )
    rating = Column(Integer, nullable=False)  # 1-5
    comment = Column(Text, nullable=False, default="")
    company_name = Column(String(255), nullable=False, default="")  # snapshot at submission time
    client_id = Column(String(100), nullable=False, index=True)
    payment_type = Column(String(20))
    price = Column(Integer)
    serving_type = Column(String(20))
    employee_discount = Column(Boolean)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True))

    canteen = relationship("Canteen", back_populates="reviews")
