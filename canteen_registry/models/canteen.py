"""Canteen model."""

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String
from sqlalchemy.orm import relationship

from canteen_registry.db.base import Base


class Canteen(Base):
    """A rated workplace canteen, keyed by its address key."""

    __tablename__ = "canteens"

    address_key = Column(String(255), primary_key=True)
    base_address_key = Column(String(255), index=True)  # shared by every canteen at the address
    canteen_name = Column(String(100))  # only set when several canteens share an address
    street = Column(String(255), nullable=False)
    postal_code = Column(String(20), nullable=False)
    city = Column(String(100), nullable=False)
    municipality = Column(String(100))
    municipality_number = Column(String(10))
    companies = Column(JSON, nullable=False, default=list)  # [{org_id, name, added_at}]
    average_rating = Column(Float, nullable=False, default=0.0)
    total_reviews = Column(Integer, nullable=False, default=0, index=True)
    rating_distribution = Column(JSON, nullable=False)  # {"1": n, ..., "5": n}
    info = Column(JSON, nullable=False)  # CanteenInfo.model_dump()
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    version = Column(Integer, nullable=False)

    reviews = relationship("Review", back_populates="canteen", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def has_member(self, org_id: str) -> bool:
        return any(c.get("org_id") == org_id for c in self.companies or [])
