"""Feedback model."""

from sqlalchemy import Column, DateTime, Integer, Text

from canteen_registry.db.base import Base


class Feedback(Base):
    """Free-text site feedback, unrelated to any canteen."""

    __tablename__ = "feedback"

    id = Column(Integer, primary_key=True, autoincrement=True)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
