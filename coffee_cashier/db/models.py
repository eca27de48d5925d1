"""Database models."""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.orm import declarative_base

Base = declarative_base()

ORDER_STATUSES = ("placed", "in_progress", "completed", "canceled")


class Order(Base):
    """Finalized customer order."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_name = Column(String, nullable=False)
    items = Column(JSON, nullable=False)  # List of cart line dicts
    status = Column(String, default="placed", nullable=False, index=True)  # placed, in_progress, completed, canceled
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
