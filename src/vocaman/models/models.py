"""Database models for persisted game progress."""
from sqlalchemy import Column, String, Text

from vocaman.models.base import Base, TimestampMixin


class StoredValue(Base, TimestampMixin):
    """A single key-value pair of the progress store."""

    __tablename__ = "kv_store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)  # JSON text
