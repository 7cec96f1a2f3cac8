from sqlalchemy import Column, Float, String, Text

from deployhooks.database import Base


class CacheEntry(Base):
    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    # Unix timestamp; None means the entry never expires
    expires_at = Column(Float, nullable=True)
