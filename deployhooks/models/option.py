from datetime import datetime, timezone

from sqlalchemy import Column, String, Text, DateTime

from deployhooks.database import Base


class Option(Base):
    __tablename__ = "options"

    name = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))
