from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from rmerch.db import Base


class Subscriber(Base):
    __tablename__ = "subscribers"
    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    subscribed = Column(Boolean, nullable=False, default=True)
    subscribed_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
