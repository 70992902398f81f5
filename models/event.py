import uuid
from sqlalchemy import Column, String, DateTime, Float, Boolean
from models.base import Base, TimestampMixin

class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    venue = Column(String(255), nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False)
    venue_latitude = Column(Float, nullable=True)
    venue_longitude = Column(Float, nullable=True)
    organizer_address = Column(String(128), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
