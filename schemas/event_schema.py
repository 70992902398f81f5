from datetime import datetime
from pydantic import BaseModel, Field


class EventBase(BaseModel):
    name: str
    venue: str
    event_date: datetime
    organizer_address: str
    venue_latitude: float | None = Field(default=None, ge=-90, le=90)
    venue_longitude: float | None = Field(default=None, ge=-180, le=180)


class EventCreate(EventBase):
    pass


class EventResponse(EventBase):
    id: str
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}
