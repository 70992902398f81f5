from datetime import datetime, timezone

from sqlalchemy.orm import sessionmaker

from core.database import build_engine
from models.base import Base
from models.event import Event
from models.ticket import Ticket
from models import verification_attempt, fraud_alert  # noqa: F401

T0 = datetime(2026, 6, 1, 18, 0, 0, tzinfo=timezone.utc)

VENUE_LAT = 1.2966
VENUE_LNG = 103.8547

OWNER = "0x742d35Cc6432C7a8d9B05Dc6d5E5E5a7d4A6d8F3"
OTHER_OWNER = "0x853e46Dd7543D8a5eA15Fd7e6E6e6b8e5C7e9A41"


def make_session_factory():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    return engine, sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)


def add_event(db, with_venue=True, name="FairFest 2026"):
    event = Event(
        name=name,
        venue="MetaVerse Stadium",
        event_date=datetime(2026, 12, 15, 19, 0, tzinfo=timezone.utc),
        organizer_address="0xorganizer",
        venue_latitude=VENUE_LAT if with_venue else None,
        venue_longitude=VENUE_LNG if with_venue else None,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def add_ticket(db, event, owner=OWNER, owner_name=None, token_id=None):
    ticket = Ticket(event_id=event.id, owner_address=owner, owner_name=owner_name, token_id=token_id)
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return ticket
