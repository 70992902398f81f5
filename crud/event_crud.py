from sqlalchemy.orm import Session
from sqlalchemy import desc
from models.event import Event
from schemas.event_schema import EventCreate


def get_event(db: Session, event_id: str):
    return db.query(Event).filter(Event.id == event_id).first()


def list_events(db: Session, active_only: bool = False, skip: int = 0, limit: int = 100):
    q = db.query(Event)
    if active_only:
        q = q.filter(Event.is_active.is_(True))
    return q.order_by(desc(Event.event_date)).offset(skip).limit(limit).all()


def create_event(db: Session, payload: EventCreate):
    event = Event(**payload.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def get_event_venue_coordinates(db: Session, event_id: str) -> tuple[float, float] | None:
    row = (
        db.query(Event.venue_latitude, Event.venue_longitude)
        .filter(Event.id == event_id)
        .first()
    )
    if not row or row[0] is None or row[1] is None:
        return None
    return row[0], row[1]
