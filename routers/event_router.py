from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from crud.event_crud import list_events, get_event, create_event
from schemas.event_schema import EventCreate, EventResponse


router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/", response_model=list[EventResponse])
def list_all(active_only: bool = False, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return list_events(db, active_only=active_only, skip=skip, limit=limit)


@router.get("/{event_id}", response_model=EventResponse)
def read_one(event_id: str, db: Session = Depends(get_db)):
    event = get_event(db, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.post("/", response_model=EventResponse, status_code=201)
def create(payload: EventCreate, db: Session = Depends(get_db)):
    return create_event(db, payload)
