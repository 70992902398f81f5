from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from core.clock import utcnow
from core.database import get_db
from crud.attempt_crud import count_all_attempts_since
from crud.fraud_crud import count_alerts_since
from models.event import Event
from models.ticket import Ticket
from schemas.fraud_schema import SystemStatsResponse


router = APIRouter(tags=["Stats"])


@router.get("/stats", response_model=SystemStatsResponse)
def stats(db: Session = Depends(get_db)):
    now = utcnow()
    day_ago = now - timedelta(hours=24)
    return SystemStatsResponse(
        total_tickets=db.query(func.count(Ticket.id)).scalar() or 0,
        used_tickets=db.query(func.count(Ticket.id)).filter(Ticket.is_used.is_(True)).scalar() or 0,
        active_events=db.query(func.count(Event.id)).filter(Event.is_active.is_(True)).scalar() or 0,
        live_tokens=(
            db.query(func.count(Ticket.id))
            .filter(Ticket.is_used.is_(False), Ticket.token_expires_at > now)
            .scalar()
            or 0
        ),
        verification_attempts_24h=count_all_attempts_since(db, day_ago),
        fraud_alerts_24h=count_alerts_since(db, day_ago),
    )
