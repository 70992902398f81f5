from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc, func
from core.clock import as_utc
from models.fraud_alert import FraudAlert


def get_alert(db: Session, alert_id: str):
    return db.query(FraudAlert).filter(FraudAlert.id == alert_id).first()


def list_alerts(
    db: Session,
    since: datetime | None = None,
    category: str | None = None,
    ticket_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
):
    q = db.query(FraudAlert)
    if since is not None:
        # Stored times carry no offset on every backend; compare in UTC
        q = q.filter(FraudAlert.created_at >= as_utc(since))
    if category:
        q = q.filter(FraudAlert.category == category)
    if ticket_id:
        q = q.filter(FraudAlert.ticket_id == ticket_id)
    return q.order_by(desc(FraudAlert.created_at)).offset(skip).limit(limit).all()


def create_alert(
    db: Session,
    category: str,
    description: str,
    created_at: datetime,
    ticket_id: str | None = None,
    token: str | None = None,
):
    alert = FraudAlert(
        category=category,
        description=description,
        created_at=created_at,
        ticket_id=ticket_id,
        token=token,
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    return alert


def count_alerts_since(db: Session, since: datetime) -> int:
    return db.query(func.count(FraudAlert.id)).filter(FraudAlert.created_at >= as_utc(since)).scalar() or 0
