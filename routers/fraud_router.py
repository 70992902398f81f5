from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from crud.fraud_crud import get_alert, list_alerts
from schemas.fraud_schema import FraudAlertResponse


router = APIRouter(prefix="/fraud-alerts", tags=["Fraud Alerts"])


@router.get("/", response_model=list[FraudAlertResponse])
def list_all(
    since: datetime | None = None,
    category: str | None = None,
    ticket_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return list_alerts(db, since=since, category=category, ticket_id=ticket_id, skip=skip, limit=limit)


@router.get("/{alert_id}", response_model=FraudAlertResponse)
def read_one(alert_id: str, db: Session = Depends(get_db)):
    alert = get_alert(db, alert_id)
    if not alert:
        raise HTTPException(status_code=404, detail="Fraud alert not found")
    return alert
