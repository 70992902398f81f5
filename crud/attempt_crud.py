from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc, func
from models.verification_attempt import VerificationAttempt


def create_attempt(
    db: Session,
    token: str,
    outcome: str,
    attempted_at: datetime,
    ticket_id: str | None = None,
    scanner_id: str | None = None,
    scanner_location: str | None = None,
    ip_address: str | None = None,
    reported_ip_address: str | None = None,
    user_agent: str | None = None,
    commit: bool = True,
):
    attempt = VerificationAttempt(
        token=token,
        outcome=outcome,
        attempted_at=attempted_at,
        ticket_id=ticket_id,
        scanner_id=scanner_id,
        scanner_location=scanner_location,
        ip_address=ip_address,
        reported_ip_address=reported_ip_address,
        user_agent=user_agent,
    )
    db.add(attempt)
    if commit:
        db.commit()
        db.refresh(attempt)
    else:
        db.flush()
    return attempt


def count_attempts_since(
    db: Session,
    token: str,
    since: datetime,
    until: datetime | None = None,
    outcome: str | None = None,
) -> int:
    q = db.query(func.count(VerificationAttempt.id)).filter(
        VerificationAttempt.token == token,
        VerificationAttempt.attempted_at > since,
    )
    if until is not None:
        q = q.filter(VerificationAttempt.attempted_at <= until)
    if outcome:
        q = q.filter(VerificationAttempt.outcome == outcome)
    return q.scalar() or 0


def count_all_attempts_since(db: Session, since: datetime) -> int:
    return (
        db.query(func.count(VerificationAttempt.id))
        .filter(VerificationAttempt.attempted_at > since)
        .scalar()
        or 0
    )


def list_attempts(
    db: Session,
    token: str | None = None,
    ticket_id: str | None = None,
    outcome: str | None = None,
    skip: int = 0,
    limit: int = 100,
):
    q = db.query(VerificationAttempt)
    if token:
        q = q.filter(VerificationAttempt.token == token)
    if ticket_id:
        q = q.filter(VerificationAttempt.ticket_id == ticket_id)
    if outcome:
        q = q.filter(VerificationAttempt.outcome == outcome)
    return q.order_by(desc(VerificationAttempt.attempted_at)).offset(skip).limit(limit).all()
