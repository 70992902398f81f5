import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.clock import as_utc, utcnow
from crud.attempt_crud import create_attempt
from crud.ticket_crud import get_ticket_by_token, set_ticket_used
from services import fraud_monitor

logger = logging.getLogger(__name__)


class VerificationOutcome(str, enum.Enum):
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"
    EXPIRED = "expired"
    VALID = "valid"


OUTCOME_MESSAGES = {
    VerificationOutcome.NOT_FOUND: "Invalid QR code - not recognised",
    VerificationOutcome.ALREADY_USED: "Ticket already used",
    VerificationOutcome.EXPIRED: "QR code expired - ask owner to refresh",
    VerificationOutcome.VALID: "Valid ticket",
}


@dataclass
class ScanContext:
    scanner_id: str | None = None
    location: str | None = None
    ip_address: str | None = None
    reported_ip_address: str | None = None
    user_agent: str | None = None


@dataclass
class VerificationResult:
    outcome: VerificationOutcome
    timestamp: datetime
    ticket: dict | None = None
    ticket_id: str | None = None
    fraud_alerts: list = field(default_factory=list)
    # Set when the fraud check failed and must be retried out of band
    fraud_check_deferred: bool = False

    @property
    def message(self) -> str:
        return OUTCOME_MESSAGES[self.outcome]


def display_name(owner_name: str | None, owner_address: str) -> str:
    if owner_name:
        return owner_name
    if len(owner_address) > 12:
        return f"{owner_address[:6]}…{owner_address[-4:]}"
    return owner_address


def _summary(ticket) -> dict:
    event = ticket.event
    return {
        "ticket_id": ticket.id,
        "event_id": ticket.event_id,
        "event_name": event.name if event else "",
        "venue": event.venue if event else "",
        "owner_address": ticket.owner_address,
        "owner_display_name": display_name(ticket.owner_name, ticket.owner_address),
    }


def _classify(ticket, now: datetime) -> VerificationOutcome:
    if ticket is None:
        return VerificationOutcome.NOT_FOUND
    if ticket.is_used:
        return VerificationOutcome.ALREADY_USED
    expires_at = as_utc(ticket.token_expires_at)
    # Expiry is exclusive: a scan at the exact expiry instant is late
    if expires_at is None or now >= expires_at:
        return VerificationOutcome.EXPIRED
    return VerificationOutcome.VALID


def verify_token(db: Session, token: str, scanner: ScanContext | None = None, now: datetime | None = None) -> VerificationResult:
    """Consume a scanned QR token and classify the scan.

    Every call writes exactly one audit attempt. Only storage failures
    escape as exceptions; all four outcomes are returned as results.
    """
    now = now or utcnow()
    scanner = scanner or ScanContext()

    ticket = get_ticket_by_token(db, token)
    outcome = _classify(ticket, now)
    summary = None

    if outcome is VerificationOutcome.VALID:
        summary = _summary(ticket)
        if not set_ticket_used(db, ticket.id, token, now, commit=False):
            # Another scanner, or a reissue, won the race on this row
            db.refresh(ticket)
            if ticket.is_used:
                outcome = VerificationOutcome.ALREADY_USED
            else:
                outcome = VerificationOutcome.NOT_FOUND
            summary = None

    ticket_id = ticket.id if ticket else None
    # The used flag and the audit row land in one transaction
    create_attempt(
        db,
        token=token,
        outcome=outcome.value,
        attempted_at=now,
        ticket_id=ticket_id,
        scanner_id=scanner.scanner_id,
        scanner_location=scanner.location,
        ip_address=scanner.ip_address,
        reported_ip_address=scanner.reported_ip_address,
        user_agent=scanner.user_agent,
        commit=False,
    )
    db.commit()

    result = VerificationResult(outcome=outcome, timestamp=now, ticket=summary, ticket_id=ticket_id)
    logger.info("QR scan on ticket %s: %s", ticket_id or "unknown", outcome.value)

    if outcome is VerificationOutcome.VALID:
        return result

    try:
        result.fraud_alerts = fraud_monitor.evaluate_pattern(db, token, ticket_id, now)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Fraud evaluation failed for ticket %s; deferring", ticket_id or "unknown")
        result.fraud_check_deferred = True
    return result
