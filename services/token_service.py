import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from core.clock import as_utc, utcnow
from core.config import settings
from core.exceptions import AlreadyUsed, Unauthorized
from crud.event_crud import get_event_venue_coordinates
from crud.ticket_crud import get_ticket, get_ticket_for_update, swap_ticket_token
from services import fraud_monitor
from services.proximity import QR_TYPE_STANDARD, great_circle_km, window_for_distance

logger = logging.getLogger(__name__)

# Concurrent issuers can only steal the slot a bounded number of times
MAX_SWAP_ATTEMPTS = 3


@dataclass
class IssuedToken:
    token: str
    expires_at: datetime
    seconds_remaining: int
    ticket_id: str
    event_id: str
    qr_type: str


def derive_token(ticket_id: str, issued_at: datetime) -> str:
    """One-way token over (ticket id, issue time, 128-bit nonce)."""
    nonce = secrets.token_hex(16)
    message = f"{ticket_id}-{issued_at.timestamp():.6f}-{nonce}".encode("utf-8")
    return hmac.new(settings.QR_SIGNING_KEY.encode("utf-8"), message, hashlib.sha256).hexdigest()


def seconds_until(expires_at: datetime, now: datetime) -> int:
    return max(0, int((expires_at - now).total_seconds()))


def _live_token(ticket, now: datetime) -> IssuedToken | None:
    expires_at = as_utc(ticket.token_expires_at)
    if not ticket.current_verification_token or expires_at is None or now >= expires_at:
        return None
    return IssuedToken(
        token=ticket.current_verification_token,
        expires_at=expires_at,
        seconds_remaining=seconds_until(expires_at, now),
        ticket_id=ticket.id,
        event_id=ticket.event_id,
        qr_type=ticket.token_qr_type or QR_TYPE_STANDARD,
    )


def _window_for(db: Session, event_id: str, location) -> tuple[int, str]:
    default_seconds = settings.QR_DEFAULT_WINDOW_SECONDS
    if location is None:
        return default_seconds, QR_TYPE_STANDARD
    venue = get_event_venue_coordinates(db, event_id)
    if venue is None:
        return default_seconds, QR_TYPE_STANDARD
    distance = great_circle_km(location.latitude, location.longitude, venue[0], venue[1])
    return window_for_distance(distance, default_seconds)


def issue_token(db: Session, ticket_id: str, owner_address: str, location=None, now: datetime | None = None) -> IssuedToken:
    """Return the ticket's live QR token, minting a new one only when none is live.

    Raises ``Unauthorized`` when the ticket does not exist or belongs to
    someone else, and ``AlreadyUsed`` once the ticket has been scanned in.
    """
    now = now or utcnow()

    for _ in range(MAX_SWAP_ATTEMPTS):
        ticket = get_ticket_for_update(db, ticket_id)
        if not ticket or ticket.owner_address != owner_address:
            db.rollback()
            raise Unauthorized("Not the owner of this ticket")
        if ticket.is_used:
            db.rollback()
            raise AlreadyUsed("Ticket has already been used")

        live = _live_token(ticket, now)
        if live is not None:
            db.rollback()
            return live

        previous_token = ticket.current_verification_token
        event_id = ticket.event_id
        window_seconds, qr_type = _window_for(db, event_id, location)
        token = derive_token(ticket_id, now)
        expires_at = now + timedelta(seconds=window_seconds)

        if swap_ticket_token(db, ticket_id, previous_token, token, expires_at, qr_type, now):
            logger.info("Issued %s QR token for ticket %s (%ss)", qr_type, ticket_id, window_seconds)
            if previous_token:
                fraud_monitor.flag_reissue_after_expired(db, previous_token, ticket_id, now)
            return IssuedToken(
                token=token,
                expires_at=expires_at,
                seconds_remaining=window_seconds,
                ticket_id=ticket_id,
                event_id=event_id,
                qr_type=qr_type,
            )
        logger.info("Token swap for ticket %s lost to a concurrent writer; re-reading", ticket_id)

    # Still contended: whatever is stored now is the answer
    ticket = get_ticket(db, ticket_id)
    if ticket and ticket.is_used:
        raise AlreadyUsed("Ticket has already been used")
    live = _live_token(ticket, now) if ticket else None
    if live is None:
        raise Unauthorized("Ticket is not available for QR generation")
    return live
