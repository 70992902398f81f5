"""Fraud pattern detection over the verification audit log.

Every non-valid scan is re-evaluated on its own against a trailing window,
so spreading attempts across bucket boundaries does not hide them.
"""
import logging
import time
from datetime import datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import settings
from crud.attempt_crud import count_attempts_since
from crud.fraud_crud import create_alert

logger = logging.getLogger(__name__)

CATEGORY_SUSPICIOUS_ACTIVITY = "suspicious_activity"
CATEGORY_EXPIRED_TOKEN = "expired_token"


def evaluate_pattern(db: Session, token: str, ticket_id: str | None, now: datetime) -> list:
    """Raise a ``suspicious_activity`` alert when one token is scanned too often.

    The attempt that triggered the evaluation must already be committed.
    Only attempts up to ``now`` count, so a delayed retry sees the same window.
    """
    since = now - timedelta(seconds=settings.FRAUD_WINDOW_SECONDS)
    attempts = count_attempts_since(db, token, since, until=now)
    if attempts <= settings.FRAUD_ATTEMPT_THRESHOLD:
        return []

    window_minutes = settings.FRAUD_WINDOW_SECONDS // 60
    alert = create_alert(
        db,
        category=CATEGORY_SUSPICIOUS_ACTIVITY,
        description=f"Multiple scan attempts ({attempts}) with same token in {window_minutes} minutes",
        created_at=now,
        ticket_id=ticket_id,
        token=token,
    )
    logger.warning(
        "FRAUD ALERT %s: %s attempts on token %s… (ticket %s)",
        CATEGORY_SUSPICIOUS_ACTIVITY, attempts, token[:12], ticket_id or "unknown",
    )
    return [alert]


def flag_reissue_after_expired(db: Session, previous_token: str, ticket_id: str, now: datetime) -> list:
    """Flag a holder who refreshes the QR right after an expired scan.

    Refreshing to revive a code a scanner already rejected as expired is the
    pattern of a screenshot being passed around. Alerts only; nothing blocks.
    """
    if not settings.FRAUD_FLAG_EXPIRED_REISSUE:
        return []
    since = now - timedelta(seconds=settings.FRAUD_WINDOW_SECONDS)
    try:
        expired_scans = count_attempts_since(db, previous_token, since, until=now, outcome="expired")
        if not expired_scans:
            return []
        alert = create_alert(
            db,
            category=CATEGORY_EXPIRED_TOKEN,
            description=f"QR reissued after {expired_scans} expired scan attempt(s) on the previous token",
            created_at=now,
            ticket_id=ticket_id,
            token=previous_token,
        )
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Could not record reissue alert for ticket %s", ticket_id)
        return []
    logger.warning("FRAUD ALERT %s: ticket %s", CATEGORY_EXPIRED_TOKEN, ticket_id)
    return [alert]


def retry_evaluation(session_factory, token: str, ticket_id: str | None, now: datetime) -> None:
    """Out-of-band retry for an evaluation that failed during a scan."""
    attempts = settings.FRAUD_RETRY_ATTEMPTS
    for attempt in range(1, attempts + 1):
        db = session_factory()
        try:
            evaluate_pattern(db, token, ticket_id, now)
            return
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Fraud evaluation retry %s/%s failed for ticket %s", attempt, attempts, ticket_id or "unknown")
        finally:
            db.close()
        if attempt < attempts:
            time.sleep(0.5 * attempt)
    logger.error("Giving up on fraud evaluation for token %s…", token[:12])
