import io
import json
from dataclasses import asdict

import qrcode
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from fastapi.responses import Response
from sqlalchemy.orm import Session

from core.database import SessionLocal, get_db
from core.exceptions import TicketAccessError
from crud.attempt_crud import list_attempts
from schemas.qr_schema import (
    QRGenerateRequest,
    QRTokenResponse,
    QRVerifyRequest,
    QRVerifyResponse,
    VerificationAttemptResponse,
)
from services.fraud_monitor import retry_evaluation
from services.token_service import issue_token
from services.verification_service import ScanContext, verify_token


router = APIRouter(prefix="/qr", tags=["QR Verification"])

# Matches the verification_attempts.user_agent column
USER_AGENT_MAX_LENGTH = 512


def _issue(db: Session, body: QRGenerateRequest):
    try:
        return issue_token(db, body.ticket_id, body.owner_address, location=body.location)
    except TicketAccessError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail)


@router.post("/generate", response_model=QRTokenResponse)
def generate(body: QRGenerateRequest, db: Session = Depends(get_db)):
    """
    Return the ticket's live QR token. Calling again before expiry returns the
    same token with fewer seconds remaining; it never opens a fresh window.
    """
    issued = _issue(db, body)
    return QRTokenResponse(**asdict(issued))


@router.post("/generate/image")
def generate_image(body: QRGenerateRequest, db: Session = Depends(get_db)):
    """
    Same as /generate, rendered as a PNG QR code for the wallet screen.
    """
    issued = _issue(db, body)
    payload = json.dumps({"token": issued.token, "expires_at": issued.expires_at.isoformat()})
    buf = io.BytesIO()
    qrcode.make(payload).save(buf, format="PNG")
    return Response(
        content=buf.getvalue(),
        media_type="image/png",
        headers={
            "Cache-Control": "no-store",
            "X-QR-Expires-At": issued.expires_at.isoformat(),
            "X-QR-Seconds-Remaining": str(issued.seconds_remaining),
            "X-QR-Type": issued.qr_type,
        },
    )


def _user_agent(value: str | None) -> str | None:
    return value[:USER_AGENT_MAX_LENGTH] if value else None


@router.post("/verify", response_model=QRVerifyResponse)
def verify(body: QRVerifyRequest, request: Request, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """
    Scanner endpoint. Always answers with one of not_found, already_used,
    expired or valid; only a storage outage produces an error status.
    """
    scanner = ScanContext(
        scanner_id=body.scanner.scanner_id,
        location=body.scanner.location,
        ip_address=request.client.host if request.client else body.scanner.ip_address,
        reported_ip_address=body.scanner.ip_address,
        user_agent=_user_agent(body.scanner.user_agent or request.headers.get("user-agent")),
    )
    result = verify_token(db, body.token, scanner)
    if result.fraud_check_deferred:
        background_tasks.add_task(retry_evaluation, SessionLocal, body.token, result.ticket_id, result.timestamp)

    return QRVerifyResponse(
        outcome=result.outcome.value,
        message=result.message,
        ticket=result.ticket,
        timestamp=result.timestamp,
    )


@router.get("/attempts", response_model=list[VerificationAttemptResponse])
def attempts(
    token: str | None = None,
    ticket_id: str | None = None,
    outcome: str | None = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return list_attempts(db, token=token, ticket_id=ticket_id, outcome=outcome, skip=skip, limit=limit)
