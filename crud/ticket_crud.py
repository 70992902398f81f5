from datetime import datetime
from sqlalchemy.orm import Session
from sqlalchemy import desc, update
from models.ticket import Ticket
from schemas.ticket_schema import TicketCreate


def get_ticket(db: Session, ticket_id: str):
    return db.query(Ticket).filter(Ticket.id == ticket_id).first()


def get_ticket_for_update(db: Session, ticket_id: str):
    # Row lock where the backend supports it; SQLite ignores FOR UPDATE
    return db.query(Ticket).filter(Ticket.id == ticket_id).with_for_update().first()


def get_ticket_by_token(db: Session, token: str):
    return db.query(Ticket).filter(Ticket.current_verification_token == token).first()


def get_ticket_owner(db: Session, ticket_id: str) -> str | None:
    row = db.query(Ticket.owner_address).filter(Ticket.id == ticket_id).first()
    return row[0] if row else None


def is_ticket_used(db: Session, ticket_id: str) -> bool:
    row = db.query(Ticket.is_used).filter(Ticket.id == ticket_id).first()
    return bool(row and row[0])


def list_tickets(db: Session, owner_address: str | None = None, event_id: str | None = None, skip: int = 0, limit: int = 100):
    q = db.query(Ticket)
    if owner_address:
        q = q.filter(Ticket.owner_address == owner_address)
    if event_id:
        q = q.filter(Ticket.event_id == event_id)
    return q.order_by(desc(Ticket.created_at)).offset(skip).limit(limit).all()


def create_ticket(db: Session, payload: TicketCreate):
    ticket = Ticket(**payload.model_dump())
    db.add(ticket)
    db.commit()
    db.refresh(ticket)
    return ticket


def swap_ticket_token(
    db: Session,
    ticket_id: str,
    expected_token: str | None,
    new_token: str,
    expires_at: datetime,
    qr_type: str,
    generated_at: datetime,
) -> bool:
    """Store a new token only if the ticket still holds ``expected_token``.

    Returns False when another writer replaced the token first, or the
    ticket was consumed in the meantime.
    """
    if expected_token is None:
        current = Ticket.current_verification_token.is_(None)
    else:
        current = Ticket.current_verification_token == expected_token
    result = db.execute(
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.is_used.is_(False), current)
        .values(
            current_verification_token=new_token,
            token_expires_at=expires_at,
            token_qr_type=qr_type,
            last_token_generation=generated_at,
        )
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def set_ticket_used(db: Session, ticket_id: str, token: str, used_at: datetime, commit: bool = True) -> bool:
    """Flip the used flag once; only the caller holding the live token wins."""
    result = db.execute(
        update(Ticket)
        .where(
            Ticket.id == ticket_id,
            Ticket.is_used.is_(False),
            Ticket.current_verification_token == token,
        )
        .values(is_used=True, used_at=used_at)
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    return result.rowcount == 1


def transfer_ticket(db: Session, ticket: Ticket, to_address: str, to_name: str | None = None):
    ticket.owner_address = to_address
    ticket.owner_name = to_name
    # Any QR shown by the previous owner dies with the transfer
    ticket.current_verification_token = None
    ticket.token_expires_at = None
    ticket.token_qr_type = None
    db.commit()
    db.refresh(ticket)
    return ticket
