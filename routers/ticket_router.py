from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from core.database import get_db
from crud.event_crud import get_event
from crud.ticket_crud import list_tickets, get_ticket, get_ticket_for_update, create_ticket, transfer_ticket
from schemas.ticket_schema import TicketCreate, TicketResponse, TicketTransfer


router = APIRouter(prefix="/tickets", tags=["Tickets"])


@router.get("/", response_model=list[TicketResponse])
def list_all(owner_address: str | None = None, event_id: str | None = None, skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return list_tickets(db, owner_address=owner_address, event_id=event_id, skip=skip, limit=limit)


@router.get("/{ticket_id}", response_model=TicketResponse)
def read_one(ticket_id: str, db: Session = Depends(get_db)):
    ticket = get_ticket(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    return ticket


@router.post("/", response_model=TicketResponse, status_code=201)
def create(payload: TicketCreate, db: Session = Depends(get_db)):
    if not get_event(db, payload.event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return create_ticket(db, payload)


@router.post("/{ticket_id}/transfer", response_model=TicketResponse)
def transfer(ticket_id: str, payload: TicketTransfer, db: Session = Depends(get_db)):
    """
    Hand a ticket to a new wallet. Used tickets cannot change hands, and the
    previous owner's QR token is revoked.
    """
    ticket = get_ticket_for_update(db, ticket_id)
    if not ticket:
        raise HTTPException(status_code=404, detail="Ticket not found")
    if ticket.owner_address != payload.from_address:
        db.rollback()
        raise HTTPException(status_code=403, detail="Not the owner of this ticket")
    if ticket.is_used:
        db.rollback()
        raise HTTPException(status_code=409, detail="Used tickets cannot be transferred")
    return transfer_ticket(db, ticket, payload.to_address, payload.to_name)
