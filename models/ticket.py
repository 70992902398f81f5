import uuid
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base import Base, TimestampMixin
from models.event import Event

class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    token_id = Column(Integer, unique=True, nullable=True)
    event_id = Column(String(64), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    owner_address = Column(String(128), nullable=False)
    owner_name = Column(String(255), nullable=True)
    transaction_hash = Column(String(128), nullable=True)
    is_used = Column(Boolean, default=False, nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=True)

    # Dynamic QR state; overwritten on every reissue
    current_verification_token = Column(String(128), unique=True, nullable=True)
    token_expires_at = Column(DateTime(timezone=True), nullable=True)
    token_qr_type = Column(String(32), nullable=True)
    last_token_generation = Column(DateTime(timezone=True), nullable=True)

    event = relationship(Event)

Index("idx_tickets_owner", Ticket.owner_address)
Index("idx_tickets_event", Ticket.event_id)
Index("idx_tickets_token", Ticket.current_verification_token)
