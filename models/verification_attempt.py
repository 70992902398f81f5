import uuid
from sqlalchemy import Column, String, DateTime, Index
from models.base import Base

class VerificationAttempt(Base):
    __tablename__ = "verification_attempts"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    token = Column(String(255), nullable=False)
    # No foreign key: attempts against unknown or superseded tokens are kept too
    ticket_id = Column(String(64), nullable=True)
    scanner_id = Column(String(255), nullable=True)
    scanner_location = Column(String(255), nullable=True)
    ip_address = Column(String(128), nullable=True)
    reported_ip_address = Column(String(128), nullable=True)
    user_agent = Column(String(512), nullable=True)
    outcome = Column(String(32), nullable=False)
    attempted_at = Column(DateTime(timezone=True), nullable=False)

Index("idx_attempts_token_time", VerificationAttempt.token, VerificationAttempt.attempted_at)
Index("idx_attempts_ticket_time", VerificationAttempt.ticket_id, VerificationAttempt.attempted_at.desc())
