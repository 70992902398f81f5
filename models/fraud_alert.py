import uuid
from sqlalchemy import Column, String, DateTime, Text, Index
from models.base import Base

class FraudAlert(Base):
    __tablename__ = "fraud_alerts"

    id = Column(String(64), primary_key=True, default=lambda: str(uuid.uuid4()))
    ticket_id = Column(String(64), nullable=True)
    token = Column(String(255), nullable=True)
    category = Column(String(64), nullable=False)
    description = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)

Index("idx_fraud_alerts_created_at", FraudAlert.created_at.desc())
Index("idx_fraud_alerts_ticket", FraudAlert.ticket_id)
