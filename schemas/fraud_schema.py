from datetime import datetime
from pydantic import BaseModel


class FraudAlertResponse(BaseModel):
    id: str
    ticket_id: str | None = None
    token: str | None = None
    category: str
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


class SystemStatsResponse(BaseModel):
    total_tickets: int
    used_tickets: int
    active_events: int
    live_tokens: int
    verification_attempts_24h: int
    fraud_alerts_24h: int
