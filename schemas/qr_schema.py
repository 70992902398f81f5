from datetime import datetime
from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class QRGenerateRequest(BaseModel):
    ticket_id: str
    owner_address: str
    location: GeoPoint | None = None


class QRTokenResponse(BaseModel):
    token: str
    expires_at: datetime
    seconds_remaining: int
    ticket_id: str
    event_id: str
    qr_type: str


class ScannerContext(BaseModel):
    scanner_id: str | None = Field(default=None, max_length=255)
    location: str | None = Field(default=None, max_length=255)
    # As reported by the scanner device; the connection address is stored separately
    ip_address: str | None = Field(default=None, max_length=128)
    user_agent: str | None = Field(default=None, max_length=512)


class QRVerifyRequest(BaseModel):
    token: str = Field(min_length=1, max_length=255)
    scanner: ScannerContext = Field(default_factory=ScannerContext)


class TicketSummary(BaseModel):
    ticket_id: str
    event_id: str
    event_name: str
    venue: str
    owner_address: str
    owner_display_name: str


class QRVerifyResponse(BaseModel):
    outcome: str
    message: str
    ticket: TicketSummary | None = None
    timestamp: datetime


class VerificationAttemptResponse(BaseModel):
    id: str
    token: str
    ticket_id: str | None = None
    scanner_id: str | None = None
    scanner_location: str | None = None
    ip_address: str | None = None
    reported_ip_address: str | None = None
    user_agent: str | None = None
    outcome: str
    attempted_at: datetime

    model_config = {"from_attributes": True}
