from datetime import datetime
from pydantic import BaseModel


class TicketBase(BaseModel):
    event_id: str
    owner_address: str
    owner_name: str | None = None
    token_id: int | None = None
    transaction_hash: str | None = None


class TicketCreate(TicketBase):
    pass


class TicketTransfer(BaseModel):
    from_address: str
    to_address: str
    to_name: str | None = None


class TicketResponse(TicketBase):
    id: str
    is_used: bool
    used_at: datetime | None = None
    last_token_generation: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    # The live verification token is deliberately not part of this shape
    model_config = {"from_attributes": True}
