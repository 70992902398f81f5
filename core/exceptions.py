class TicketAccessError(Exception):
    """Base class for hard failures raised to the ticket holder."""

    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class Unauthorized(TicketAccessError):
    status_code = 403


class AlreadyUsed(TicketAccessError):
    status_code = 409
