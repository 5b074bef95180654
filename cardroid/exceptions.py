"""
Exception hierarchy for the Cardroid bot.

Every error carries the HTTP status used when it reaches a handler and a
plain-text message that is safe to show to the operator.
"""
from typing import Optional


class CardroidError(Exception):
    """Base class for all application errors."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(CardroidError):
    """A required form field is missing or malformed."""

    status_code = 400


class DateFormatError(ValidationError):
    """A date string is not in DD/MM/YYYY form."""

    def __init__(self, value: object):
        super().__init__(f"Fecha inválida: {value!r}. Usa el formato DD/MM/YYYY.")
        self.value = value


class NotFoundError(CardroidError):
    """Lookup returned no record."""

    status_code = 404


class InstallmentOutOfRangeError(ValidationError):
    """Installment index outside the plan's installment list."""

    def __init__(self, index: int, count: int):
        super().__init__("Índice de cuota inválido.")
        self.index = index
        self.count = count


class ChatSessionError(CardroidError):
    """The WhatsApp gateway rejected a request or could not be reached."""

    status_code = 502


class StoreUnavailableError(CardroidError):
    """The document store is not configured or not reachable."""

    status_code = 503
