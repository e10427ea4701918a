"""Error taxonomy shared by the services and the workflow."""

from enum import Enum
from typing import Optional


class SnapDeckError(Exception):
    """Base class for every error the workflow knows how to report."""

    kind: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(SnapDeckError):
    """Nothing usable was submitted or selected."""

    kind = "input"


class ExtractionError(SnapDeckError):
    """A model call failed while extracting text or generating cards."""

    kind = "extraction"


class ConfigurationError(SnapDeckError):
    """A required setting (usually an API key) is missing."""

    kind = "configuration"


class InvalidTransition(SnapDeckError):
    """An event was dispatched in a state that does not accept it."""

    kind = "transition"


class DeckErrorKind(Enum):
    """Classified deck service failures with their user-facing message."""
    BAD_REQUEST = "Bad Request"
    PAYLOAD_TOO_LARGE = "List too large"
    UNSUPPORTED_MEDIA_TYPE = "Invalid content type"
    RATE_LIMITED = "Too many requests"
    SERVER_ERROR = "Server error"
    TIMEOUT = "Request timeout"
    NETWORK_UNREACHABLE = "Network error"
    NO_RESPONSE = "No server response"
    UNKNOWN = "An unexpected error occurred."


class DeckServiceError(SnapDeckError):
    """The deck service rejected the request or could not be reached."""

    kind = "deck_service"

    def __init__(
        self,
        error_kind: DeckErrorKind,
        message: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message or error_kind.value)
        self.error_kind = error_kind
        self.status = status

    def __repr__(self) -> str:
        return f"DeckServiceError({self.error_kind.name}, {self.message!r}, status={self.status})"
