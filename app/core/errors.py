"""
Application errors for clean API error handling.

Use ServiceUnavailableError when a dependency (assistant API key, database)
is misconfigured so the API can return 503 with a user-facing message.

ExchangeError and its subclasses describe why a message exchange failed. The
API layer maps each kind to a status code; services only raise them.
"""

from typing import Any


class ServiceUnavailableError(Exception):
    """Raised when a required service (e.g. the assistant API) is misconfigured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when an agent or conversation row does not exist."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ExchangeError(Exception):
    """Base for message exchange failures. `context` holds ids for diagnosis."""

    kind = "exchange_error"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)


class InvalidRequestError(ExchangeError):
    """Missing or malformed input. Never retried."""

    kind = "invalid_request"


class RemoteUnavailableError(ExchangeError):
    """Transport or HTTP failure on a single assistant API call."""

    kind = "remote_unavailable"

    def __init__(self, operation: str, message: str, status_code: int | None = None, **context: Any) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(f"{operation}: {message}", operation=operation, status_code=status_code, **context)


class JobFailedError(ExchangeError):
    """The remote run reached a terminal status other than completed."""

    kind = "job_failed"

    def __init__(self, message: str, status: str, **context: Any) -> None:
        self.status = status
        super().__init__(message, status=status, **context)


class AnswerNotFoundError(ExchangeError):
    """The run completed but no assistant reply showed up within the retrieval budget."""

    kind = "answer_not_found"


class ExchangeCancelledError(ExchangeError):
    """Aborted by the caller ("cancelled") or by a local deadline ("deadline")."""

    kind = "cancelled"

    def __init__(self, message: str, reason: str = "cancelled", **context: Any) -> None:
        self.reason = reason
        super().__init__(message, reason=reason, **context)
