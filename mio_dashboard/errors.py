from typing import Optional


class DashboardError(Exception):
    """Base class for failures the console reports to the operator."""


class ApiRequestError(DashboardError):
    """Raised when the API answers with an error status."""

    def __init__(self, status: int, message: str, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.body = body or message


class ApiConnectionError(DashboardError):
    """Raised when the API could not be reached or did not answer in time."""


class ApiResponseError(DashboardError):
    """Raised when a response body does not have the expected shape."""


class CsvParseError(DashboardError):
    """Raised when an uploaded CSV file cannot be turned into rows."""


class NoProjectSelectedError(DashboardError):
    """Raised by views that only make sense inside one project."""


def error_message(exc: Optional[BaseException], fallback: str) -> str:
    """
    Pick the text shown in an error banner.

    The server-provided message wins; transport failures and unknown errors
    show their own text; anything empty falls back to ``fallback``.
    """
    if exc is None:
        return fallback
    if isinstance(exc, ApiRequestError):
        return exc.message or fallback
    return str(exc) or fallback
