"""
Exception classes for the Elpis client.

Separates failures to reach the service (transport errors) from requests
the service rejected (domain errors) and from misuse of the client itself.
"""


class ElpisError(Exception):
    """Base exception for all Elpis client errors."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


# Transport errors

class ElpisTransportError(ElpisError):
    """Exception raised when the HTTP exchange with the server fails."""


class ElpisConnectError(ElpisTransportError):
    """Exception raised when the server cannot be reached."""


class ElpisTimeoutError(ElpisTransportError):
    """Exception raised when a request times out."""

    def __init__(self, detail: str = "Request timed out"):
        super().__init__(detail)


class InvalidURLError(ElpisTransportError):
    """Exception raised when a request URL cannot be constructed or used."""


class ElpisHTTPStatusError(ElpisTransportError):
    """Exception raised for a non-2xx status that carries no server error message."""

    def __init__(self, status_code: int, reason_phrase: str = ""):
        detail = f"HTTP {status_code} {reason_phrase}".rstrip()
        super().__init__(detail, status_code=status_code)
        self.reason_phrase = reason_phrase


# Domain errors

class ElpisException(ElpisError):
    """Exception raised when the server reports an application error."""

    def __init__(self, detail: str, status_code: int | None = None, errors: list[str] | None = None):
        super().__init__(detail, status_code=status_code)
        self.errors = errors if errors is not None else [detail]


class UnexpectedResponseError(ElpisException):
    """Exception raised when a response lacks the field an operation expects."""


# Usage errors

class UsageError(ElpisError):
    """Exception raised when the client is used incorrectly."""


class RequestAlreadySentError(UsageError):
    """Exception raised when a request is sent a second time."""

    def __init__(self, detail: str = "Request has already been sent"):
        super().__init__(detail)
