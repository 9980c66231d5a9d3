from typing import Optional


class ProxyError(Exception):
    """Base error carrying the HTTP status and message returned to the caller."""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ProxyError):
    """Raised when the caller sent missing or malformed input."""

    status_code = 400


class ForbiddenDomainError(ProxyError):
    """Raised when an image URL points outside the allowed media hosts."""

    status_code = 403


class UpstreamNotFoundError(ProxyError):
    """Raised when the upstream provider answered with an empty result."""

    status_code = 404


class UpstreamError(ProxyError):
    """Raised when the upstream provider returns a non-2xx response.

    The upstream status code is passed through to the caller unchanged.
    """

    def __init__(self, message: str, status_code: int):
        super().__init__(message, status_code)


class UpstreamTimeoutError(ProxyError):
    """Raised when an outbound fetch exceeds its time bound."""

    status_code = 504


class InternalError(ProxyError):
    status_code = 500
