"""Exception hierarchy rendered at the HTTP boundary.

Every error a handler raises is a `GatewayError`; the application installs a
single exception handler that turns it into an `{"error": ...}` payload with
the matching status code. Messages are generic on purpose: they never carry
parser internals or say which part of a credential was wrong.
"""

from __future__ import annotations

from fastapi import status


class GatewayError(RuntimeError):
    """Base exception for failures surfaced to gateway callers."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Invalid request"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def payload(self) -> dict[str, object]:
        """Return the JSON body sent to the client."""
        return {"error": self.message}

    def headers(self) -> dict[str, str] | None:
        """Return extra response headers, if any."""
        return None


class InvalidRequestError(GatewayError):
    """Raised when a request body cannot be parsed or validated."""


class InvalidCredentialsError(GatewayError):
    """Raised when the submitted operator password does not match."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Invalid password"


class AuthenticationRequiredError(GatewayError):
    """Raised by the session guard when no valid session cookie is present."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class LoginRateLimitedError(GatewayError):
    """Raised when a source exceeded its login attempt budget."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    message = "Too many failed login attempts. Please wait before retrying."

    def __init__(self, retry_after: int, message: str | None = None) -> None:
        super().__init__(message)
        self.retry_after = max(0, int(retry_after))

    def headers(self) -> dict[str, str]:
        return {"Retry-After": str(self.retry_after)}


class UpstreamError(GatewayError):
    """Base exception for failures talking to the Fortress API."""

    status_code = status.HTTP_502_BAD_GATEWAY
    message = "Fortress API error"


class UpstreamUnavailableError(UpstreamError):
    """Raised when the Fortress API cannot be reached at the transport level.

    Connection refusals, timeouts and DNS failures all land here. Responses the
    backend did return, including 4xx/5xx, are not errors for the gateway.
    """

    message = "Fortress API unavailable"

    def __init__(self, detail: str, message: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail

    def payload(self) -> dict[str, object]:
        return {"error": self.message, "detail": self.detail}
