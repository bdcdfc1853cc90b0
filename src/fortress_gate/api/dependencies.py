"""Shared API dependencies for session gating and service injection."""

from typing import Annotated

from fastapi import Depends, Request

from fortress_gate.core.errors import AuthenticationRequiredError
from fortress_gate.core.security import SessionTokenCodec
from fortress_gate.core.settings import settings
from fortress_gate.services.login_attempts import LoginAttemptTracker, get_login_attempt_tracker
from fortress_gate.services.upstream import UpstreamClient, get_upstream_client

LOOPBACK_SOURCE = "127.0.0.1"


def get_session_codec() -> SessionTokenCodec:
    """Get the session token codec configured from settings."""
    return SessionTokenCodec(
        settings.auth_secret,
        max_age_seconds=settings.session_max_age_seconds,
    )


def get_tracker_dep() -> LoginAttemptTracker:
    """Get LoginAttemptTracker dependency for dependency injection."""
    return get_login_attempt_tracker()


def get_upstream_dep() -> UpstreamClient:
    """Get UpstreamClient dependency for dependency injection."""
    return get_upstream_client()


CodecDep = Annotated[SessionTokenCodec, Depends(get_session_codec)]
TrackerDep = Annotated[LoginAttemptTracker, Depends(get_tracker_dep)]
UpstreamDep = Annotated[UpstreamClient, Depends(get_upstream_dep)]


def client_source_id(request: Request) -> str:
    """Derive the brute-force tracking key from request network metadata.

    Uses the first hop of ``X-Forwarded-For``, then ``X-Real-IP``, then the
    loopback address.

    Args:
        request: Incoming request

    Returns:
        Non-empty source identifier
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop
    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip
    return LOOPBACK_SOURCE


def has_valid_session(request: Request, codec: SessionTokenCodec) -> bool:
    """Return True if the request carries a session cookie that verifies."""
    token = request.cookies.get(settings.session_cookie_name)
    return bool(token) and codec.verify(token)


def require_session(request: Request, codec: CodecDep) -> None:
    """Reject the request unless it carries a valid session cookie.

    Raises:
        AuthenticationRequiredError: If the cookie is missing, expired or forged
    """
    if not settings.proxy_require_session:
        return
    if not has_valid_session(request, codec):
        raise AuthenticationRequiredError()


SessionGuard = Depends(require_session)
