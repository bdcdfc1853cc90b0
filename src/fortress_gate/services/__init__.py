"""Stateful services backing the gateway endpoints."""

from .login_attempts import LoginAttemptRecord, LoginAttemptTracker
from .upstream import ProxyExchange, UpstreamClient, UpstreamReply

__all__ = [
    "LoginAttemptRecord",
    "LoginAttemptTracker",
    "ProxyExchange",
    "UpstreamClient",
    "UpstreamReply",
]
