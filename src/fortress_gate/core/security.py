"""Session token signing and verification built on HMAC-SHA256."""
from __future__ import annotations

import hashlib
import hmac
import time
from collections.abc import Callable

DEFAULT_MAX_AGE_SECONDS = 60 * 60 * 24 * 7
MAX_TIMESTAMP_DIGITS = 20
TOKEN_SEPARATOR = "."


def constant_time_equals(left: str, right: str) -> bool:
    """Return True if both strings are identical, in time independent of content."""
    return hmac.compare_digest(
        left.encode("utf-8", "surrogatepass"),
        right.encode("utf-8", "surrogatepass"),
    )


class SessionTokenCodec:
    """Issue and verify self-contained session tokens.

    A token is ``"<issued_at>.<signature>"`` where ``issued_at`` is the issue
    time in whole Unix seconds and ``signature`` is the hex HMAC-SHA256 of that
    decimal text under the server secret. Nothing is stored server-side: a
    token stays valid for ``max_age_seconds`` unless the secret changes.
    """

    def __init__(
        self,
        secret: str,
        max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the codec.

        Args:
            secret: Server-held HMAC key.
            max_age_seconds: Lifetime of an issued token.
            clock: Source of wall-clock time in seconds; injectable for tests.
        """
        self._secret = secret.encode("utf-8")
        self.max_age_seconds = int(max_age_seconds)
        self._clock = clock

    def _sign(self, issued_at: str) -> str:
        return hmac.new(self._secret, issued_at.encode("utf-8"), hashlib.sha256).hexdigest()

    def issue(self) -> str:
        """Return a fresh token stamped with the current time."""
        issued_at = str(int(self._clock()))
        return f"{issued_at}{TOKEN_SEPARATOR}{self._sign(issued_at)}"

    def verify(self, token: str) -> bool:
        """Return True if `token` is well formed, unexpired and correctly signed.

        Never raises; every malformed input simply yields False.
        """
        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 2:
            return False
        issued_at, signature = parts

        if (
            not issued_at.isascii()
            or not issued_at.isdigit()
            or len(issued_at) > MAX_TIMESTAMP_DIGITS
        ):
            return False
        now = int(self._clock())
        if now - int(issued_at) > self.max_age_seconds:
            return False

        return constant_time_equals(signature, self._sign(issued_at))
