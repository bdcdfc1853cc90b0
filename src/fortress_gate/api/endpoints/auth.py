"""Operator login, logout and session probe endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import JSONResponse

from fortress_gate.api.dependencies import (
    CodecDep,
    TrackerDep,
    client_source_id,
    has_valid_session,
)
from fortress_gate.core.errors import (
    GatewayError,
    InvalidCredentialsError,
    InvalidRequestError,
    LoginRateLimitedError,
)
from fortress_gate.core.security import constant_time_equals
from fortress_gate.core.settings import settings
from fortress_gate.schemas.auth import ErrorResponse, LoginRequest, LoginResponse, SessionStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


def _set_session_cookie(response: Response, token: str, max_age: int) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )


@router.post(
    "",
    response_model=LoginResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
    },
)
async def login(
    request: Request,
    response: Response,
    tracker: TrackerDep,
    codec: CodecDep,
) -> LoginResponse:
    """Exchange the operator password for a session cookie.

    The attempt is counted before the body is read, so a throttled source never
    gets its password compared.

    Raises:
        LoginRateLimitedError: If the source used up its attempts for the window
        InvalidRequestError: If the body is not a JSON object with a string password
        InvalidCredentialsError: If the password does not match
    """
    try:
        source_id = client_source_id(request)

        if not tracker.check_and_record(source_id):
            retry_after = tracker.retry_after(source_id)
            logger.warning(
                "Login throttled for %s, retry after %ds",
                source_id,
                retry_after,
            )
            raise LoginRateLimitedError(retry_after)

        payload = LoginRequest.model_validate(await request.json())

        if not constant_time_equals(payload.password, settings.admin_password):
            logger.info("Failed login from %s", source_id)
            raise InvalidCredentialsError()

        tracker.reset(source_id)
        _set_session_cookie(response, codec.issue(), codec.max_age_seconds)
        logger.info("Operator logged in from %s", source_id)
        return LoginResponse(success=True)
    except GatewayError:
        raise
    except Exception as exc:
        logger.debug("Rejected malformed login request: %s", type(exc).__name__)
        raise InvalidRequestError() from exc


@router.delete("", response_model=LoginResponse)
async def logout(response: Response) -> LoginResponse:
    """Clear the session cookie. No verification is performed."""
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return LoginResponse(success=True)


@router.get(
    "",
    response_model=SessionStatus,
    responses={status.HTTP_401_UNAUTHORIZED: {"model": SessionStatus}},
)
async def probe_session(request: Request, codec: CodecDep) -> JSONResponse:
    """Report whether the caller holds a valid session cookie."""
    if has_valid_session(request, codec):
        return JSONResponse({"authenticated": True})
    return JSONResponse(
        {"authenticated": False},
        status_code=status.HTTP_401_UNAUTHORIZED,
    )
