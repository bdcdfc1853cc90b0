"""Reverse proxy from operator requests to the Fortress API."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response, status

from fortress_gate.api.dependencies import SessionGuard, UpstreamDep
from fortress_gate.schemas.auth import ErrorResponse
from fortress_gate.services.upstream import BODYLESS_METHODS, ProxyExchange

logger = logging.getLogger(__name__)

PROXY_METHODS = ["GET", "POST", "PUT", "DELETE"]

router = APIRouter(
    prefix="/proxy",
    tags=["proxy"],
    dependencies=[SessionGuard],
    responses={
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_502_BAD_GATEWAY: {"model": ErrorResponse},
    },
)


async def _read_body(request: Request) -> bytes | None:
    """Return the raw request body, or None if it is empty or unreadable."""
    try:
        body = await request.body()
    except Exception as exc:
        logger.warning("Could not read body of %s %s: %s", request.method, request.url.path, exc)
        return None
    return body or None


@router.api_route("/{path:path}", methods=PROXY_METHODS)
async def proxy(path: str, request: Request, upstream: UpstreamDep) -> Response:
    """Relay the request to the Fortress API and mirror its answer.

    Method, query parameters and body pass through untouched; the shared API
    key is added here and never reaches the browser. Backend 4xx/5xx answers
    are returned as-is; only an unreachable backend yields a 502.
    """
    body = None
    if request.method.upper() not in BODYLESS_METHODS:
        body = await _read_body(request)

    reply = await upstream.forward(
        ProxyExchange(
            method=request.method,
            path=path,
            params=request.query_params.multi_items(),
            body=body,
        )
    )
    return Response(
        content=reply.body,
        status_code=reply.status_code,
        headers={"content-type": reply.content_type},
    )
