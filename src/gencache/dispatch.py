"""Path dispatcher — maps request paths onto the gateway and errors onto HTTP."""

from __future__ import annotations

import logging
from urllib.parse import unquote

from gencache.errors.exceptions import GatewayError, ValidationError
from gencache.gateway import Gateway
from gencache.types import GatewayResult, HttpResponse, ModelKind

logger = logging.getLogger(__name__)

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_PLAIN_TEXT = "text/plain; charset=utf-8"

_USAGE = "Invalid request. Use /image/{prompt}, /text/{prompt} or /claude/{prompt}."


def parse_path(path: str) -> tuple[ModelKind, str] | None:
    """Split ``/image/a%20cat`` into ``(ModelKind.IMAGE, "a cat")``.

    Returns None when the path has no known model prefix.
    """
    trimmed = path.split("?", 1)[0].lstrip("/").strip()
    for kind in ModelKind:
        prefix = f"{kind.value}/"
        if trimmed.startswith(prefix):
            return kind, unquote(trimmed[len(prefix):])
    return None


def _plain(status: int, message: str) -> HttpResponse:
    return HttpResponse(
        status=status,
        headers={**CORS_HEADERS, "Content-Type": _PLAIN_TEXT},
        body=message,
    )


def error_response(exc: Exception) -> HttpResponse:
    """400 for validation failures, 500 with the root cause for the rest."""
    if isinstance(exc, ValidationError):
        return _plain(400, exc.message or str(exc))
    detail = exc.message if isinstance(exc, GatewayError) and exc.message else str(exc)
    return _plain(500, f"An internal server error occurred: {detail}")


def success_response(result: GatewayResult) -> HttpResponse:
    return HttpResponse(
        status=200,
        headers={
            **CORS_HEADERS,
            "Content-Type": result.content_type,
            "ETag": f'"{result.storage_key}"',
            "X-Cache": "HIT" if result.cache_hit else "MISS",
        },
        body=result.body,
    )


class Dispatcher:
    """Routes ``/<kind>/<prompt>`` paths to a Gateway."""

    def __init__(self, gateway: Gateway) -> None:
        self._gateway = gateway

    async def dispatch(self, path: str, method: str = "GET") -> HttpResponse:
        method = method.upper()
        if method == "OPTIONS":
            return HttpResponse(status=204, headers=dict(CORS_HEADERS), body="")
        if method != "GET":
            return _plain(405, f"Method {method} not allowed.")

        route = parse_path(path)
        if route is None:
            return _plain(400, _USAGE)

        kind, request_key = route
        try:
            result = await self._gateway.handle(request_key, kind)
        except Exception as exc:
            if not isinstance(exc, ValidationError):
                logger.exception("Gateway error for %s request", kind.value)
            return error_response(exc)
        return success_response(result)
