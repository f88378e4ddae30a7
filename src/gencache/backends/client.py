"""Async HTTP client for the Bedrock runtime invoke API."""

from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Protocol

import httpx

from gencache.errors.exceptions import PermanentUpstreamError, classify_status
from gencache.types import BackendResponse

logger = logging.getLogger(__name__)


class Backend(Protocol):
    """What the gateway needs from a generation backend."""

    async def invoke_model(self, model_id: str, body: bytes) -> BackendResponse: ...


class BearerTokenAuth(httpx.Auth):
    """Bearer-token auth (Bedrock API keys)."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request


class BedrockClient:
    """Sends signed invoke requests to a Bedrock-compatible runtime."""

    def __init__(
        self,
        region: str = "us-east-1",
        api_key: str | None = None,
        auth: httpx.Auth | None = None,
        endpoint_url: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if auth is None and api_key:
            auth = BearerTokenAuth(api_key)
        self._region = region
        self._base_url = (endpoint_url or f"https://bedrock-runtime.{region}.amazonaws.com").rstrip("/")
        self._client = httpx.AsyncClient(auth=auth, timeout=timeout, transport=transport)

    def endpoint_for(self, model_id: str) -> str:
        return f"{self._base_url}/model/{model_id}/invoke"

    async def invoke_model(self, model_id: str, body: bytes) -> BackendResponse:
        return await self.invoke(self.endpoint_for(model_id), body)

    async def invoke(self, endpoint: str, body: bytes) -> BackendResponse:
        """POST a JSON body and return the response.

        Non-2xx statuses raise an UpstreamError subclass carrying the status;
        transport failures raise PermanentUpstreamError without one.
        """
        try:
            response = await self._client.post(
                endpoint,
                content=body,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        except httpx.HTTPError as exc:
            raise PermanentUpstreamError(f"Backend request failed: {exc}") from exc

        result = BackendResponse(status=response.status_code, body=response.content)
        if not result.ok:
            logger.error("Backend error %d from %s: %s", result.status, endpoint, result.text)
            raise classify_status(result.status, result.text)
        return result

    async def close(self) -> None:
        await self._client.aclose()
