"""Model adapters — per-model request bodies and response parsing."""

from __future__ import annotations

import base64
import binascii
import json
import random
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from gencache.errors.exceptions import PermanentUpstreamError, ValidationError
from gencache.types import BackendResponse, ContentKind, ModelKind

# Reasoning blocks GPT-OSS may emit before the answer
_REASONING_PATTERN = re.compile(r"<reasoning>.*?</reasoning>", re.DOTALL)

_MAX_SEED = 2147483646


@dataclass(frozen=True)
class ModelAdapter:
    """Strategy object describing how to talk to one model."""

    kind: ModelKind
    model_id: str
    content_kind: ContentKind
    content_type: str
    format_request: Callable[[str], dict[str, Any]]
    parse_response: Callable[[dict[str, Any]], str | bytes]

    def build_body(self, prompt: str) -> bytes:
        return json.dumps(self.format_request(prompt)).encode("utf-8")

    def parse(self, response: BackendResponse) -> str | bytes:
        """Decode a successful backend response into the cacheable value."""
        try:
            payload = json.loads(response.body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise PermanentUpstreamError(
                f"Backend returned non-JSON body for {self.model_id}",
                http_status=response.status,
                body=response.text,
            ) from exc
        if not isinstance(payload, dict):
            raise _unexpected(self.kind, payload, response.status)
        return self.parse_response(payload)


def _unexpected(kind: ModelKind, payload: Any, status: int | None = None) -> PermanentUpstreamError:
    body = json.dumps(payload, default=str)
    return PermanentUpstreamError(
        f"Unexpected {kind.value} response format: {body}",
        http_status=status,
        body=body,
    )


# ── Titan image ──


def _titan_request(prompt: str) -> dict[str, Any]:
    return {
        "taskType": "TEXT_IMAGE",
        "textToImageParams": {"text": prompt},
        "imageGenerationConfig": {
            "numberOfImages": 1,
            "quality": "standard",
            "height": 1024,
            "width": 1024,
            "cfgScale": 8.0,
            "seed": random.randint(0, _MAX_SEED),
        },
    }


def _titan_response(payload: dict[str, Any]) -> bytes:
    images = payload.get("images")
    if not isinstance(images, list) or not images or not isinstance(images[0], str):
        raise _unexpected(ModelKind.IMAGE, payload)
    try:
        return base64.b64decode(images[0], validate=True)
    except (binascii.Error, ValueError) as exc:
        raise _unexpected(ModelKind.IMAGE, payload) from exc


# ── GPT-OSS ──


def _chat_messages(prompt: str) -> list[dict[str, Any]]:
    return [{"role": "user", "content": [{"type": "text", "text": prompt}]}]


def _gpt_request(prompt: str) -> dict[str, Any]:
    return {
        "max_tokens": 2048,
        "temperature": 0.7,
        "messages": _chat_messages(prompt),
    }


def _gpt_response(payload: dict[str, Any]) -> str:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise _unexpected(ModelKind.TEXT, payload) from exc
    if not isinstance(content, str):
        raise _unexpected(ModelKind.TEXT, payload)
    return _REASONING_PATTERN.sub("", content).strip()


# ── Claude ──


def _claude_request(prompt: str) -> dict[str, Any]:
    return {
        "anthropic_version": "bedrock-2023-05-31",
        "max_tokens": 2048,
        "temperature": 0.7,
        "messages": _chat_messages(prompt),
    }


def _claude_response(payload: dict[str, Any]) -> str:
    try:
        text = payload["content"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise _unexpected(ModelKind.CLAUDE, payload) from exc
    if not isinstance(text, str):
        raise _unexpected(ModelKind.CLAUDE, payload)
    return text.strip()


TITAN_IMAGE = ModelAdapter(
    kind=ModelKind.IMAGE,
    model_id="amazon.titan-image-generator-v2:0",
    content_kind=ContentKind.BINARY,
    content_type="image/png",
    format_request=_titan_request,
    parse_response=_titan_response,
)

GPT_OSS = ModelAdapter(
    kind=ModelKind.TEXT,
    model_id="openai.gpt-oss-120b-1:0",
    content_kind=ContentKind.TEXT,
    content_type="text/plain; charset=utf-8",
    format_request=_gpt_request,
    parse_response=_gpt_response,
)

CLAUDE_SONNET = ModelAdapter(
    kind=ModelKind.CLAUDE,
    model_id="anthropic.claude-3-5-sonnet-20241022-v2:0",
    content_kind=ContentKind.TEXT,
    content_type="text/plain; charset=utf-8",
    format_request=_claude_request,
    parse_response=_claude_response,
)

DEFAULT_ADAPTERS: dict[ModelKind, ModelAdapter] = {
    TITAN_IMAGE.kind: TITAN_IMAGE,
    GPT_OSS.kind: GPT_OSS,
    CLAUDE_SONNET.kind: CLAUDE_SONNET,
}


def get_adapter(
    kind: ModelKind | str,
    adapters: dict[ModelKind, ModelAdapter] | None = None,
) -> ModelAdapter:
    """Look up the adapter for a model kind. Unknown kinds are a ValidationError."""
    registry = adapters if adapters is not None else DEFAULT_ADAPTERS
    try:
        model_kind = ModelKind(kind)
    except ValueError:
        raise ValidationError(f"Unsupported model kind: {kind!r}") from None
    adapter = registry.get(model_kind)
    if adapter is None:
        raise ValidationError(f"Unsupported model kind: {kind!r}")
    return adapter
