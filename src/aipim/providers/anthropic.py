"""Anthropic Messages API provider.

Wire contract (POST {base_url}/messages, headers ``x-api-key`` and
``anthropic-version``):

    {
        "model": "claude-3-5-sonnet-20240620",
        "max_tokens": 1024,
        "messages": [{"role": "user", "content": [
            {"type": "text", "text": "..."},
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "..."}}
        ]}]
    }

Reply: the text blocks of ``content`` joined in order. Errors arrive as
``{"type": "error", "error": {"type": ..., "message": ...}}``.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ValidationError

from ..content import ContentKind, Image, Text
from ..types import OutboundRequest, Response, WireRequest, WireResponse
from .base import Provider

ANTHROPIC_VERSION = "2023-06-01"


class _ContentBlock(BaseModel):
    type: str
    text: Optional[str] = None


class _Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0


class _Message(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    content: list[_ContentBlock]
    stop_reason: Optional[str] = None
    usage: Optional[_Usage] = None


class AnthropicProvider(Provider):
    """Anthropic Claude models (text and images)."""

    name = "anthropic"
    default_base_url = "https://api.anthropic.com/v1"
    api_key_env = "ANTHROPIC_API_KEY"
    supported_content = frozenset({ContentKind.TEXT, ContentKind.IMAGE})
    models = (
        "claude-3-5-sonnet-20240620",
        "claude-3-opus-20240229",
        "claude-3-sonnet-20240229",
        "claude-3-haiku-20240307",
    )
    default_max_tokens = 1024

    def prepare_request(self, request: OutboundRequest) -> WireRequest:
        self.check_supported(request.contents)
        options = request.options

        content: list[dict[str, Any]] = []
        for item in request.contents:
            if isinstance(item, Text):
                content.append({"type": "text", "text": item.text})
            elif isinstance(item, Image):
                content.append({"type": "image", "source": self._image_source(item)})

        body: dict[str, Any] = {
            "model": request.model,
            "max_tokens": options.max_tokens or self.default_max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.top_p is not None:
            body["top_p"] = options.top_p
        if options.top_k is not None:
            body["top_k"] = options.top_k
        body.update(options.extra)

        return WireRequest(
            path="messages",
            body=body,
            headers={"anthropic-version": ANTHROPIC_VERSION},
        )

    @staticmethod
    def _image_source(image: Image) -> dict[str, str]:
        if image.is_inline:
            return {"type": "base64", "media_type": image.mime_type, "data": image.to_base64()}
        return {"type": "url", "url": image.uri or ""}

    def auth_headers(self, credentials: Optional[str]) -> dict[str, str]:
        if not credentials:
            return {}
        return {"x-api-key": credentials}

    def parse_response(self, wire: WireResponse) -> Response:
        data = self.decode_body(wire)
        try:
            message = _Message.model_validate(data)
        except ValidationError as e:
            raise self.validation_error(e, wire) from e

        texts = [block.text for block in message.content if block.type == "text" and block.text is not None]
        if not texts:
            raise self.parse_error("response has no text content blocks", wire)

        metadata: dict[str, Any] = {"provider": self.name}
        if message.id:
            metadata["id"] = message.id
        if message.model:
            metadata["model"] = message.model
        if message.stop_reason:
            metadata["finish_reason"] = message.stop_reason
        if message.usage is not None:
            metadata["usage"] = {
                "prompt_tokens": message.usage.input_tokens,
                "completion_tokens": message.usage.output_tokens,
                "total_tokens": message.usage.input_tokens + message.usage.output_tokens,
            }

        return Response(text="".join(texts), metadata=metadata)


__all__ = ["AnthropicProvider", "ANTHROPIC_VERSION"]
