"""Google Gemini provider (generateContent).

Wire contract (POST {base_url}/models/{model}:generateContent, header
``x-goog-api-key``):

    {
        "contents": [{"role": "user", "parts": [
            {"text": "..."},
            {"inlineData": {"mimeType": "image/png", "data": "..."}},
            {"fileData": {"mimeType": "image/png", "fileUri": "gs://..."}}
        ]}],
        "generationConfig": {"maxOutputTokens": 2048, "temperature": 0.9}
    }

Reply: text parts of ``candidates[0].content.parts`` joined in order.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from ..content import ContentKind, Image, Text
from ..types import OutboundRequest, Response, WireRequest, WireResponse
from .base import Provider


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        protected_namespaces=(),
    )


class _Part(_WireModel):
    text: Optional[str] = None


class _Content(_WireModel):
    parts: list[_Part] = []
    role: Optional[str] = None


class _Candidate(_WireModel):
    content: Optional[_Content] = None
    finish_reason: Optional[str] = None
    index: int = 0


class _UsageMetadata(_WireModel):
    prompt_token_count: int = 0
    candidates_token_count: int = 0
    total_token_count: int = 0


class _PromptFeedback(_WireModel):
    block_reason: Optional[str] = None


class _GenerateContentResponse(_WireModel):
    candidates: list[_Candidate] = []
    usage_metadata: Optional[_UsageMetadata] = None
    prompt_feedback: Optional[_PromptFeedback] = None
    model_version: Optional[str] = None
    response_id: Optional[str] = None


class GoogleProvider(Provider):
    """Google Gemini models (text and images)."""

    name = "google"
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    api_key_env = "GEMINI_API_KEY"
    supported_content = frozenset({ContentKind.TEXT, ContentKind.IMAGE})
    models = (
        "gemini-1.0-pro",
        "gemini-1.0-pro-latest",
        "gemini-1.0-pro-vision-latest",
        "gemini-1.5-flash",
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro",
        "gemini-1.5-pro-latest",
        "gemini-pro",
        "gemini-pro-vision",
    )
    default_max_tokens = 2048

    def prepare_request(self, request: OutboundRequest) -> WireRequest:
        self.check_supported(request.contents)
        options = request.options

        parts: list[dict[str, Any]] = []
        for item in request.contents:
            if isinstance(item, Text):
                parts.append({"text": item.text})
            elif isinstance(item, Image) and item.is_inline:
                parts.append({"inlineData": {"mimeType": item.mime_type, "data": item.to_base64()}})
            elif isinstance(item, Image):
                parts.append({"fileData": {"mimeType": item.mime_type, "fileUri": item.uri}})

        generation_config: dict[str, Any] = {
            "maxOutputTokens": options.max_tokens or self.default_max_tokens,
        }
        if options.temperature is not None:
            generation_config["temperature"] = options.temperature
        if options.top_p is not None:
            generation_config["topP"] = options.top_p
        if options.top_k is not None:
            generation_config["topK"] = options.top_k

        body: dict[str, Any] = {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }
        body.update(options.extra)

        return WireRequest(path=f"models/{request.model}:generateContent", body=body)

    def auth_headers(self, credentials: Optional[str]) -> dict[str, str]:
        if not credentials:
            return {}
        return {"x-goog-api-key": credentials}

    def parse_response(self, wire: WireResponse) -> Response:
        data = self.decode_body(wire)
        try:
            result = _GenerateContentResponse.model_validate(data)
        except ValidationError as e:
            raise self.validation_error(e, wire) from e

        if not result.candidates:
            reason = result.prompt_feedback.block_reason if result.prompt_feedback else None
            if reason:
                raise self.parse_error(f"prompt was blocked ({reason})", wire, provider_message=reason)
            raise self.parse_error("response has no candidates", wire)

        candidate = result.candidates[0]
        texts = []
        if candidate.content is not None:
            texts = [part.text for part in candidate.content.parts if part.text is not None]
        if not texts:
            reason = candidate.finish_reason or "unknown"
            raise self.parse_error(f"candidate has no text (finish reason {reason})", wire)

        metadata: dict[str, Any] = {"provider": self.name}
        if result.response_id:
            metadata["id"] = result.response_id
        if result.model_version:
            metadata["model"] = result.model_version
        if candidate.finish_reason:
            metadata["finish_reason"] = candidate.finish_reason
        if result.usage_metadata is not None:
            metadata["usage"] = {
                "prompt_tokens": result.usage_metadata.prompt_token_count,
                "completion_tokens": result.usage_metadata.candidates_token_count,
                "total_tokens": result.usage_metadata.total_token_count,
            }

        return Response(text="".join(texts), metadata=metadata)


__all__ = ["GoogleProvider"]
