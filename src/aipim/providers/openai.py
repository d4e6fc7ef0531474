"""OpenAI chat completions provider, plus OpenAI-compatible endpoints.

Wire contract (POST {base_url}/chat/completions):

    {
        "model": "gpt-4o",
        "messages": [{"role": "user", "content": [
            {"type": "text", "text": "..."},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,..."}}
        ]}],
        "max_tokens": 4096,
        "temperature": 0.7
    }

Reply: ``choices[0].message.content`` holds the generated text.

OpenAICompatibleProvider speaks the same protocol with plain string content
for servers that only accept text (DeepSeek, local vLLM/llama.cpp servers).
"""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..content import ContentKind, Image, MessageContent, Text
from ..types import OutboundRequest, Response, WireRequest, WireResponse
from .base import Provider


class _ContentPart(BaseModel):
    type: str
    text: Optional[str] = None


class _ResponseMessage(BaseModel):
    role: Optional[str] = None
    content: Optional[Union[str, list[_ContentPart]]] = None


class _Choice(BaseModel):
    index: int = 0
    message: _ResponseMessage
    finish_reason: Optional[str] = None


class _Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class _ChatCompletion(BaseModel):
    id: Optional[str] = None
    model: Optional[str] = None
    choices: list[_Choice] = Field(min_length=1)
    usage: Optional[_Usage] = None


class OpenAIProvider(Provider):
    """OpenAI chat completions API (text and images)."""

    name = "openai"
    default_base_url = "https://api.openai.com/v1"
    api_key_env = "OPENAI_API_KEY"
    supported_content = frozenset({ContentKind.TEXT, ContentKind.IMAGE})
    models = ("gpt-4o", "gpt-4o-mini", "gpt-4-turbo", "gpt-4", "gpt-3.5-turbo")
    default_max_tokens = 4096

    def prepare_request(self, request: OutboundRequest) -> WireRequest:
        self.check_supported(request.contents)
        options = request.options

        body: dict[str, Any] = {
            "model": request.model,
            "messages": [{"role": "user", "content": self._content(request.contents)}],
            "max_tokens": options.max_tokens or self.default_max_tokens,
        }
        if options.temperature is not None:
            body["temperature"] = options.temperature
        if options.top_p is not None:
            body["top_p"] = options.top_p
        body.update(options.extra)

        return WireRequest(path="chat/completions", body=body)

    def _content(self, contents: tuple[MessageContent, ...]) -> Union[str, list[dict[str, Any]]]:
        parts: list[dict[str, Any]] = []
        for item in contents:
            if isinstance(item, Text):
                parts.append({"type": "text", "text": item.text})
            elif isinstance(item, Image):
                parts.append({"type": "image_url", "image_url": {"url": item.data_url()}})
        return parts

    def auth_headers(self, credentials: Optional[str]) -> dict[str, str]:
        if not credentials:
            return {}
        return {"Authorization": f"Bearer {credentials}"}

    def parse_response(self, wire: WireResponse) -> Response:
        data = self.decode_body(wire)
        try:
            completion = _ChatCompletion.model_validate(data)
        except ValidationError as e:
            raise self.validation_error(e, wire) from e

        choice = completion.choices[0]
        text = self._text(choice.message.content)
        if text is None:
            raise self.parse_error("response message has no text content", wire)

        metadata: dict[str, Any] = {"provider": self.name}
        if completion.id:
            metadata["id"] = completion.id
        if completion.model:
            metadata["model"] = completion.model
        if choice.finish_reason:
            metadata["finish_reason"] = choice.finish_reason
        if completion.usage is not None:
            metadata["usage"] = completion.usage.model_dump()

        return Response(text=text, metadata=metadata)

    @staticmethod
    def _text(content: Optional[Union[str, list[_ContentPart]]]) -> Optional[str]:
        if content is None or isinstance(content, str):
            return content
        # Some compatible servers reply with content parts
        texts = [part.text for part in content if part.type == "text" and part.text is not None]
        if not texts:
            return None
        return "".join(texts)


class OpenAICompatibleProvider(OpenAIProvider):
    """Text-only server speaking the OpenAI chat completions protocol.

    Example:
        provider = OpenAICompatibleProvider(
            name="vllm",
            base_url="http://gpu-box:8000/v1",
            models=("llama-3-8b-instruct",),
            requires_api_key=False,
        )
    """

    supported_content = frozenset({ContentKind.TEXT})

    def __init__(
        self,
        name: str,
        base_url: str,
        models: tuple[str, ...] = (),
        api_key_env: Optional[str] = None,
        requires_api_key: bool = True,
        default_max_tokens: int = 4096,
    ):
        """Initialize an OpenAI-compatible provider.

        Args:
            name: Provider name, also the "name/model" prefix
            base_url: API base URL (e.g., "https://api.deepseek.com/v1")
            models: Model identifiers served by this endpoint
            api_key_env: Environment variable holding the API key
            requires_api_key: False for local servers without auth
            default_max_tokens: max_tokens when the request sets none
        """
        self.name = name
        self.default_base_url = base_url
        self.models = tuple(models)
        self.api_key_env = api_key_env
        self.requires_api_key = requires_api_key
        self.default_max_tokens = default_max_tokens

    @classmethod
    def deepseek(cls) -> OpenAICompatibleProvider:
        return cls(
            name="deepseek",
            base_url="https://api.deepseek.com/v1",
            models=("deepseek-chat",),
            api_key_env="DEEPSEEK_API_KEY",
        )

    @classmethod
    def local(cls) -> OpenAICompatibleProvider:
        return cls(
            name="local",
            base_url="http://localhost:8000/v1",
            models=("qwen2.5-0.5b-instruct",),
            api_key_env="LOCAL_LLM_API_KEY",
            requires_api_key=False,
            default_max_tokens=2048,
        )

    def _content(self, contents: tuple[MessageContent, ...]) -> Union[str, list[dict[str, Any]]]:
        return "\n\n".join(item.text for item in contents if isinstance(item, Text))


__all__ = ["OpenAIProvider", "OpenAICompatibleProvider"]
