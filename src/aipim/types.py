"""Canonical request/response types shared by every provider.

- GenerationOptions: optional sampling settings
- OutboundRequest: what a provider is asked to send
- WireRequest/WireResponse: a provider's literal HTTP exchange
- Response: the normalized result handed back to the caller
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .content import MessageContent

# Maximum characters of a response body kept on errors
BODY_EXCERPT_CHARS = 500


@dataclass(frozen=True)
class GenerationOptions:
    """Sampling settings for one request.

    Attributes:
        temperature: Sampling temperature
        max_tokens: Maximum tokens to generate
        top_p: Nucleus sampling cutoff
        top_k: Top-k sampling cutoff
        extra: Provider-specific options merged verbatim into the body
    """

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def merged(self, other: Optional[GenerationOptions]) -> GenerationOptions:
        """Return a copy with the non-None values of ``other`` laid on top."""
        if other is None:
            return self
        return GenerationOptions(
            temperature=other.temperature if other.temperature is not None else self.temperature,
            max_tokens=other.max_tokens if other.max_tokens is not None else self.max_tokens,
            top_p=other.top_p if other.top_p is not None else self.top_p,
            top_k=other.top_k if other.top_k is not None else self.top_k,
            extra={**self.extra, **other.extra},
        )


@dataclass(frozen=True)
class OutboundRequest:
    """Provider-agnostic request built by MessageBuilder.send()."""

    model: str
    contents: tuple[MessageContent, ...]
    options: GenerationOptions = field(default_factory=GenerationOptions)


@dataclass
class WireRequest:
    """An HTTP request in a provider's own format.

    Attributes:
        path: Path relative to the provider endpoint (e.g. "chat/completions")
        body: JSON body
        headers: Extra headers (auth headers are added at dispatch)
        params: Query parameters
        method: HTTP method
    """

    path: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)
    params: dict[str, str] = field(default_factory=dict)
    method: str = "POST"


@dataclass(frozen=True)
class WireResponse:
    """An HTTP response as received from a provider."""

    status_code: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.body.decode("utf-8"))

    def excerpt(self, limit: int = BODY_EXCERPT_CHARS) -> str:
        """Return the start of the body as text, for error messages."""
        text = self.body.decode("utf-8", errors="replace")
        if len(text) > limit:
            return text[:limit] + "..."
        return text


@dataclass(frozen=True)
class Response:
    """Normalized result of a send.

    Attributes:
        text: Generated text
        metadata: Provider-reported details. Canonical keys when present:
            provider, model, id, finish_reason, usage (prompt_tokens,
            completion_tokens, total_tokens)
    """

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def usage(self) -> dict[str, int]:
        return self.metadata.get("usage", {})

    @property
    def finish_reason(self) -> Optional[str]:
        return self.metadata.get("finish_reason")

    @property
    def model(self) -> Optional[str]:
        return self.metadata.get("model")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"text": self.text, "metadata": self.metadata}


__all__ = [
    "GenerationOptions",
    "OutboundRequest",
    "WireRequest",
    "WireResponse",
    "Response",
]
