"""Provider interface - the contract each backend family implements.

A provider turns a canonical OutboundRequest into its own HTTP request,
sends it, and turns the reply back into a canonical Response. The three
stages are separate so each can fail with its own error class:

    prepare_request -> UnsupportedContentKind
    dispatch        -> NetworkError, Cancelled
    parse_response  -> ParseError

Example:
    class EchoProvider(Provider):
        name = "echo"
        ...

    wire = provider.prepare_request(request)
    raw = await provider.dispatch(http, wire, endpoint, api_key)
    response = provider.parse_response(raw)
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..content import ContentKind, MessageContent
from ..errors import Cancelled, NetworkError, ParseError, UnsupportedContentKind
from ..types import OutboundRequest, Response, WireRequest, WireResponse

logger = logging.getLogger(__name__)


class Provider(ABC):
    """Abstract base class for providers.

    Subclasses set the class attributes describing the backend and implement
    prepare_request, auth_headers and parse_response. dispatch is shared:
    every supported backend speaks JSON over HTTP.
    """

    #: Unique provider name, also usable as a "name/model" prefix
    name: str = ""
    #: Base URL requests are sent to unless the client overrides it
    default_base_url: str = ""
    #: Environment variable holding the API key
    api_key_env: Optional[str] = None
    #: Whether a send without credentials is a configuration error
    requires_api_key: bool = True
    #: Content kinds this provider can serialize
    supported_content: frozenset[ContentKind] = frozenset({ContentKind.TEXT})
    #: Model identifiers served by this provider
    models: tuple[str, ...] = ()
    #: max_tokens used when the request does not set one
    default_max_tokens: int = 4096

    def supports(self, kind: ContentKind) -> bool:
        return kind in self.supported_content

    def check_supported(self, contents: Iterable[MessageContent]) -> None:
        """Raise UnsupportedContentKind for the first item this provider can't send."""
        for item in contents:
            if not self.supports(item.kind):
                raise UnsupportedContentKind(self.name, item.kind.value)

    @abstractmethod
    def prepare_request(self, request: OutboundRequest) -> WireRequest:
        """Serialize a canonical request into this provider's wire format.

        Raises:
            UnsupportedContentKind: If a content item cannot be represented
        """
        pass

    @abstractmethod
    def auth_headers(self, credentials: Optional[str]) -> dict[str, str]:
        """Headers that authenticate a request with the given API key."""
        pass

    @abstractmethod
    def parse_response(self, wire: WireResponse) -> Response:
        """Extract the canonical Response from a successful HTTP reply.

        Must not modify ``wire``; parsing the same reply twice yields equal
        Responses.

        Raises:
            ParseError: If the body is not a valid success payload
        """
        pass

    async def dispatch(
        self,
        http: httpx.AsyncClient,
        wire: WireRequest,
        endpoint: str,
        credentials: Optional[str],
    ) -> WireResponse:
        """Send ``wire`` to ``endpoint``. Exactly one HTTP call, no retries.

        Args:
            http: Client-owned HTTP connection pool
            wire: Request produced by prepare_request
            endpoint: Base URL of the provider API
            credentials: API key, or None for unauthenticated endpoints

        Returns:
            The raw reply, only if its status is 2xx

        Raises:
            NetworkError: On any request failure, timeout or non-2xx status
            Cancelled: If the awaiting task is cancelled
        """
        url = f"{endpoint.rstrip('/')}/{wire.path.lstrip('/')}"
        headers = {"Content-Type": "application/json", **wire.headers}
        headers.update(self.auth_headers(credentials))

        logger.debug("%s %s (provider=%s)", wire.method, url, self.name)

        try:
            response = await http.request(
                wire.method,
                url,
                json=wire.body,
                headers=headers,
                params=wire.params or None,
            )
        except asyncio.CancelledError:
            raise Cancelled(f"Request to {self.name} was cancelled") from None
        except httpx.TimeoutException as e:
            raise NetworkError(f"{self.name} request timed out: {e}") from e
        except (httpx.RequestError, httpx.InvalidURL) as e:
            # Also covers undecodable bodies and an unparseable base_url
            raise NetworkError(f"{self.name} request failed: {e}") from e

        raw = WireResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )
        logger.debug("%s replied HTTP %d (%d bytes)", self.name, raw.status_code, len(raw.body))

        if not raw.is_success:
            provider_message = self.error_message(raw)
            detail = f": {provider_message}" if provider_message else ""
            raise NetworkError(
                f"{self.name} HTTP error {raw.status_code}{detail}",
                status_code=raw.status_code,
                body=raw.excerpt(),
            )
        return raw

    def error_message(self, wire: WireResponse) -> Optional[str]:
        """Return the provider error message carried by a body, if any.

        Handles the common ``{"error": {"message": ...}}`` and
        ``{"error": "..."}`` shapes.
        """
        try:
            data = wire.json()
        except ValueError:
            return None
        return self.extract_error(data)

    def extract_error(self, data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        error = data.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            code = error.get("status") or error.get("code") or error.get("type")
            if message and code:
                return f"{code}: {message}"
            return message or (str(code) if code else None)
        if isinstance(error, str) and error:
            return error
        return None

    def decode_body(self, wire: WireResponse) -> dict[str, Any]:
        """Decode a success body, rejecting non-JSON and embedded errors.

        Raises:
            ParseError: If the body is not a JSON object or carries an error
        """
        try:
            data = wire.json()
        except ValueError as e:
            raise self.parse_error(f"response is not valid JSON: {e}", wire) from e
        if not isinstance(data, dict):
            raise self.parse_error("response is not a JSON object", wire)

        provider_message = self.extract_error(data)
        if provider_message is not None:
            raise self.parse_error(
                f"provider returned an error: {provider_message}",
                wire,
                provider_message=provider_message,
            )
        return data

    def validation_error(self, error: ValidationError, wire: WireResponse) -> ParseError:
        """Wrap a pydantic validation failure of a response model."""
        fields = ", ".join(".".join(str(p) for p in e["loc"]) or "<root>" for e in error.errors())
        return self.parse_error(f"unexpected response shape ({fields})", wire)

    def parse_error(
        self,
        message: str,
        wire: WireResponse,
        provider_message: Optional[str] = None,
    ) -> ParseError:
        return ParseError(
            f"{self.name}: {message}",
            status_code=wire.status_code,
            body=wire.excerpt(),
            provider_message=provider_message,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


__all__ = ["Provider"]
