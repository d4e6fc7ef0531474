"""Client - the caller-facing entry point.

Example:
    from aipim import Client

    async with Client("gpt-4o") as client:
        response = await client.message().text("Hello, world!").send()
        print(response.text)

The client resolves its model and credentials at construction. It opens one
httpx.AsyncClient on the first send and closes it in aclose(); a send after
aclose() opens a fresh one. It holds no other state, so one client can serve
any number of concurrent sends.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Optional

import httpx

from .builder import MessageBuilder
from .config import AipimConfig, load_config
from .content import MessageContent
from .errors import AipimError, ConfigError, EmptyMessage
from .providers import Provider
from .registry import ProviderDescriptor, ProviderRegistry, default_registry
from .telemetry import record_response, send_span
from .types import GenerationOptions, OutboundRequest, Response

logger = logging.getLogger(__name__)


class Client:
    """Unified client for every registered provider."""

    def __init__(
        self,
        model: str,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_sec: Optional[float] = None,
        options: Optional[GenerationOptions] = None,
        config: Optional[AipimConfig] = None,
        registry: Optional[ProviderRegistry] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the client.

        Args:
            model: Model identifier, e.g. "gpt-4o" or "local/llama-3-8b"
            api_key: API key for the model's provider (default: config, then env)
            base_url: Endpoint override for the model's provider
            timeout_sec: HTTP timeout (default: config, 60s)
            options: Default sampling options for every message
            config: Loaded configuration (default: load_config() from cwd)
            registry: Provider registry (default: the built-in registry)
            transport: Custom httpx transport, e.g. httpx.MockTransport in tests

        Raises:
            UnknownModel: If no provider serves ``model``
            ConfigError: If the provider needs an API key and none is found
        """
        self._registry = registry or default_registry()
        self._descriptor = self._registry.resolve(model)
        self._config = config if config is not None else load_config()
        self._api_key = api_key
        self._base_url = base_url
        self._options = options or GenerationOptions()

        # Fail early on missing credentials for the client's own provider
        self._credentials(self._descriptor.provider)

        self._timeout = timeout_sec if timeout_sec is not None else self._config.timeout_sec
        self._transport = transport
        # Opened on first send, closed by aclose()
        self._http: Optional[httpx.AsyncClient] = None

        logger.debug(
            "Client ready: model=%s provider=%s endpoint=%s",
            self._descriptor.model,
            self._descriptor.provider.name,
            self._endpoint(self._descriptor),
        )

    @property
    def model(self) -> str:
        """Model id sent to the provider (aliases expanded)."""
        return self._descriptor.model

    @property
    def provider(self) -> Provider:
        return self._descriptor.provider

    @property
    def endpoint(self) -> str:
        return self._endpoint(self._descriptor)

    @property
    def prompt_path(self) -> Optional[Path]:
        return self._config.prompt_path

    def message(self) -> MessageBuilder:
        """Start a new message bound to this client."""
        return MessageBuilder(self)

    new_message = message

    async def send_message(
        self,
        contents: Iterable[MessageContent],
        *,
        model: Optional[str] = None,
        options: Optional[GenerationOptions] = None,
    ) -> Response:
        """Send one message: prepare, dispatch, parse.

        Args:
            contents: Ordered content items, at least one
            model: Model override for this message
            options: Sampling options for this message

        Returns:
            The normalized Response

        Raises:
            AipimError: Exactly one classified error on failure
        """
        contents = tuple(contents)
        if not contents:
            raise EmptyMessage()

        descriptor = self._descriptor if model is None else self._registry.resolve(model)
        provider = descriptor.provider
        endpoint = self._endpoint(descriptor)
        credentials = self._credentials(provider)

        settings = self._config.provider(provider.name).options()
        request = OutboundRequest(
            model=descriptor.model,
            contents=contents,
            options=settings.merged(self._options).merged(options),
        )

        with send_span(provider.name, descriptor.model, endpoint, len(contents)) as span:
            try:
                wire = provider.prepare_request(request)
                raw = await provider.dispatch(self._connection(), wire, endpoint, credentials)
                response = provider.parse_response(raw)
            except AipimError as e:
                logger.debug("Send to %s failed: %s", provider.name, e)
                raise
            record_response(span, response)

        return response

    def _endpoint(self, descriptor: ProviderDescriptor) -> str:
        provider = descriptor.provider
        if self._base_url and provider is self._descriptor.provider:
            return self._base_url
        return self._config.provider(provider.name).base_url or descriptor.endpoint

    def _credentials(self, provider: Provider) -> Optional[str]:
        """API key for a provider: explicit argument, then config, then env.

        Raises:
            ConfigError: If the provider needs a key and none is set
        """
        if self._api_key and provider is self._descriptor.provider:
            return self._api_key
        key = self._config.provider(provider.name).api_key
        if not key and provider.api_key_env:
            key = os.getenv(provider.api_key_env)
        if not key and provider.requires_api_key:
            source = f"set {provider.api_key_env} or " if provider.api_key_env else ""
            raise ConfigError(
                f"No API key for provider '{provider.name}': {source}"
                f"add api_key to [providers.{provider.name}] in aipim.toml"
            )
        return key or None

    def _connection(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._http

    @property
    def is_closed(self) -> bool:
        """True when no HTTP connection pool is open."""
        return self._http is None

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool, if one was opened."""
        if self._http is not None:
            http, self._http = self._http, None
            await http.aclose()

    async def __aenter__(self) -> Client:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"Client(model={self.model!r}, provider={self.provider.name!r})"


__all__ = ["Client"]
