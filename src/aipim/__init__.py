"""aipim - one async client for many AI inference providers.

Send text and images to OpenAI, Anthropic, Google Gemini or any
OpenAI-compatible server through the same calls, and get back the same
Response type.

Quick Start:
    ```python
    import asyncio
    from aipim import Client

    async def main():
        async with Client("gpt-4o") as client:
            response = await (
                client.message()
                .text("What is in this picture?")
                .image_file("photo.png")
                .send()
            )
            print(response.text)
            print(response.usage)

    asyncio.run(main())
    ```

Module structure:
    - client: Client facade
    - builder: MessageBuilder
    - content: Text / Image content items
    - types: OutboundRequest, Response, wire types
    - providers/: Provider interface and implementations
    - registry: model id -> provider lookup
    - errors: error taxonomy
    - config: aipim.toml / .env loading
    - telemetry/: OpenTelemetry tracing
    - cli: command line interface
"""

__version__ = "0.2.0"

from .builder import MessageBuilder
from .client import Client
from .config import AipimConfig, ProviderSettings, load_config
from .content import ContentKind, Image, MessageContent, Text
from .errors import (
    AipimError,
    BuilderReused,
    Cancelled,
    ConfigError,
    EmptyMessage,
    InvalidContent,
    NetworkError,
    ParseError,
    UnknownModel,
    UnsupportedContentKind,
)
from .providers import (
    AnthropicProvider,
    GoogleProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
    Provider,
)
from .registry import ProviderDescriptor, ProviderRegistry, default_registry
from .telemetry import init_telemetry, shutdown_telemetry
from .types import GenerationOptions, OutboundRequest, Response, WireRequest, WireResponse

__all__ = [
    # Client
    "Client",
    "MessageBuilder",
    # Content
    "ContentKind",
    "Text",
    "Image",
    "MessageContent",
    # Types
    "GenerationOptions",
    "OutboundRequest",
    "Response",
    "WireRequest",
    "WireResponse",
    # Providers
    "Provider",
    "OpenAIProvider",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "GoogleProvider",
    "ProviderDescriptor",
    "ProviderRegistry",
    "default_registry",
    # Errors
    "AipimError",
    "ConfigError",
    "UnknownModel",
    "UnsupportedContentKind",
    "InvalidContent",
    "EmptyMessage",
    "BuilderReused",
    "NetworkError",
    "ParseError",
    "Cancelled",
    # Config
    "AipimConfig",
    "ProviderSettings",
    "load_config",
    # Telemetry
    "init_telemetry",
    "shutdown_telemetry",
]
