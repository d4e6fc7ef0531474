"""Provider implementations.

One Provider subclass per wire family:

- OpenAIProvider: OpenAI chat completions (text, images)
- OpenAICompatibleProvider: text-only OpenAI-protocol servers (DeepSeek, local)
- AnthropicProvider: Anthropic Messages API (text, images)
- GoogleProvider: Gemini generateContent (text, images)

Add a backend by subclassing Provider and passing an instance to
ProviderRegistry.
"""

from .anthropic import AnthropicProvider
from .base import Provider
from .google import GoogleProvider
from .openai import OpenAICompatibleProvider, OpenAIProvider

__all__ = [
    "Provider",
    "OpenAIProvider",
    "OpenAICompatibleProvider",
    "AnthropicProvider",
    "GoogleProvider",
]
