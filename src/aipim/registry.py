"""Provider Registry - maps a model identifier to the provider serving it.

Resolution is a pure function of the identifier, tried in this order:

1. Exact match against the ``models`` of every registered provider.
2. The explicit alias table (ALIASES below); no other normalization.
3. The ``provider/model`` form, e.g. ``deepseek/deepseek-reasoner`` or
   ``local/llama-3-8b-instruct``: the part before the first slash names a
   provider and the rest is sent to it as the model id unchanged.

Anything else is an UnknownModel error.

Usage:
    from aipim.registry import default_registry

    descriptor = default_registry().resolve("gpt-4o")
    descriptor.provider   # OpenAIProvider
    descriptor.endpoint   # "https://api.openai.com/v1"
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from .errors import UnknownModel
from .providers import (
    AnthropicProvider,
    GoogleProvider,
    OpenAICompatibleProvider,
    OpenAIProvider,
    Provider,
)

# Short names accepted in place of dated model ids
ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "claude-3-5-sonnet": "claude-3-5-sonnet-20240620",
        "claude-3-opus": "claude-3-opus-20240229",
        "claude-3-sonnet": "claude-3-sonnet-20240229",
        "claude-3-haiku": "claude-3-haiku-20240307",
        "deepseek": "deepseek-chat",
    }
)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Result of a registry lookup.

    Attributes:
        model: Model id to send to the provider (aliases already expanded)
        provider: Provider serving the model
        endpoint: Base URL of the provider API
    """

    model: str
    provider: Provider
    endpoint: str


class ProviderRegistry:
    """Read-only lookup table of providers.

    Built once from a set of providers; there is no registration after
    construction, so lookups need no locking.
    """

    def __init__(
        self,
        providers: Iterable[Provider],
        aliases: Optional[Mapping[str, str]] = None,
    ):
        """Build the registry.

        Args:
            providers: Provider instances; names must be unique
            aliases: Alias -> model id table

        Raises:
            ValueError: On duplicate provider names or models, or an alias
                pointing at an unknown model
        """
        by_name: dict[str, Provider] = {}
        by_model: dict[str, Provider] = {}
        for provider in providers:
            if provider.name in by_name:
                raise ValueError(f"Duplicate provider name: {provider.name}")
            by_name[provider.name] = provider
            for model in provider.models:
                if model in by_model:
                    raise ValueError(
                        f"Model {model} served by both {by_model[model].name} and {provider.name}"
                    )
                by_model[model] = provider

        aliases = dict(aliases or {})
        for alias, target in aliases.items():
            if target not in by_model:
                raise ValueError(f"Alias {alias} points at unknown model {target}")

        self._providers = MappingProxyType(by_name)
        self._models = MappingProxyType(by_model)
        self._aliases = MappingProxyType(aliases)

    def resolve(self, model: str) -> ProviderDescriptor:
        """Return the provider and endpoint for a model identifier.

        Raises:
            UnknownModel: If no provider matches
        """
        provider = self._models.get(model)
        if provider is not None:
            return ProviderDescriptor(model, provider, provider.default_base_url)

        target = self._aliases.get(model)
        if target is not None:
            provider = self._models[target]
            return ProviderDescriptor(target, provider, provider.default_base_url)

        prefix, sep, rest = model.partition("/")
        if sep and rest and prefix in self._providers:
            provider = self._providers[prefix]
            return ProviderDescriptor(rest, provider, provider.default_base_url)

        raise UnknownModel(model, known=self.models())

    def provider(self, name: str) -> Provider:
        """Return a provider by name.

        Raises:
            KeyError: If no provider has that name
        """
        if name not in self._providers:
            available = ", ".join(self._providers) or "none"
            raise KeyError(f"Provider not found: {name}. Available: {available}")
        return self._providers[name]

    def models(self) -> list[str]:
        """List every known model id and alias."""
        return sorted([*self._models, *self._aliases])

    def providers(self) -> list[Provider]:
        return list(self._providers.values())

    def __contains__(self, model: object) -> bool:
        if not isinstance(model, str):
            return False
        try:
            self.resolve(model)
        except UnknownModel:
            return False
        return True


def builtin_providers() -> list[Provider]:
    """Providers available out of the box."""
    return [
        OpenAIProvider(),
        AnthropicProvider(),
        GoogleProvider(),
        OpenAICompatibleProvider.deepseek(),
        OpenAICompatibleProvider.local(),
    ]


_default: Optional[ProviderRegistry] = None


def default_registry() -> ProviderRegistry:
    """Return the process-wide registry, building it on first use."""
    global _default
    if _default is None:
        _default = ProviderRegistry(builtin_providers(), ALIASES)
    return _default


__all__ = [
    "ALIASES",
    "ProviderDescriptor",
    "ProviderRegistry",
    "builtin_providers",
    "default_registry",
]
