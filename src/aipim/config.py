"""Configuration management for aipim.

Parses aipim.toml files with support for:
- Per-provider credentials, base URL and sampling defaults
- Request timeout
- Prompt directory used by MessageBuilder.prompt()

Example aipim.toml structure:

    prompt_path = "prompts"
    timeout_sec = 60

    [providers.openai]
    api_key = "${OPENAI_API_KEY}"
    base_url = "https://api.openai.com/v1"
    temperature = 0.7
    max_tokens = 4096

    [providers.anthropic]
    api_key = "${ANTHROPIC_API_KEY}"

    [providers.anthropic.extra]
    stop_sequences = ["END"]

The nearest .env file is loaded into the environment (without overriding
variables that are already set) before ${VAR} references are expanded.
"""

from __future__ import annotations

import logging
import os
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import ConfigError
from .types import GenerationOptions

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "aipim.toml"
DEFAULT_TIMEOUT_SEC = 60.0


def _load_env_file(env_path: Path) -> None:
    """Load environment variables from .env file."""
    if not env_path.exists():
        return

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue
                if line.startswith("export "):
                    line = line[len("export ") :]

                if "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip()

                    if value and value[0] in ('"', "'") and value[-1] == value[0]:
                        value = value[1:-1]

                    # Only set if not already in environment
                    if key and key not in os.environ:
                        os.environ[key] = value
    except OSError as e:
        logger.warning("Failed to load %s: %s", env_path, e)


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR environment variable references.

    Unset variables are left as written.
    """
    if isinstance(value, str):

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
        return re.sub(pattern, replace_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


def _unexpanded(value: Optional[str]) -> bool:
    return bool(value) and value.startswith("$")


@dataclass
class ProviderSettings:
    """Settings for one provider, from a [providers.<name>] table."""

    name: str
    api_key: Optional[str] = field(default=None, repr=False)
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def options(self) -> GenerationOptions:
        """Sampling defaults for requests to this provider."""
        return GenerationOptions(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            extra=dict(self.extra),
        )


@dataclass
class AipimConfig:
    """Complete aipim configuration."""

    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    prompt_path: Optional[Path] = None
    providers: dict[str, ProviderSettings] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path = Path(CONFIG_FILENAME)) -> AipimConfig:
        """Load configuration from an aipim.toml file.

        Loads the first .env file found in the config directory, the current
        working directory, or any parent of the config directory, then expands
        ${VAR} references. A missing file yields the defaults (still reading
        PROMPT_PATH from the environment).

        Raises:
            ConfigError: If the file cannot be read or parsed
        """
        env_search_paths = [path.parent / ".env", Path.cwd() / ".env"]
        current = path.parent.resolve()
        while current != current.parent:
            env_search_paths.append(current / ".env")
            current = current.parent

        for env_path in env_search_paths:
            if env_path.exists():
                _load_env_file(env_path)
                break

        if not path.exists():
            return cls(prompt_path=_env_prompt_path())

        try:
            raw_data = tomllib.loads(path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to parse {path}: {e}") from e
        data = _expand_env_vars(raw_data)

        config = cls()
        try:
            config.timeout_sec = float(data.get("timeout_sec", DEFAULT_TIMEOUT_SEC))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid timeout_sec in {path}: {e}") from e

        prompt_path = data.get("prompt_path")
        if prompt_path:
            prompt_dir = Path(prompt_path)
            # Relative prompt paths are relative to the config file
            config.prompt_path = prompt_dir if prompt_dir.is_absolute() else path.parent / prompt_dir
        else:
            config.prompt_path = _env_prompt_path()

        for name, provider_data in data.get("providers", {}).items():
            if not isinstance(provider_data, dict):
                logger.warning("Ignoring [providers.%s] in %s: not a table", name, path)
                continue

            api_key = provider_data.get("api_key")
            if _unexpanded(api_key):
                # ${VAR} with VAR unset
                api_key = None

            config.providers[name] = ProviderSettings(
                name=name,
                api_key=api_key,
                base_url=provider_data.get("base_url"),
                temperature=provider_data.get("temperature"),
                max_tokens=provider_data.get("max_tokens"),
                extra=provider_data.get("extra", {}),
            )

        logger.debug("Loaded %s (%d provider sections)", path, len(config.providers))
        return config

    def provider(self, name: str) -> ProviderSettings:
        """Settings for a provider, empty if it has no section."""
        return self.providers.get(name) or ProviderSettings(name=name)


def _env_prompt_path() -> Optional[Path]:
    value = os.getenv("PROMPT_PATH")
    return Path(value) if value else None


def load_config(start_dir: Path = Path(".")) -> AipimConfig:
    """Load configuration, searching up from start_dir for aipim.toml."""
    current = start_dir.resolve()
    while current != current.parent:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return AipimConfig.load(config_path)
        current = current.parent

    # No config found, still pick up .env and PROMPT_PATH
    return AipimConfig.load(start_dir.resolve() / CONFIG_FILENAME)


__all__ = [
    "AipimConfig",
    "ProviderSettings",
    "load_config",
    "CONFIG_FILENAME",
]
