"""Test fixtures and configuration for aipim tests.

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures
    ├── fakes.py             # Recording httpx transport, echo provider
    ├── unit/                # Unit tests (no HTTP at all)
    │   ├── test_content.py
    │   ├── test_types.py
    │   ├── test_registry.py
    │   ├── test_providers.py
    │   ├── test_round_trip.py
    │   └── test_builder.py
    ├── test_client.py       # End-to-end sends over httpx.MockTransport
    ├── test_config.py
    ├── test_tracing.py      # Send spans via an in-memory exporter
    └── test_cli.py

Running tests:
    pytest tests/unit -v     # Unit tests only
    pytest -v                # Everything
"""

import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add tests directory to path for imports
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

from fakes import RecordingTransport  # noqa: E402

from aipim.client import Client  # noqa: E402
from aipim.config import AipimConfig  # noqa: E402

PROVIDER_KEY_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GEMINI_API_KEY",
    "DEEPSEEK_API_KEY",
    "LOCAL_LLM_API_KEY",
    "PROMPT_PATH",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from real keys, .env files and aipim.toml in the cwd."""
    for var in PROVIDER_KEY_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def config() -> AipimConfig:
    """Empty configuration (no file, no prompt directory)."""
    return AipimConfig()


@pytest.fixture
def transport() -> RecordingTransport:
    """Mock transport answering with a minimal chat completion."""
    return RecordingTransport(json_body={"choices": [{"message": {"content": "Hi there"}}]})


@pytest_asyncio.fixture
async def make_client(config, transport):
    """Factory for clients that are closed when the test ends.

    Defaults to the ``config`` and ``transport`` fixtures; any Client
    keyword argument can be overridden.
    """
    clients: list[Client] = []

    def factory(model: str = "gpt-4o", **kwargs) -> Client:
        kwargs.setdefault("config", config)
        kwargs.setdefault("transport", transport)
        client = Client(model, **kwargs)
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()
