"""Tests for the aipim command line."""

import json
from unittest.mock import MagicMock

import pytest
from fakes import RecordingTransport

import aipim.cli
from aipim.cli import build_parser, main
from aipim.client import Client
from aipim.config import AipimConfig


@pytest.fixture
def mock_transport(monkeypatch):
    """Route every Client the CLI creates through a recording transport."""
    transport = RecordingTransport(
        json_body={
            "id": "chatcmpl-1",
            "model": "gpt-4o-2024-05-13",
            "choices": [{"message": {"content": "Hi there"}, "finish_reason": "stop"}],
        }
    )

    def make_client(model, **kwargs):
        return Client(model, transport=transport, **kwargs)

    monkeypatch.setattr(aipim.cli, "Client", make_client)
    return transport


class TestParser:
    def test_send_defaults(self):
        args = build_parser().parse_args(["send", "-t", "hello"])
        assert args.model == "gpt-4o"
        assert args.text == ["hello"]
        assert args.image is None
        assert not args.json

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestModels:
    def test_lists_models_and_aliases(self, capsys):
        assert main(["models"]) == 0

        out = capsys.readouterr().out
        assert "gpt-4o" in out
        assert "claude-3-opus anthropic -> claude-3-opus-20240229" in " ".join(out.split())


class TestSend:
    def test_prints_text(self, capsys, monkeypatch, mock_transport):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        assert main(["send", "gpt-4o", "-t", "Hello, world!"]) == 0

        assert capsys.readouterr().out.strip() == "Hi there"
        assert mock_transport.last_json()["messages"][0]["content"] == [
            {"type": "text", "text": "Hello, world!"}
        ]

    def test_json_output(self, capsys, monkeypatch, mock_transport):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        assert main(["send", "-t", "hi", "--temperature", "0.2", "--json"]) == 0

        output = json.loads(capsys.readouterr().out)
        assert output["text"] == "Hi there"
        assert output["metadata"]["finish_reason"] == "stop"
        assert mock_transport.last_json()["temperature"] == 0.2

    def test_prompt_and_image(self, tmp_path, capsys, monkeypatch, mock_transport):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        prompts = tmp_path / "prompts"
        prompts.mkdir()
        (prompts / "blank_form.txt").write_text("Fill in the form.")
        (tmp_path / "form.png").write_bytes(b"\x89PNG")
        (tmp_path / "aipim.toml").write_text('prompt_path = "prompts"\n')

        assert main(["send", "-p", "blank_form", "-i", str(tmp_path / "form.png")]) == 0

        parts = mock_transport.last_json()["messages"][0]["content"]
        assert parts[0] == {"type": "text", "text": "Fill in the form."}
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")

    def test_error_exit_code(self, capsys):
        assert main(["send", "nonexistent-model-id", "-t", "hi"]) == 1
        assert "UnknownModel" in capsys.readouterr().err

    def test_missing_key(self, capsys):
        assert main(["send", "gpt-4o", "-t", "hi"]) == 1
        assert "ConfigError" in capsys.readouterr().err

    def test_empty_message(self, capsys, monkeypatch, mock_transport):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        assert main(["send", "gpt-4o"]) == 1

        assert "EmptyMessage" in capsys.readouterr().err
        assert mock_transport.calls == 0

    def test_trace_flag_initializes_and_shuts_down(self, monkeypatch, mock_transport):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        init = MagicMock()
        shutdown = MagicMock()
        monkeypatch.setattr(aipim.cli, "init_telemetry", init)
        monkeypatch.setattr(aipim.cli, "shutdown_telemetry", shutdown)

        assert main(["send", "-t", "hi", "--trace"]) == 0

        init.assert_called_once_with()
        shutdown.assert_called_once_with()

    def test_trace_shutdown_after_error(self, monkeypatch):
        shutdown = MagicMock()
        monkeypatch.setattr(aipim.cli, "init_telemetry", MagicMock())
        monkeypatch.setattr(aipim.cli, "shutdown_telemetry", shutdown)

        assert main(["send", "nonexistent-model-id", "-t", "hi", "--trace"]) == 1

        shutdown.assert_called_once_with()


class TestInit:
    def test_creates_project(self, tmp_path, capsys):
        target = tmp_path / "project"

        assert main(["init", str(target)]) == 0

        assert (target / "aipim.toml").exists()
        assert (target / "prompts" / "describe.txt").exists()
        assert "Initialized project" in capsys.readouterr().out

    def test_generated_config_loads(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant")
        main(["init", str(tmp_path)])

        config = AipimConfig.load(tmp_path / "aipim.toml")

        assert config.prompt_path == tmp_path / "prompts"
        assert config.provider("anthropic").api_key == "sk-ant"
        # OPENAI_API_KEY is unset in tests
        assert config.provider("openai").api_key is None

    def test_refuses_to_overwrite(self, tmp_path, capsys):
        (tmp_path / "aipim.toml").write_text("timeout_sec = 5\n")

        assert main(["init", str(tmp_path)]) == 1

        assert (tmp_path / "aipim.toml").read_text() == "timeout_sec = 5\n"
        assert "--force" in capsys.readouterr().err

    def test_force_overwrites(self, tmp_path):
        (tmp_path / "aipim.toml").write_text("timeout_sec = 5\n")

        assert main(["init", str(tmp_path), "--force"]) == 0

        assert "prompt_path" in (tmp_path / "aipim.toml").read_text()
