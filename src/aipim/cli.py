from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .client import Client
from .config import CONFIG_FILENAME, load_config
from .errors import AipimError
from .registry import default_registry
from .telemetry import init_telemetry, shutdown_telemetry

DEFAULT_MODEL = "gpt-4o"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


async def _send(args) -> int:
    config = load_config(Path(args.config_dir))
    async with Client(args.model, config=config) as client:
        builder = client.message()
        if args.prompt:
            builder.prompt(args.prompt)
        for text in args.text or []:
            builder.text(text)
        for image in args.image or []:
            builder.image_file(image)
        if args.temperature is not None:
            builder.temperature(args.temperature)
        if args.max_tokens is not None:
            builder.max_tokens(args.max_tokens)

        response = await builder.send()

    if args.json:
        print(json.dumps(response.to_dict(), indent=2))
    else:
        print(response.text)
    return 0


def cmd_send(args) -> int:
    """Send one message and print the answer."""
    if args.trace:
        init_telemetry()
    try:
        return asyncio.run(_send(args))
    except AipimError as e:
        print(f"[aipim] {type(e).__name__}: {e}", file=sys.stderr)
        return 1
    finally:
        if args.trace:
            shutdown_telemetry()


def cmd_models(args) -> int:
    """List known model ids and the provider serving each."""
    registry = default_registry()
    for model in registry.models():
        descriptor = registry.resolve(model)
        target = f" -> {descriptor.model}" if descriptor.model != model else ""
        print(f"{model:<32} {descriptor.provider.name}{target}")
    return 0


TEMPLATE_CONFIG = """# aipim project config
prompt_path = "prompts"
timeout_sec = 60

[providers.openai]
api_key = "${OPENAI_API_KEY}"

[providers.anthropic]
api_key = "${ANTHROPIC_API_KEY}"

[providers.google]
api_key = "${GEMINI_API_KEY}"

# [providers.local]
# base_url = "http://localhost:8000/v1"
""".strip()

TEMPLATE_PROMPT = "Describe the attached image in one paragraph."


def cmd_init(args) -> int:
    """Write aipim.toml and an example prompt into a project directory."""
    target = Path(args.path).resolve()
    config_file = target / CONFIG_FILENAME
    if config_file.exists() and not args.force:
        print(f"[aipim] {config_file} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    prompts = target / "prompts"
    prompts.mkdir(parents=True, exist_ok=True)
    config_file.write_text(TEMPLATE_CONFIG + "\n")
    example = prompts / "describe.txt"
    if not example.exists():
        example.write_text(TEMPLATE_PROMPT + "\n")
    print(f"[aipim] Initialized project at {target}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="aipim", description="Send messages to AI providers")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_send = sub.add_parser("send", help="Send a message")
    p_send.add_argument("model", nargs="?", default=DEFAULT_MODEL, help="Model id")
    p_send.add_argument("-t", "--text", action="append", help="Text item (repeatable)")
    p_send.add_argument("-i", "--image", action="append", help="Image file (repeatable)")
    p_send.add_argument("-p", "--prompt", help="Prompt file name under the prompt directory")
    p_send.add_argument("--temperature", type=float)
    p_send.add_argument("--max-tokens", type=int)
    p_send.add_argument("--json", action="store_true", help="Print text and metadata as JSON")
    p_send.add_argument(
        "--trace", action="store_true", help="Export the send span over OTLP (OTEL_EXPORTER_OTLP_ENDPOINT)"
    )
    p_send.add_argument(
        "--config-dir", default=".", help="Directory to search upward for aipim.toml"
    )
    p_send.set_defaults(func=cmd_send)

    p_models = sub.add_parser("models", help="List known models")
    p_models.set_defaults(func=cmd_models)

    p_init = sub.add_parser("init", help="Create aipim.toml and a prompts directory")
    p_init.add_argument("path", nargs="?", default=".", help="Project directory")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing aipim.toml")
    p_init.set_defaults(func=cmd_init)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
