"""Message Builder - accumulate the content of one outbound message.

Example:
    response = await (
        client.message()
        .prompt("blank_form")
        .image_file("form.jpg")
        .temperature(0.2)
        .send()
    )

A builder is single use: once send() has started, send() again or any
further append raises BuilderReused. Builders are not meant to be shared
between tasks.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional, Union

from .content import Image, MessageContent, Text
from .errors import BuilderReused, EmptyMessage, InvalidContent
from .types import GenerationOptions, Response

if TYPE_CHECKING:
    from .client import Client

logger = logging.getLogger(__name__)


class MessageBuilder:
    """Builder for one user message, created by Client.message()."""

    def __init__(self, client: Client):
        """Initialize message builder.

        Args:
            client: Client the message will be sent through
        """
        self._client = client
        self._contents: list[MessageContent] = []
        self._model: Optional[str] = None
        self._options = GenerationOptions()
        self._sent = False

    @property
    def contents(self) -> tuple[MessageContent, ...]:
        """Content items added so far, in order."""
        return tuple(self._contents)

    @property
    def sent(self) -> bool:
        return self._sent

    def _check_open(self) -> None:
        if self._sent:
            raise BuilderReused()

    def _append(self, item: MessageContent) -> MessageBuilder:
        self._check_open()
        self._contents.append(item)
        return self

    def text(self, text: str) -> MessageBuilder:
        """Append a text item.

        Args:
            text: Text content

        Returns:
            Self for chaining
        """
        return self._append(Text(text))

    def image(self, data: bytes, mime_type: str) -> MessageBuilder:
        """Append an inline image.

        Args:
            data: Raw image bytes, must not be empty
            mime_type: Media type, e.g. "image/png"

        Returns:
            Self for chaining

        Raises:
            InvalidContent: If data is empty or not a bytes-like object
        """
        self._check_open()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidContent(f"Image data must be bytes, got {type(data).__name__}")
        try:
            image = Image(mime_type=mime_type, data=bytes(data))
        except ValueError as e:
            raise InvalidContent(str(e)) from e
        return self._append(image)

    def image_url(self, uri: str, mime_type: str) -> MessageBuilder:
        """Append an image by reference (URL or provider file URI)."""
        self._check_open()
        try:
            image = Image(mime_type=mime_type, uri=uri)
        except ValueError as e:
            raise InvalidContent(str(e)) from e
        return self._append(image)

    def image_file(self, path: Union[str, Path]) -> MessageBuilder:
        """Append an image read from disk.

        Supported extensions: jpg, jpeg, png, gif, webp.

        Raises:
            InvalidContent: If the format is unsupported or the file is unreadable/empty
        """
        self._check_open()
        try:
            image = Image.from_file(path)
        except (ValueError, OSError) as e:
            raise InvalidContent(f"Cannot load image {path}: {e}") from e
        return self._append(image)

    def prompt(self, name: str) -> MessageBuilder:
        """Append the text of a prompt file.

        Reads ``<prompt_path>/<name>.txt``, where prompt_path comes from
        aipim.toml or the PROMPT_PATH environment variable.

        Raises:
            InvalidContent: If no prompt directory is configured or the file is unreadable
        """
        self._check_open()
        prompt_dir = self._client.prompt_path
        if prompt_dir is None:
            raise InvalidContent(
                "No prompt directory configured; set PROMPT_PATH or prompt_path in aipim.toml"
            )
        prompt_file = prompt_dir / f"{name}.txt"
        try:
            text = prompt_file.read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidContent(f"Cannot read prompt {name!r} from {prompt_file}: {e}") from e
        logger.debug("Loaded prompt %s (%d chars)", prompt_file, len(text))
        return self._append(Text(text))

    def model(self, model: str) -> MessageBuilder:
        """Send this message to a different model than the client's."""
        self._check_open()
        self._model = model
        return self

    def temperature(self, temperature: float) -> MessageBuilder:
        self._check_open()
        self._options = dataclasses.replace(self._options, temperature=temperature)
        return self

    def max_tokens(self, max_tokens: int) -> MessageBuilder:
        self._check_open()
        self._options = dataclasses.replace(self._options, max_tokens=max_tokens)
        return self

    def option(self, name: str, value: Any) -> MessageBuilder:
        """Set a provider-specific body field (e.g. "stop", "seed")."""
        self._check_open()
        extra = {**self._options.extra, name: value}
        self._options = dataclasses.replace(self._options, extra=extra)
        return self

    async def send(self) -> Response:
        """Send the message and wait for the provider's answer.

        Returns:
            The normalized Response

        Raises:
            EmptyMessage: If no content was added (no request is made)
            BuilderReused: If this builder was already sent
            UnknownModel: If the model has no provider
            UnsupportedContentKind: If the provider cannot send a content item
            NetworkError: On transport failure or non-2xx status
            ParseError: If the reply is not a usable success payload
            Cancelled: If the awaiting task is cancelled
        """
        self._check_open()
        if not self._contents:
            raise EmptyMessage()
        # Mark used before the first await so a concurrent send() is rejected
        self._sent = True
        return await self._client.send_message(
            self.contents,
            model=self._model,
            options=self._options,
        )

    def __repr__(self) -> str:
        kinds = ", ".join(item.kind.value for item in self._contents)
        return f"MessageBuilder(model={self._model or self._client.model!r}, contents=[{kinds}], sent={self._sent})"


__all__ = ["MessageBuilder"]
