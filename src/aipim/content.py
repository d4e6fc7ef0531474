"""Message content - the pieces a single user message is made of.

A message is an ordered sequence of content items. Providers render the
items in the order they were added, so order is part of the message.

- Text: a run of plain text
- Image: raw image bytes or a URI, with its MIME type
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional, Union

# Image formats accepted when loading from disk, keyed by file extension
IMAGE_MIME_TYPES = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}


class ContentKind(str, Enum):
    """The kind of a content item, used to check provider support."""

    TEXT = "text"
    IMAGE = "image"


@dataclass(frozen=True)
class Text:
    """A text item."""

    text: str

    @property
    def kind(self) -> ContentKind:
        return ContentKind.TEXT


@dataclass(frozen=True)
class Image:
    """An image item.

    Exactly one of ``data`` or ``uri`` is set. Inline ``data`` must not be
    empty.

    Attributes:
        mime_type: Media type, e.g. "image/png"
        data: Raw image bytes
        uri: Remote location of the image (http(s), gs://, data: ...)
    """

    mime_type: str
    data: Optional[bytes] = None
    uri: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.data is None) == (self.uri is None):
            raise ValueError("Image needs exactly one of data or uri")
        if self.data is not None and len(self.data) == 0:
            raise ValueError("Image data must not be empty")
        if self.uri is not None and not self.uri:
            raise ValueError("Image uri must not be empty")
        if not self.mime_type:
            raise ValueError("Image mime_type is required")

    @property
    def kind(self) -> ContentKind:
        return ContentKind.IMAGE

    @property
    def is_inline(self) -> bool:
        return self.data is not None

    def to_base64(self) -> str:
        """Return the inline bytes base64-encoded."""
        if self.data is None:
            raise ValueError("Image has no inline data")
        return base64.b64encode(self.data).decode("ascii")

    def data_url(self) -> str:
        """Return a ``data:`` URL for inline images, or the URI as-is."""
        if self.data is None:
            return self.uri or ""
        return f"data:{self.mime_type};base64,{self.to_base64()}"

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> Image:
        """Load an image from disk, inferring the MIME type from its extension.

        Args:
            path: Path to a jpg/jpeg, png, gif or webp file

        Returns:
            Image with inline data

        Raises:
            ValueError: If the extension is not a supported image format
            OSError: If the file cannot be read
        """
        path = Path(path)
        ext = path.suffix.lower().lstrip(".")
        mime_type = IMAGE_MIME_TYPES.get(ext)
        if mime_type is None:
            raise ValueError(f"Unsupported image format: {path.name}")
        return cls(mime_type=mime_type, data=path.read_bytes())


MessageContent = Union[Text, Image]


__all__ = [
    "ContentKind",
    "Text",
    "Image",
    "MessageContent",
    "IMAGE_MIME_TYPES",
]
