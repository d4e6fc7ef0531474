"""Errors raised by aipim.

Every failure of a send is reported as exactly one of these classes, all of
which derive from AipimError.
"""

from __future__ import annotations

import asyncio
from typing import Optional


class AipimError(Exception):
    """Base exception for aipim errors."""

    pass


class ConfigError(AipimError):
    """Raised when configuration or credentials are missing or unreadable."""

    pass


class UnknownModel(AipimError):
    """Raised when no registered provider serves the requested model."""

    def __init__(self, model: str, known: Optional[list[str]] = None):
        message = f"Unknown model: {model}"
        if known:
            message += f". Known models: {', '.join(known)}"
        super().__init__(message)
        self.model = model


class UnsupportedContentKind(AipimError):
    """Raised when a provider cannot represent a content item."""

    def __init__(self, provider: str, kind: str):
        super().__init__(f"Provider '{provider}' does not support {kind} content")
        self.provider = provider
        self.kind = kind


class InvalidContent(AipimError):
    """Raised when a content item cannot be built (empty image, bad file)."""

    pass


class EmptyMessage(InvalidContent):
    """Raised when send() is called before any content was added."""

    def __init__(self):
        super().__init__("Message has no content; add text or an image before send()")


class BuilderReused(AipimError):
    """Raised when a builder is sent twice or modified after send()."""

    def __init__(self):
        super().__init__("MessageBuilder has already been sent; create a new one")


class NetworkError(AipimError):
    """Raised when the HTTP exchange fails at the transport or status level.

    Attributes:
        status_code: HTTP status, if a response was received
        body: Excerpt of the response body, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ParseError(AipimError):
    """Raised when a response body is not a usable success payload.

    This includes bodies that carry a provider error object under HTTP 200.

    Attributes:
        status_code: HTTP status of the response
        body: Excerpt of the response body
        provider_message: Error message reported by the provider, if any
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        provider_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.provider_message = provider_message


class Cancelled(AipimError, asyncio.CancelledError):
    """Raised when the awaiting task is cancelled during a send.

    Also an asyncio.CancelledError, so task cancellation still propagates.
    """

    def __init__(self, message: str = "Send was cancelled"):
        super().__init__(message)


__all__ = [
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
]
