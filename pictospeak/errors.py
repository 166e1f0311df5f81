"""Exception hierarchy for the Pictospeak client.

Only TransportError (and the request-side errors raised before a stream
is opened) ever reach a stream consumer. DecodeError is built for logging
and counting; the stream driver absorbs it.
"""

from __future__ import annotations


class PictospeakError(Exception):
    """Base exception for all application-specific errors."""


class TransportError(PictospeakError):
    """The response byte stream failed or closed abnormally mid-stream."""


class DecodeError(PictospeakError):
    """A delimited span was not valid JSON or did not match the schema."""

    def __init__(self, message: str, span: bytes = b"") -> None:
        super().__init__(message)
        self.span = span


class ServerError(PictospeakError):
    """The backend answered with a non-200 status before streaming began."""

    def __init__(self, status_code: int, detail: str = "") -> None:
        message = f"Server returned HTTP {status_code}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail


class EncodingError(PictospeakError):
    """The request body could not be built from the supplied media."""


class ConfigError(PictospeakError):
    """Client configuration is missing or malformed."""
