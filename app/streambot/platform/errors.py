"""Error taxonomy shared by the bot and the media host."""

from __future__ import annotations


class StreambotError(Exception):
    """Base class for every error raised by this package."""


class PlatformError(StreambotError):
    """The platform answered a request with an unexpected HTTP status."""

    def __init__(self, message: str, status: int = 0) -> None:
        super().__init__(message)
        self.status = status


class LogonFailure(StreambotError):
    """The bot could not authenticate. Fatal at startup."""


class ConversationNotFound(StreambotError):
    """The configured conversation does not exist or could not be created."""


class CallJoinFailure(StreambotError):
    """Creating or joining the call failed. Retried by the next keepalive tick."""


class MediaDeviceFailure(StreambotError):
    """No local capture device could be opened this cycle."""


class SendFailure(StreambotError):
    """A reply item could not be posted. The reply is dropped."""
