"""
Completion Errors

Exceptions raised at the completion-client boundary. The chat controller
catches CompletionError and files its message into the conversation;
ConfigurationMissing is raised before any request is made.
"""

from typing import Any


class GemChatError(Exception):
    """Base class for application errors."""

    pass


class ConfigurationMissing(GemChatError):
    """No API key is configured, so no request can be sent."""

    def __init__(self, message: str = "Please set your Gemini API key in the settings."):
        self.message = message
        super().__init__(message)


class CompletionError(GemChatError):
    """
    Error produced by a completion request.

    Attributes:
        message: User-facing error description
        status_code: HTTP status when the server answered, else None
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class TransportError(CompletionError):
    """Non-2xx response or network failure."""

    pass


class EmptyReply(CompletionError):
    """Response parsed but carried no reply text."""

    def __init__(self, message: str = "Received an invalid or empty response from the API."):
        super().__init__(message)


class SafetyBlocked(CompletionError):
    """Provider withheld the reply and reported a block reason."""

    def __init__(self, block_reason: str):
        self.block_reason = block_reason
        super().__init__(
            f"Request blocked for safety reasons: {block_reason}",
            context={"block_reason": block_reason},
        )


class MalformedResponse(CompletionError):
    """Response body is not JSON or does not match the expected envelope."""

    pass
