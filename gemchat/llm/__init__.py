"""
Completion Client Module

Boundary to the remote text-generation service.

Usage:
    from gemchat.llm import create_completion_client
    from gemchat.config import get_settings

    client = create_completion_client(get_settings().llm)

    async with client:
        reply = await client.complete(history, "You are a helpful assistant.", api_key)
"""

from gemchat.llm.base import FALLBACK_TITLE, BaseCompletionClient
from gemchat.llm.errors import (
    CompletionError,
    ConfigurationMissing,
    EmptyReply,
    GemChatError,
    MalformedResponse,
    SafetyBlocked,
    TransportError,
)
from gemchat.llm.factory import create_completion_client
from gemchat.llm.gemini import GeminiClient

__all__ = [
    # Base classes
    "BaseCompletionClient",
    "FALLBACK_TITLE",
    # Clients
    "GeminiClient",
    "create_completion_client",
    # Errors
    "GemChatError",
    "ConfigurationMissing",
    "CompletionError",
    "TransportError",
    "EmptyReply",
    "SafetyBlocked",
    "MalformedResponse",
]
