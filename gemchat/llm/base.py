"""
Base Completion Client

Abstract base class defining the interface the chat controller uses to
reach a text-generation service.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from gemchat.conversations.models import Message

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "New Chat"


class BaseCompletionClient(ABC):
    """
    Abstract base class for completion clients.

    Attributes:
        client_name: Unique identifier for this client
        temperature: Sampling temperature for chat replies
        top_k: Top-k sampling for chat replies
        max_output_tokens: Maximum tokens per reply
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        client_name: str,
        temperature: float = 0.7,
        top_k: int = 40,
        max_output_tokens: int = 8192,
        timeout: float = 120.0,
    ):
        self.client_name = client_name
        self.temperature = temperature
        self.top_k = top_k
        self.max_output_tokens = max_output_tokens
        self.timeout = timeout

        logger.info(
            f"Initialized {client_name} completion client",
            extra={
                "client": client_name,
                "temperature": temperature,
                "max_output_tokens": max_output_tokens,
            },
        )

    @abstractmethod
    async def complete(
        self,
        history: Sequence[Message],
        system_instruction: str,
        api_key: str,
    ) -> str:
        """
        Send the full history and return the reply text.

        Args:
            history: Messages in append order, ending with the user's turn
            system_instruction: System prompt sent alongside the history
            api_key: Credential for the remote endpoint

        Returns:
            Reply text

        Raises:
            CompletionError: Transport, empty, blocked or malformed replies
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def suggest_title(self, exchange: Sequence[Message], api_key: str) -> str:
        """
        Ask for a 3-5 word title for an exchange.

        Never raises; returns FALLBACK_TITLE on any failure.
        """
        pass  # pragma: no cover - abstract method

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass  # pragma: no cover - abstract method

    async def __aenter__(self) -> "BaseCompletionClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _log_request(self, model: str, message_count: int) -> None:
        """Log request details for debugging."""
        logger.debug(
            f"{self.client_name} request",
            extra={
                "client": self.client_name,
                "model": model,
                "message_count": message_count,
                "temperature": self.temperature,
                "max_output_tokens": self.max_output_tokens,
            },
        )

    def _log_response(self, model: str, reply: str) -> None:
        """Log response details for debugging."""
        logger.debug(
            f"{self.client_name} response",
            extra={
                "client": self.client_name,
                "model": model,
                "reply_length": len(reply),
            },
        )
