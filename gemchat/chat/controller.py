"""
Chat Controller

Owns the conversation store and session configuration, turns user
intents into store mutations, and files asynchronous completion results
into the conversation they were issued from.

Replies are keyed by the conversation id captured at submit time and
resolved to a position only when they arrive, so switching or sending
into another conversation while a request is outstanding never
misfiles a reply.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Literal

from gemchat.conversations import Conversation, ConversationStore, Message
from gemchat.llm import BaseCompletionClient, CompletionError, ConfigurationMissing
from gemchat.session import SessionConfig

logger = logging.getLogger(__name__)

ERROR_PREFIX = "**Error:** "


@dataclass(frozen=True)
class Notice:
    """User-visible notification raised outside the conversation log."""

    level: Literal["info", "warning", "error"]
    title: str
    description: str


Notifier = Callable[[Notice], None]


def _log_notice(notice: Notice) -> None:
    logger.warning(f"{notice.title}: {notice.description}")


class ChatController:
    """
    Orchestrates the submit flow for one user.

    Each conversation moves Idle -> Sending -> Idle per submission. A
    conversation with a send in flight rejects further submits; other
    conversations can send at the same time.
    """

    def __init__(
        self,
        conversations: ConversationStore,
        session: SessionConfig,
        client: BaseCompletionClient,
        notifier: Notifier | None = None,
    ) -> None:
        self._conversations = conversations
        self._session = session
        self._client = client
        self._notify = notifier or _log_notice
        self._sending: set[int] = set()
        self._background: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Read access for the presentation layer
    # ------------------------------------------------------------------

    @property
    def conversations(self) -> tuple[Conversation, ...]:
        return self._conversations.list()

    @property
    def current_index(self) -> int:
        return self._conversations.current_index

    @property
    def current(self) -> Conversation:
        return self._conversations.current

    @property
    def session(self) -> SessionConfig:
        return self._session

    @property
    def is_sending(self) -> bool:
        """True while the current conversation has a send in flight."""
        return self.current.id in self._sending

    @property
    def sending_ids(self) -> frozenset[int]:
        return frozenset(self._sending)

    def search(self, query: str) -> list[tuple[int, Conversation]]:
        return self._conversations.search(query)

    # ------------------------------------------------------------------
    # Intents
    # ------------------------------------------------------------------

    def new_conversation(self) -> int:
        return self._conversations.create()

    def switch_conversation(self, index: int) -> None:
        self._conversations.switch_to(index)

    def set_api_key(self, value: str) -> None:
        self._session.set_api_key(value)

    def set_system_instruction(self, value: str) -> None:
        self._session.set_system_instruction(value)

    async def submit(self, text: str) -> Message | None:
        """
        Send text into the current conversation.

        Returns the assistant message filed for this submission (a reply or
        an error message), or None when the submit was rejected.
        """
        if not text.strip():
            return None

        target = self._conversations.current
        if target.id in self._sending:
            logger.debug("Submit ignored while sending", extra={"conversation_id": target.id})
            return None

        if not self._session.has_api_key:
            missing = ConfigurationMissing()
            self._notify(
                Notice(level="warning", title="API Key Missing", description=missing.message)
            )
            return None

        conversation_id = target.id
        user_message = Message(role="user", content=text)
        self._conversations.append_message(self._conversations.current_index, user_message)
        self._sending.add(conversation_id)
        logger.info("Sending message", extra={"conversation_id": conversation_id})

        try:
            history = self._history(conversation_id)
            try:
                reply = await self._client.complete(
                    history,
                    self._session.system_instruction,
                    self._session.api_key,
                )
            except CompletionError as e:
                logger.warning(
                    f"Completion failed: {e.message}",
                    extra={"conversation_id": conversation_id, "error": e.to_dict()},
                )
                error_message = Message(role="assistant", content=f"{ERROR_PREFIX}{e.message}")
                self._file(conversation_id, error_message)
                return error_message

            assistant_message = Message(role="assistant", content=reply)
            if self._file(conversation_id, assistant_message):
                self._maybe_request_title(conversation_id, (user_message, assistant_message))
            return assistant_message
        finally:
            self._sending.discard(conversation_id)

    async def wait_for_background(self) -> None:
        """Wait for pending title updates."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def close(self) -> None:
        """Finish pending title updates and release the completion client."""
        try:
            await self.wait_for_background()
        finally:
            await self._client.close()

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def _history(self, conversation_id: int) -> tuple[Message, ...]:
        index = self._conversations.find(conversation_id)
        if index is None:
            return ()
        return self._conversations.get(index).messages

    def _file(self, conversation_id: int, message: Message) -> bool:
        """Append to the captured conversation; False if it no longer exists."""
        index = self._conversations.find(conversation_id)
        if index is None:
            logger.warning(
                "Dropping reply for missing conversation",
                extra={"conversation_id": conversation_id},
            )
            return False
        self._conversations.append_message(index, message)
        return True

    def _maybe_request_title(
        self, conversation_id: int, exchange: Sequence[Message]
    ) -> None:
        index = self._conversations.find(conversation_id)
        if index is None:
            return
        conversation = self._conversations.get(index)
        if len(conversation.messages) > 2 or not conversation.has_placeholder_title:
            return

        task = asyncio.create_task(self._apply_title(conversation_id, tuple(exchange)))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _apply_title(self, conversation_id: int, exchange: tuple[Message, ...]) -> None:
        title = await self._client.suggest_title(exchange, self._session.api_key)
        index = self._conversations.find(conversation_id)
        if index is None:
            return
        self._conversations.rename_title(index, title)
        logger.info(
            "Conversation titled",
            extra={"conversation_id": conversation_id, "title": title},
        )
