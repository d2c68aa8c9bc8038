"""Ordered in-memory conversation list mirrored into the persistent store."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Sequence

from pydantic import TypeAdapter, ValidationError

from gemchat.conversations.models import PLACEHOLDER_TITLE, Conversation, Message
from gemchat.storage import CONVERSATIONS_BACKUP_KEY, CONVERSATIONS_KEY, KeyValueStore

logger = logging.getLogger(__name__)

_CONVERSATION_LIST = TypeAdapter(list[Conversation])


class OutOfRange(IndexError):
    """Raised when a conversation index does not name an existing position."""

    def __init__(self, index: int, size: int) -> None:
        self.index = index
        self.size = size
        super().__init__(f"Conversation index {index} out of range (0..{size - 1})")


class ConversationStore:
    """
    Ordered conversations plus a current-index pointer.

    The store is never empty and the current index always names an
    existing conversation. Every mutation rewrites the full list under
    the ``conversations`` key of the persistent store.
    """

    def __init__(
        self,
        store: KeyValueStore,
        conversations: Sequence[Conversation] | None = None,
        current_index: int = 0,
    ) -> None:
        self._store = store
        self._conversations: list[Conversation] = list(conversations or [])
        if not self._conversations:
            self._conversations.append(self._new_conversation())
        if not 0 <= current_index < len(self._conversations):
            current_index = 0
        self._current_index = current_index

    @classmethod
    def load(cls, store: KeyValueStore) -> "ConversationStore":
        """
        Hydrate from the persistent store, seeding one empty conversation if needed.

        Unreadable data is copied to ``conversations.bak`` before the
        fresh seed replaces it.
        """
        raw = store.get(CONVERSATIONS_KEY)
        conversations: list[Conversation] = []
        if raw:
            try:
                conversations = _CONVERSATION_LIST.validate_json(raw)
            except ValidationError as e:
                store.set(CONVERSATIONS_BACKUP_KEY, raw)
                logger.warning(
                    "Discarding unreadable conversation data",
                    extra={"errors": e.error_count(), "backup_key": CONVERSATIONS_BACKUP_KEY},
                )
                conversations = []

        instance = cls(store, conversations)
        if not conversations:
            instance._persist()
        logger.debug(
            "Conversation store loaded",
            extra={"conversations": len(instance), "seeded": not conversations},
        )
        return instance

    def __len__(self) -> int:
        return len(self._conversations)

    def list(self) -> tuple[Conversation, ...]:
        return tuple(self._conversations)

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current(self) -> Conversation:
        return self._conversations[self._current_index]

    def get(self, index: int) -> Conversation:
        self._check_index(index)
        return self._conversations[index]

    def find(self, conversation_id: int) -> int | None:
        """Return the position of the conversation with this id, if it still exists."""
        for index, conversation in enumerate(self._conversations):
            if conversation.id == conversation_id:
                return index
        return None

    def search(self, query: str) -> list[tuple[int, Conversation]]:
        """Case-insensitive title filter, in store order."""
        needle = query.strip().lower()
        return [
            (index, conversation)
            for index, conversation in enumerate(self._conversations)
            if conversation.title and needle in conversation.title.lower()
        ]

    def create(self) -> int:
        self._conversations.append(self._new_conversation())
        self._current_index = len(self._conversations) - 1
        self._persist()
        logger.info(
            "Conversation created",
            extra={"index": self._current_index, "conversation_id": self.current.id},
        )
        return self._current_index

    def switch_to(self, index: int) -> None:
        self._check_index(index)
        self._current_index = index

    def append_message(self, index: int, message: Message) -> None:
        self._check_index(index)
        self._conversations[index] = self._conversations[index].with_message(message)
        self._persist()

    def rename_title(self, index: int, title: str) -> None:
        if not 0 <= index < len(self._conversations):
            logger.debug("Ignoring rename for stale index", extra={"index": index})
            return
        self._conversations[index] = self._conversations[index].with_title(title)
        self._persist()

    def dump_json(self) -> str:
        return json.dumps(
            [conversation.model_dump(mode="json") for conversation in self._conversations]
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._conversations):
            raise OutOfRange(index, len(self._conversations))

    def _new_conversation(self) -> Conversation:
        return Conversation(id=self._next_id(), title=PLACEHOLDER_TITLE)

    def _next_id(self) -> int:
        candidate = int(time.time() * 1000)
        if self._conversations:
            highest = max(conversation.id for conversation in self._conversations)
            if candidate <= highest:
                candidate = highest + 1
        return candidate

    def _persist(self) -> None:
        self._store.set(CONVERSATIONS_KEY, self.dump_json())
