"""Conversation threads and their persisted store."""

from .models import PLACEHOLDER_TITLE, Conversation, Message
from .store import ConversationStore, OutOfRange

__all__ = [
    "Conversation",
    "ConversationStore",
    "Message",
    "OutOfRange",
    "PLACEHOLDER_TITLE",
]
