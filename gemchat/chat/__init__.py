"""Chat controller: user intents, submit flow and reply reconciliation."""

from .controller import ChatController, Notice, Notifier

__all__ = ["ChatController", "Notice", "Notifier"]
