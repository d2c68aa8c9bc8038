"""
Conversation Models

Pydantic models for chat threads. Instances are frozen; updates go
through model_copy so only the changed conversation is rebuilt.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

PLACEHOLDER_TITLE = "New Chat"


class Message(BaseModel):
    """One turn in a conversation."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(
        ...,
        description="Originator of the message",
    )
    content: str = Field(
        ...,
        description="Message text (markdown)",
    )


class Conversation(BaseModel):
    """A chat thread with its own title and ordered message log."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(
        ...,
        description="Immutable identifier, unique within a store",
    )
    title: str = Field(
        default=PLACEHOLDER_TITLE,
        description="Display title; rewritten once after the first exchange",
    )
    messages: tuple[Message, ...] = Field(
        default=(),
        description="Messages in append order",
    )

    @property
    def has_placeholder_title(self) -> bool:
        return self.title == PLACEHOLDER_TITLE

    def with_message(self, message: Message) -> "Conversation":
        return self.model_copy(update={"messages": (*self.messages, message)})

    def with_title(self, title: str) -> "Conversation":
        return self.model_copy(update={"title": title})
