"""
Conversation models: messages, log state and user-facing notices.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Author(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    id: str
    content: str
    author: Author
    created_at: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    @property
    def is_user(self) -> bool:
        return self.author == Author.USER


class ConversationState(BaseModel):
    messages: list[Message] = Field(default_factory=list)
    pending: bool = False


class Notification(BaseModel):
    """Transient notice shown to the user (toast)."""
    title: str
    description: str = ""
    variant: str = "default"  # "default" | "destructive"
