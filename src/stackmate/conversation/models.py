"""Data models for the conversation transcript.

These models describe what the presentation layer reads and what the
transcript reducer consumes, independent of the provider in use.
"""

from enum import Enum
from typing import Union

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Sender of a transcript message."""

    USER = "user"
    ASSISTANT = "assistant"


class TurnState(str, Enum):
    """Where the controller is within a send operation."""

    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Why a turn ended without a complete reply."""

    SESSION_CREATION = "session_creation"
    SESSION_INVALID = "session_invalid"
    STREAM = "stream"


class Message(BaseModel):
    """A single message in the transcript."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    pending: bool = Field(
        default=False,
        description="True while the assistant reply is still receiving fragments",
    )

    @property
    def is_pending_reply(self) -> bool:
        return self.pending and self.role == Role.ASSISTANT


Transcript = tuple[Message, ...]


class UserSubmitted(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class FragmentReceived(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str


class StreamEnded(BaseModel):
    """The stream closed normally; ``empty_reply`` is shown if nothing arrived."""

    model_config = ConfigDict(frozen=True)

    empty_reply: str


class StreamFailed(BaseModel):
    """The turn failed; ``message`` is shown if the turn has no reply yet."""

    model_config = ConfigDict(frozen=True)

    kind: FailureKind
    message: str


class ConversationSeeded(BaseModel):
    """Start over with a single assistant message."""

    model_config = ConfigDict(frozen=True)

    text: str


TranscriptEvent = Union[UserSubmitted, FragmentReceived, StreamEnded, StreamFailed, ConversationSeeded]
