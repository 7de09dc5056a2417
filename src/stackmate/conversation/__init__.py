"""Conversation module for stackmate.

Module structure (each module hides a design decision):
- models.py: Transcript messages and turn events
- reducer.py: How fragments are merged into the transcript
- errors.py: Failure taxonomy of a turn
- session.py: Lifecycle of the provider chat session
- controller.py: Turn sequencing, busy flag and failure recovery
"""

from .controller import ConversationController
from .errors import (
    ConversationError,
    SessionCreationError,
    SessionInvalidError,
    StreamError,
)
from .models import (
    ConversationSeeded,
    FailureKind,
    FragmentReceived,
    Message,
    Role,
    StreamEnded,
    StreamFailed,
    Transcript,
    TurnState,
    UserSubmitted,
)
from .reducer import reduce_transcript
from .session import SessionManager

__all__ = [
    "ConversationController",
    "ConversationError",
    "ConversationSeeded",
    "FailureKind",
    "FragmentReceived",
    "Message",
    "Role",
    "SessionCreationError",
    "SessionInvalidError",
    "SessionManager",
    "StreamEnded",
    "StreamError",
    "StreamFailed",
    "Transcript",
    "TurnState",
    "UserSubmitted",
    "reduce_transcript",
]
