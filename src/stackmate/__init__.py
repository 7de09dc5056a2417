"""
Stackmate: a streaming chat assistant for aspiring freelance full-stack developers.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .conversation import (
    ConversationController,
    FailureKind,
    Message,
    Role,
    SessionManager,
    Transcript,
    TurnState,
)
from .llm import ChatProvider, create_chat_provider

__all__ = [
    "ChatProvider",
    "ConversationController",
    "FailureKind",
    "Message",
    "Role",
    "SessionManager",
    "Transcript",
    "TurnState",
    "create_chat_provider",
]
