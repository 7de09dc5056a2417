"""Exceptions raised by the session layer.

Provider SDK errors are chained as ``__cause__`` so the original failure is
still available for logging.
"""


class ConversationError(Exception):
    """Base class for failures of a conversation turn."""


class SessionCreationError(ConversationError):
    """The provider could not allocate a chat session."""


class SessionInvalidError(ConversationError):
    """The provider rejected the session identity, or there is no session."""


class StreamError(ConversationError):
    """The reply stream failed for a reason unrelated to the session itself."""
