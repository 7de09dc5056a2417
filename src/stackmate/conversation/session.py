"""Session manager: owns the single current provider chat.

Hides which provider is in use and how its failures are told apart. Callers
only see the typed errors from ``errors.py`` plus the text fragments.
"""

from collections.abc import Callable
from typing import Any, NoReturn

from ..llm import ChatHandle, ChatProvider, ErrorKind
from ..prompts import get_system_instruction, load_prompt
from .errors import SessionCreationError, SessionInvalidError, StreamError

COMPONENT = "Session"


class SessionManager:
    """Creates, holds and drops the chat session used by one conversation.

    There is no retry logic here; retrying is the controller's decision.
    """

    def __init__(
        self,
        provider: ChatProvider,
        system_instruction: str | None = None,
    ) -> None:
        """Initialize the session manager.

        Args:
            provider: Chat provider that allocates sessions and streams replies
            system_instruction: Persona text (defaults to the packaged prompt)
        """
        self._provider = provider
        self._system_instruction = system_instruction or get_system_instruction()
        self._session: ChatHandle | None = None
        self._debug_callback: Any | None = None

    @property
    def session(self) -> ChatHandle | None:
        """The current session, or None if it must be (re)created."""
        return self._session

    @property
    def has_session(self) -> bool:
        return self._session is not None

    @property
    def provider(self) -> ChatProvider:
        return self._provider

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, COMPONENT, message)

    async def create_session(self) -> ChatHandle:
        """Allocate a new session, replacing any previous one.

        Returns:
            The new current session

        Raises:
            SessionCreationError: If the provider could not allocate it; no
                session is retained in that case
        """
        self._session = None
        try:
            session = await self._provider.open_chat(self._system_instruction)
        except Exception as e:
            self._debug("error", f"Session creation failed: {e}")
            raise SessionCreationError(str(e)) from e

        self._session = session
        self._debug("info", f"Created session {session!r}")
        return session

    async def send_message(self, text: str, on_fragment: Callable[[str], None]) -> None:
        """Send a user turn on the current session and stream the reply.

        Args:
            text: User message
            on_fragment: Called once per reply fragment, in arrival order

        Raises:
            SessionInvalidError: No current session, or the provider rejected
                it; the session is dropped
            StreamError: Any other failure; the session is kept
        """
        session = self._session
        if session is None:
            raise SessionInvalidError("No active chat session")

        try:
            stream = await self._provider.stream_reply(session, text)
        except Exception as e:
            self._raise_stream_failure(e, on_fragment, delivered=False)

        delivered = False
        while True:
            # Only the provider stream is guarded; on_fragment errors propagate as-is
            try:
                piece = await stream.__anext__()
            except StopAsyncIteration:
                break
            except Exception as e:
                self._raise_stream_failure(e, on_fragment, delivered=delivered)
            delivered = True
            on_fragment(piece)

        if stream.usage:
            self._debug("debug", f"Token usage: {stream.usage}")

    def _raise_stream_failure(
        self,
        error: Exception,
        on_fragment: Callable[[str], None],
        delivered: bool,
    ) -> NoReturn:
        """Report a provider failure as a fragment, then raise the typed error."""
        separator = "\n\n" if delivered else ""
        if self._provider.classify_error(error) == ErrorKind.SESSION_INVALID:
            self._debug("warning", f"Session rejected by provider, dropping it: {error}")
            self._session = None
            on_fragment(separator + load_prompt("session_invalid"))
            raise SessionInvalidError(str(error)) from error

        self._debug("error", f"Error streaming reply: {error}")
        on_fragment(f"{separator}Error: {error}")
        raise StreamError(str(error)) from error

    async def close(self) -> None:
        """Drop the session and close the provider."""
        self._session = None
        await self._provider.close()
