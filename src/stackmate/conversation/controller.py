"""Conversation controller: the single writer of the transcript.

Runs one turn at a time on the asyncio event loop. The busy flag is the only
mutual exclusion; there are no locks because nothing runs in parallel, only
interleaved continuations of the same loop.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from ..prompts import load_prompt
from .errors import SessionCreationError, SessionInvalidError, StreamError
from .models import (
    ConversationSeeded,
    FailureKind,
    FragmentReceived,
    StreamEnded,
    StreamFailed,
    Transcript,
    TranscriptEvent,
    TurnState,
    UserSubmitted,
)
from .reducer import reduce_transcript
from .session import SessionManager

COMPONENT = "Controller"

# Prompt shown as the reply when a turn fails before producing one
FAILURE_PROMPTS = {
    FailureKind.SESSION_CREATION: "start_failed",
    FailureKind.SESSION_INVALID: "session_invalid",
    FailureKind.STREAM: "stream_failed",
}


class ConversationController:
    """Owns the transcript and mediates between user input and the session.

    Per send operation the controller moves through
    ``IDLE -> SENDING -> STREAMING -> IDLE`` or ``... -> FAILED -> IDLE``.
    Every submitted turn gets either a reply or an error message, and the
    busy flag is cleared after every outcome.

    Example:
        controller = ConversationController(SessionManager(provider))
        await controller.start()
        task = controller.submit("How do I price my first project?")
        await task
        print(controller.transcript[-1].content)
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._sessions = session_manager
        self._transcript: Transcript = ()
        self._state = TurnState.IDLE
        self._busy = False
        self._task: asyncio.Task | None = None
        self._last_failure: FailureKind | None = None
        self._update_callback: Callable[[Transcript], None] | None = None
        self._debug_callback: Any | None = None

    @property
    def transcript(self) -> Transcript:
        """Read-only snapshot of the conversation, oldest message first."""
        return self._transcript

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def state(self) -> TurnState:
        return self._state

    @property
    def last_failure(self) -> FailureKind | None:
        """Failure of the most recent turn, or None if it succeeded."""
        return self._last_failure

    @property
    def has_session(self) -> bool:
        return self._sessions.has_session

    def set_update_callback(self, callback: Callable[[Transcript], None] | None) -> None:
        """Set the callback notified with a transcript snapshot after every change."""
        self._update_callback = callback

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'
        """
        self._debug_callback = callback
        self._sessions.set_debug_callback(callback)

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, COMPONENT, message)

    def _notify(self) -> None:
        if self._update_callback:
            self._update_callback(self._transcript)

    def _apply(self, event: TranscriptEvent) -> None:
        self._transcript = reduce_transcript(self._transcript, event)
        self._notify()

    async def start(self) -> None:
        """Create the first session and seed the transcript.

        On failure the transcript holds a configuration error and the session
        stays absent; the next submit retries session creation.
        """
        if self._busy:
            return
        self._busy = True
        try:
            await self._seed_new_session("greeting", "start_failed")
        finally:
            self._busy = False
            self._notify()

    def submit(self, text: str) -> asyncio.Task | None:
        """Send a user message.

        The user message is appended before this returns; the reply streams in
        from the returned task, which never raises.

        Returns:
            The task running the turn, or None if the text was blank or a
            previous operation is still in flight

        Raises:
            RuntimeError: If an accepted message is submitted outside a
                running event loop; no state is changed
        """
        message = text.strip()
        if not message:
            return None
        if self._busy:
            self._debug("debug", "Ignoring submit while busy")
            return None

        loop = asyncio.get_running_loop()
        self._busy = True
        self._state = TurnState.SENDING
        self._last_failure = None
        self._apply(UserSubmitted(text=message))
        self._task = loop.create_task(self._run_turn(message))
        return self._task

    def reset_conversation(self) -> asyncio.Task | None:
        """Clear the transcript and start over with a fresh session.

        Returns:
            The task recreating the session, or None if busy
        """
        if self._busy:
            self._debug("debug", "Ignoring reset while busy")
            return None

        loop = asyncio.get_running_loop()
        self._busy = True
        self._transcript = ()
        self._notify()
        self._task = loop.create_task(self._run_reset())
        return self._task

    async def wait_idle(self) -> None:
        """Wait for the in-flight turn or reset, if any, to finish."""
        task = self._task
        if task is not None:
            await task

    async def close(self) -> None:
        """Wait for the current operation, then release the session."""
        await self.wait_idle()
        await self._sessions.close()

    async def _seed_new_session(self, greeting: str, failure: str) -> bool:
        try:
            await self._sessions.create_session()
        except SessionCreationError:
            self._apply(ConversationSeeded(text=load_prompt(failure)))
            return False
        self._apply(ConversationSeeded(text=load_prompt(greeting)))
        return True

    async def _run_reset(self) -> None:
        try:
            created = await self._seed_new_session("reset_greeting", "reset_failed")
            self._debug("info", "Conversation reset" if created else "Conversation reset without a session")
        finally:
            self._busy = False
            self._task = None
            self._notify()

    async def _run_turn(self, text: str) -> None:
        try:
            if not self._sessions.has_session:
                self._debug("info", "No active session, creating one before sending")
                await self._sessions.create_session()
            await self._sessions.send_message(text, self._on_fragment)
        except SessionCreationError:
            self._fail(FailureKind.SESSION_CREATION)
        except SessionInvalidError:
            self._fail(FailureKind.SESSION_INVALID)
        except StreamError:
            self._fail(FailureKind.STREAM)
        except Exception as e:
            # Turn failures must never escape the event loop task
            self._debug("error", f"Unexpected error during turn: {e}")
            self._fail(FailureKind.STREAM)
        else:
            self._apply(StreamEnded(empty_reply=load_prompt("empty_reply")))
        finally:
            self._state = TurnState.IDLE
            self._busy = False
            self._task = None
            self._notify()

    def _on_fragment(self, piece: str) -> None:
        if self._state == TurnState.SENDING:
            self._state = TurnState.STREAMING
        self._apply(FragmentReceived(text=piece))

    def _fail(self, kind: FailureKind) -> None:
        self._debug("warning", f"Turn failed: {kind.value}")
        self._state = TurnState.FAILED
        self._last_failure = kind
        self._apply(StreamFailed(kind=kind, message=load_prompt(FAILURE_PROMPTS[kind])))
