"""Pytest configuration and shared fixtures."""
import asyncio
import os
from collections.abc import AsyncIterator

import pytest

from stackmate.conversation import ConversationController, SessionManager
from stackmate.llm import ChatHandle, ChatProvider, ErrorKind, StreamingResponse
from stackmate.prompts import clear_cache

SYSTEM_INSTRUCTION = "You help freelance developers."


class InvalidSessionError(Exception):
    """Stands in for a provider error that rejects the session."""


class Reply:
    """Scripted reply for one turn.

    Args:
        fragments: Pieces yielded in order
        error: Raised after the fragments have been yielded
        fail_on_send: Raised by stream_reply before any streaming starts
        hold: If given, the stream waits on this event after the fragments
    """

    def __init__(
        self,
        *fragments: str,
        error: Exception | None = None,
        fail_on_send: Exception | None = None,
        hold: asyncio.Event | None = None,
    ) -> None:
        self.fragments = list(fragments)
        self.error = error
        self.fail_on_send = fail_on_send
        self.hold = hold
        self.streamed = asyncio.Event()


class FakeChatProvider(ChatProvider):
    """In-memory provider driven by scripted replies."""

    def __init__(self) -> None:
        self.replies: list[Reply] = []
        self.open_errors: list[Exception] = []
        self.opened: list[ChatHandle] = []
        self.sent: list[tuple[ChatHandle, str]] = []
        self.closed = False

    @property
    def model(self) -> str:
        return "fake-model"

    def script(self, *replies: Reply) -> None:
        self.replies.extend(replies)

    async def open_chat(self, system_instruction: str) -> ChatHandle:
        if self.open_errors:
            raise self.open_errors.pop(0)
        handle = ChatHandle(self.model, system_instruction)
        self.opened.append(handle)
        return handle

    async def stream_reply(self, handle: ChatHandle, text: str) -> StreamingResponse:
        self.sent.append((handle, text))
        reply = self.replies.pop(0)
        if reply.fail_on_send is not None:
            raise reply.fail_on_send
        response = StreamingResponse(self._generate(reply))
        self._response = response
        return response

    async def _generate(self, reply: Reply) -> AsyncIterator[str]:
        for piece in reply.fragments:
            yield piece
        reply.streamed.set()
        if reply.hold is not None:
            await reply.hold.wait()
        if reply.error is not None:
            raise reply.error
        self._response.set_usage({"total_tokens": len(reply.fragments)})

    def classify_error(self, error: BaseException) -> ErrorKind:
        if isinstance(error, InvalidSessionError):
            return ErrorKind.SESSION_INVALID
        return ErrorKind.OTHER

    async def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def _fresh_prompts():
    """Prompts are cached per process; reset around each test."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "gemini": os.getenv("GEMINI_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
    }


@pytest.fixture
def provider():
    """Return a fake provider with no scripted replies."""
    return FakeChatProvider()


@pytest.fixture
def session_manager(provider):
    return SessionManager(provider, system_instruction=SYSTEM_INSTRUCTION)


@pytest.fixture
def controller(session_manager):
    return ConversationController(session_manager)
