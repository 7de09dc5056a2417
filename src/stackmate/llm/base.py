from abc import ABC, abstractmethod
from typing import Any

from .models import ChatHandle, ErrorKind, StreamingResponse


class ChatProvider(ABC):
    """Abstract base class for conversational LLM providers.

    This module hides the design decision of which LLM provider to use.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Where the conversation context lives (remote chat or local history)
    - Request/response format conversion
    - Recognizing errors that invalidate the chat itself

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            handle = await provider.open_chat(system_instruction)
            stream = await provider.stream_reply(handle, "Hello")
        # Automatically cleaned up
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Get the default model name."""

    @abstractmethod
    async def open_chat(self, system_instruction: str) -> ChatHandle:
        """Allocate a new conversation context.

        Args:
            system_instruction: Persona/policy text applied to every turn

        Returns:
            Handle to pass to stream_reply for each subsequent turn

        Raises:
            Exception: Provider-specific errors (e.g. missing credentials)
        """

    @abstractmethod
    async def stream_reply(self, handle: ChatHandle, text: str) -> StreamingResponse:
        """Send the next user turn and stream the reply.

        The returned stream is finite and cannot be restarted. Errors may be
        raised either here or while iterating.

        Args:
            handle: Chat returned by open_chat
            text: User message

        Returns:
            StreamingResponse yielding text fragments in arrival order
        """

    @abstractmethod
    def classify_error(self, error: BaseException) -> ErrorKind:
        """Decide whether an error means the chat itself is no longer usable."""

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ChatProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
