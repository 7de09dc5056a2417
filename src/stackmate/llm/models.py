from collections.abc import AsyncIterator
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ErrorKind(str, Enum):
    """How a provider failure affects the chat session it happened on."""

    SESSION_INVALID = "session_invalid"
    OTHER = "other"


class StreamingResponse:
    """Wrapper for streaming LLM responses that captures usage info.

    Acts as an async iterator for text chunks while storing token usage
    that becomes available at the end of the stream.

    Usage:
        stream = await provider.stream_reply(handle, "Hi")
        async for chunk in stream:
            print(chunk, end="")
        # After iteration, usage is available
        print(stream.usage)  # {"prompt_tokens": 100, "completion_tokens": 50, ...}
    """

    def __init__(self, async_iter: AsyncIterator[str]):
        """Initialize with an async iterator of text chunks.

        Args:
            async_iter: Async iterator yielding text chunks
        """
        self._iter = async_iter
        self._usage: dict[str, Any] | None = None

    @property
    def usage(self) -> dict[str, Any] | None:
        """Get token usage info (available after iteration completes)."""
        return self._usage

    def set_usage(self, usage: dict[str, Any]) -> None:
        """Set token usage info (called by provider at end of stream)."""
        self._usage = usage

    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        return await self._iter.__anext__()


class ChatMessage(BaseModel):
    """A message as sent to a provider API."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', or 'system'")
    content: str = Field(description="Content of the message")


class ChatHandle:
    """Opaque reference to one provider-side conversation context.

    Providers subclass this to carry whatever they need to continue the
    conversation (a remote chat object, or the message history itself).
    """

    def __init__(self, model: str, system_instruction: str) -> None:
        self.model = model
        self.system_instruction = system_instruction

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r})"
