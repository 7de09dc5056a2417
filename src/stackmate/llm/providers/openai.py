from collections.abc import AsyncIterator
from typing import Any

from openai import (
    AsyncOpenAI,
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
)

from ..base import ChatProvider
from ..models import ChatHandle, ChatMessage, ErrorKind, StreamingResponse

# Errors that reject the key or model behind the chat, not a single request
SESSION_INVALID_ERRORS = (AuthenticationError, NotFoundError, PermissionDeniedError)


class HistoryChatHandle(ChatHandle):
    """Chat whose context is the message history kept on our side."""

    def __init__(self, model: str, system_instruction: str) -> None:
        super().__init__(model, system_instruction)
        self.history: list[ChatMessage] = [
            ChatMessage(role="system", content=system_instruction)
        ]

    def record_turn(self, user_text: str, reply: str) -> None:
        """Append a completed exchange to the history."""
        self.history.append(ChatMessage(role="user", content=user_text))
        self.history.append(ChatMessage(role="assistant", content=reply))


class OpenAIChatProvider(ChatProvider):
    """OpenAI chat provider implementation.

    Hidden design decisions:
    - AsyncOpenAI client initialization
    - Chat Completions has no server-side session, so the handle carries
      the history and is only extended once a reply streamed to the end
    - Message format conversion
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        base_url: str | None = None,
        organization: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL
            organization: Optional organization ID
            temperature: Sampling temperature for every turn
            max_tokens: Optional cap on reply length
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def open_chat(self, system_instruction: str) -> HistoryChatHandle:
        return HistoryChatHandle(self._model, system_instruction)

    async def stream_reply(self, handle: ChatHandle, text: str) -> StreamingResponse:
        if not isinstance(handle, HistoryChatHandle):
            raise TypeError(f"Expected HistoryChatHandle, got {type(handle).__name__}")

        response = StreamingResponse(self._chat_stream_generator(handle, text))
        self._current_stream_response = response
        return response

    async def _chat_stream_generator(
        self,
        handle: HistoryChatHandle,
        text: str,
    ) -> AsyncIterator[str]:
        """Internal generator for Chat Completions streaming with usage capture."""
        messages = [{"role": msg.role, "content": msg.content} for msg in handle.history]
        messages.append({"role": "user", "content": text})

        request_params: dict[str, Any] = {
            "model": handle.model,
            "messages": messages,
            "temperature": self._temperature,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if self._max_tokens is not None:
            request_params["max_tokens"] = self._max_tokens

        stream = await self._client.chat.completions.create(**request_params)

        pieces: list[str] = []
        async for chunk in stream:
            if chunk.usage is not None:
                self._current_stream_response.set_usage({
                    "prompt_tokens": chunk.usage.prompt_tokens,
                    "completion_tokens": chunk.usage.completion_tokens,
                    "total_tokens": chunk.usage.total_tokens,
                })
            if chunk.choices and chunk.choices[0].delta.content:
                pieces.append(chunk.choices[0].delta.content)
                yield chunk.choices[0].delta.content

        handle.record_turn(text, "".join(pieces))

    def classify_error(self, error: BaseException) -> ErrorKind:
        if isinstance(error, SESSION_INVALID_ERRORS):
            return ErrorKind.SESSION_INVALID
        return ErrorKind.OTHER

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
