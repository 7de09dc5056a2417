"""Google Gemini chat provider implementation.

Uses the official Google GenAI SDK's async chat sessions, so the conversation
context lives on the Gemini side of the connection.
Reference: https://github.com/googleapis/python-genai
"""

from collections.abc import AsyncIterator
from typing import Any

from google import genai
from google.genai import errors, types

from ..base import ChatProvider
from ..models import ChatHandle, ErrorKind, StreamingResponse

# Default safety settings - relaxed to avoid blocking code-related content
DEFAULT_SAFETY_SETTINGS = [
    types.SafetySetting(category="HARM_CATEGORY_HARASSMENT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_HATE_SPEECH", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_SEXUALLY_EXPLICIT", threshold="BLOCK_ONLY_HIGH"),
    types.SafetySetting(category="HARM_CATEGORY_DANGEROUS_CONTENT", threshold="BLOCK_ONLY_HIGH"),
]

# Returned when the key belongs to a project without access to the model
ENTITY_NOT_FOUND = "Requested entity was not found"

# HTTP codes that reject the key/project behind a chat rather than the request
SESSION_INVALID_CODES = frozenset({401, 403, 404})


class GeminiChatHandle(ChatHandle):
    """A remote Gemini chat plus the client that owns its connection."""

    def __init__(
        self,
        model: str,
        system_instruction: str,
        client: genai.Client,
        chat: Any,
    ) -> None:
        super().__init__(model, system_instruction)
        self.client = client
        self.chat = chat


class GeminiChatProvider(ChatProvider):
    """Google Gemini chat provider implementation.

    Hidden design decisions:
    - A fresh Client per chat, so a rotated key is picked up by the next chat;
      the previous chat's client is closed once its replacement exists
    - System instruction and safety settings bound at chat creation
    - Which API errors invalidate the chat
    """

    def __init__(
        self,
        api_key: str | None,
        model: str = "gemini-3-flash-preview",
        temperature: float | None = None,
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Default model (gemini-3-flash-preview, gemini-2.5-flash, ...)
            temperature: Optional sampling temperature for every turn
            **client_kwargs: Additional kwargs for Client
        """
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._client_kwargs = client_kwargs
        self._client: genai.Client | None = None  # Client of the most recent chat

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _build_config(self, system_instruction: str) -> types.GenerateContentConfig:
        # Plain chat: disable automatic function calling detection
        tool_config = types.ToolConfig(
            function_calling_config=types.FunctionCallingConfig(mode="NONE")
        )
        return types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self._temperature,
            safety_settings=DEFAULT_SAFETY_SETTINGS,
            tool_config=tool_config,
        )

    async def open_chat(self, system_instruction: str) -> GeminiChatHandle:
        """Create a Gemini chat bound to the system instruction.

        Raises:
            ValueError: If no API key is available to the client
        """
        if not self._api_key:
            raise ValueError("Gemini API key is not configured")

        client = genai.Client(api_key=self._api_key, **self._client_kwargs)
        chat = client.aio.chats.create(
            model=self._model,
            config=self._build_config(system_instruction),
        )

        previous, self._client = self._client, client
        if previous is not None:
            await previous.aio.aclose()
        return GeminiChatHandle(self._model, system_instruction, client, chat)

    async def stream_reply(self, handle: ChatHandle, text: str) -> StreamingResponse:
        if not isinstance(handle, GeminiChatHandle):
            raise TypeError(f"Expected GeminiChatHandle, got {type(handle).__name__}")

        response = StreamingResponse(self._stream_generator(handle, text))
        self._current_stream_response = response
        return response

    async def _stream_generator(
        self,
        handle: GeminiChatHandle,
        text: str,
    ) -> AsyncIterator[str]:
        """Internal generator that yields text and captures usage from chunks."""
        usage = None

        stream = await handle.chat.send_message_stream(message=text)
        async for chunk in stream:
            # usage_metadata arrives on the final chunk
            if chunk.usage_metadata:
                usage = {
                    "prompt_tokens": chunk.usage_metadata.prompt_token_count or 0,
                    "completion_tokens": chunk.usage_metadata.candidates_token_count or 0,
                    "total_tokens": chunk.usage_metadata.total_token_count or 0,
                }

            piece = self._extract_content(chunk)
            if piece:
                yield piece

        if usage:
            self._current_stream_response.set_usage(usage)

    def _extract_content(self, response: Any) -> str:
        """Extract text content from a Gemini response chunk.

        Args:
            response: Gemini GenerateContentResponse

        Returns:
            Text content or empty string
        """
        if response.candidates and len(response.candidates) > 0:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                texts = [part.text for part in candidate.content.parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)

        # Fallback to response.text (may raise or return None)
        try:
            return response.text or ""
        except (ValueError, AttributeError):
            return ""

    def classify_error(self, error: BaseException) -> ErrorKind:
        if isinstance(error, errors.APIError) and error.code in SESSION_INVALID_CODES:
            return ErrorKind.SESSION_INVALID
        if ENTITY_NOT_FOUND in str(error):
            return ErrorKind.SESSION_INVALID
        return ErrorKind.OTHER

    async def close(self) -> None:
        """Close the client of the current chat, if any."""
        client, self._client = self._client, None
        if client is not None:
            await client.aio.aclose()
