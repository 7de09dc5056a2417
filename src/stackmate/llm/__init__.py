from .base import ChatProvider
from .factory import create_chat_provider
from .models import ChatHandle, ChatMessage, ErrorKind, StreamingResponse
from .providers import DeepSeekChatProvider, GeminiChatProvider, OpenAIChatProvider

__all__ = [
    "ChatHandle",
    "ChatMessage",
    "ChatProvider",
    "ErrorKind",
    "StreamingResponse",
    "create_chat_provider",
    "DeepSeekChatProvider",
    "GeminiChatProvider",
    "OpenAIChatProvider",
]
