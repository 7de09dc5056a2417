from .deepseek import DeepSeekChatProvider
from .gemini import GeminiChatProvider
from .openai import OpenAIChatProvider

__all__ = ["DeepSeekChatProvider", "GeminiChatProvider", "OpenAIChatProvider"]
