from typing import Any

from .openai import OpenAIChatProvider


class DeepSeekChatProvider(OpenAIChatProvider):
    """DeepSeek chat provider using the OpenAI-compatible API.

    Hidden design decisions:
    - DeepSeek API client initialization (via OpenAI SDK)
    - Default endpoint and model names
    """

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com",
        **kwargs: Any
    ):
        """Initialize DeepSeek provider.

        Args:
            api_key: DeepSeek API key
            model: Default model to use ('deepseek-chat' or 'deepseek-reasoner')
            base_url: DeepSeek API base URL (default: https://api.deepseek.com)
            **kwargs: Additional kwargs for OpenAIChatProvider
        """
        super().__init__(api_key=api_key, model=model, base_url=base_url, **kwargs)
