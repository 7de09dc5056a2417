"""Provider factory functions for CLI.

Centralizes creation of the chat provider from environment variables.
Hides configuration details from command implementations.
"""

import os

from rich.console import Console

from ..config import (
    DEFAULT_DEEPSEEK_MODEL,
    DEFAULT_GEMINI_MODEL,
    DEFAULT_OPENAI_MODEL,
    DEFAULT_PROVIDER,
)
from ..llm import ChatProvider, create_chat_provider

# Default console for output
_console = Console()


def get_chat_provider(console: Console | None = None) -> ChatProvider | None:
    """Create chat provider from environment variables.

    A missing Gemini key does not disable the provider: the conversation
    starts anyway and reports the configuration problem in the transcript.

    Args:
        console: Optional Rich console for output

    Returns:
        Chat provider instance, or None if not configured

    Environment variables:
        STACKMATE_PROVIDER: Provider type (gemini, openai, deepseek; default: gemini)
        GEMINI_API_KEY: Gemini API key (falls back to API_KEY)
        GEMINI_MODEL: Gemini model (default: gemini-3-flash-preview)
        OPENAI_API_KEY: OpenAI API key (for openai provider)
        OPENAI_CHAT_MODEL: OpenAI model (default: gpt-4o-mini)
        DEEPSEEK_API_KEY: DeepSeek API key (for deepseek provider)
        DEEPSEEK_MODEL: DeepSeek model (default: deepseek-chat)
    """
    con = console or _console
    provider = os.getenv("STACKMATE_PROVIDER", DEFAULT_PROVIDER).lower()

    if provider == "gemini":
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        if not api_key:
            con.print("[yellow]Warning: GEMINI_API_KEY not set[/yellow]")
        model = os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        return create_chat_provider("gemini", api_key=api_key, model=model)

    elif provider == "openai":
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            con.print("[red]Error: OPENAI_API_KEY not set in environment[/red]")
            return None
        model = os.getenv("OPENAI_CHAT_MODEL", DEFAULT_OPENAI_MODEL)
        return create_chat_provider("openai", api_key=api_key, model=model)

    elif provider == "deepseek":
        api_key = os.getenv("DEEPSEEK_API_KEY")
        if not api_key:
            con.print("[red]Error: DEEPSEEK_API_KEY not set in environment[/red]")
            return None
        model = os.getenv("DEEPSEEK_MODEL", DEFAULT_DEEPSEEK_MODEL)
        return create_chat_provider("deepseek", api_key=api_key, model=model)

    else:
        con.print(f"[red]Error: Unknown chat provider: {provider}[/red]")
        return None


def require_chat_provider(console: Console | None = None) -> ChatProvider:
    """Get chat provider, raising error if not configured.

    Args:
        console: Optional Rich console for output

    Returns:
        Chat provider instance

    Raises:
        SystemExit: If the provider is not configured
    """
    import typer

    con = console or _console
    provider = get_chat_provider(con)
    if not provider:
        con.print("[red]Error: Chat provider not configured[/red]")
        raise typer.Exit(code=1)
    return provider
