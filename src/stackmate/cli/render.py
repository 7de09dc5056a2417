"""Console rendering of transcript snapshots and debug messages.

Hides how the terminal shows a reply that is still streaming: only the text
added since the last snapshot is printed.
"""

from collections.abc import Callable
from datetime import datetime

from rich.console import Console

from ..config import LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, LogLevel
from ..conversation import Role, Transcript

_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "cyan",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "bold red",
}


class TranscriptPrinter:
    """Update callback that prints assistant messages as they grow.

    User messages are not echoed; the user just typed them.
    """

    def __init__(self, console: Console, start_index: int = 0) -> None:
        self._console = console
        self._index = start_index  # First message not yet fully printed
        self._chars = 0  # Characters of that message already printed
        self._started = False

    def __call__(self, transcript: Transcript) -> None:
        if len(transcript) < self._index:
            # Transcript was cleared
            self._index = 0
            self._chars = 0
            self._started = False

        while self._index < len(transcript):
            message = transcript[self._index]
            if message.role == Role.ASSISTANT:
                if not self._started:
                    self._console.print("[bold green]Assistant:[/bold green] ", end="", soft_wrap=True)
                    self._started = True
                new_text = message.content[self._chars:]
                if new_text:
                    self._console.print(new_text, end="", markup=False, highlight=False, soft_wrap=True)
                    self._chars = len(message.content)
                if message.pending:
                    return
                self._console.print()
            self._index += 1
            self._chars = 0
            self._started = False


def make_debug_printer(
    console: Console,
    level: str,
) -> Callable[[str, str, str], None]:
    """Build a debug callback that prints messages at or above ``level``.

    Args:
        console: Rich console to print to
        level: Minimum level name (debug, info, warning, error)

    Returns:
        Callable(level, component, message) suitable for set_debug_callback
    """
    threshold = LogLevel.from_string(level)

    def _print(msg_level: str, component: str, message: str) -> None:
        numeric = LogLevel.from_string(msg_level)
        if numeric < threshold:
            return
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        style = _LEVEL_STYLES.get(numeric, "dim")
        console.print(
            f"[dim]{timestamp}[/dim] [{style}]{LogLevel.name(numeric):<7}[/{style}] "
            f"[bold]{component}[/bold]: ",
            end="",
            soft_wrap=True,
        )
        console.print(message, markup=False, highlight=False, soft_wrap=True)

    return _print
