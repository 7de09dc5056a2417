"""Main CLI application using Typer."""
import asyncio

import typer
from dotenv import load_dotenv
from rich.console import Console

from ..config import EXIT_COMMANDS, RESET_COMMAND
from ..conversation import ConversationController, SessionManager
from .providers import require_chat_provider
from .render import TranscriptPrinter, make_debug_printer

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="stackmate",
    help="Freelance Full-Stack AI Assistant in your terminal",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

LOG_LEVEL_HELP = "Show log messages at this level or above: debug, info, warning, or error"


def _build_controller(log_level: str | None) -> ConversationController:
    provider = require_chat_provider(console)
    controller = ConversationController(SessionManager(provider))
    if log_level is not None:
        controller.set_debug_callback(make_debug_printer(console, log_level))
    return controller


@app.command()
def chat(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help=LOG_LEVEL_HELP
    ),
):
    """Interactive chat with the assistant."""
    async def _chat():
        controller = _build_controller(log_level)
        controller.set_update_callback(TranscriptPrinter(console))

        try:
            console.print("[bold cyan]Freelance Full-Stack AI Assistant[/bold cyan]")
            console.print(
                f"[dim]Type '{RESET_COMMAND}' for a new chat, "
                "'exit', 'quit', or 'q' to leave[/dim]\n"
            )
            await controller.start()

            while True:
                try:
                    user_input = console.input("\n[bold yellow]You:[/bold yellow] ")

                    if not user_input.strip():
                        continue

                    if user_input.strip().lower() in EXIT_COMMANDS:
                        console.print("[dim]Goodbye![/dim]")
                        break

                    if user_input.strip() == RESET_COMMAND:
                        controller.reset_conversation()
                    else:
                        controller.submit(user_input)
                    await controller.wait_idle()

                except KeyboardInterrupt:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
                except EOFError:
                    console.print("\n[dim]Goodbye![/dim]")
                    break
        finally:
            await controller.close()

    asyncio.run(_chat())


@app.command()
def ask(
    question: str = typer.Argument(
        ...,
        help="Question to ask the assistant"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help=LOG_LEVEL_HELP
    ),
):
    """Ask a single question and stream the answer."""
    async def _ask() -> bool:
        controller = _build_controller(log_level)
        try:
            await controller.start()
            if not controller.has_session:
                console.print(controller.transcript[-1].content, style="red", markup=False, soft_wrap=True)
                return False
            # Keep the greeting out of one-shot output
            controller.set_update_callback(
                TranscriptPrinter(console, start_index=len(controller.transcript))
            )
            task = controller.submit(question)
            if task is None:
                console.print("[red]Error: Question is empty[/red]")
                return False
            await task
            return controller.last_failure is None
        finally:
            await controller.close()

    if not asyncio.run(_ask()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
