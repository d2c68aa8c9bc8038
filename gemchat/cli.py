"""
GemChat CLI

Terminal client for chatting with Gemini across saved conversations.

Usage:
    gemchat chat                      # Interactive REPL mode
    gemchat ask "Explain asyncio"     # Single message mode
    gemchat conversations             # List saved conversations
    gemchat config show               # Show session configuration
    gemchat config set-key KEY        # Store the Gemini API key
    gemchat config set-system TEXT    # Store the system instruction
"""

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from gemchat import __version__
from gemchat.chat import ChatController, Notice
from gemchat.chat.controller import ERROR_PREFIX
from gemchat.config import Settings, get_settings
from gemchat.conversations import Conversation, ConversationStore, Message, OutOfRange
from gemchat.llm import create_completion_client
from gemchat.session import SessionConfig, apply_session_defaults
from gemchat.storage import JsonFileStore, create_store

console = Console()

REPL_HELP = """\
[bold]/new[/bold]            start a new conversation
[bold]/list[/bold]           list conversations
[bold]/switch N[/bold]       switch to conversation N
[bold]/search TEXT[/bold]    filter conversations by title
[bold]/history[/bold]        show the current conversation
[bold]/help[/bold]           show this help
[bold]/exit[/bold]           leave the chat"""


def configure_cli_logging(verbose: bool = False) -> None:
    if verbose:
        get_settings().logging.configure()
        logging.getLogger("gemchat").setLevel(logging.DEBUG)
        # httpx logs request URLs, which carry the API key.
        logging.getLogger("httpx").setLevel(logging.WARNING)
        return
    logging.basicConfig(level=logging.CRITICAL)
    for logger_name in ("gemchat", "httpx", "httpcore", "asyncio"):
        logging.getLogger(logger_name).setLevel(logging.CRITICAL)


# ============================================================================
# Wiring
# ============================================================================


def _print_notice(notice: Notice) -> None:
    color = {"info": "cyan", "warning": "yellow", "error": "red"}[notice.level]
    console.print(f"[{color}]{notice.title}:[/{color}] {notice.description}")


def build_controller(settings: Settings | None = None) -> ChatController:
    """Create a controller wired to the configured store and Gemini client."""
    settings = settings or get_settings()
    store = create_store(settings.storage)
    apply_session_defaults(store, settings)
    return ChatController(
        conversations=ConversationStore.load(store),
        session=SessionConfig(store),
        client=create_completion_client(settings.llm),
        notifier=_print_notice,
    )


def _load_session(settings: Settings | None = None) -> tuple[SessionConfig, Settings]:
    settings = settings or get_settings()
    store = create_store(settings.storage)
    apply_session_defaults(store, settings)
    return SessionConfig(store), settings


# ============================================================================
# Rendering
# ============================================================================


def _print_message(message: Message) -> None:
    if message.role == "user":
        console.print(f"[bold cyan]You:[/bold cyan] {message.content}")
        return
    is_error = message.content.startswith(ERROR_PREFIX)
    console.print(
        Panel(
            Markdown(message.content),
            title="Gemini",
            title_align="left",
            border_style="red" if is_error else "green",
        )
    )


def _print_history(conversation: Conversation) -> None:
    console.print(f"\n[bold]{conversation.title}[/bold]")
    if not conversation.messages:
        console.print("[dim]No messages yet.[/dim]\n")
        return
    for message in conversation.messages:
        _print_message(message)


def _conversation_table(
    rows: list[tuple[int, Conversation]],
    current_index: int,
    sending_ids: frozenset[int] = frozenset(),
) -> Table:
    table = Table(title="Conversations")
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Title")
    table.add_column("Messages", justify="right")
    table.add_column("Status", style="dim")

    for index, conversation in rows:
        marker = "current" if index == current_index else ""
        if conversation.id in sending_ids:
            marker = f"{marker} sending".strip()
        title = f"[bold]{conversation.title}[/bold]" if index == current_index else conversation.title
        table.add_row(str(index), title, str(len(conversation.messages)), marker)
    return table


def _should_exit_chat(text: str) -> bool:
    return text.strip().lower() in {"exit", "quit", "/exit", "/quit", "/q"}


def _handle_command(controller: ChatController, text: str) -> None:
    command, _, argument = text.strip().partition(" ")
    command = command.lower()
    argument = argument.strip()

    if command == "/new":
        index = controller.new_conversation()
        console.print(f"[green]Started conversation #{index}[/green]")
    elif command == "/list":
        rows = list(enumerate(controller.conversations))
        console.print(_conversation_table(rows, controller.current_index, controller.sending_ids))
    elif command == "/switch":
        try:
            controller.switch_conversation(int(argument))
        except ValueError:
            console.print("[red]Usage: /switch N[/red]")
            return
        except OutOfRange as e:
            console.print(f"[red]{e}[/red]")
            return
        _print_history(controller.current)
    elif command == "/search":
        rows = controller.search(argument)
        if not rows:
            console.print(f"[yellow]No conversation titles match '{argument}'.[/yellow]")
            return
        console.print(_conversation_table(rows, controller.current_index, controller.sending_ids))
    elif command == "/history":
        _print_history(controller.current)
    elif command == "/help":
        console.print(REPL_HELP)
    else:
        console.print(f"[red]Unknown command: {command}[/red] (type /help)")


# ============================================================================
# CLI Commands
# ============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="GemChat")
@click.option("--verbose", is_flag=True, help="Log application activity to stderr.")
def cli(verbose: bool):
    """GemChat - Chat with Gemini from the terminal."""
    configure_cli_logging(verbose)


@cli.command()
def chat():
    """Interactive REPL mode for conversations."""
    console.print(
        Panel.fit(
            "[bold green]GemChat Interactive Mode[/bold green]\n"
            "Type a message to chat, /help for commands, or 'exit' to leave.",
            border_style="green",
        )
    )

    async def run_chat():
        controller = build_controller()
        try:
            _print_history(controller.current)
            while True:
                # Read off the event loop so title updates land while idle.
                try:
                    text = await asyncio.to_thread(
                        console.input, "[bold cyan]You:[/bold cyan] "
                    )
                except EOFError:
                    break

                if _should_exit_chat(text):
                    break
                if text.strip().startswith("/"):
                    _handle_command(controller, text)
                    continue
                if not text.strip():
                    continue

                with console.status("[cyan]Waiting for Gemini...[/cyan]", spinner="dots"):
                    reply = await controller.submit(text)
                if reply is not None:
                    _print_message(reply)
        finally:
            await controller.close()

    try:
        asyncio.run(run_chat())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
    console.print("\n[yellow]Goodbye![/yellow]")


@cli.command()
@click.argument("message")
@click.option("--new", "new_conversation", is_flag=True, help="Send into a new conversation.")
@click.option(
    "--conversation",
    "-c",
    "conversation_index",
    type=int,
    default=None,
    help="Index of the conversation to send into.",
)
def ask(message: str, new_conversation: bool, conversation_index: int | None):
    """Send a single message and print the reply."""

    async def run_ask() -> int:
        controller = build_controller()
        try:
            if new_conversation:
                controller.new_conversation()
            elif conversation_index is not None:
                controller.switch_conversation(conversation_index)

            with console.status("[cyan]Waiting for Gemini...[/cyan]", spinner="dots"):
                reply = await controller.submit(message)
            if reply is None:
                return 1
            _print_message(reply)
            return 1 if reply.content.startswith(ERROR_PREFIX) else 0
        finally:
            await controller.close()

    try:
        exit_code = asyncio.run(run_ask())
    except OutOfRange as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)
    if exit_code:
        sys.exit(exit_code)


@cli.command()
@click.option("--search", "query", default=None, help="Only show titles containing TEXT.")
def conversations(query: str | None):
    """List saved conversations."""
    settings = get_settings()
    store = create_store(settings.storage)
    conversation_store = ConversationStore.load(store)
    if query:
        rows = conversation_store.search(query)
    else:
        rows = list(enumerate(conversation_store.list()))
    if not rows:
        console.print(f"[yellow]No conversation titles match '{query}'.[/yellow]")
        return
    console.print(_conversation_table(rows, conversation_store.current_index))


@cli.group(name="config")
def config_group():
    """Manage session configuration."""
    pass


@config_group.command(name="show")
def config_show():
    """Show the stored session configuration."""
    session, settings = _load_session()

    table = Table(title="GemChat Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("API key", session.masked_api_key() or "[red]not set[/red]")
    table.add_row("System instruction", session.system_instruction)
    table.add_row("Model", settings.llm.model)
    table.add_row("Title model", settings.llm.resolved_title_model)
    if settings.storage.backend == "file":
        table.add_row("Storage", str(settings.storage.path))
    else:
        table.add_row("Storage", settings.storage.backend)
    console.print(table)


@config_group.command(name="set-key")
@click.argument("api_key", required=False)
def config_set_key(api_key: str | None):
    """Store the Gemini API key."""
    if api_key is None:
        api_key = click.prompt("Gemini API key", hide_input=True)
    session, _ = _load_session()
    session.set_api_key(api_key)
    if session.has_api_key:
        console.print("[green]✓ API key saved[/green]")
    else:
        console.print("[yellow]API key cleared[/yellow]")


@config_group.command(name="set-system")
@click.argument("instruction")
def config_set_system(instruction: str):
    """Store the system instruction sent with every message."""
    session, _ = _load_session()
    session.set_system_instruction(instruction)
    console.print("[green]✓ System instruction saved[/green]")


@config_group.command(name="reset")
@click.option("--yes", is_flag=True, help="Skip confirmation prompt.")
def config_reset(yes: bool):
    """Delete all stored conversations and settings."""
    settings = get_settings()
    store = create_store(settings.storage)
    if not isinstance(store, JsonFileStore):
        console.print("[yellow]Nothing to reset for the in-memory store.[/yellow]")
        return
    if not yes and not click.confirm(f"Delete {store.path}?", default=False):
        console.print("[yellow]Aborted.[/yellow]")
        return
    store.clear()
    console.print("[green]✓ Stored data removed[/green]")


def main():
    cli()


if __name__ == "__main__":
    main()
