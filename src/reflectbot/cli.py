"""CLI entry point for reflectbot."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .commands import ReflectCommand
from .config import configure_logging, load_config, load_dotenv
from .errors import ConfigError, IndexBuildError
from .index import SymbolIndex, build_index
from .models import DEFAULT_CORPUS_DIR, IncomingMessage, ReactionAdded
from .transport import ConsoleTransport

app = typer.Typer(
    name="reflectbot",
    help="Answer 'what is this symbol?' questions from a reflected PHP source tree.",
    add_completion=False,
)

console = Console()


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _build_index(corpus: Path) -> SymbolIndex:
    """Build the index or exit with an error."""
    try:
        return build_index(corpus)
    except IndexBuildError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)


async def _reflect(command: ReflectCommand, origin: IncomingMessage, args: list[str]) -> None:
    await command.handle(origin, args)

    # Stand in for a reaction on each pending choice prompt.
    for session in command.sessions.active:
        if session.prompt is None:
            continue
        count = len(session.candidates)
        while True:
            choice = typer.prompt(f"Option (1-{count})", type=int)
            if 1 <= choice <= count:
                break
            console.print(f"[yellow]Pick a number between 1 and {count}.[/yellow]")
        await command.on_reaction(ReactionAdded(
            message_id=session.prompt.id,
            actor_id=origin.author_id,
            marker=session.markers[choice - 1],
        ))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def index(
    corpus: Optional[Path] = typer.Argument(None, help="Corpus root (default: the DiscordPHP vendor tree)."),
) -> None:
    """Build the symbol index and print what it contains."""
    root = corpus or DEFAULT_CORPUS_DIR
    idx = _build_index(root)

    table = Table(title=f"Symbol index: {root}")
    table.add_column("Kind")
    table.add_column("Count", justify="right")
    table.add_row("Classes", str(len(idx)))
    table.add_row("Methods", str(idx.method_count))
    table.add_row("Properties", str(idx.property_count))
    console.print(table)


@app.command()
def reflect(
    args: Optional[list[str]] = typer.Argument(None, help="[methods|properties] <query>"),
    corpus: Optional[Path] = typer.Option(None, "--corpus", "-c", help="Corpus root."),
) -> None:
    """Look up a class or method, exactly as the chat command would."""
    words = list(args or [])
    idx = _build_index(corpus or DEFAULT_CORPUS_DIR)

    transport = ConsoleTransport(console)
    command = ReflectCommand(idx, transport, bot_name="reflectbot")
    origin = IncomingMessage(
        id="0", channel_id="console", author_id="console", content=" ".join(words),
    )
    asyncio.run(_reflect(command, origin, words))


@app.command()
def run(
    env_dir: Optional[Path] = typer.Option(None, "--env-dir", help="Directory to search for .env (default: cwd)."),
) -> None:
    """Connect to Discord and serve the reflect command."""
    from .discord_transport import run_bot

    try:
        load_dotenv(env_dir or Path.cwd())
        config = load_config()
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1)

    configure_logging(config)
    run_bot(config)
