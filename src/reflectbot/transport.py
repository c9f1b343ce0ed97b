"""Messaging transports the command layer talks to."""

from __future__ import annotations

import itertools
from typing import Protocol, runtime_checkable

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import DisplayDocument, MessageHandle


@runtime_checkable
class Transport(Protocol):
    """Outbound half of a chat connection.

    Every coroutine raises ``SendFailure`` when delivery fails.
    Implementations:
      - DiscordTransport (discord.py)
      - ConsoleTransport (rich terminal output)
    """

    @property
    def bot_id(self) -> str:
        """Identity the bot's own reactions and messages are authored by."""
        ...

    async def send_text(self, channel_id: str, text: str) -> MessageHandle:
        ...

    async def send_document(self, channel_id: str, document: DisplayDocument) -> MessageHandle:
        ...

    async def reply(self, message: MessageHandle, text: str) -> MessageHandle:
        ...

    async def attach_marker(self, message: MessageHandle, marker: str) -> None:
        ...


def document_renderable(document: DisplayDocument) -> Panel:
    """Build a rich panel showing *document* the way a chat embed would."""
    parts: list = [Text(document.description)]
    if document.fields:
        table = Table(show_header=False, box=None, padding=(0, 1))
        table.add_column(style="bold cyan", no_wrap=True)
        table.add_column()
        for field in document.fields:
            table.add_row(Text(field.label), Text(field.value))
        parts.append(table)
    return Panel(
        Group(*parts),
        title=Text(document.title),
        title_align="left",
        subtitle=Text(document.footer) if document.footer else None,
        subtitle_align="left",
    )


class ConsoleTransport:
    """Prints everything to a terminal; used by ``reflectbot reflect``."""

    def __init__(self, console: Console | None = None, bot_id: str = "reflectbot") -> None:
        self.console = console or Console()
        self._bot_id = bot_id
        self._ids = itertools.count(1)
        self.markers: dict[str, list[str]] = {}

    @property
    def bot_id(self) -> str:
        return self._bot_id

    def _next(self, channel_id: str) -> MessageHandle:
        return MessageHandle(id=str(next(self._ids)), channel_id=channel_id)

    async def send_text(self, channel_id: str, text: str) -> MessageHandle:
        self.console.print(Text(text.replace("\r\n", "\n").rstrip("\n")))
        return self._next(channel_id)

    async def send_document(self, channel_id: str, document: DisplayDocument) -> MessageHandle:
        self.console.print(document_renderable(document))
        return self._next(channel_id)

    async def reply(self, message: MessageHandle, text: str) -> MessageHandle:
        return await self.send_text(message.channel_id, text)

    async def attach_marker(self, message: MessageHandle, marker: str) -> None:
        self.markers.setdefault(message.id, []).append(marker)
