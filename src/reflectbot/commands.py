"""Chat commands and the mention-based dispatcher that routes to them."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .index import SymbolIndex
from .models import DisplayDocument, IncomingMessage, ReactionAdded, ViewKind
from .render import MAX_FIELDS, render
from .resolver import QueryOutcome, classify, resolve
from .session import DisambiguationSession, SessionRegistry
from .transport import Transport

logger = logging.getLogger(__name__)

NO_RESULTS = "No results found."
TOO_MANY_RESULTS = "Too many results, please narrow your search."


class Command(ABC):
    """A command invoked as ``@bot <name> args...``."""

    name: str = ""
    help: str = ""

    @abstractmethod
    async def handle(self, message: IncomingMessage, args: list[str]) -> None:
        """Handle the command being called with the words after its name."""


class ReflectCommand(Command):
    """Answer "what is this symbol?" from the symbol index.

    ``reflect <methods|properties> <query>`` or ``reflect <query>``; the view
    defaults to properties.  Ambiguous queries open a choice prompt that is
    answered through :meth:`on_reaction`.
    """

    name = "reflect"
    help = "Uses reflection to return the documentation of a given class, method or property."

    def __init__(
        self,
        index: SymbolIndex,
        transport: Transport,
        *,
        bot_name: str = "reflectbot",
        sessions: SessionRegistry | None = None,
        selection_timeout: float | None = None,
    ) -> None:
        self.index = index
        self.transport = transport
        self.bot_name = bot_name
        self.sessions = sessions if sessions is not None else SessionRegistry()
        self.selection_timeout = selection_timeout

    def usage(self) -> str:
        mention = f"@{self.bot_name} {self.name}"
        return (
            "Usage:\n"
            "```\n"
            f"{mention} <methods|properties> <class_name>\n"
            f"{mention} <method_name>\n"
            "```\n"
            "Examples:\n"
            "```\n"
            f"{mention} methods Discord\\Discord\n"
            f"{mention} properties Discord\\Discord\n"
            f"{mention} Channel::sendMessage\n"
            "```"
        )

    async def handle(self, message: IncomingMessage, args: list[str]) -> None:
        args = list(args)
        if not args:
            await self.transport.reply(message, self.usage())
            return

        first = args.pop(0)
        try:
            view = ViewKind(first)
        except ValueError:
            args.insert(0, first)
            view = ViewKind.properties

        query = args[0] if args else None
        matches = resolve(self.index, query, view)
        outcome = classify(matches)
        logger.debug("Query %r (%s) -> %d match(es), %s", query, view.value, len(matches), outcome.value)

        if outcome is QueryOutcome.no_results:
            await self.transport.reply(message, NO_RESULTS)
        elif outcome is QueryOutcome.single:
            await self.transport.send_document(message.channel_id, render(matches[0]))
        elif outcome is QueryOutcome.too_many:
            await self.transport.reply(message, TOO_MANY_RESULTS)
        else:
            session = DisambiguationSession(matches, view, self.transport.bot_id)
            await session.open(self.transport, message)
            self.sessions.register(session, timeout=self.selection_timeout)

    async def on_reaction(self, event: ReactionAdded) -> None:
        """Answer any choice prompt *event* selects an option on."""
        for session, match in self.sessions.route(event):
            if session.prompt is None:
                continue
            await self.transport.send_document(session.prompt.channel_id, render(match))


class CommandDispatcher:
    """Routes messages that start with the bot's mention to a command."""

    def __init__(
        self,
        transport: Transport,
        commands: list[Command] | None = None,
        *,
        bot_name: str = "reflectbot",
        help_title: str = "DiscordPHP",
    ) -> None:
        self.transport = transport
        self.bot_name = bot_name
        self.help_title = help_title
        self.commands: dict[str, Command] = {}
        for command in commands or []:
            self.add(command)

    def add(self, command: Command) -> None:
        self.commands[command.name] = command

    def is_addressed(self, content: str) -> bool:
        bot_id = self.transport.bot_id
        return content.startswith(f"<@{bot_id}>") or content.startswith(f"<@!{bot_id}>")

    def help_document(self) -> DisplayDocument:
        doc = DisplayDocument(title=self.help_title)
        for name, command in list(self.commands.items())[:MAX_FIELDS]:
            doc.add_field(f"@{self.bot_name} {name}", command.help)
        return doc

    async def handle_message(self, message: IncomingMessage) -> None:
        if message.author_id == self.transport.bot_id:
            return
        if not self.is_addressed(message.content):
            return

        args = message.content.split()[1:]
        if args and args[0] in self.commands:
            name = args.pop(0)
            await self.commands[name].handle(message, args)
            return

        await self.transport.send_document(message.channel_id, self.help_document())
