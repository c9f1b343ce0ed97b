"""Discord front-end: transport adapter and gateway client (discord.py)."""

from __future__ import annotations

import asyncio
import logging

import discord

from .commands import CommandDispatcher, ReflectCommand
from .errors import IndexBuildError, SendFailure
from .index import SymbolIndex, build_index
from .models import BotConfig, DisplayDocument, IncomingMessage, MessageHandle, ReactionAdded

logger = logging.getLogger(__name__)


def to_embed(document: DisplayDocument) -> discord.Embed:
    """Convert a display document into a Discord embed."""
    embed = discord.Embed(title=document.title, description=document.description)
    for field in document.fields:
        embed.add_field(name=field.label, value=field.value, inline=False)
    if document.footer:
        embed.set_footer(text=document.footer)
    return embed


def _handle(message: discord.Message) -> MessageHandle:
    return MessageHandle(id=str(message.id), channel_id=str(message.channel.id))


class DiscordTransport:
    """:class:`~reflectbot.transport.Transport` over a discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    @property
    def bot_id(self) -> str:
        user = self.client.user
        return str(user.id) if user is not None else ""

    async def _channel(self, channel_id: str):
        channel = self.client.get_channel(int(channel_id))
        if channel is None:
            channel = await self.client.fetch_channel(int(channel_id))
        return channel

    async def send_text(self, channel_id: str, text: str) -> MessageHandle:
        try:
            channel = await self._channel(channel_id)
            return _handle(await channel.send(text))
        except discord.DiscordException as exc:
            raise SendFailure(f"cannot send to channel {channel_id}: {exc}") from exc

    async def send_document(self, channel_id: str, document: DisplayDocument) -> MessageHandle:
        try:
            channel = await self._channel(channel_id)
            return _handle(await channel.send(embed=to_embed(document)))
        except discord.DiscordException as exc:
            raise SendFailure(f"cannot send embed to channel {channel_id}: {exc}") from exc

    async def reply(self, message: MessageHandle, text: str) -> MessageHandle:
        try:
            channel = await self._channel(message.channel_id)
            sent = await channel.get_partial_message(int(message.id)).reply(text)
            return _handle(sent)
        except discord.DiscordException as exc:
            raise SendFailure(f"cannot reply to message {message.id}: {exc}") from exc

    async def attach_marker(self, message: MessageHandle, marker: str) -> None:
        try:
            channel = await self._channel(message.channel_id)
            await channel.get_partial_message(int(message.id)).add_reaction(marker)
        except discord.DiscordException as exc:
            raise SendFailure(f"cannot react to message {message.id}: {exc}") from exc


class ReflectBotClient(discord.Client):
    """Gateway client wiring Discord events to the command dispatcher.

    The symbol index is built once in :meth:`setup_hook`.  If that fails the
    ``reflect`` command is left out and only the help document is served.
    """

    def __init__(self, config: BotConfig, *, intents: discord.Intents | None = None) -> None:
        if intents is None:
            intents = discord.Intents.default()
            intents.message_content = True
        super().__init__(intents=intents)
        self.config = config
        self.transport = DiscordTransport(self)
        self.index: SymbolIndex | None = None
        self.dispatcher: CommandDispatcher | None = None
        self.reflect: ReflectCommand | None = None

    async def setup_hook(self) -> None:
        try:
            self.index = await asyncio.to_thread(build_index, self.config.corpus_dir)
        except IndexBuildError as exc:
            logger.error("Symbol index unavailable, reflect command disabled: %s", exc)

    async def on_ready(self) -> None:
        # on_ready fires again after reconnects; keep pending sessions alive.
        if self.dispatcher is not None:
            return

        bot_name = self.user.name if self.user is not None else "reflectbot"
        dispatcher = CommandDispatcher(
            self.transport, bot_name=bot_name, help_title=self.config.help_title,
        )
        if self.index is not None:
            self.reflect = ReflectCommand(
                self.index,
                self.transport,
                bot_name=bot_name,
                selection_timeout=self.config.selection_timeout,
            )
            dispatcher.add(self.reflect)
        self.dispatcher = dispatcher
        logger.info("Logged in as %s (%s)", bot_name, self.transport.bot_id)

    async def on_message(self, message: discord.Message) -> None:
        if self.dispatcher is None:
            return
        incoming = IncomingMessage(
            id=str(message.id),
            channel_id=str(message.channel.id),
            author_id=str(message.author.id),
            content=message.content,
        )
        try:
            await self.dispatcher.handle_message(incoming)
        except SendFailure as exc:
            logger.error("Failed to answer message %s: %s", message.id, exc)

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        if self.reflect is None:
            return
        event = ReactionAdded(
            message_id=str(payload.message_id),
            actor_id=str(payload.user_id),
            marker=payload.emoji.name or "",
        )
        try:
            await self.reflect.on_reaction(event)
        except SendFailure as exc:
            logger.error("Failed to answer choice on message %s: %s", payload.message_id, exc)


def run_bot(config: BotConfig) -> None:
    """Connect to Discord and serve until interrupted."""
    client = ReflectBotClient(config)
    # configure_logging() has already routed the "discord" logger.
    client.run(config.token, log_handler=None)
