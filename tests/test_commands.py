"""Tests for the reflect command and the mention dispatcher."""

from __future__ import annotations

import asyncio

import pytest

from reflectbot.commands import NO_RESULTS, TOO_MANY_RESULTS, CommandDispatcher, ReflectCommand
from reflectbot.errors import SendFailure
from reflectbot.index import SymbolIndex
from reflectbot.models import (
    ClassDescriptor,
    DocBlock,
    IncomingMessage,
    MethodDescriptor,
    PropertyDescriptor,
    ReactionAdded,
)
from reflectbot.session import NUMBER_MARKERS, SessionState


def _cls(fqn: str, *methods: str) -> ClassDescriptor:
    return ClassDescriptor(
        fqn=fqn,
        doc=DocBlock(summary=f"{fqn} docs."),
        methods=[MethodDescriptor(name=m, class_fqn=fqn) for m in methods],
        properties=[PropertyDescriptor(type="string", name="$id", description="The id.")],
    )


@pytest.fixture
def index() -> SymbolIndex:
    return SymbolIndex([
        _cls("\\Discord\\Discord", "run", "close"),
        _cls("\\Discord\\Parts\\Channel\\Channel", "sendMessage"),
        _cls("\\Discord\\Parts\\Channel\\Message", "reply"),
        _cls("\\Discord\\Parts\\Guild\\Guild"),
    ])


@pytest.fixture
def command(index, transport) -> ReflectCommand:
    return ReflectCommand(index, transport, bot_name="DPHP")


def _message(content: str, author: str = "user") -> IncomingMessage:
    return IncomingMessage(id="42", channel_id="chan", author_id=author, content=content)


def _run(command: ReflectCommand, *args: str) -> None:
    asyncio.run(command.handle(_message("<@bot> reflect " + " ".join(args)), list(args)))


class TestReflectCommand:
    def test_usage_without_args(self, command, transport):
        _run(command)
        ((replied_to, text),) = transport.replies
        assert replied_to == "42"
        assert "Usage:" in text
        assert "@DPHP reflect <methods|properties> <class_name>" in text
        assert "@DPHP reflect Channel::sendMessage" in text

    def test_single_match_renders_directly(self, command, transport):
        _run(command, "methods", "Discord\\Discord")
        ((channel, document),) = transport.documents
        assert channel == "chan"
        assert document.title == "`\\Discord\\Discord`"
        assert [f.label for f in document.fields] == ["`run(): mixed`", "`close(): mixed`"]
        assert transport.markers == {}
        assert len(command.sessions) == 0

    def test_view_defaults_to_properties(self, command, transport):
        _run(command, "Guild")
        ((_, document),) = transport.documents
        assert [f.label for f in document.fields] == ["`string $id`"]

    def test_method_query(self, command, transport):
        _run(command, "Channel::sendMessage")
        ((_, document),) = transport.documents
        assert document.title == "\\Discord\\Parts\\Channel\\Channel::sendMessage"

    def test_no_results(self, command, transport):
        _run(command, "Nope")
        assert transport.replies == [("42", NO_RESULTS)]
        assert transport.documents == []

    def test_view_without_query_finds_nothing(self, command, transport):
        _run(command, "methods")
        assert transport.replies == [("42", NO_RESULTS)]

    def test_too_many_results(self, transport):
        index = SymbolIndex([_cls(f"\\X{i}") for i in range(10)])
        command = ReflectCommand(index, transport)
        _run(command, "X")
        assert transport.replies == [("42", TOO_MANY_RESULTS)]
        assert transport.markers == {}
        assert len(command.sessions) == 0

    def test_ambiguous_query_opens_session(self, command, transport):
        _run(command, "methods", "Channel\\")
        ((_, prompt_text),) = transport.replies
        assert prompt_text.startswith("Please choose an option with reactions:\r\n")
        assert "1. \\Discord\\Parts\\Channel\\Channel\r\n" in prompt_text
        assert "2. \\Discord\\Parts\\Channel\\Message\r\n" in prompt_text
        (session,) = command.sessions.active
        assert transport.markers[session.prompt.id] == list(NUMBER_MARKERS[:2])
        assert transport.documents == []

    def test_reaction_renders_choice_once(self, command, transport):
        _run(command, "methods", "Channel\\")
        (session,) = command.sessions.active
        pick = ReactionAdded(message_id=session.prompt.id, actor_id="user", marker=NUMBER_MARKERS[1])

        asyncio.run(command.on_reaction(pick))
        asyncio.run(command.on_reaction(pick))

        ((channel, document),) = transport.documents
        assert channel == session.prompt.channel_id
        assert document.title == "`\\Discord\\Parts\\Channel\\Message`"
        assert [f.label for f in document.fields] == ["`reply(): mixed`"]
        assert session.state is SessionState.resolved
        assert len(command.sessions) == 0

    def test_bot_reactions_do_not_resolve(self, command, transport):
        _run(command, "Channel\\")
        (session,) = command.sessions.active
        own = ReactionAdded(message_id=session.prompt.id, actor_id=transport.bot_id, marker=NUMBER_MARKERS[0])
        asyncio.run(command.on_reaction(own))
        assert transport.documents == []
        assert len(command.sessions) == 1

    def test_failed_prompt_registers_nothing(self, command, transport):
        transport.fail_on.add("attach_marker")
        with pytest.raises(SendFailure):
            _run(command, "Channel\\")
        assert len(command.sessions) == 0


class TestDispatcher:
    @pytest.fixture
    def dispatcher(self, command, transport) -> CommandDispatcher:
        return CommandDispatcher(transport, [command], bot_name="DPHP", help_title="DiscordPHP")

    def test_ignores_unaddressed_messages(self, dispatcher, transport):
        asyncio.run(dispatcher.handle_message(_message("reflect Guild")))
        assert transport.replies == [] and transport.documents == []

    def test_ignores_own_messages(self, dispatcher, transport):
        asyncio.run(dispatcher.handle_message(_message("<@bot> reflect Guild", author="bot")))
        assert transport.documents == []

    @pytest.mark.parametrize("mention", ["<@bot>", "<@!bot>"])
    def test_routes_to_command(self, dispatcher, transport, mention: str):
        asyncio.run(dispatcher.handle_message(_message(f"{mention} reflect Guild")))
        ((_, document),) = transport.documents
        assert document.title == "`\\Discord\\Parts\\Guild\\Guild`"

    def test_bare_mention_sends_help(self, dispatcher, transport):
        asyncio.run(dispatcher.handle_message(_message("<@bot>")))
        ((_, document),) = transport.documents
        assert document.title == "DiscordPHP"
        assert [(f.label, f.value) for f in document.fields] == [
            ("@DPHP reflect", ReflectCommand.help),
        ]

    def test_unknown_command_sends_help(self, dispatcher, transport):
        asyncio.run(dispatcher.handle_message(_message("<@bot> stats")))
        ((_, document),) = transport.documents
        assert document.title == "DiscordPHP"
