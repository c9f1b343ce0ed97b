"""Tests for disambiguation sessions and the session registry."""

from __future__ import annotations

import asyncio

import pytest

from reflectbot.errors import SendFailure
from reflectbot.models import ClassDescriptor, ClassMatch, IncomingMessage, ReactionAdded, ViewKind
from reflectbot.session import (
    NUMBER_MARKERS,
    DisambiguationSession,
    SessionRegistry,
    SessionState,
)

ORIGIN = IncomingMessage(id="1", channel_id="chan", author_id="user", content="@bot reflect X")


def _matches(count: int) -> list[ClassMatch]:
    return [ClassMatch(descriptor=ClassDescriptor(fqn=f"\\X{i}"), view=ViewKind.methods) for i in range(count)]


def _opened(transport, count: int = 3) -> DisambiguationSession:
    session = DisambiguationSession(_matches(count), ViewKind.methods, transport.bot_id)
    asyncio.run(session.open(transport, ORIGIN))
    return session


def _reaction(session: DisambiguationSession, index: int, actor: str = "user") -> ReactionAdded:
    return ReactionAdded(message_id=session.prompt.id, actor_id=actor, marker=NUMBER_MARKERS[index])


def test_nine_distinct_markers():
    assert len(NUMBER_MARKERS) == 9
    assert len(set(NUMBER_MARKERS)) == 9
    assert NUMBER_MARKERS[0] == "1\ufe0f\u20e3"


class TestConstruction:
    @pytest.mark.parametrize("count", [0, 1, 10])
    def test_rejects_out_of_range(self, count: int):
        with pytest.raises(ValueError):
            DisambiguationSession(_matches(count), ViewKind.methods, "bot")

    def test_starts_created(self):
        session = DisambiguationSession(_matches(2), ViewKind.methods, "bot")
        assert session.state is SessionState.created
        assert session.prompt is None

    def test_prompt_text(self):
        session = DisambiguationSession(_matches(2), ViewKind.methods, "bot")
        assert session.prompt_text() == (
            "Please choose an option with reactions:\r\n"
            "1. \\X0\r\n"
            "2. \\X1\r\n"
        )


class TestOpen:
    @pytest.mark.parametrize("count", [2, 5, 9])
    def test_attaches_one_marker_per_candidate(self, transport, count: int):
        session = _opened(transport, count)
        assert session.state is SessionState.awaiting_selection
        assert transport.replies == [("1", session.prompt_text())]
        assert transport.markers[session.prompt.id] == list(NUMBER_MARKERS[:count])

    def test_reply_failure_leaves_session_unopened(self, transport):
        transport.fail_on.add("reply")
        session = DisambiguationSession(_matches(3), ViewKind.methods, "bot")
        with pytest.raises(SendFailure):
            asyncio.run(session.open(transport, ORIGIN))
        assert session.state is SessionState.created
        assert transport.markers == {}
        with pytest.raises(ValueError):
            SessionRegistry().register(session)

    def test_marker_failure_leaves_session_unopened(self, transport):
        transport.fail_on.add("attach_marker")
        session = DisambiguationSession(_matches(3), ViewKind.methods, "bot")
        with pytest.raises(SendFailure):
            asyncio.run(session.open(transport, ORIGIN))
        assert session.state is SessionState.created

    def test_cannot_open_twice(self, transport):
        session = _opened(transport)
        with pytest.raises(RuntimeError):
            asyncio.run(session.open(transport, ORIGIN))


class TestSelection:
    @pytest.mark.parametrize("index", range(4))
    def test_marker_selects_matching_candidate(self, transport, index: int):
        session = _opened(transport, 4)
        assert session.on_reaction(_reaction(session, index)) == session.candidates[index]
        assert session.state is SessionState.resolved
        assert session.selection == session.candidates[index]

    def test_other_message_ignored(self, transport):
        session = _opened(transport)
        event = ReactionAdded(message_id="elsewhere", actor_id="user", marker=NUMBER_MARKERS[0])
        assert session.on_reaction(event) is None
        assert session.state is SessionState.awaiting_selection

    def test_bot_reaction_ignored(self, transport):
        session = _opened(transport)
        assert session.on_reaction(_reaction(session, 0, actor=transport.bot_id)) is None

    def test_unknown_marker_ignored(self, transport):
        session = _opened(transport)
        event = ReactionAdded(message_id=session.prompt.id, actor_id="user", marker="\N{THUMBS UP SIGN}")
        assert session.on_reaction(event) is None

    def test_marker_beyond_candidates_ignored(self, transport):
        session = _opened(transport, 3)
        assert session.on_reaction(_reaction(session, 3)) is None

    def test_resolves_once(self, transport):
        session = _opened(transport)
        assert session.on_reaction(_reaction(session, 0)) is not None
        assert session.on_reaction(_reaction(session, 1)) is None
        assert session.selection == session.candidates[0]

    def test_unopened_session_ignores_everything(self):
        session = DisambiguationSession(_matches(2), ViewKind.methods, "bot")
        event = ReactionAdded(message_id="1", actor_id="user", marker=NUMBER_MARKERS[0])
        assert session.on_reaction(event) is None


class TestRegistry:
    def test_route_resolves_and_removes(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)
        registry.register(session)

        resolved = registry.route(_reaction(session, 1))
        assert resolved == [(session, session.candidates[1])]
        assert session not in registry
        assert registry.route(_reaction(session, 2)) == []

    def test_sessions_are_independent(self, transport):
        registry = SessionRegistry()
        first = _opened(transport)
        second = _opened(transport)
        registry.register(first)
        registry.register(second)

        resolved = registry.route(_reaction(second, 0))
        assert [s for s, _ in resolved] == [second]
        assert registry.active == [first]
        assert first.state is SessionState.awaiting_selection

    def test_ignored_events_keep_session(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)
        registry.register(session)
        assert registry.route(_reaction(session, 0, actor=transport.bot_id)) == []
        assert len(registry) == 1

    def test_one_session_per_prompt(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)
        registry.register(session)
        clone = DisambiguationSession(_matches(2), ViewKind.methods, "bot")
        clone.prompt = session.prompt
        clone.state = SessionState.awaiting_selection
        with pytest.raises(ValueError):
            registry.register(clone)

    def test_without_timeout_waits_indefinitely(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)

        async def scenario():
            registry.register(session)
            await asyncio.sleep(0.05)

        asyncio.run(scenario())
        assert session in registry
        assert session.state is SessionState.awaiting_selection

    def test_timeout_abandons_session(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)

        async def scenario():
            registry.register(session, timeout=0.01)
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert session not in registry
        assert session.state is SessionState.abandoned
        assert registry.route(_reaction(session, 0)) == []

    def test_resolution_cancels_timeout(self, transport):
        registry = SessionRegistry()
        session = _opened(transport)

        async def scenario():
            registry.register(session, timeout=0.05)
            registry.route(_reaction(session, 0))
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert session.state is SessionState.resolved
