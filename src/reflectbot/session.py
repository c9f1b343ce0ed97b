"""Disambiguation sessions -- numbered choice prompts answered by reaction.

A session is created for a query with 2-9 matches.  ``open()`` replies with
a numbered list and attaches one number marker per candidate; only then may
it be registered with a :class:`SessionRegistry`.  The first reaction on the
prompt that carries one of the session's markers, from anyone but the bot,
resolves the session.  A resolved session ignores every later event, and
the registry drops it in the same synchronous step, so each prompt yields
at most one answer.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from .models import MatchResult, MessageHandle, ReactionAdded, ViewKind

if TYPE_CHECKING:
    from .transport import Transport

logger = logging.getLogger(__name__)

NUMBER_MARKERS: tuple[str, ...] = (
    "1\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "2\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "3\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "4\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "5\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "6\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "7\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "8\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
    "9\N{VARIATION SELECTOR-16}\N{COMBINING ENCLOSING KEYCAP}",
)

PROMPT_HEADER = "Please choose an option with reactions:"


class SessionState(Enum):
    created = "created"
    awaiting_selection = "awaiting_selection"
    resolved = "resolved"
    abandoned = "abandoned"


class DisambiguationSession:
    """One numbered choice prompt and the candidates it offers."""

    def __init__(
        self,
        candidates: list[MatchResult],
        view: ViewKind,
        bot_id: str,
    ) -> None:
        if not 2 <= len(candidates) <= len(NUMBER_MARKERS):
            raise ValueError(
                f"a session needs 2-{len(NUMBER_MARKERS)} candidates, got {len(candidates)}"
            )
        self.candidates = list(candidates)
        self.view = view
        self.bot_id = bot_id
        self.markers = NUMBER_MARKERS[: len(self.candidates)]
        self.state = SessionState.created
        self.prompt: MessageHandle | None = None
        self.selection: MatchResult | None = None

    def prompt_text(self) -> str:
        lines = [PROMPT_HEADER]
        lines += [f"{i}. {match.fqn}" for i, match in enumerate(self.candidates, start=1)]
        return "".join(f"{line}\r\n" for line in lines)

    async def open(self, transport: Transport, origin: MessageHandle) -> MessageHandle:
        """Reply to *origin* with the choice list and attach the markers.

        A ``SendFailure`` from the transport propagates and leaves the
        session in the ``created`` state.
        """
        if self.state is not SessionState.created:
            raise RuntimeError(f"session already {self.state.value}")

        prompt = await transport.reply(origin, self.prompt_text())
        for marker in self.markers:
            await transport.attach_marker(prompt, marker)

        self.prompt = prompt
        self.state = SessionState.awaiting_selection
        logger.debug("Opened choice prompt %s with %d candidates", prompt.id, len(self.candidates))
        return prompt

    def on_reaction(self, event: ReactionAdded) -> MatchResult | None:
        """Return the chosen candidate, or ``None`` if *event* is ignored."""
        if self.state is not SessionState.awaiting_selection or self.prompt is None:
            return None
        if event.message_id != self.prompt.id:
            return None
        if event.actor_id == self.bot_id:
            return None

        for marker, candidate in zip(self.markers, self.candidates):
            if marker == event.marker:
                self.state = SessionState.resolved
                self.selection = candidate
                return candidate
        return None

    def abandon(self) -> None:
        if self.state in (SessionState.created, SessionState.awaiting_selection):
            self.state = SessionState.abandoned


class SessionRegistry:
    """The set of sessions currently waiting for a reaction."""

    def __init__(self) -> None:
        self._sessions: dict[DisambiguationSession, asyncio.TimerHandle | None] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session: object) -> bool:
        return session in self._sessions

    @property
    def active(self) -> list[DisambiguationSession]:
        return list(self._sessions)

    def register(self, session: DisambiguationSession, timeout: float | None = None) -> None:
        """Start routing reactions to an opened *session*.

        With a *timeout* (seconds) the session is abandoned if nobody picks
        an option in time; without one it waits for as long as the process
        runs.  Must be called from a running event loop when *timeout* is set.
        """
        if session.state is not SessionState.awaiting_selection or session.prompt is None:
            raise ValueError("only opened sessions can be registered")
        for other in self._sessions:
            if other.prompt is not None and other.prompt.id == session.prompt.id:
                raise ValueError(f"prompt {session.prompt.id} already has a session")

        handle = None
        if timeout is not None:
            handle = asyncio.get_running_loop().call_later(timeout, self._expire, session)
        self._sessions[session] = handle

    def discard(self, session: DisambiguationSession) -> None:
        handle = self._sessions.pop(session, None)
        if handle is not None:
            handle.cancel()

    def route(self, event: ReactionAdded) -> list[tuple[DisambiguationSession, MatchResult]]:
        """Offer *event* to every session; resolved sessions are removed."""
        resolved: list[tuple[DisambiguationSession, MatchResult]] = []
        for session in list(self._sessions):
            match = session.on_reaction(event)
            if match is None:
                continue
            self.discard(session)
            resolved.append((session, match))
            logger.info("Choice prompt %s resolved to %s", event.message_id, match.fqn)
        return resolved

    def _expire(self, session: DisambiguationSession) -> None:
        if session not in self._sessions:
            return
        self._sessions.pop(session)
        session.abandon()
        prompt_id = session.prompt.id if session.prompt else "?"
        logger.info("Choice prompt %s expired without a selection", prompt_id)
