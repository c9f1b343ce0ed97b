"""Shared fixtures: an in-memory chat transport."""

from __future__ import annotations

import itertools

import pytest

from reflectbot.errors import SendFailure
from reflectbot.models import DisplayDocument, MessageHandle


class FakeTransport:
    """Records everything sent; fails on the operations named in ``fail_on``."""

    def __init__(self, bot_id: str = "bot") -> None:
        self._bot_id = bot_id
        self._ids = itertools.count(100)
        self.fail_on: set[str] = set()
        self.texts: list[tuple[str, str]] = []
        self.documents: list[tuple[str, DisplayDocument]] = []
        self.replies: list[tuple[str, str]] = []
        self.markers: dict[str, list[str]] = {}

    @property
    def bot_id(self) -> str:
        return self._bot_id

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise SendFailure(f"{operation} failed")

    def _next(self, channel_id: str) -> MessageHandle:
        return MessageHandle(id=str(next(self._ids)), channel_id=channel_id)

    async def send_text(self, channel_id: str, text: str) -> MessageHandle:
        self._check("send_text")
        self.texts.append((channel_id, text))
        return self._next(channel_id)

    async def send_document(self, channel_id: str, document: DisplayDocument) -> MessageHandle:
        self._check("send_document")
        self.documents.append((channel_id, document))
        return self._next(channel_id)

    async def reply(self, message: MessageHandle, text: str) -> MessageHandle:
        self._check("reply")
        self.replies.append((message.id, text))
        return self._next(message.channel_id)

    async def attach_marker(self, message: MessageHandle, marker: str) -> None:
        self._check("attach_marker")
        self.markers.setdefault(message.id, []).append(marker)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
