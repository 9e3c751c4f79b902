"""
Shared fixtures for the bot tests.

Async code runs under trio.run; tests that depend on time use a MockClock
that jumps ahead whenever every task is asleep.
"""

import os
import sys
from typing import Any, Dict, List, Tuple

# Add project root to path FIRST
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest

from core.models import InviteEvent, RoomMessageEvent


class RecordingSink:
    """Send sink that records (room_id, content) pairs."""

    def __init__(self) -> None:
        self.sent: List[Tuple[str, Dict[str, Any]]] = []

    async def __call__(self, room_id: str, content: Dict[str, Any]) -> str:
        self.sent.append((room_id, content))
        return f"$event{len(self.sent)}"

    @property
    def bodies(self) -> List[str]:
        return [content["body"] for _, content in self.sent]


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_message_event():
    def _make(body: str, sender: str = "@alice:example.org", room_id: str = "!room:example.org",
              msgtype: str = "m.text") -> RoomMessageEvent:
        return RoomMessageEvent(
            room_id=room_id,
            event_id="$abc",
            sender=sender,
            body=body,
            msgtype=msgtype,
            raw_event={},
        )
    return _make


@pytest.fixture
def make_invite_event():
    def _make(state_key: str = "@bot:example.org", room_id: str = "!room:example.org") -> InviteEvent:
        return InviteEvent(
            room_id=room_id,
            state_key=state_key,
            sender="@alice:example.org",
            raw_event={},
        )
    return _make
