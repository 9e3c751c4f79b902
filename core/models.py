"""Data models for Matrix events and per-message values.

Defines the event dataclasses the sync loop produces, the small value types
stored in a message's Extensions, and helpers that build outgoing message
content.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union


class Body(str):
    """Raw text body of the incoming message."""


class SenderId(str):
    """Matrix user id of the message sender."""


class RoomId(str):
    """Room the message was sent in."""


class EventId(str):
    """Event id of the incoming message."""


class Args(list):
    """Whitespace-separated arguments that followed the command token."""


@dataclass
class RoomMessageEvent:  # pylint: disable=too-many-instance-attributes
    """Represents a parsed m.room.message event.

    Attributes:
        room_id: Room the event was sent in
        event_id: Event id
        sender: Matrix user id of the sender
        body: Plain text body
        msgtype: Message type such as "m.text" or "m.notice"
        raw_event: Original event dictionary from the sync response
    """
    room_id: str
    event_id: str
    sender: str
    body: str
    msgtype: str
    raw_event: Dict[str, Any]


@dataclass
class InviteEvent:
    """An invitation of ``state_key`` into ``room_id``.

    Attributes:
        room_id: Room the invitation is for
        state_key: User id that was invited
        sender: User id that sent the invitation
        raw_event: Stripped state event from the sync response
    """
    room_id: str
    state_key: str
    sender: str
    raw_event: Dict[str, Any]


SyncEvent = Union[RoomMessageEvent, InviteEvent]


def parse_message_event(room_id: str, event: Dict[str, Any]) -> Optional[RoomMessageEvent]:
    """Parse a timeline event into a RoomMessageEvent.

    Args:
        room_id: Room the timeline belongs to
        event: Raw event dictionary

    Returns:
        RoomMessageEvent if this is a message with a text body, None otherwise
    """
    if event.get("type") != "m.room.message":
        return None
    content = event.get("content") or {}
    body = content.get("body")
    if not isinstance(body, str):
        return None

    return RoomMessageEvent(
        room_id=room_id,
        event_id=event.get("event_id", ""),
        sender=event.get("sender", ""),
        body=body,
        msgtype=content.get("msgtype", ""),
        raw_event=event,
    )


def parse_invite_event(room_id: str, event: Dict[str, Any]) -> Optional[InviteEvent]:
    """Parse a stripped m.room.member state event carrying an invite."""
    if event.get("type") != "m.room.member":
        return None
    content = event.get("content") or {}
    if content.get("membership") != "invite":
        return None
    return InviteEvent(
        room_id=room_id,
        state_key=event.get("state_key", ""),
        sender=event.get("sender", ""),
        raw_event=event,
    )


def parse_sync_response(response: Dict[str, Any], include_timeline: bool = True) -> List[SyncEvent]:
    """Collect invites and room messages from a /sync response.

    Invites come first, then timeline messages per joined room in order.

    Args:
        response: Decoded /sync response body
        include_timeline: False to drop timeline messages, e.g. on the
            catch-up sync at startup
    """
    rooms = response.get("rooms") or {}
    events: List[SyncEvent] = []

    for room_id, room in (rooms.get("invite") or {}).items():
        for raw in (room.get("invite_state") or {}).get("events", []):
            invite = parse_invite_event(room_id, raw)
            if invite is not None:
                events.append(invite)

    if not include_timeline:
        return events

    for room_id, room in (rooms.get("join") or {}).items():
        for raw in (room.get("timeline") or {}).get("events", []):
            msg = parse_message_event(room_id, raw)
            if msg is not None:
                events.append(msg)
    return events


def notice_plain(body: str) -> Dict[str, Any]:
    """Content for a plain-text m.notice message."""
    return {"msgtype": "m.notice", "body": body}


def notice_html(body: str, formatted_body: str) -> Dict[str, Any]:
    """Content for an m.notice message with an HTML rendering."""
    return {
        "msgtype": "m.notice",
        "body": body,
        "format": "org.matrix.custom.html",
        "formatted_body": formatted_body,
    }
