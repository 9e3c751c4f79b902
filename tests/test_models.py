"""
Tests for sync response parsing and message content helpers.
"""

from core.models import (
    InviteEvent,
    RoomMessageEvent,
    notice_html,
    notice_plain,
    parse_message_event,
    parse_sync_response,
)

SYNC_RESPONSE = {
    "next_batch": "s72595_4483_1934",
    "rooms": {
        "join": {
            "!room:example.org": {
                "timeline": {
                    "events": [
                        {
                            "type": "m.room.message",
                            "event_id": "$1",
                            "sender": "@alice:example.org",
                            "content": {"msgtype": "m.text", "body": "!hello_world"},
                        },
                        {
                            "type": "m.room.topic",
                            "event_id": "$2",
                            "sender": "@alice:example.org",
                            "content": {"topic": "Bots"},
                        },
                        {
                            "type": "m.room.message",
                            "event_id": "$3",
                            "sender": "@alice:example.org",
                            "content": {"msgtype": "m.image", "url": "mxc://x"},
                        },
                    ]
                }
            }
        },
        "invite": {
            "!new:example.org": {
                "invite_state": {
                    "events": [
                        {
                            "type": "m.room.name",
                            "state_key": "",
                            "sender": "@alice:example.org",
                            "content": {"name": "New room"},
                        },
                        {
                            "type": "m.room.member",
                            "state_key": "@bot:example.org",
                            "sender": "@alice:example.org",
                            "content": {"membership": "invite"},
                        },
                    ]
                }
            }
        },
    },
}


class TestParseSync:

    def test_invites_then_messages(self):
        events = parse_sync_response(SYNC_RESPONSE)
        assert len(events) == 2
        invite, message = events
        assert isinstance(invite, InviteEvent)
        assert invite.room_id == "!new:example.org"
        assert invite.state_key == "@bot:example.org"
        assert isinstance(message, RoomMessageEvent)
        assert message.room_id == "!room:example.org"
        assert message.body == "!hello_world"
        assert message.msgtype == "m.text"
        assert message.event_id == "$1"

    def test_without_timeline(self):
        events = parse_sync_response(SYNC_RESPONSE, include_timeline=False)
        assert [type(e) for e in events] == [InviteEvent]

    def test_empty_response(self):
        assert parse_sync_response({"next_batch": "x"}) == []

    def test_message_without_body_is_skipped(self):
        assert parse_message_event("!r:x", {"type": "m.room.message", "content": {}}) is None


class TestContent:

    def test_notice_plain(self):
        assert notice_plain("hi") == {"msgtype": "m.notice", "body": "hi"}

    def test_notice_html(self):
        assert notice_html("*hi*", "<em>hi</em>") == {
            "msgtype": "m.notice",
            "body": "*hi*",
            "format": "org.matrix.custom.html",
            "formatted_body": "<em>hi</em>",
        }
