"""
Tests for the example bot's commands and command table.
"""

import trio

from commands.registry import BOT_NAME, COMMANDS, DESCRIPTION
from core.dispatcher import Dispatcher


def dispatch(sink, event):
    dispatcher = Dispatcher(table=COMMANDS, send_sink=sink, own_user_id="@bot:example.org")
    trio.run(dispatcher.dispatch_event, event)


class TestRegistry:

    def test_names_and_aliases(self):
        assert [(e.name, e.alias) for e in COMMANDS.entries] == [("hello_world", "hw"), ("echo", "e")]

    def test_help_document(self):
        assert COMMANDS.help_markdown == (
            f"# Help for the {BOT_NAME} Bot\n\n"
            f"{DESCRIPTION}\n\n"
            "## Commands\n"
            "* `!hello_world` - Prints \"hello world\".\n"
            "* `!echo <text>` - Repeats the text back.\n"
        )


class TestHelloWorld:

    def test_by_name(self, sink, make_message_event):
        dispatch(sink, make_message_event("!hello_world"))
        assert sink.sent == [("!room:example.org", {"msgtype": "m.notice", "body": "Hello World!"})]

    def test_by_alias_ignores_args(self, sink, make_message_event):
        dispatch(sink, make_message_event("!hw please"))
        assert sink.bodies == ["Hello World!"]


class TestEcho:

    def test_echoes_arguments(self, sink, make_message_event):
        dispatch(sink, make_message_event("!echo  Hello   Matrix "))
        assert sink.bodies == ["Hello Matrix"]

    def test_alias(self, sink, make_message_event):
        dispatch(sink, make_message_event("!e hi"))
        assert sink.bodies == ["hi"]

    def test_usage_without_arguments(self, sink, make_message_event):
        dispatch(sink, make_message_event("!echo"))
        assert sink.bodies == ["Usage: `!echo <text>`"]


class TestHelp:

    def test_help_lists_commands(self, sink, make_message_event):
        dispatch(sink, make_message_event("!h"))
        content = sink.sent[0][1]
        assert content["body"] == COMMANDS.help_markdown
        assert content["formatted_body"] == COMMANDS.help_html
        assert "<code>!echo &lt;text&gt;</code>" in content["formatted_body"]

    def test_own_messages_ignored(self, sink, make_message_event):
        dispatch(sink, make_message_event("!help", sender="@bot:example.org"))
        assert sink.sent == []
