"""Event dispatching system for routing Matrix messages to command handlers.

Each incoming message is handled as its own unit of work: the body is parsed
into a command and arguments, the matching Command is invoked with a fresh
extension map, and whatever the handler sends is forwarded to the room in
the order it was produced.
"""
import copy
import logging
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, Tuple

import trio

from core.errors import CommandError
from core.extract import Message
from core.extensions import Extensions
from core.handler import Command
from core.models import Args, Body, EventId, RoomId, RoomMessageEvent, SenderId
from core.router import CommandTable, ParsedCommand, parse_command
from core.sender import MessageSender

logger = logging.getLogger(__name__)

SendSink = Callable[[str, Dict[str, Any]], Awaitable[Any]]

# Outgoing messages a handler may queue before send() blocks on the forwarder
OUTGOING_BUFFER_SIZE = 32

TEXT_MSGTYPES = ("m.text",)


class Dispatcher:
    """Routes Matrix message events to the commands of a CommandTable.

    Errors in individual commands are logged and never reach the caller, so
    one failing command cannot stop the processing of other messages.

    Attributes:
        table: Commands to dispatch to
        own_user_id: Messages from this user are ignored
    """

    def __init__(
        self,
        table: CommandTable,
        send_sink: SendSink,
        own_user_id: Optional[str] = None,
        context: Iterable[Any] = (),
    ) -> None:
        """
        Args:
            table: Commands to dispatch to
            send_sink: Coroutine function sending content to a room id
            own_user_id: User id of the bot itself
            context: Values copied into every message's extension map,
                e.g. the bot configuration
        """
        self.table = table
        self.own_user_id = own_user_id
        self._send_sink = send_sink
        self._context = tuple(context)

    def build_message(
        self, event: RoomMessageEvent, parsed: ParsedCommand, sender: MessageSender
    ) -> Message:
        """Create the per-message extension map for one command invocation."""
        extensions = Extensions()
        for value in self._context:
            extensions.insert(copy.deepcopy(value))
        extensions.insert(Body(event.body))
        extensions.insert(SenderId(event.sender))
        extensions.insert(RoomId(event.room_id))
        extensions.insert(EventId(event.event_id))
        extensions.insert(Args(parsed.args))
        extensions.insert(sender)
        return Message(extensions=extensions)

    def resolve(self, event: RoomMessageEvent) -> Optional[Tuple[Command, ParsedCommand]]:
        """Return the command an event asks for, or None if it should be ignored."""
        if self.own_user_id is not None and event.sender == self.own_user_id:
            return None
        if event.msgtype not in TEXT_MSGTYPES:
            return None
        parsed = parse_command(event.body)
        if parsed is None or not parsed.command:
            return None
        command = self.table.lookup(parsed.command)
        if command is None:
            logger.debug("No command registered for %r", parsed.command)
            return None
        return command, parsed

    async def dispatch_event(self, event: RoomMessageEvent) -> None:
        """Handle one message event end to end.

        Runs the command and a forwarding loop side by side; returns once the
        command finished and all of its messages were handed to the send sink.
        """
        resolved = self.resolve(event)
        if resolved is None:
            return
        command, parsed = resolved
        logger.info(
            "Running command %s for %s in %s", command.name, event.sender, event.room_id
        )

        send_channel, receive_channel = trio.open_memory_channel(OUTGOING_BUFFER_SIZE)
        message = self.build_message(event, parsed, MessageSender(send_channel))

        async with trio.open_nursery() as nursery:
            nursery.start_soon(self._forward, event.room_id, receive_channel)
            async with send_channel:
                await self._invoke(command, message)

    async def _invoke(self, command: Command, message: Message) -> None:
        try:
            await command.invoke(message)
        except CommandError as e:
            logger.error("Command %s failed: %s", command.name, e.message)
        except Exception:  # pylint: disable=broad-exception-caught
            # An error_mapper may raise anything
            logger.exception("Command %s failed unexpectedly", command.name)

    async def _forward(self, room_id: str, receive_channel: trio.MemoryReceiveChannel) -> None:
        async with receive_channel:
            async for content in receive_channel:
                try:
                    await self._send_sink(room_id, content)
                except Exception:  # pylint: disable=broad-exception-caught
                    # A failed send must not drop the remaining messages
                    logger.exception("Failed to send message to %s", room_id)
