"""Handler-facing side of the outgoing message channel."""
from typing import Any, Dict, Optional

import trio

from core.models import notice_html, notice_plain


class MessageSender:
    """Queues outgoing message content for the room a command came from.

    The dispatcher owns the receiving side and forwards each queued content
    to the homeserver one at a time, in the order it was sent here.
    """

    def __init__(self, channel: trio.MemorySendChannel) -> None:
        self._channel = channel

    def __copy__(self) -> "MessageSender":
        return MessageSender(self._channel)

    def __deepcopy__(self, memo: Dict[int, Any]) -> "MessageSender":
        # Copies are handles to the same channel
        return MessageSender(self._channel)

    async def send(self, content: Dict[str, Any]) -> None:
        """Queue raw m.room.message content.

        Raises:
            trio.ClosedResourceError: The command already finished
            trio.BrokenResourceError: The forwarding loop is gone
        """
        await self._channel.send(content)

    async def send_notice(self, body: str, formatted_body: Optional[str] = None) -> None:
        """Queue a notice, with an HTML rendering when ``formatted_body`` is given."""
        if formatted_body is None:
            await self.send(notice_plain(body))
        else:
            await self.send(notice_html(body, formatted_body))
