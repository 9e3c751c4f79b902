"""The ``!echo`` command: repeats its arguments back to the room."""
import logging

from core.handler import command
from core.models import Args, SenderId
from core.sender import MessageSender

logger = logging.getLogger(__name__)


@command(help="`!echo <text>` - Repeats the text back.")
async def echo(tx: MessageSender, sender: SenderId, args: Args) -> None:
    if not args:
        await tx.send_notice("Usage: `!echo <text>`")
        return
    logger.debug("Echoing %s words for %s", len(args), sender)
    await tx.send_notice(" ".join(args))
