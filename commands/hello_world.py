"""The ``!hello_world`` command."""
from core.handler import command
from core.sender import MessageSender


@command(help="`!hello_world` - Prints \"hello world\".")
async def hello_world(tx: MessageSender) -> None:
    await tx.send_notice("Hello World!")
