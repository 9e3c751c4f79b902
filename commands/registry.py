"""Command table of the example bot.

Commands are answered in the order they are listed here; ``help`` lists
them in the same order.
"""
from commands.echo import echo
from commands.hello_world import hello_world
from core.router import CommandTable

BOT_NAME = "Example"
DESCRIPTION = "This bot prints hello!"

COMMANDS = CommandTable(
    bot_name=BOT_NAME,
    description=DESCRIPTION,
    commands=[hello_world, echo],
)
