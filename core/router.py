"""Command routing: parsing message bodies and resolving command handlers.

A CommandTable is built once at startup from a fixed list of commands and
is never modified afterwards. Each command is reachable by its canonical
name and by a short alias made of the first letter of every
underscore-separated word (``hello_world`` -> ``hw``). ``help`` and ``h``
are answered with a help document generated from the commands' help lines.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from markdown_it import MarkdownIt

from core.handler import Command
from core.sender import MessageSender
from utils.matching import match_command_token, tokenize

logger = logging.getLogger(__name__)

HELP_NAMES = ("help", "h")

# CommonMark without raw HTML passthrough
_markdown = MarkdownIt("commonmark", {"html": False})


def render_markdown(source: str) -> str:
    """Render markdown to the HTML used as ``formatted_body``."""
    return _markdown.render(source)


@dataclass(frozen=True)
class ParsedCommand:
    """Command token and arguments of a message body.

    Attributes:
        command: Lower-cased command name, "" if the body had no command token
        args: Remaining whitespace-separated tokens
    """
    command: str
    args: List[str]


def parse_command(body: str) -> Optional[ParsedCommand]:
    """Split a message body into command and arguments.

    Returns:
        None for an empty body; otherwise a ParsedCommand whose ``command``
        is "" when the first token is not a ``!command``
    """
    tokens = tokenize(body)
    if not tokens:
        return None
    command = match_command_token(tokens[0]) or ""
    return ParsedCommand(command=command, args=tokens[1:])


def derive_alias(name: str) -> str:
    """Short alias of a command name: first letter of each ``_`` segment."""
    return "".join(segment[0].lower() for segment in name.split("_") if segment)


@dataclass(frozen=True)
class CommandEntry:
    name: str
    alias: str
    command: Command
    help: str


def build_help_markdown(bot_name: str, description: str, help_lines: Iterable[str]) -> str:
    """Render the help document; same inputs always give the same output."""
    parts = [
        f"# Help for the {bot_name} Bot\n\n",
        f"{description}\n\n",
        "## Commands\n",
    ]
    parts.extend(f"* {line}\n" for line in help_lines)
    return "".join(parts)


class CommandTable:
    """Registered commands plus the generated help document.

    Attributes:
        bot_name: Name used in the help title
        description: Paragraph shown under the help title
        help_markdown: Help document as markdown
        help_html: Help document rendered as HTML
    """

    def __init__(self, bot_name: str, description: str, commands: Iterable[Command]) -> None:
        self.bot_name = bot_name
        self.description = description
        self._entries: Tuple[CommandEntry, ...] = tuple(
            CommandEntry(
                name=cmd.name.lower(),
                alias=derive_alias(cmd.name),
                command=cmd,
                help=cmd.help,
            )
            for cmd in commands
        )
        self.help_markdown = build_help_markdown(
            bot_name, description, (entry.help for entry in self._entries)
        )
        self.help_html = render_markdown(self.help_markdown)
        self.help_command = Command(self._send_help, name="help")

    @property
    def entries(self) -> Tuple[CommandEntry, ...]:
        return self._entries

    def lookup(self, token: str) -> Optional[Command]:
        """Find the command for a lower-cased command token.

        Canonical names and aliases are checked in registration order and the
        first match wins; ``help``/``h`` fall back to the help command.
        """
        if not token:
            return None
        for entry in self._entries:
            if token in (entry.name, entry.alias):
                return entry.command
        if token in HELP_NAMES:
            return self.help_command
        return None

    async def _send_help(self, tx: MessageSender) -> None:
        await tx.send_notice(self.help_markdown, self.help_html)

    def __len__(self) -> int:
        return len(self._entries)
