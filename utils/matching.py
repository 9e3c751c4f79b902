"""Text matching utilities for command messages.

Provides whitespace normalization and command token matching. The patterns
are compiled once at import and only read afterwards.
"""
import re
from typing import List, Optional

WHITESPACE_PATTERN = re.compile(r"\s+")
COMMAND_PATTERN = re.compile(r"!([\w-]+)")


def collapse_whitespace(s: str) -> str:
    """Replace every run of whitespace with a single space."""
    return WHITESPACE_PATTERN.sub(" ", s)


def tokenize(s: str) -> List[str]:
    """
    Split a message body into whitespace-separated tokens.
    - collapse runs of whitespace
    - drop leading/trailing whitespace
    """
    return collapse_whitespace(s).split()


def match_command_token(token: str) -> Optional[str]:
    """Return the bare, lower-cased command name of a ``!command`` token."""
    match = COMMAND_PATTERN.match(token)
    if match is None:
        return None
    return match.group(1).lower()
