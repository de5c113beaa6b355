"""
Command line parsing.

Turns `/name arg1 arg2` (or the deep-link form `/name_payload`) into
CommandParameters.
"""

from __future__ import annotations

from typing import Optional

from chatcmd.bus.events import CommandParameters


def parse_command_line(
    line: str,
    bot_username: Optional[str] = None,
) -> CommandParameters:
    """
    Parse a command line.

    Args:
        line: Message text, must start with '/'.
        bot_username: Strip a trailing '@bot_username' from the name.

    Returns:
        CommandParameters with a lower-cased name.

    Raises:
        ValueError: line is not a command.

    Examples:
        >>> parse_command_line("/start")
        CommandParameters(command_name='start', arguments=[])
        >>> parse_command_line("/start_payload123")
        CommandParameters(command_name='start', arguments=['payload123'])
        >>> parse_command_line("/echo hello world")
        CommandParameters(command_name='echo', arguments=['hello', 'world'])
    """
    if not line.startswith("/"):
        raise ValueError(f"Not a command line: {line!r}")

    if bot_username:
        line = _strip_mention(line, bot_username)

    # Deep-link payloads arrive as /start_payload
    delimiter = "_" if "_" in line else " "
    head, *arguments = line.split(delimiter)

    return CommandParameters(command_name=head[1:].lower(), arguments=arguments)


def _strip_mention(line: str, bot_username: str) -> str:
    """Drop '@bot_username' from the end of the first word."""
    first, sep, rest = line.partition(" ")
    suffix = f"@{bot_username.lower()}"
    if first.lower().endswith(suffix):
        first = first[: -len(suffix)]
    return first + sep + rest
