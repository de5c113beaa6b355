"""Handler contracts, command line parsing and the command registry."""

from chatcmd.commands.base import CallbackWaiter, Command, CommandDescriptor, ReplyWaiter
from chatcmd.commands.parser import parse_command_line
from chatcmd.commands.registry import CommandRegistry

__all__ = [
    "CallbackWaiter",
    "Command",
    "CommandDescriptor",
    "CommandRegistry",
    "ReplyWaiter",
    "parse_command_line",
]
