"""
chatcmd - command routing and reply correlation for chat bots.
"""

__version__ = "0.1.0"
__logo__ = "💬"

from chatcmd.bus.events import (
    CallbackEvent,
    Chat,
    CommandParameters,
    Message,
    OutboundMessage,
)
from chatcmd.commands.base import CallbackWaiter, Command, CommandDescriptor, ReplyWaiter
from chatcmd.commands.registry import CommandRegistry
from chatcmd.correlation.tracker import CorrelationTracker
from chatcmd.router.service import EventRouter

__all__ = [
    "__version__",
    "__logo__",
    "CallbackEvent",
    "CallbackWaiter",
    "Chat",
    "Command",
    "CommandDescriptor",
    "CommandParameters",
    "CommandRegistry",
    "CorrelationTracker",
    "EventRouter",
    "Message",
    "OutboundMessage",
    "ReplyWaiter",
]
