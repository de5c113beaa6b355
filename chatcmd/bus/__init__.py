"""Inbound event types and the notification bus."""

from chatcmd.bus.events import (
    Button,
    CallbackEvent,
    CallbackException,
    CallbackNotFound,
    Chat,
    CommandException,
    CommandNotFound,
    CommandParameters,
    Message,
    Notification,
    OutboundMessage,
    User,
    parse_update,
)
from chatcmd.bus.queue import NotificationBus

__all__ = [
    "Button",
    "CallbackEvent",
    "CallbackException",
    "CallbackNotFound",
    "Chat",
    "CommandException",
    "CommandNotFound",
    "CommandParameters",
    "Message",
    "Notification",
    "NotificationBus",
    "OutboundMessage",
    "User",
    "parse_update",
]
