"""Transports the router hands to handlers."""

from chatcmd.channels.base import Transport
from chatcmd.channels.console import ConsoleTransport

__all__ = ["ConsoleTransport", "Transport"]
