"""
Handler contracts for chatcmd.

A Command reacts to a `/name` message. A ReplyWaiter reacts to the user's
free-text reply to a message it sent earlier, a CallbackWaiter to a button
press on such a message.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from chatcmd.bus.events import CallbackEvent, Message
    from chatcmd.channels.base import Transport


@dataclass(frozen=True, slots=True)
class CommandDescriptor:
    """
    Load-time metadata for a command.

    Names are case-insensitive and stored lower-cased.
    """

    name: str
    description: Optional[str] = None
    debug_only: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", self.name.lower())


class Command(ABC):
    """
    Abstract base class for command handlers.
    """

    @abstractmethod
    async def execute(
        self,
        transport: Transport,
        message: Message,
        arguments: list[str],
    ) -> bool:
        """
        Run the command.

        Returns:
            Whether the command handled the message.
        """
        raise NotImplementedError


class ReplyWaiter(ABC):
    """
    Handler for the next free-text reply to a tracked message.
    """

    # ---------
    # Identity
    # ---------

    @property
    @abstractmethod
    def unique_identifier(self) -> str:
        """Stable identifier, unique within a registry."""
        raise NotImplementedError

    @abstractmethod
    async def on_reply_received(self, transport: Transport, message: Message) -> bool:
        raise NotImplementedError


class CallbackWaiter(ABC):
    """
    Handler for a button press on a tracked message.
    """

    @abstractmethod
    async def on_callback_received(
        self,
        transport: Transport,
        callback: CallbackEvent,
    ) -> bool:
        raise NotImplementedError
