"""Transport abstraction handed to handlers by the router."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from chatcmd.bus.events import CallbackEvent, Message, OutboundMessage


class Transport(ABC):
    """
    Base abstraction for chat platform transports.

    The router never talks to the platform itself: it passes the transport
    through to handlers, which use it to answer.
    """

    #: Transport unique identifier
    name: str = "base"

    # =============================
    # Outbound
    # =============================

    @abstractmethod
    async def send(self, msg: OutboundMessage) -> Message:
        """
        Send a message to the platform.

        Returns:
            The sent message as the platform stored it. Handlers pass it to
            expect_reply / expect_callback to correlate the user's answer.
        """
        ...

    async def answer_callback(
        self,
        callback: CallbackEvent,
        text: Optional[str] = None,
    ) -> None:
        """
        Acknowledge a button press.

        Platforms without acknowledgements keep the default no-op.
        """
        return None
