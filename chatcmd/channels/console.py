"""Console transport used by the interactive CLI."""

from __future__ import annotations

import itertools
from typing import Optional

from rich.console import Console
from rich.markup import escape

from chatcmd.bus.events import CallbackEvent, Chat, Message, OutboundMessage
from chatcmd.channels.base import Transport


class ConsoleTransport(Transport):
    """
    Prints outbound messages to the terminal.

    Message ids are allocated from one counter shared by both directions, so
    a reply can point at any message the bot printed.
    """

    name = "console"

    def __init__(self, chat_id: int = 1, console: Optional[Console] = None):
        self.chat = Chat(id=chat_id, type="private", title="console")
        self.console = console or Console()

        self.last_sent: Optional[Message] = None
        self._ids = itertools.count(1)

    def next_message_id(self) -> int:
        return next(self._ids)

    async def send(self, msg: OutboundMessage) -> Message:
        sent = Message(
            message_id=self.next_message_id(),
            chat=Chat(id=msg.chat_id, type=self.chat.type, title=self.chat.title),
            text=msg.text,
        )

        self.console.print(f"[bold cyan]bot[/bold cyan] [dim]#{sent.message_id}[/dim] {escape(msg.text)}")
        for row in msg.buttons:
            labels = "  ".join(f"[reverse] {escape(b.text)} [/reverse] [dim]!{escape(b.data)}[/dim]" for b in row)
            self.console.print(f"    {labels}")
        if msg.force_reply:
            self.console.print("    [dim](reply expected)[/dim]")

        self.last_sent = sent
        return sent

    async def answer_callback(
        self,
        callback: CallbackEvent,
        text: Optional[str] = None,
    ) -> None:
        if text:
            self.console.print(f"[dim]» {escape(text)}[/dim]")

    # -----------------------------
    # Inbound helpers
    # -----------------------------

    def incoming(self, text: str) -> Message:
        """
        Wrap a typed line as an inbound message.

        Plain text is treated as a reply to the last bot message.
        """
        reply_to = None
        if not text.startswith("/") and self.last_sent is not None:
            reply_to = self.last_sent

        return Message(
            message_id=self.next_message_id(),
            chat=self.chat,
            text=text,
            reply_to_message=reply_to,
        )

    def press(self, data: str) -> CallbackEvent:
        """Simulate a button press on the last bot message."""
        return CallbackEvent(
            id=str(self.next_message_id()),
            data=data,
            message=self.last_sent,
        )
