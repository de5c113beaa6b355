"""
Demo application for `chatcmd console`.

Shows each routing path: plain commands, a reply-waiter and a
callback-waiter, plus a debug-only command that survives `enabled=False`.
"""

from __future__ import annotations

from chatcmd.bus.events import Button, CallbackEvent, Message, OutboundMessage
from chatcmd.channels.base import Transport
from chatcmd.commands.base import CallbackWaiter, Command, CommandDescriptor, ReplyWaiter
from chatcmd.commands.registry import CommandRegistry
from chatcmd.config.schema import Config
from chatcmd.correlation.tracker import CorrelationTracker
from chatcmd.router.service import EventRouter


async def _say(transport: Transport, message: Message, text: str, **kwargs) -> Message:
    return await transport.send(OutboundMessage(chat_id=message.chat_id, text=text, **kwargs))


class PingCommand(Command):
    async def execute(self, transport, message, arguments):
        await _say(transport, message, "pong")
        return True


class EchoCommand(Command):
    async def execute(self, transport, message, arguments):
        if not arguments:
            await _say(transport, message, "Usage: /echo <text>")
            return False
        await _say(transport, message, " ".join(arguments))
        return True


class AskCommand(Command, ReplyWaiter):
    """Asks for a name and greets the reply."""

    def __init__(self, tracker: CorrelationTracker):
        self.tracker = tracker

    @property
    def unique_identifier(self) -> str:
        return "demo.ask"

    async def execute(self, transport, message, arguments):
        sent = await _say(transport, message, "What's your name?", force_reply=True)
        self.tracker.expect_reply(self, sent.chat_id, sent.message_id)
        return True

    async def on_reply_received(self, transport, message):
        await _say(transport, message, f"Nice to meet you, {message.text}!")
        return True


class ConfirmCommand(Command, CallbackWaiter):
    """Offers yes/no buttons and reports the choice."""

    def __init__(self, tracker: CorrelationTracker):
        self.tracker = tracker

    async def execute(self, transport, message, arguments):
        sent = await _say(
            transport,
            message,
            "Proceed?",
            buttons=[[Button("Yes", "yes"), Button("No", "no")]],
        )
        self.tracker.expect_callback(self, sent.chat_id, sent.message_id)
        return True

    async def on_callback_received(self, transport, callback: CallbackEvent):
        await transport.answer_callback(callback, "Got it")
        choice = "Confirmed" if callback.data == "yes" else "Cancelled"
        await transport.send(OutboundMessage(chat_id=callback.message.chat_id, text=choice))
        return callback.data == "yes"


class StateCommand(Command):
    """Reports router state; stays available while routing is disabled."""

    def __init__(self, tracker: CorrelationTracker):
        self.tracker = tracker
        self.router: EventRouter | None = None

    async def execute(self, transport, message, arguments):
        if self.router is not None and arguments and arguments[0] in ("on", "off"):
            self.router.enabled = arguments[0] == "on"

        enabled = self.router.enabled if self.router is not None else True
        await _say(
            transport,
            message,
            f"routing={'on' if enabled else 'off'} pending={len(self.tracker)}",
        )
        return True


def build_app(config: Config | None = None) -> EventRouter:
    tracker = CorrelationTracker()
    state = StateCommand(tracker)

    registry = CommandRegistry.from_entries([
        (CommandDescriptor("ping", "Reply with pong"), PingCommand()),
        (CommandDescriptor("echo", "Repeat the arguments"), EchoCommand()),
        (CommandDescriptor("ask", "Ask for your name and wait for the reply"), AskCommand(tracker)),
        (CommandDescriptor("confirm", "Show yes/no buttons"), ConfirmCommand(tracker)),
        (CommandDescriptor("state", "Show or toggle routing (on/off)", debug_only=True), state),
    ])

    router = EventRouter.from_config(config or Config(), registry, tracker=tracker)
    state.router = router
    return router
