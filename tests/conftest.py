import itertools
from typing import Optional

import pytest

from chatcmd.bus.events import CallbackEvent, Chat, Message, OutboundMessage
from chatcmd.channels.base import Transport
from chatcmd.commands.base import CallbackWaiter, Command, CommandDescriptor, ReplyWaiter
from chatcmd.commands.registry import CommandRegistry


class RecordingTransport(Transport):
    name = "recording"

    def __init__(self) -> None:
        self.sent: list[OutboundMessage] = []
        self.answered: list[tuple[CallbackEvent, Optional[str]]] = []
        self._ids = itertools.count(1000)

    async def send(self, msg: OutboundMessage) -> Message:
        self.sent.append(msg)
        return Message(message_id=next(self._ids), chat=Chat(id=msg.chat_id), text=msg.text)

    async def answer_callback(self, callback, text=None) -> None:
        self.answered.append((callback, text))


class EchoCommand(Command):
    def __init__(self) -> None:
        self.calls: list[list[str]] = []

    async def execute(self, transport, message, arguments):
        self.calls.append(arguments)
        await transport.send(OutboundMessage(chat_id=message.chat_id, text=" ".join(arguments)))
        return True


class FailingCommand(Command):
    async def execute(self, transport, message, arguments):
        raise RuntimeError("boom")


class RecordingReplyWaiter(ReplyWaiter):
    def __init__(self, identifier: str = "waiter", result: bool = True, fail: bool = False) -> None:
        self.identifier = identifier
        self.result = result
        self.fail = fail
        self.replies: list[Message] = []

    @property
    def unique_identifier(self) -> str:
        return self.identifier

    async def on_reply_received(self, transport, message):
        self.replies.append(message)
        if self.fail:
            raise ValueError("reply handling failed")
        return self.result


class RecordingCallbackWaiter(CallbackWaiter):
    def __init__(self, result: bool = True, fail: bool = False) -> None:
        self.result = result
        self.fail = fail
        self.callbacks: list[CallbackEvent] = []

    async def on_callback_received(self, transport, callback):
        self.callbacks.append(callback)
        if self.fail:
            raise ValueError("callback handling failed")
        return self.result


def make_message(
    text: Optional[str],
    chat_id: int = 42,
    message_id: int = 1,
    reply_to: Optional[int] = None,
) -> Message:
    chat = Chat(id=chat_id)
    replied = Message(message_id=reply_to, chat=chat) if reply_to is not None else None
    return Message(message_id=message_id, chat=chat, text=text, reply_to_message=replied)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def echo() -> EchoCommand:
    return EchoCommand()


@pytest.fixture
def registry(echo) -> CommandRegistry:
    return CommandRegistry.from_entries([
        (CommandDescriptor("echo", "Repeat arguments"), echo),
        (CommandDescriptor("explode", "Always fails"), FailingCommand()),
        (CommandDescriptor("debug", "Debug echo", debug_only=True), EchoCommand()),
    ])
