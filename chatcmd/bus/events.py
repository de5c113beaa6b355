"""
Event types for the chatcmd routing core.

Inbound values are already-deserialized chat platform objects. Notifications
are what the router raises when a command cannot be matched or a handler fails.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


# ---------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------

@dataclass(slots=True)
class Chat:
    """Conversation a message belongs to."""

    id: int
    type: str = "private"     # private / group / supergroup / channel
    title: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Chat":
        return cls(
            id=int(data["id"]),
            type=data.get("type", "private"),
            title=data.get("title"),
        )


@dataclass(slots=True)
class User:
    """Sender of a message or a button press."""

    id: int
    first_name: str = ""
    username: Optional[str] = None
    is_bot: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        return cls(
            id=int(data["id"]),
            first_name=data.get("first_name", ""),
            username=data.get("username"),
            is_bot=bool(data.get("is_bot", False)),
        )


@dataclass(slots=True)
class Message:
    """
    Text message received from (or sent to) a chat.
    """

    message_id: int
    chat: Chat
    text: Optional[str] = None
    from_user: Optional[User] = None
    reply_to_message: Optional["Message"] = None

    date: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    # -----------------------------------------------------------------

    @property
    def chat_id(self) -> int:
        return self.chat.id

    @property
    def key(self) -> tuple[int, int]:
        """
        Correlation identity of this message: (chat_id, message_id).
        """
        return self.chat.id, self.message_id

    @property
    def is_command(self) -> bool:
        return bool(self.text) and self.text.startswith("/")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """
        Build a message from a Bot-API-shaped JSON object.
        """
        reply = data.get("reply_to_message")
        sender = data.get("from")
        date = data.get("date")

        return cls(
            message_id=int(data["message_id"]),
            chat=Chat.from_dict(data["chat"]),
            text=data.get("text"),
            from_user=User.from_dict(sender) if sender else None,
            reply_to_message=cls.from_dict(reply) if reply else None,
            date=(
                datetime.fromtimestamp(date, tz=timezone.utc)
                if date is not None
                else datetime.now(timezone.utc)
            ),
        )


@dataclass(slots=True)
class CallbackEvent:
    """
    Button press tied to an earlier message.
    """

    id: str
    data: Optional[str] = None
    message: Optional[Message] = None
    from_user: Optional[User] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CallbackEvent":
        message = data.get("message")
        sender = data.get("from")
        return cls(
            id=str(data["id"]),
            data=data.get("data"),
            message=Message.from_dict(message) if message else None,
            from_user=User.from_dict(sender) if sender else None,
        )


def parse_update(payload: dict[str, Any]) -> Message | CallbackEvent | None:
    """
    Extract the routable event from a raw update.

    Returns None for update kinds the router does not handle.
    """
    for kind in ("message", "edited_message"):
        if payload.get(kind):
            return Message.from_dict(payload[kind])

    if payload.get("callback_query"):
        return CallbackEvent.from_dict(payload["callback_query"])

    return None


# ---------------------------------------------------------------------
# Outbound
# ---------------------------------------------------------------------

@dataclass(slots=True)
class Button:
    """Inline keyboard button carrying callback data."""

    text: str
    data: str


@dataclass(slots=True)
class OutboundMessage:
    """
    Message a handler asks the transport to send.
    """

    chat_id: int
    text: str

    reply_to: Optional[int] = None
    buttons: list[list[Button]] = field(default_factory=list)
    force_reply: bool = False


# ---------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------

@dataclass(slots=True)
class CommandParameters:
    """Parsed command line: lower-cased name plus positional arguments."""

    command_name: str
    arguments: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------

@dataclass(slots=True)
class Notification:
    """Base class for everything published on the notification bus."""

    timestamp: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc),
        kw_only=True,
    )


@dataclass(slots=True)
class CommandNotFound(Notification):
    parameters: CommandParameters
    message: Message


@dataclass(slots=True)
class CommandException(Notification):
    parameters: CommandParameters
    message: Message
    error: BaseException


@dataclass(slots=True)
class CallbackNotFound(Notification):
    callback: CallbackEvent


@dataclass(slots=True)
class CallbackException(Notification):
    callback: CallbackEvent
    error: BaseException
