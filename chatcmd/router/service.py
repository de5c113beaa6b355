"""
chatcmd event router
--------------------
Routes inbound chat events to registered handlers.

Responsibilities:
1. `/name` messages -> command lookup and execution
2. Plain-text replies -> the reply-waiter tracked for the replied-to message
3. Button presses -> the callback-waiter tracked for the pressed message
4. Misses and handler failures -> notifications, never exceptions
"""

from __future__ import annotations

from typing import Any, Optional, Union

from loguru import logger

from chatcmd.bus.events import (
    CallbackEvent,
    CallbackException,
    CallbackNotFound,
    CommandException,
    CommandNotFound,
    Message,
    parse_update,
)
from chatcmd.bus.queue import NotificationBus, NotificationCallback
from chatcmd.channels.base import Transport
from chatcmd.commands.base import CallbackWaiter, ReplyWaiter
from chatcmd.commands.parser import parse_command_line
from chatcmd.commands.registry import CommandRegistry
from chatcmd.config.schema import Config
from chatcmd.correlation.tracker import CorrelationTracker
from chatcmd.utils.helpers import truncate


class EventRouter:
    """
    Stateless dispatcher over a sealed registry and a correlation tracker.

    Each inbound event is processed on the caller's task; the router never
    waits for notification listeners.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        *,
        tracker: Optional[CorrelationTracker] = None,
        bus: Optional[NotificationBus] = None,
        bot_username: Optional[str] = None,
    ):
        self.registry = registry
        self.tracker = tracker or CorrelationTracker()
        self.bus = bus or NotificationBus()
        self.bot_username = bot_username

        self.registry.seal()

    @classmethod
    def from_config(
        cls,
        config: Config,
        registry: CommandRegistry,
        tracker: Optional[CorrelationTracker] = None,
    ) -> "EventRouter":
        registry.enabled = config.router.enabled
        return cls(
            registry,
            tracker=tracker,
            bus=NotificationBus(maxsize=config.bus.queue_size),
            bot_username=config.router.bot_username,
        )

    # --------------------------------------------------------------------- #
    # Lifecycle
    # --------------------------------------------------------------------- #

    async def start(self) -> None:
        await self.bus.start()
        logger.info("Event router started | commands={}", len(self.registry))

    async def stop(self) -> None:
        await self.bus.stop()
        logger.info("Event router stopped")

    async def __aenter__(self) -> "EventRouter":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    @property
    def enabled(self) -> bool:
        return self.registry.enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self.registry.enabled = value

    # --------------------------------------------------------------------- #
    # Listeners
    # --------------------------------------------------------------------- #

    def on_command_not_found(self, callback: NotificationCallback) -> None:
        self.bus.subscribe(CommandNotFound, callback)

    def on_command_exception(self, callback: NotificationCallback) -> None:
        self.bus.subscribe(CommandException, callback)

    def on_callback_not_found(self, callback: NotificationCallback) -> None:
        self.bus.subscribe(CallbackNotFound, callback)

    def on_callback_exception(self, callback: NotificationCallback) -> None:
        self.bus.subscribe(CallbackException, callback)

    # --------------------------------------------------------------------- #
    # Correlation
    # --------------------------------------------------------------------- #

    def expect_reply(self, waiter: Union[ReplyWaiter, str], message: Message) -> None:
        """
        Route the next reply to `message` to a reply-waiter.

        `waiter` may be a registered identifier.
        """
        if isinstance(waiter, str):
            resolved = self.registry.get_reply_waiter(waiter)
            if resolved is None:
                raise KeyError(f"Unknown reply-waiter: {waiter}")
            waiter = resolved

        self.tracker.expect_reply(waiter, message.chat_id, message.message_id)

    def expect_callback(self, waiter: CallbackWaiter, message: Message) -> None:
        """Route the next button press on `message` to a callback-waiter."""
        self.tracker.expect_callback(waiter, message.chat_id, message.message_id)

    # --------------------------------------------------------------------- #
    # Entry points
    # --------------------------------------------------------------------- #

    async def process_message(self, transport: Transport, message: Message) -> bool:
        if not message.text:
            return False

        if not message.text.startswith("/"):
            return await self._process_reply(transport, message)

        return await self._process_command(transport, message)

    async def process_callback_event(
        self,
        transport: Transport,
        callback: CallbackEvent,
    ) -> bool:
        message = callback.message
        if message is None:
            return False

        waiter = self.tracker.consume_callback(message.chat_id, message.message_id)
        if waiter is None:
            logger.debug(
                "No callback-waiter | chat={} message={} data={}",
                message.chat_id,
                message.message_id,
                callback.data,
            )
            self.bus.publish(CallbackNotFound(callback=callback))
            return False

        try:
            return await waiter.on_callback_received(transport, callback)
        except Exception as e:
            logger.exception(
                "Callback-waiter {} failed | chat={} message={}",
                type(waiter).__name__,
                message.chat_id,
                message.message_id,
            )
            self.bus.publish(CallbackException(callback=callback, error=e))
            return False

    async def process_update(self, transport: Transport, payload: dict[str, Any]) -> bool:
        """Parse a raw update and route whatever it carries."""
        event = parse_update(payload)

        if isinstance(event, Message):
            return await self.process_message(transport, event)
        if isinstance(event, CallbackEvent):
            return await self.process_callback_event(transport, event)

        logger.debug("Ignoring update without message or callback | keys={}", list(payload))
        return False

    # --------------------------------------------------------------------- #
    # Routing
    # --------------------------------------------------------------------- #

    async def _process_reply(self, transport: Transport, message: Message) -> bool:
        replied = message.reply_to_message
        if replied is None:
            return False

        # Keyed by the message being replied to, not the reply itself
        waiter = self.tracker.consume_reply(message.chat_id, replied.message_id)
        if waiter is None:
            return False

        try:
            return await waiter.on_reply_received(transport, message)
        except Exception:
            logger.exception(
                "Reply-waiter '{}' failed | chat={} reply_to={}",
                waiter.unique_identifier,
                message.chat_id,
                replied.message_id,
            )
            return False

    async def _process_command(self, transport: Transport, message: Message) -> bool:
        parameters = parse_command_line(message.text, self.bot_username)
        name = parameters.command_name

        if not self.registry.enabled and not self.registry.is_debug_command(name):
            logger.debug("Routing disabled, dropping /{}", name)
            return False

        command = self.registry.get(name)
        if command is None:
            logger.debug("Command not found: {}", truncate(name, 40))
            self.bus.publish(CommandNotFound(parameters=parameters, message=message))
            return False

        try:
            return await command.execute(transport, message, parameters.arguments)
        except Exception as e:
            logger.exception("Command /{} failed | chat={}", name, message.chat_id)
            self.bus.publish(
                CommandException(parameters=parameters, message=message, error=e)
            )
            return False
