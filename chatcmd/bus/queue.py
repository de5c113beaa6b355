"""
Async notification bus decoupling the router from its listeners.
"""

from __future__ import annotations

import asyncio
import inspect
import threading
from collections import defaultdict, deque
from typing import Any, Awaitable, Callable, DefaultDict, Optional, Union

from loguru import logger

from chatcmd.bus.events import Notification


NotificationCallback = Callable[[Any], Union[Awaitable[None], None]]


class NotificationBus:
    """
    Fire-and-forget fan-out of router notifications.

    Architecture:
        Router -> publish -> queue -> dispatch loop -> subscribers

    Design goals:
        - publish() never blocks and never raises
        - Listeners run off the routing path
        - Fault isolated dispatch

    The dispatch loop starts on the first publish made inside a running
    event loop, so an unstarted bus still delivers. Only an explicit
    stop() keeps it from restarting.
    """

    # ---------------------------------------------------------------------

    def __init__(self, maxsize: int = 0):
        self.queue: asyncio.Queue[Notification] = asyncio.Queue(maxsize=maxsize)
        self.maxsize = maxsize

        self._subscribers: DefaultDict[type, list[NotificationCallback]] = defaultdict(list)
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._stopped = False

        # Held back until a loop owns the queue
        self._staged: deque[Notification] = deque()
        self._staged_lock = threading.Lock()
        self._staged_warned = False

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    async def start(self) -> None:
        """Start the dispatch loop on the running event loop."""
        self._stopped = False
        self._ensure_dispatcher()

    async def stop(self) -> None:
        """Stop the dispatch loop. Undelivered notifications stay queued."""
        self._stopped = True
        if not self._task:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def join(self) -> None:
        """Wait until every published notification has been dispatched."""
        await self.queue.join()

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def staged(self) -> int:
        """Notifications published off-loop before the bus had a loop."""
        with self._staged_lock:
            return len(self._staged)

    def _ensure_dispatcher(self) -> None:
        # Must run on the loop that will own the queue
        if self.is_running:
            return

        loop = asyncio.get_running_loop()
        with self._staged_lock:
            self._loop = loop
            staged = list(self._staged)
            self._staged.clear()

        for event in staged:
            self._enqueue(event)

        self._task = loop.create_task(
            self._dispatch_loop(), name="notification-dispatcher"
        )

    # ---------------------------------------------------------------------
    # Subscription
    # ---------------------------------------------------------------------

    def subscribe(self, kind: type, callback: NotificationCallback) -> None:
        """
        Register a listener for a notification class.

        Subclasses are delivered too, so subscribing to Notification
        receives everything.
        """
        self._subscribers[kind].append(callback)

    def unsubscribe(self, kind: type, callback: NotificationCallback) -> None:
        callbacks = self._subscribers.get(kind)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    def subscribers_for(self, event: Notification) -> list[NotificationCallback]:
        callbacks: list[NotificationCallback] = []
        for cls in type(event).__mro__:
            callbacks.extend(self._subscribers.get(cls, ()))
        return callbacks

    # ---------------------------------------------------------------------
    # Publishing
    # ---------------------------------------------------------------------

    def publish(self, event: Notification) -> None:
        """
        Enqueue a notification without waiting for delivery.

        Safe to call from any thread. Off-loop publishes are handed to the
        bus's loop; before the bus has one they are staged and flushed into
        the queue when the dispatcher starts.
        """
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            self._publish_threadsafe(event)
            return

        loop = self._loop
        if loop is None or loop is running or loop.is_closed():
            self._deliver(event)
        else:
            loop.call_soon_threadsafe(self._deliver, event)

    def _publish_threadsafe(self, event: Notification) -> None:
        with self._staged_lock:
            loop = self._loop
            if loop is None or loop.is_closed():
                self._stage(event)
                return
        try:
            loop.call_soon_threadsafe(self._deliver, event)
        except RuntimeError:
            # Loop closed after the check
            with self._staged_lock:
                self._stage(event)

    def _stage(self, event: Notification) -> None:
        # Caller holds _staged_lock
        if self.maxsize and len(self._staged) >= self.maxsize:
            logger.warning(
                "Notification queue full, dropping {}", type(event).__name__
            )
            return

        if not self._staged_warned:
            self._staged_warned = True
            logger.warning(
                "Notification bus has no event loop yet; holding notifications until it starts"
            )
        self._staged.append(event)

    def _deliver(self, event: Notification) -> None:
        if not self._stopped:
            self._ensure_dispatcher()
        self._enqueue(event)

    def _enqueue(self, event: Notification) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(
                "Notification queue full, dropping {}", type(event).__name__
            )

    # ---------------------------------------------------------------------
    # Dispatcher
    # ---------------------------------------------------------------------

    async def _dispatch_loop(self) -> None:
        logger.debug("Notification dispatcher started")

        try:
            while True:
                event = await self.queue.get()
                try:
                    callbacks = self.subscribers_for(event)
                    if callbacks:
                        await self._fanout(event, callbacks)
                    else:
                        logger.debug("No subscriber for {}", type(event).__name__)
                except Exception as e:
                    logger.exception("Notification dispatch error: {}", e)
                finally:
                    self.queue.task_done()
        finally:
            logger.debug("Notification dispatcher stopped")

    async def _fanout(
        self,
        event: Notification,
        callbacks: list[NotificationCallback],
    ) -> None:
        tasks = [self._safe_call(cb, event) for cb in callbacks]
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _safe_call(
        self,
        callback: NotificationCallback,
        event: Notification,
    ) -> None:
        try:
            result = callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception(
                "Notification listener failed [{}]: {}",
                type(event).__name__,
                callback,
            )
