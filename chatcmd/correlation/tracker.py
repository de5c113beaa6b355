"""
Correlation tracking between sent messages and the waiters expecting the
user's next action on them.

Design principles:
- Entry identity = (chat_id, message_id)
- At most one live entry per key
- Every check-and-mutate sequence runs under one lock acquisition
- Waiters are single-shot: a match consumes the whole entry
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from typing import Optional

from loguru import logger

from chatcmd.commands.base import CallbackWaiter, ReplyWaiter


CorrelationKey = tuple[int, int]


# ===========================
# Entry
# ===========================

@dataclass(slots=True)
class CorrelationEntry:
    """
    Pending waiters for one sent message.

    Equality is the (chat_id, message_id) pair only.
    """

    chat_id: int
    message_id: int
    reply_waiter: Optional[ReplyWaiter] = field(default=None, compare=False)
    callback_waiter: Optional[CallbackWaiter] = field(default=None, compare=False)
    created_at: float = field(default_factory=time.monotonic, compare=False)

    @property
    def key(self) -> CorrelationKey:
        return self.chat_id, self.message_id

    @property
    def is_empty(self) -> bool:
        return self.reply_waiter is None and self.callback_waiter is None


# ===========================
# Tracker
# ===========================

class CorrelationTracker:
    """
    Concurrency-safe table of correlation entries.

    The lock is a threading.Lock and is never held across an await, so the
    tracker serializes event-loop tasks and worker threads alike.
    """

    def __init__(self) -> None:
        self._entries: dict[CorrelationKey, CorrelationEntry] = {}
        self._lock = threading.Lock()

    # ---------- registration ----------

    def expect_reply(self, waiter: ReplyWaiter, chat_id: int, message_id: int) -> None:
        """Set (or overwrite) the reply-waiter for a message."""
        with self._lock:
            entry = self._entry_for(chat_id, message_id)
            entry.reply_waiter = waiter

        logger.debug(
            "Expecting reply | chat={} message={} waiter={}",
            chat_id,
            message_id,
            waiter.unique_identifier,
        )

    def expect_callback(self, waiter: CallbackWaiter, chat_id: int, message_id: int) -> None:
        """Set (or overwrite) the callback-waiter for a message."""
        with self._lock:
            entry = self._entry_for(chat_id, message_id)
            entry.callback_waiter = waiter

        logger.debug(
            "Expecting callback | chat={} message={} waiter={}",
            chat_id,
            message_id,
            type(waiter).__name__,
        )

    def _entry_for(self, chat_id: int, message_id: int) -> CorrelationEntry:
        # Caller holds the lock
        key = (chat_id, message_id)
        entry = self._entries.get(key)
        if entry is None:
            entry = CorrelationEntry(chat_id=chat_id, message_id=message_id)
            self._entries[key] = entry
        return entry

    # ---------- consumption ----------

    def consume_reply(self, chat_id: int, message_id: int) -> Optional[ReplyWaiter]:
        """
        Take the reply-waiter for a message.

        On a hit the whole entry is removed, so the waiter fires at most once.
        Without an entry or a reply-waiter nothing changes.
        """
        with self._lock:
            entry = self._entries.get((chat_id, message_id))
            if entry is None or entry.reply_waiter is None:
                return None
            del self._entries[entry.key]
            return entry.reply_waiter

    def consume_callback(self, chat_id: int, message_id: int) -> Optional[CallbackWaiter]:
        """
        Take the callback-waiter for a message.

        On a hit the whole entry is removed. An entry without a
        callback-waiter is stale and removed as well.
        """
        with self._lock:
            entry = self._entries.pop((chat_id, message_id), None)

        if entry is not None and entry.callback_waiter is None:
            logger.debug(
                "Dropped stale entry | chat={} message={}", chat_id, message_id
            )
            return None

        return entry.callback_waiter if entry else None

    # ---------- maintenance ----------

    def discard(self, chat_id: int, message_id: int) -> bool:
        """Forget a message's waiters. Returns whether an entry existed."""
        with self._lock:
            return self._entries.pop((chat_id, message_id), None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def pending(self, chat_id: int, message_id: int) -> Optional[CorrelationEntry]:
        """Snapshot of the entry for a message, if any."""
        with self._lock:
            entry = self._entries.get((chat_id, message_id))
            return replace(entry) if entry else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: CorrelationKey) -> bool:
        with self._lock:
            return key in self._entries
