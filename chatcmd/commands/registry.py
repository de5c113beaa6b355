"""
chatcmd command registry.

Maps command names to handlers and reply-waiter identifiers to waiters.
Built once at startup from explicit registrations, then sealed.
"""

from __future__ import annotations

from typing import Iterable, Optional

from loguru import logger

from chatcmd.commands.base import Command, CommandDescriptor, ReplyWaiter


class CommandRegistry:
    """
    Registry for command handlers and reply-waiters.

    Duplicate names and identifiers are rejected at registration time with a
    warning, so lookups never have to resolve conflicts.
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

        self._commands: dict[str, Command] = {}
        self._descriptors: dict[str, CommandDescriptor] = {}
        self._reply_waiters: dict[str, ReplyWaiter] = {}
        self._sealed = False

    @classmethod
    def from_entries(
        cls,
        commands: Iterable[tuple[CommandDescriptor, Command]],
        reply_waiters: Iterable[ReplyWaiter] = (),
        enabled: bool = True,
    ) -> "CommandRegistry":
        """Build a registry from (descriptor, handler) pairs and waiters."""
        registry = cls(enabled=enabled)
        for descriptor, handler in commands:
            registry.register(descriptor, handler)
        for waiter in reply_waiters:
            registry.register_reply_waiter(waiter)

        logger.info("Loaded {} commands", len(registry))
        return registry

    # =========================
    # Registration
    # =========================

    def register(self, descriptor: CommandDescriptor, handler: Command) -> bool:
        """
        Register a command handler.

        A handler that is also a ReplyWaiter is registered as one too.

        Returns:
            False if the name was already taken.
        """
        self._check_open()
        name = descriptor.name

        if name in self._commands:
            logger.warning(
                "Skipping {}: command '{}' already exists",
                type(handler).__name__,
                name,
            )
            return False

        if isinstance(handler, ReplyWaiter):
            self.register_reply_waiter(handler)

        self._commands[name] = handler
        self._descriptors[name] = descriptor

        logger.debug("Added command '{}'", name)
        return True

    def register_reply_waiter(self, waiter: ReplyWaiter) -> bool:
        """
        Register a reply-waiter under its unique identifier.

        Returns:
            False if the identifier was already taken.
        """
        self._check_open()
        identifier = waiter.unique_identifier

        if identifier in self._reply_waiters:
            logger.warning(
                "Skipping reply-waiter {}: identifier '{}' already exists",
                type(waiter).__name__,
                identifier,
            )
            return False

        self._reply_waiters[identifier] = waiter
        return True

    def seal(self) -> None:
        """Reject any further registration."""
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self) -> None:
        if self._sealed:
            raise RuntimeError("Command registry is sealed")

    # =========================
    # Lookup
    # =========================

    def get(self, name: str) -> Optional[Command]:
        """Retrieve a command handler by (case-insensitive) name."""
        return self._commands.get(name.lower())

    def is_debug_command(self, name: str) -> bool:
        descriptor = self._descriptors.get(name.lower())
        return descriptor is not None and descriptor.debug_only

    def get_reply_waiter(self, identifier: str) -> Optional[ReplyWaiter]:
        return self._reply_waiters.get(identifier)

    # =========================
    # Introspection
    # =========================

    @property
    def registered_commands(self) -> list[CommandDescriptor]:
        """Descriptors in registration order."""
        return list(self._descriptors.values())

    @property
    def command_names(self) -> list[str]:
        return list(self._commands.keys())

    @property
    def reply_waiter_identifiers(self) -> list[str]:
        return list(self._reply_waiters.keys())

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: str) -> bool:
        return name.lower() in self._commands
