"""Inbound event routing."""

from chatcmd.router.service import EventRouter

__all__ = ["EventRouter"]
