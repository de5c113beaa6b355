"""Per-message correlation of pending reply and callback waiters."""

from chatcmd.correlation.tracker import CorrelationEntry, CorrelationKey, CorrelationTracker

__all__ = ["CorrelationEntry", "CorrelationKey", "CorrelationTracker"]
