"""
Proportional scroll synchronization between two scroll bars.

The panes of a comparison rarely have the same height, so positions are
mapped by ratio of the scrollable extent rather than by raw value.
"""

from __future__ import annotations

import logging
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal
from PyQt6.QtWidgets import QScrollBar


def scroll_ratio(bar: QScrollBar) -> float:
    """Position of a scroll bar as a fraction of its extent (0 if not scrollable)."""
    extent = bar.maximum() - bar.minimum()
    if extent <= 0:
        return 0.0
    return (bar.value() - bar.minimum()) / extent


def apply_scroll_ratio(bar: QScrollBar, ratio: float) -> None:
    """Move a scroll bar to the given fraction of its extent."""
    extent = bar.maximum() - bar.minimum()
    bar.setValue(bar.minimum() + round(ratio * extent))


class ScrollSynchronizer(QObject):
    """
    Keeps two scroll bars at the same relative position.

    After a programmatic scroll of one bar, synchronization is suspended
    for ``suppress_ms`` so the follower's own scroll event does not echo
    back to the leader.
    """

    # Signals
    synchronized = pyqtSignal(float)  # ratio applied

    def __init__(
        self,
        first: QScrollBar,
        second: QScrollBar,
        suppress_ms: int = 50,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)

        self._first = first
        self._second = second
        self._enabled = True
        self._suppressed = False
        self._attached = False

        self._suppress_timer = QTimer(self)
        self._suppress_timer.setSingleShot(True)
        self._suppress_timer.setInterval(max(0, suppress_ms))
        self._suppress_timer.timeout.connect(self._end_suppression)

        self._handlers = (
            (first, lambda _value: self._sync_from(first, second)),
            (second, lambda _value: self._sync_from(second, first)),
        )
        self.attach()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def is_suppressed(self) -> bool:
        return self._suppressed

    @property
    def is_attached(self) -> bool:
        return self._attached

    def set_enabled(self, enabled: bool) -> None:
        """Enable/disable synchronization; events are still observed."""
        self._enabled = enabled

    def set_suppress_interval(self, suppress_ms: int) -> None:
        self._suppress_timer.setInterval(max(0, suppress_ms))

    def attach(self) -> None:
        """Start listening to both scroll bars."""
        if self._attached:
            return
        for bar, handler in self._handlers:
            bar.valueChanged.connect(handler)
        self._attached = True

    def detach(self) -> None:
        """Stop listening and cancel any pending suppression."""
        self._suppress_timer.stop()
        self._suppressed = False
        if not self._attached:
            return
        for bar, handler in self._handlers:
            try:
                bar.valueChanged.disconnect(handler)
            except (TypeError, RuntimeError) as e:
                # Scroll bar already destroyed with its pane
                logging.debug(f"ScrollSynchronizer - Disconnect skipped: {e}")
        self._attached = False

    def _sync_from(self, source: QScrollBar, target: QScrollBar) -> None:
        if not self._enabled or self._suppressed:
            return

        ratio = scroll_ratio(source)
        self._suppressed = True
        apply_scroll_ratio(target, ratio)
        self._suppress_timer.start()
        self.synchronized.emit(ratio)

    def _end_suppression(self) -> None:
        self._suppressed = False
