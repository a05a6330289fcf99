"""Dispatch of mouse, keyboard and periodic update events to callbacks."""

from __future__ import annotations

import threading
from enum import Enum, auto
from typing import Callable, Optional


class MouseButton(Enum):
    LEFT = auto()
    RIGHT = auto()
    MIDDLE = auto()
    X1 = auto()
    X2 = auto()


class MouseEvent(Enum):
    BUTTON_DOWN = auto()
    BUTTON_UP = auto()
    WHEEL_UP = auto()
    WHEEL_DOWN = auto()


class KeyEvent(Enum):
    DOWN = auto()
    UP = auto()


MouseCallback = Callable[[MouseButton, MouseEvent], None]
KeyboardCallback = Callable[[int, KeyEvent], None]
UpdateCallback = Callable[[], None]


class InputMonitor:
    """Routes input events to callbacks and drives a periodic update loop.

    Input sources feed events through :meth:`emit_mouse` and :meth:`emit_key`;
    events are delivered only once the monitor has been initialized.
    """

    def __init__(self, update_interval_ms: float = 10) -> None:
        if update_interval_ms <= 0:
            raise ValueError("update interval must be positive")
        self.update_interval_ms = update_interval_ms
        self.mouse_callback: Optional[MouseCallback] = None
        self.keyboard_callback: Optional[KeyboardCallback] = None
        self.update_callback: Optional[UpdateCallback] = None
        self._initialized = False
        self._running = False
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        """Whether the monitoring loop is currently active."""
        return self._running

    def initialize(self) -> None:
        """Make the monitor ready to deliver events."""
        self._initialized = True

    def clear_callbacks(self) -> None:
        """Remove every registered callback."""
        self.mouse_callback = None
        self.keyboard_callback = None
        self.update_callback = None

    def emit_mouse(self, button: MouseButton, event: MouseEvent) -> None:
        """Deliver a mouse event to the mouse callback, if any."""
        callback = self.mouse_callback
        if self._initialized and callback is not None:
            callback(button, event)

    def emit_key(self, key_code: int, event: KeyEvent) -> None:
        """Deliver a keyboard event to the keyboard callback, if any."""
        callback = self.keyboard_callback
        if self._initialized and callback is not None:
            callback(key_code, event)

    def tick(self) -> None:
        """Run one periodic update."""
        callback = self.update_callback
        if callback is not None:
            callback()

    def start_monitoring(self) -> None:
        """Run the update loop until :meth:`stop_monitoring` is called."""
        self._stop.clear()
        self._running = True
        try:
            while not self._stop.wait(self.update_interval_ms / 1000):
                self.tick()
        finally:
            self._running = False

    def stop_monitoring(self) -> None:
        """Ask the update loop to finish."""
        self._stop.set()