"""
Completion Notifications
========================

The driver reports completion through the coroutine it returns: awaiting
an operation yields its result or raises its failure. Some callers prefer
to be told instead of asking. LcdEvents wraps a driver and re-exposes the
operations that report completion, in two styles:

- **Callback**: pass ``callback=`` and it is called once with
  ``(error, result)``; errors are not raised.
- **Events**: without a callback, the outcome is broadcast to listeners
  registered with on():

      ready     initialization finished           payload: None
      printed   print finished                    payload: the text
      clear     clear finished                    payload: None
      home      home finished                     payload: None
      error     any of the above failed           payload: the exception

An "error" with no listener registered is raised to the awaiting caller
instead. The automatic initialization has no caller, so its unhandled
failure is logged at ERROR (and still raised by wait_ready()).

    events = LcdEvents(lcd)
    events.on("printed", lambda text: print(f"shown: {text}"))
    await events.print("Hello")

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from hd44780.driver import Lcd

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
CompletionCallback = Callable[[Optional[BaseException], Any], None]

EVENTS = ("ready", "printed", "clear", "home", "error")


class LcdEvents:
    """
    Callback and event front-end for an Lcd.

    Args:
        lcd: Driver to wrap. If its automatic initialization is still
             running, "ready" (or "error") is emitted when it ends.
    """

    def __init__(self, lcd: Lcd):
        self.lcd = lcd
        self._listeners: Dict[str, List[Listener]] = {name: [] for name in EVENTS}
        self._ready_task: Optional[asyncio.Task] = None

        if not lcd.config.suppress_auto_init and not lcd.closed:
            self._ready_task = asyncio.get_running_loop().create_task(
                self._report(lcd.wait_ready(), "ready")
            )
            self._ready_task.add_done_callback(self._ready_done)

    # =========================================================================
    # Listener Registry
    # =========================================================================

    def on(self, event: str, listener: Listener) -> None:
        """
        Register a listener for an event.

        Raises:
            ValueError: If event is not one of EVENTS.
        """
        self._check_event(event)
        self._listeners[event].append(listener)

    def off(self, event: str, listener: Listener) -> None:
        """Remove a listener; unknown listeners are ignored."""
        self._check_event(event)
        if listener in self._listeners[event]:
            self._listeners[event].remove(listener)

    def listener_count(self, event: str) -> int:
        self._check_event(event)
        return len(self._listeners[event])

    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Call every listener of event with payload.

        Returns:
            True if at least one listener was called.
        """
        self._check_event(event)
        listeners = list(self._listeners[event])
        for listener in listeners:
            listener(payload)
        return bool(listeners)

    @staticmethod
    def _check_event(event: str) -> None:
        if event not in EVENTS:
            valid = ", ".join(EVENTS)
            raise ValueError(f"unknown event {event!r}; valid events: {valid}")

    # =========================================================================
    # Dispatch
    # =========================================================================

    async def _report(
        self,
        operation: Awaitable[Any],
        event: str,
        callback: Optional[CompletionCallback] = None,
    ) -> None:
        try:
            value = await operation
        except Exception as e:
            logger.debug("Operation for %r failed: %s", event, e)
            if callback is not None:
                callback(e, None)
            elif not self.emit("error", e):
                raise
            return

        if callback is not None:
            callback(None, value)
        else:
            self.emit(event, value)

    @staticmethod
    def _ready_done(task: asyncio.Task) -> None:
        # The background report has no awaiting caller.
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Display initialization failed: %s", error)

    async def wait_ready(self) -> None:
        """Wait until the "ready" (or "error") event has been delivered."""
        if self._ready_task is not None:
            await self._ready_task

    # =========================================================================
    # Operations
    # =========================================================================

    async def init(self, callback: Optional[CompletionCallback] = None) -> None:
        """Reinitialize the display; reports "ready"."""
        await self._report(self.lcd.init(), "ready", callback)

    async def print(
        self, text: object, callback: Optional[CompletionCallback] = None
    ) -> None:
        """Print text; reports "printed" with the text."""
        await self._report(self.lcd.print(text), "printed", callback)

    async def clear(self, callback: Optional[CompletionCallback] = None) -> None:
        """Clear the display; reports "clear"."""
        await self._report(self.lcd.clear(), "clear", callback)

    async def home(self, callback: Optional[CompletionCallback] = None) -> None:
        """Return home; reports "home"."""
        await self._report(self.lcd.home(), "home", callback)
