"""
HD44780 4-bit Protocol Engine
=============================

Lcd turns display operations into timed pin writes on a 4-bit bus.

Transmission
------------
A byte travels as two nibbles, high nibble first. For each nibble the
enable line is raised, the four data lines are driven, and enable is
lowered once every data write has returned; the controller latches on the
falling edge. Register select chooses between the instruction register
(low) and character data (high). After each byte the driver waits out the
controller's worst-case execution time, because a write-only bus offers no
busy flag to poll.

Serialization
-------------
Every public operation holds one asyncio.Lock for its whole exchange with
the controller, so two callers can never interleave nibbles. A print keeps
the lock across all of its characters. Pin writes and microsecond
busy-waits run on a dedicated single-thread worker owned by the driver;
the event loop thread only ever sleeps cooperatively.

Usage
-----
    pins = open_gpio_pins(config)
    async with Lcd(config, pins) as lcd:
        await lcd.print("Hello")
        await lcd.set_cursor(0, 1)
        await lcd.print("World")

The constructor starts the wake-up sequence as a task (unless
suppress_auto_init is set); operations issued before it finishes wait for
it.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import asyncio
import logging
import numbers
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from enum import IntEnum
from typing import AsyncIterator, Callable, Optional, TypeVar

from hd44780.config import LcdConfig
from hd44780.errors import (
    CharacterEncodingError,
    ConfigurationError,
    DriverClosedError,
    NibbleTypeError,
)
from hd44780.pins import PinSet
from hd44780.registers import (
    AUTOSCROLL_OFF,
    AUTOSCROLL_ON,
    BLINK_OFF,
    BLINK_ON,
    CLEAR_DISPLAY,
    CURSOR_OFF,
    CURSOR_ON,
    CURSOR_SHIFT,
    DISPLAY_OFF,
    DISPLAY_ON,
    FOUR_BIT_NIBBLE,
    LEFT_TO_RIGHT,
    RETURN_HOME,
    RIGHT_TO_LEFT,
    SCROLL_LEFT,
    SCROLL_RIGHT,
    WAKE_UP_NIBBLE,
    DisplayControl,
    DisplayMode,
    cursor_address,
    function_set,
    page_start,
)
from hd44780.timing import (
    CHARACTER_SETTLE_US,
    CLEAR_DELAY_MS,
    COMMAND_SETTLE_US,
    ENABLE_CYCLE_US,
    FIRST_WAKE_DELAY_MS,
    POWER_ON_DELAY_MS,
    WAKE_DELAY_MS,
    sleep_ms,
    sleep_us,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RegisterSelect(IntEnum):
    """Level of the register select line for a transfer."""
    COMMAND = 0
    CHARACTER = 1


def _is_integer(value: object) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def encode_text(text: str, start: int = 0) -> bytes:
    """
    Convert text[start:] to controller character codes.

    Raises:
        CharacterEncodingError: If a character is above U+00FF.
    """
    codes = bytearray()
    for index in range(start, len(text)):
        code = ord(text[index])
        if code > 0xFF:
            raise CharacterEncodingError(text[index], index)
        codes.append(code)
    return bytes(codes)


class Lcd:
    """
    Character LCD on a 4-bit HD44780 bus.

    Args:
        config: Wiring and geometry
        pins: Open pin set matching the wiring

    Raises:
        ConfigurationError: If automatic initialization is requested
            without a running event loop.
    """

    def __init__(self, config: LcdConfig, pins: PinSet):
        self._config = config
        self._pins = pins

        self._control = DisplayControl()
        self._mode = DisplayMode()

        self._lock = asyncio.Lock()
        self._worker = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="hd44780"
        )
        self._closed = False
        self._init_task: Optional[asyncio.Task] = None

        if not config.suppress_auto_init:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                self._worker.shutdown(wait=False)
                raise ConfigurationError(
                    "automatic initialization needs a running event loop; "
                    "construct the display inside a coroutine or set "
                    "suppress_auto_init and call init() later"
                ) from None
            self._init_task = loop.create_task(self._initialize())

        logger.debug("Created display %s", config.describe())

    @classmethod
    async def create(cls, config: LcdConfig, pins: PinSet) -> "Lcd":
        """Construct a display and wait for its automatic initialization."""
        lcd = cls(config, pins)
        try:
            await lcd.wait_ready()
        except BaseException:
            lcd.close()
            raise
        return lcd

    async def __aenter__(self) -> "Lcd":
        try:
            await self.wait_ready()
        except BaseException:
            self.close()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> LcdConfig:
        return self._config

    @property
    def display_control(self) -> DisplayControl:
        """Display control register as last sent to the controller."""
        return self._control

    @property
    def display_mode(self) -> DisplayMode:
        """Entry mode register as last sent to the controller."""
        return self._mode

    @property
    def closed(self) -> bool:
        return self._closed

    # =========================================================================
    # Transmission Engine
    # =========================================================================
    # These run on the caller's thread and are not serialized. Public
    # operations call them on the worker thread while holding the lock.

    def send_byte(self, value: int, mode: RegisterSelect) -> None:
        """
        Transmit one byte as two nibbles, then wait for execution.

        Args:
            value: 8-bit instruction or character code
            mode: RegisterSelect.COMMAND or RegisterSelect.CHARACTER
        """
        if not _is_integer(value):
            raise NibbleTypeError(value)
        self._pins.rs.write(int(mode))
        self.write_nibble(value >> 4)
        self.write_nibble(value & 0x0F)
        if mode == RegisterSelect.CHARACTER:
            sleep_us(CHARACTER_SETTLE_US)
        else:
            sleep_us(COMMAND_SETTLE_US)

    def write_nibble(self, nibble: int) -> None:
        """
        Put the low four bits of nibble on D4..D7 and strobe enable.

        Raises:
            NibbleTypeError: If nibble is not an integer.
        """
        if not _is_integer(nibble):
            raise NibbleTypeError(nibble)

        self._pins.enable.write(1)
        for bit, pin in enumerate(self._pins.data):
            pin.write((nibble >> bit) & 1)
        self._pins.enable.write(0)
        sleep_us(ENABLE_CYCLE_US)

    def _command(self, value: int) -> None:
        self.send_byte(value, RegisterSelect.COMMAND)

    def _write_characters(self, codes: bytes) -> None:
        for code in codes:
            self.send_byte(code, RegisterSelect.CHARACTER)

    # =========================================================================
    # Worker and Serialization
    # =========================================================================

    async def _run(self, func: Callable[..., T], *args: object) -> T:
        """Run a transmission on the worker thread."""
        # An explicit init() spans several transmissions; close() may land
        # between them.
        self._check_open("drive the bus")
        loop = asyncio.get_running_loop()
        return await asyncio.shield(
            loop.run_in_executor(self._worker, func, *args)
        )

    def _check_open(self, operation: str) -> None:
        if self._closed:
            raise DriverClosedError(operation)

    async def wait_ready(self) -> None:
        """
        Wait for automatic initialization to finish.

        Re-raises the failure of the automatic wake-up sequence, until a
        successful init() replaces it.
        """
        await self._wait_init("wait for initialization")

    async def _wait_init(self, operation: str) -> None:
        task = self._init_task
        if task is None:
            return
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            # close() cancels a pending auto-init; callers waiting on it
            # were not cancelled themselves.
            if self._closed and task.cancelled():
                raise DriverClosedError(operation) from None
            raise

    @asynccontextmanager
    async def _exclusive(self, operation: str) -> AsyncIterator[None]:
        self._check_open(operation)
        await self._wait_init(operation)
        async with self._lock:
            self._check_open(operation)
            yield

    # =========================================================================
    # Initialization
    # =========================================================================

    async def _initialize(self) -> None:
        """
        Wake the controller from an unknown state into 4-bit mode.

        The three 0x3 nudges force 8-bit mode whatever state the controller
        was left in (power-on, mid-nibble, 4-bit); 0x2 then selects 4-bit.
        """
        logger.debug("Waking up controller")
        await sleep_ms(POWER_ON_DELAY_MS)
        await self._run(self._pins.rs.write, int(RegisterSelect.COMMAND))
        await self._run(self.write_nibble, WAKE_UP_NIBBLE)
        await sleep_ms(FIRST_WAKE_DELAY_MS)
        await self._run(self.write_nibble, WAKE_UP_NIBBLE)
        await sleep_ms(WAKE_DELAY_MS)
        await self._run(self.write_nibble, WAKE_UP_NIBBLE)
        await sleep_ms(WAKE_DELAY_MS)
        await self._run(self._configure)
        await sleep_ms(CLEAR_DELAY_MS)
        logger.info("Display initialized: %s", self._config.describe())

    def _configure(self) -> None:
        self.write_nibble(FOUR_BIT_NIBBLE)
        self._command(
            function_set(self._config.rows, self._config.large_font)
        )
        self._command(CURSOR_SHIFT)
        self._command(self._control.value)
        self._command(self._mode.value)
        # Sent directly: clear() would report a "clear" completion.
        self._command(CLEAR_DISPLAY)

    async def init(self) -> None:
        """
        Run the wake-up sequence again.

        Use after a hardware error to put the controller back into a known
        state. Waits for a pending automatic initialization first; a
        failure of that attempt is superseded by this one.
        """
        self._check_open("init")
        pending = self._init_task
        if pending is not None:
            await asyncio.wait([pending])
            if not pending.cancelled() and pending.exception() is not None:
                logger.warning(
                    "Automatic initialization failed (%s); reinitializing",
                    pending.exception(),
                )
            self._init_task = None

        async with self._lock:
            self._check_open("init")
            await self._initialize()

    # =========================================================================
    # Text
    # =========================================================================

    async def print(self, text: object) -> str:
        """
        Write text at the cursor position.

        Strings longer than two display pages are trimmed to what would
        still be visible: the first (n-1)*80 characters of an n*80+m
        character string are never sent.

        Args:
            text: Text to write; non-strings are converted with str()

        Returns:
            The full text, as converted

        Raises:
            CharacterEncodingError: If a character to be sent is above
                U+00FF. Nothing is sent in that case.
        """
        self._check_open("print")
        text = str(text)
        codes = encode_text(text, page_start(len(text)))
        async with self._exclusive("print"):
            if codes:
                await self._run(self._write_characters, codes)
        logger.debug("Printed %d of %d characters", len(codes), len(text))
        return text

    async def clear(self) -> None:
        """Clear the display and return the cursor to the top left."""
        await self._command_and_wait("clear", CLEAR_DISPLAY)

    async def home(self) -> None:
        """Return the cursor home and undo any display shift."""
        await self._command_and_wait("home", RETURN_HOME)

    async def _command_and_wait(self, operation: str, command: int) -> None:
        async with self._exclusive(operation):
            await self._run(self._command, command)
            await sleep_ms(CLEAR_DELAY_MS)

    async def set_cursor(self, col: int, row: int) -> None:
        """
        Move the cursor.

        Rows past the last configured row are clamped to the last row.
        Columns are not checked, so off-screen positions can be addressed
        for scrolling.
        """
        async with self._exclusive("set cursor"):
            await self._run(
                self._command,
                cursor_address(col, row, self._config.rows),
            )

    # =========================================================================
    # Display Control
    # =========================================================================

    async def _apply_control(
        self,
        operation: str,
        transform: Callable[[DisplayControl], DisplayControl],
    ) -> None:
        async with self._exclusive(operation):
            self._control = transform(self._control)
            await self._run(self._command, self._control.value)

    async def display(self) -> None:
        """Turn the display on."""
        await self._apply_control("display", lambda c: c.turn_on(DISPLAY_ON))

    async def no_display(self) -> None:
        """Turn the display off. DDRAM contents are kept."""
        await self._apply_control("no display", lambda c: c.turn_off(DISPLAY_OFF))

    async def cursor(self) -> None:
        """Show the underline cursor."""
        await self._apply_control("cursor", lambda c: c.turn_on(CURSOR_ON))

    async def no_cursor(self) -> None:
        """Hide the underline cursor."""
        await self._apply_control("no cursor", lambda c: c.turn_off(CURSOR_OFF))

    async def blink(self) -> None:
        """Blink the character at the cursor."""
        await self._apply_control("blink", lambda c: c.turn_on(BLINK_ON))

    async def no_blink(self) -> None:
        """Stop blinking."""
        await self._apply_control("no blink", lambda c: c.turn_off(BLINK_OFF))

    # =========================================================================
    # Scrolling and Entry Mode
    # =========================================================================

    async def scroll_left(self) -> None:
        """Shift the whole display one position left."""
        async with self._exclusive("scroll left"):
            await self._run(self._command, SCROLL_LEFT)

    async def scroll_right(self) -> None:
        """Shift the whole display one position right."""
        async with self._exclusive("scroll right"):
            await self._run(self._command, SCROLL_RIGHT)

    async def _apply_mode(
        self,
        operation: str,
        transform: Callable[[DisplayMode], DisplayMode],
    ) -> None:
        async with self._exclusive(operation):
            self._mode = transform(self._mode)
            await self._run(self._command, self._mode.value)

    async def left_to_right(self) -> None:
        """Advance the cursor to the right after each character."""
        await self._apply_mode("left to right", lambda m: m.turn_on(LEFT_TO_RIGHT))

    async def right_to_left(self) -> None:
        """Advance the cursor to the left after each character."""
        await self._apply_mode("right to left", lambda m: m.turn_off(RIGHT_TO_LEFT))

    async def autoscroll(self) -> None:
        """Shift the display with each character instead of the cursor."""
        await self._apply_mode("autoscroll", lambda m: m.turn_on(AUTOSCROLL_ON))

    async def no_autoscroll(self) -> None:
        """Stop shifting the display with each character."""
        await self._apply_mode("no autoscroll", lambda m: m.turn_off(AUTOSCROLL_OFF))

    # =========================================================================
    # Shutdown
    # =========================================================================

    def close(self) -> None:
        """
        Release all five pins.

        Further operations raise DriverClosedError. Closing twice is a
        no-op.

        Blocks the calling thread until a transmission already handed to
        the worker has finished: up to a whole print on a slow backend
        such as the serial bridge. Use aclose() from a coroutine.
        """
        if not self._mark_closed():
            return
        self._worker.shutdown(wait=True)
        self._release_pins()

    async def aclose(self) -> None:
        """
        Release all five pins without blocking the event loop.

        Same as close(), but an in-flight transmission is waited for
        cooperatively.
        """
        if not self._mark_closed():
            return
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._worker.shutdown, True)
        self._release_pins()

    def _mark_closed(self) -> bool:
        if self._closed:
            return False
        self._closed = True
        if self._init_task is not None and not self._init_task.done():
            self._init_task.cancel()
        return True

    def _release_pins(self) -> None:
        self._pins.close()
        logger.info("Display closed")
