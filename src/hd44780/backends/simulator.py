"""
Simulated HD44780 Controller
============================

An in-process stand-in for a real module. SimulatedBus hands out five
SimulatedPin objects; every write is logged, and on each falling edge of
the enable line the bus latches the data lines exactly as the controller
would and feeds the result to an HD44780 model.

Bus Decoding
------------
After power-on the controller listens on an 8-bit bus. With only D4..D7
wired, each strobe is one instruction whose low four bits read as zero.
A function set with DL=0 switches to 4-bit mode, after which strobes are
paired, high nibble first, into full bytes.

Display RAM
-----------
- One-line mode: 80 characters at 0x00-0x4F
- Two-line mode: 40 characters per line, 0x00-0x27 and 0x40-0x67

Four-row modules are two-line controllers whose lines are folded: row 2
continues line 1 at 0x14 and row 3 continues line 2 at 0x54.

Example:
    >>> bus = SimulatedBus(columns=16, rows=2)
    >>> lcd = Lcd(config, bus.pin_set())
    >>> await lcd.print("Hi")
    >>> bus.controller.get_text_grid()
    ['Hi              ', '                ']

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, NamedTuple, Optional

from hd44780.errors import PinWriteError
from hd44780.pins import PinSet
from hd44780.registers import MAX_ROWS, ROW_OFFSETS

logger = logging.getLogger(__name__)

DDRAM_SIZE = 128
LINE_LENGTH_1 = 80
LINE_LENGTH_2 = 40
LINE_2_BASE = 0x40


# =============================================================================
# Controller Model
# =============================================================================

@dataclass
class ControllerState:
    """
    Register state of the simulated controller.

    Power-on defaults follow the datasheet's internal reset: 8-bit bus,
    one line, display off, increment, no shift.
    """
    eight_bit: bool = True
    two_line: bool = False
    large_font: bool = False
    display_on: bool = False
    cursor_on: bool = False
    blink_on: bool = False
    increment: bool = True
    shift_display: bool = False
    address: int = 0
    shift: int = 0


class Controller:
    """
    HD44780 instruction and data handling.

    Args:
        columns: Visible columns of the attached glass
        rows: Visible rows of the attached glass (1..4)
    """

    def __init__(self, columns: int = 16, rows: int = 2):
        if not 1 <= rows <= MAX_ROWS:
            raise ValueError(f"rows must be between 1 and {MAX_ROWS}, got {rows}")
        self.columns = columns
        self.rows = rows
        self.state = ControllerState()
        self._ddram = bytearray(b" " * DDRAM_SIZE)

    @property
    def line_length(self) -> int:
        return LINE_LENGTH_2 if self.state.two_line else LINE_LENGTH_1

    def command(self, data: int) -> None:
        """
        Execute one instruction.

        Args:
            data: 8-bit instruction byte
        """
        state = self.state

        if data & 0x80:
            # 1AAAAAAA - Set DDRAM address
            state.address = data & 0x7F

        elif data & 0x40:
            # 01AAAAAA - Set CGRAM address; custom characters unsupported
            logger.debug("Ignoring CGRAM address 0x%02X", data & 0x3F)

        elif data & 0x20:
            # 001LNFxx - Function set
            state.eight_bit = bool(data & 0x10)
            state.two_line = bool(data & 0x08)
            state.large_font = bool(data & 0x04)

        elif data & 0x10:
            # 0001SRxx - Cursor/display shift
            step = 1 if data & 0x04 else -1
            if data & 0x08:
                # Shifting the text right moves the window left
                state.shift = (state.shift - step) % self.line_length
            else:
                state.address = self._step_address(state.address, step)

        elif data & 0x08:
            # 00001DCB - Display on/off control
            state.display_on = bool(data & 0x04)
            state.cursor_on = bool(data & 0x02)
            state.blink_on = bool(data & 0x01)

        elif data & 0x04:
            # 000001IS - Entry mode set
            state.increment = bool(data & 0x02)
            state.shift_display = bool(data & 0x01)

        elif data & 0x02:
            # 0000001x - Return home
            state.address = 0
            state.shift = 0

        elif data & 0x01:
            # 00000001 - Clear display
            self._ddram[:] = b" " * DDRAM_SIZE
            state.address = 0
            state.shift = 0
            state.increment = True

    def write_data(self, data: int) -> None:
        """Store a character at the address counter and advance it."""
        state = self.state
        self._ddram[state.address] = data & 0xFF
        step = 1 if state.increment else -1
        state.address = self._step_address(state.address, step)
        if state.shift_display:
            # Text stays put under the cursor: the window moves with it
            state.shift = (state.shift + step) % self.line_length

    def _step_address(self, address: int, step: int) -> int:
        if not self.state.two_line:
            return (address + step) % LINE_LENGTH_1
        line_base = address & LINE_2_BASE
        offset = (address - line_base + step) % LINE_LENGTH_2
        if step > 0 and offset == 0:
            line_base ^= LINE_2_BASE
        elif step < 0 and offset == LINE_LENGTH_2 - 1:
            line_base ^= LINE_2_BASE
        return line_base + offset

    # =========================================================================
    # Text Access API (for testing and debugging)
    # =========================================================================

    def _visible_address(self, row: int, col: int) -> int:
        base = ROW_OFFSETS[row]
        line_base = base & LINE_2_BASE if self.state.two_line else 0
        position = base - line_base + col + self.state.shift
        return line_base + position % self.line_length

    def get_char_at(self, row: int, col: int) -> int:
        """
        Get character code shown at a screen position.

        Raises:
            ValueError: If the position is off the glass.
        """
        if not (0 <= row < self.rows and 0 <= col < self.columns):
            raise ValueError(f"Invalid position ({row}, {col})")
        return self._ddram[self._visible_address(row, col)]

    def get_text_grid(self) -> List[str]:
        """
        Get visible contents as one string per row.

        A display that is switched off shows empty rows.
        """
        if not self.state.display_on:
            return ["" for _ in range(self.rows)]

        grid = []
        for row in range(self.rows):
            chars = []
            for col in range(self.columns):
                code = self.get_char_at(row, col)
                chars.append(chr(code) if 32 <= code < 127 else " ")
            grid.append("".join(chars))
        return grid

    def get_text(self) -> str:
        """Get visible contents with '\\n' separating rows."""
        return "\n".join(self.get_text_grid())

    def ddram(self) -> bytes:
        """Raw display RAM."""
        return bytes(self._ddram)


# =============================================================================
# Pin Level Simulation
# =============================================================================

class Line(Enum):
    RS = "rs"
    E = "e"
    D4 = "d4"
    D5 = "d5"
    D6 = "d6"
    D7 = "d7"


DATA_LINES = (Line.D4, Line.D5, Line.D6, Line.D7)


class PinWrite(NamedTuple):
    line: Line
    value: int


class Transfer(NamedTuple):
    """A decoded byte: rs=0 for instructions, 1 for characters."""
    rs: int
    value: int


class SimulatedBus:
    """
    Five simulated lines wired to a Controller.

    Attributes:
        controller: The controller model receiving decoded transfers
        writes: Every pin write in order
        strobes: (rs, nibble) latched on each enable falling edge
        transfers: Decoded instructions and characters in order
    """

    def __init__(self, columns: int = 16, rows: int = 2):
        self.controller = Controller(columns=columns, rows=rows)
        self.levels = {line: 0 for line in Line}
        self.writes: List[PinWrite] = []
        self.strobes: List[tuple[int, int]] = []
        self.transfers: List[Transfer] = []
        self.released: set[Line] = set()
        self._faults: dict[Line, int] = {}
        self._high_nibble: Optional[int] = None
        self._lock = threading.Lock()

    def pin(self, line: Line) -> "SimulatedPin":
        return SimulatedPin(self, line)

    def pin_set(self) -> PinSet:
        """Build the PinSet the driver expects."""
        return PinSet(
            rs=self.pin(Line.RS),
            enable=self.pin(Line.E),
            data=tuple(self.pin(line) for line in DATA_LINES),
        )

    def write(self, line: Line, value: int) -> None:
        with self._lock:
            if line in self.released:
                raise PinWriteError(line.value, value, "line has been released")
            remaining = self._faults.get(line)
            if remaining is not None:
                if remaining <= 0:
                    raise PinWriteError(line.value, value, "injected fault")
                self._faults[line] = remaining - 1
            value = 1 if value else 0
            previous = self.levels[line]
            self.levels[line] = value
            self.writes.append(PinWrite(line, value))
            if line is Line.E and previous == 1 and value == 0:
                self._latch()

    def release(self, line: Line) -> None:
        with self._lock:
            self.released.add(line)

    def inject_fault(self, line: Line, after: int = 0) -> None:
        """
        Make writes to a line fail.

        The next `after` writes succeed; every write after that raises
        PinWriteError until clear_faults() is called.
        """
        with self._lock:
            self._faults[line] = after

    def clear_faults(self) -> None:
        with self._lock:
            self._faults.clear()

    @property
    def all_released(self) -> bool:
        return len(self.released) == len(Line)

    def _latch(self) -> None:
        nibble = 0
        for bit, line in enumerate(DATA_LINES):
            nibble |= self.levels[line] << bit
        rs = self.levels[Line.RS]
        self.strobes.append((rs, nibble))

        if self.controller.state.eight_bit:
            # D0..D3 are not wired and read as zero
            self._dispatch(rs, nibble << 4)
            return

        if self._high_nibble is None:
            self._high_nibble = nibble
            return
        value = (self._high_nibble << 4) | nibble
        self._high_nibble = None
        self._dispatch(rs, value)

    def _dispatch(self, rs: int, value: int) -> None:
        self.transfers.append(Transfer(rs, value))
        if rs:
            self.controller.write_data(value)
        else:
            self.controller.command(value)

    # =========================================================================
    # Inspection Helpers
    # =========================================================================

    def commands(self) -> List[int]:
        """All instruction bytes received so far."""
        return [t.value for t in self.transfers if t.rs == 0]

    def characters(self) -> str:
        """All character data received so far, as text."""
        return "".join(chr(t.value) for t in self.transfers if t.rs == 1)

    def reset_log(self) -> None:
        """Forget recorded traffic; controller state is kept."""
        with self._lock:
            self.writes.clear()
            self.strobes.clear()
            self.transfers.clear()


class SimulatedPin:
    """One output line of a SimulatedBus."""

    def __init__(self, bus: SimulatedBus, line: Line):
        self.bus = bus
        self.line = line

    def write(self, value: int) -> None:
        self.bus.write(self.line, value)

    def close(self) -> None:
        self.bus.release(self.line)

    def __repr__(self) -> str:
        return f"SimulatedPin({self.line.value})"
