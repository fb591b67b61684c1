"""
Controller Instruction Set and Display State Registers
======================================================

Instruction encoding (HD44780 datasheet, table 6):

- 00000001: Clear display
- 0000001x: Return home
- 000001IS: Entry mode set (I = increment, S = shift display)
- 00001DCB: Display on/off control (D = display, C = cursor, B = blink)
- 0001SRxx: Cursor/display shift (S = shift display, R = right)
- 001LNFxx: Function set (L = 8-bit bus, N = two lines, F = 5x10 font)
- 1AAAAAAA: Set DDRAM address

The driver keeps the last entry mode and display control values it sent
as two immutable register objects. Toggling a feature produces a new
register value which is then transmitted in full; the controller never
sees a partial update.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from dataclasses import dataclass, replace
from typing import Final


# =============================================================================
# Instructions
# =============================================================================

CLEAR_DISPLAY: Final[int] = 0x01
RETURN_HOME: Final[int] = 0x02
ENTRY_MODE_SET: Final[int] = 0x04
DISPLAY_CONTROL: Final[int] = 0x08
CURSOR_SHIFT: Final[int] = 0x10
FUNCTION_SET: Final[int] = 0x20
SET_DDRAM_ADDR: Final[int] = 0x80

# Cursor/display shift variants
SCROLL_LEFT: Final[int] = 0x18      # shift display, left
SCROLL_RIGHT: Final[int] = 0x1C     # shift display, right

# Function set flags
FUNCTION_8BIT: Final[int] = 0x10
FUNCTION_2LINE: Final[int] = 0x08
FUNCTION_5X10: Final[int] = 0x04

# Wake-up nibbles, sent while the controller may still be in 8-bit mode
WAKE_UP_NIBBLE: Final[int] = 0x03
FOUR_BIT_NIBBLE: Final[int] = 0x02

# =============================================================================
# Register Flags and Inverse Masks
# =============================================================================

DISPLAY_ON: Final[int] = 0x04
CURSOR_ON: Final[int] = 0x02
BLINK_ON: Final[int] = 0x01

DISPLAY_OFF: Final[int] = ~DISPLAY_ON & 0xFF
CURSOR_OFF: Final[int] = ~CURSOR_ON & 0xFF
BLINK_OFF: Final[int] = ~BLINK_ON & 0xFF

LEFT_TO_RIGHT: Final[int] = 0x02
AUTOSCROLL_ON: Final[int] = 0x01

RIGHT_TO_LEFT: Final[int] = ~LEFT_TO_RIGHT & 0xFF
AUTOSCROLL_OFF: Final[int] = ~AUTOSCROLL_ON & 0xFF

# =============================================================================
# Geometry
# =============================================================================

# DDRAM base address of each physical row
ROW_OFFSETS: Final[tuple[int, ...]] = (0x00, 0x40, 0x14, 0x54)

MAX_ROWS: Final[int] = len(ROW_OFFSETS)
MAX_COLUMNS: Final[int] = 20

# One display buffer: the largest supported geometry (4 x 20)
PAGE_SIZE: Final[int] = MAX_ROWS * MAX_COLUMNS


def function_set(rows: int, large_font: bool) -> int:
    """
    Compute the function set instruction for a 4-bit bus.

    The 5x10 font only exists in one-line mode, so large_font is ignored
    for multi-row displays.
    """
    value = FUNCTION_SET
    if rows > 1:
        value |= FUNCTION_2LINE
    if rows == 1 and large_font:
        value |= FUNCTION_5X10
    return value


def cursor_address(col: int, row: int, rows: int) -> int:
    """
    Compute the set-DDRAM-address instruction for a screen position.

    Rows past the last configured row land on the last row. Columns are
    passed through unchecked so positions outside the visible window can
    be addressed while the display is shifted.
    """
    row = min(max(row, 0), rows - 1)
    return SET_DDRAM_ADDR | (col + ROW_OFFSETS[row])


def page_start(length: int) -> int:
    """
    Index of the first character of a string worth sending.

    When n*80+m characters are printed with n > 1, the first (n-1)*80
    would be overwritten before anyone could see them. For 802
    characters only the last 82 are sent.
    """
    fills = length // PAGE_SIZE
    return (fills - 1) * PAGE_SIZE if fills > 1 else 0


# =============================================================================
# Registers
# =============================================================================

@dataclass(frozen=True)
class _Register:
    """An 8-bit instruction whose low bits are feature flags."""

    value: int

    def turn_on(self, flag: int) -> "_Register":
        """Return a copy with flag set."""
        return replace(self, value=self.value | flag)

    def turn_off(self, mask: int) -> "_Register":
        """Return a copy ANDed with an inverse mask."""
        return replace(self, value=self.value & mask)

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"0x{self.value:02X}"


@dataclass(frozen=True)
class DisplayControl(_Register):
    """
    Display on/off control register.

    Defaults to display on, cursor off, blink off (0x0C).
    """

    value: int = DISPLAY_CONTROL | DISPLAY_ON

    @property
    def display_on(self) -> bool:
        return bool(self.value & DISPLAY_ON)

    @property
    def cursor_on(self) -> bool:
        return bool(self.value & CURSOR_ON)

    @property
    def blink_on(self) -> bool:
        return bool(self.value & BLINK_ON)


@dataclass(frozen=True)
class DisplayMode(_Register):
    """
    Entry mode register.

    Defaults to left-to-right text, no autoscroll (0x06).
    """

    value: int = ENTRY_MODE_SET | LEFT_TO_RIGHT

    @property
    def left_to_right(self) -> bool:
        return bool(self.value & LEFT_TO_RIGHT)

    @property
    def autoscroll(self) -> bool:
        return bool(self.value & AUTOSCROLL_ON)
