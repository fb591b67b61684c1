"""
Simulated Controller Unit Tests
===============================

Tests for the HD44780 model behind the simulator backend:
- Instruction decoding
- Address counter and display shift
- Bus decoding in 8-bit and 4-bit mode
- Line release and fault injection

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest

from hd44780.backends.simulator import (
    DATA_LINES,
    Controller,
    Line,
    SimulatedBus,
    Transfer,
)
from hd44780.errors import PinWriteError
from hd44780.pins import PinSet


def powered(columns: int = 16, rows: int = 2) -> Controller:
    """A controller switched on in two-line mode."""
    controller = Controller(columns=columns, rows=rows)
    controller.command(0x28)
    controller.command(0x0C)
    return controller


def write_text(controller: Controller, text: str) -> None:
    for char in text:
        controller.write_data(ord(char))


def strobe(bus: SimulatedBus, rs: int, nibble: int) -> None:
    """Clock one nibble onto the bus by hand."""
    bus.write(Line.RS, rs)
    bus.write(Line.E, 1)
    for bit, line in enumerate(DATA_LINES):
        bus.write(line, (nibble >> bit) & 1)
    bus.write(Line.E, 0)


# =============================================================================
# Controller Tests
# =============================================================================

class TestControllerInit:
    """Test power-on state."""

    def test_power_on_defaults(self):
        state = Controller().state
        assert state.eight_bit is True
        assert state.two_line is False
        assert state.display_on is False
        assert state.increment is True

    def test_display_off_shows_nothing(self):
        assert Controller(rows=2).get_text_grid() == ["", ""]

    def test_invalid_rows(self):
        with pytest.raises(ValueError):
            Controller(rows=5)


class TestControllerCommands:
    """Test instruction decoding."""

    def test_function_set(self):
        controller = Controller()
        controller.command(0x24)
        assert controller.state.eight_bit is False
        assert controller.state.two_line is False
        assert controller.state.large_font is True

    def test_display_control(self):
        controller = Controller()
        controller.command(0x0F)
        assert controller.state.display_on is True
        assert controller.state.cursor_on is True
        assert controller.state.blink_on is True

    def test_entry_mode(self):
        controller = Controller()
        controller.command(0x05)
        assert controller.state.increment is False
        assert controller.state.shift_display is True

    def test_set_address(self):
        controller = powered()
        controller.command(0xC5)
        assert controller.state.address == 0x45

    def test_cursor_moves(self):
        controller = powered()
        controller.command(0x85)
        controller.command(0x14)
        assert controller.state.address == 6
        controller.command(0x10)
        controller.command(0x10)
        assert controller.state.address == 4

    def test_cgram_address_ignored(self):
        controller = powered()
        controller.command(0x85)
        controller.command(0x48)
        assert controller.state.address == 5

    def test_clear(self):
        controller = powered()
        controller.command(0x04)
        write_text(controller, "abc")
        controller.command(0x18)
        controller.command(0x01)
        assert controller.state.address == 0
        assert controller.state.shift == 0
        assert controller.state.increment is True
        assert controller.ddram()[:3] == b"   "

    def test_home_keeps_text(self):
        controller = powered()
        write_text(controller, "abc")
        controller.command(0x18)
        controller.command(0x02)
        assert controller.state.address == 0
        assert controller.state.shift == 0
        assert controller.get_text_grid()[0].startswith("abc")


class TestAddressCounter:
    """Test address counter wrap-around."""

    def test_two_line_wrap_to_second_line(self):
        controller = powered()
        controller.command(0x80 | 0x27)
        controller.write_data(ord("x"))
        assert controller.state.address == 0x40

    def test_two_line_wrap_to_first_line(self):
        controller = powered()
        controller.command(0x80 | 0x67)
        controller.write_data(ord("x"))
        assert controller.state.address == 0x00

    def test_two_line_decrement_wrap(self):
        controller = powered()
        controller.command(0x04)
        controller.write_data(ord("x"))
        assert controller.state.address == 0x67

    def test_one_line_wrap(self):
        controller = Controller(rows=1)
        controller.command(0x20)
        controller.command(0x80 | 0x4F)
        controller.write_data(ord("x"))
        assert controller.state.address == 0x00

    def test_four_row_overflow_continues_on_row_2(self):
        """Row 0 of a 20x4 module continues on row 2."""
        controller = powered(columns=20, rows=4)
        write_text(controller, "a" * 20 + "b")
        grid = controller.get_text_grid()
        assert grid[0] == "a" * 20
        assert grid[1] == " " * 20
        assert grid[2].startswith("b")


class TestDisplayShift:
    """Test the display window shift."""

    def test_shift_left(self):
        controller = powered()
        write_text(controller, "Hello")
        controller.command(0x18)
        assert controller.get_text_grid()[0].startswith("ello")

    def test_shift_right(self):
        controller = powered()
        write_text(controller, "Hello")
        controller.command(0x1C)
        assert controller.get_text_grid()[0].startswith(" Hello")

    def test_shift_applies_to_both_lines(self):
        controller = powered()
        controller.command(0xC0)
        write_text(controller, "World")
        controller.command(0x18)
        assert controller.get_text_grid()[1].startswith("orld")

    def test_autoscroll_keeps_cursor_column(self):
        controller = powered()
        controller.command(0x07)
        write_text(controller, "abc")
        assert controller.state.shift == 3
        assert controller.get_char_at(0, 0) == ord(" ")


class TestTextAccess:
    """Test reading the visible contents."""

    def test_get_char_at(self):
        controller = powered()
        write_text(controller, "Hi")
        assert controller.get_char_at(0, 1) == ord("i")

    @pytest.mark.parametrize("row, col", [(2, 0), (0, 16), (-1, 0)])
    def test_get_char_at_off_glass(self, row, col):
        with pytest.raises(ValueError):
            powered().get_char_at(row, col)

    def test_unprintable_shown_as_space(self):
        controller = powered()
        controller.write_data(0x01)
        controller.write_data(0xDF)
        assert controller.get_text_grid()[0][:2] == "  "
        assert controller.ddram()[:2] == b"\x01\xdf"

    def test_get_text(self):
        controller = powered()
        write_text(controller, "ab")
        assert controller.get_text() == "ab" + " " * 14 + "\n" + " " * 16


# =============================================================================
# Bus Tests
# =============================================================================

class TestBusDecoding:
    """Test latching and nibble pairing."""

    def test_pin_set(self, bus):
        pins = bus.pin_set()
        assert isinstance(pins, PinSet)
        assert [pin.line for pin in pins] == [Line.RS, Line.E, *DATA_LINES]

    def test_eight_bit_mode_latches_single_nibbles(self, bus):
        strobe(bus, 0, 0x3)
        assert bus.transfers == [Transfer(0, 0x30)]
        assert bus.controller.state.eight_bit is True

    def test_switch_to_four_bit(self, bus):
        strobe(bus, 0, 0x2)
        assert bus.controller.state.eight_bit is False
        strobe(bus, 0, 0x2)
        strobe(bus, 0, 0x8)
        assert bus.transfers == [Transfer(0, 0x20), Transfer(0, 0x28)]
        assert bus.controller.state.two_line is True

    def test_character_transfer(self, bus):
        strobe(bus, 0, 0x2)
        strobe(bus, 1, 0x4)
        strobe(bus, 1, 0x1)
        assert bus.characters() == "A"
        assert bus.commands() == [0x20]

    def test_latch_on_falling_edge_only(self, bus):
        bus.write(Line.E, 1)
        bus.write(Line.E, 1)
        assert bus.strobes == []
        bus.write(Line.E, 0)
        bus.write(Line.E, 0)
        assert bus.strobes == [(0, 0)]

    def test_reset_log_keeps_state(self, bus):
        strobe(bus, 0, 0x2)
        bus.reset_log()
        assert bus.writes == []
        assert bus.transfers == []
        assert bus.controller.state.eight_bit is False


class TestBusLines:
    """Test line release and fault injection."""

    def test_write_after_release(self, bus):
        pins = bus.pin_set()
        pins.rs.close()
        with pytest.raises(PinWriteError, match="released"):
            pins.rs.write(1)

    def test_all_released(self, bus):
        pins = bus.pin_set()
        pins.close()
        assert bus.all_released

    def test_inject_fault(self, bus):
        bus.inject_fault(Line.D4, after=1)
        bus.write(Line.D4, 1)
        with pytest.raises(PinWriteError) as exc_info:
            bus.write(Line.D4, 0)
        assert exc_info.value.pin == "d4"
        assert bus.levels[Line.D4] == 1

    def test_clear_faults(self, bus):
        bus.inject_fault(Line.E)
        bus.clear_faults()
        bus.write(Line.E, 1)
        assert bus.levels[Line.E] == 1

    def test_pin_repr(self, bus):
        assert repr(bus.pin(Line.D7)) == "SimulatedPin(d7)"
