"""
HD44780 Driver Error Hierarchy
==============================

This module defines the exception hierarchy for the whole package. All
exceptions inherit from LcdError, allowing callers to catch every
driver-related error with a single except clause if desired.

Exception Hierarchy
-------------------
LcdError (base)
├── ConfigurationError - invalid configuration, fatal at construction
│   └── PinSetupError - a pin could not be claimed as an output
├── ProgrammingError - caller bug, raised synchronously, never retried
│   ├── NibbleTypeError - non-integer value handed to the nibble path
│   └── CharacterEncodingError - character outside the 8-bit code range
├── HardwareError - I/O failure while driving the bus
│   └── PinWriteError - a single pin write failed
└── DriverClosedError - operation issued after close()

Recovery
--------
A HardwareError leaves the controller in an unknown state. The driver
never retries on its own; callers may reissue Lcd.init() to put the
controller back into a known state.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from typing import Optional, Union


# =============================================================================
# Base Exception Class
# =============================================================================

class LcdError(Exception):
    """
    Base exception for all driver errors.

        try:
            await lcd.print("Hello")
        except LcdError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Configuration Exceptions
# =============================================================================

class ConfigurationError(LcdError):
    """
    Invalid driver configuration.

    Raised when:
    - A pin number is negative or used twice
    - The data pin tuple does not hold exactly four pins
    - The row count is outside 1..4
    - Auto-initialization is requested without a running event loop
    """
    pass


class PinSetupError(ConfigurationError):
    """
    A pin could not be claimed as an output.

    Raised by the pin backends while building a pin set, for example
    when the GPIO line is already in use or the serial bridge cannot be
    opened.
    """

    def __init__(self, pin: Optional[int], message: str):
        self.pin = pin
        if pin is not None:
            message = f"pin {pin}: {message}"
        super().__init__(message)


# =============================================================================
# Programming Errors
# =============================================================================

class ProgrammingError(LcdError):
    """Base exception for caller bugs detected by the driver."""
    pass


class NibbleTypeError(ProgrammingError, TypeError):
    """
    Non-integer value passed to the nibble-write path.

    Only integers can be decomposed into data line levels. Anything else
    indicates a bug in the calling code.
    """

    def __init__(self, value: object):
        self.value = value
        super().__init__(
            f"value passed to write_nibble must be an integer, "
            f"got {type(value).__name__}"
        )


class CharacterEncodingError(ProgrammingError, ValueError):
    """
    Character cannot be sent to the controller.

    The controller character ROM is addressed with 8-bit codes, so code
    points above 0xFF have no representation on the display.
    """

    def __init__(self, char: str, index: int):
        self.char = char
        self.index = index
        super().__init__(
            f"character {char!r} (U+{ord(char):04X}) at index {index} "
            f"is outside the 8-bit character set"
        )


# =============================================================================
# Hardware Exceptions
# =============================================================================

class HardwareError(LcdError):
    """
    Base exception for I/O failures on the bus.

    The controller has no acknowledge line, so a failed write means its
    internal state is unknown from this point on.
    """
    pass


class PinWriteError(HardwareError):
    """
    A pin write failed.

    Raised when:
    - The GPIO line was released or the chip disappeared
    - Permission to drive the line was revoked
    - The serial GPIO bridge was disconnected
    """

    def __init__(self, pin: Union[int, str], value: int, reason: str = ""):
        self.pin = pin
        self.value = value
        message = f"writing {value} to pin {pin} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DriverClosedError(LcdError):
    """
    Operation issued after close().

    Once the pins are released the driver cannot drive the bus again;
    create a new driver instead.
    """

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"cannot {operation}: the display has been closed")
