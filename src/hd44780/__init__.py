"""
hd44780 - Character LCD Driver for 4-bit HD44780 Buses
======================================================

This package drives character LCD modules built on the Hitachi HD44780
controller (and timing-compatible parts such as the ST7066U) wired with
four data lines, register select and enable.

Main Components
---------------
- **driver**: the protocol engine (Lcd)
    Wake-up sequence, nibble transmission, serialized operations

- **registers**: instruction set and display state registers

- **events**: callback / named-event front-end (LcdEvents)

- **backends**: pin sets for Linux GPIO, USB serial GPIO bridges and an
  in-process simulator

Quick Start
-----------
    >>> import asyncio
    >>> from hd44780 import Lcd, LcdConfig
    >>> from hd44780.backends.gpio import open_gpio_pins
    >>>
    >>> async def main():
    ...     config = LcdConfig(rs=25, enable=24, data=(23, 17, 18, 22),
    ...                        columns=16, rows=2)
    ...     async with Lcd(config, open_gpio_pins(config)) as lcd:
    ...         await lcd.print("Hello")
    ...         await lcd.set_cursor(0, 1)
    ...         await lcd.print("World")
    >>>
    >>> asyncio.run(main())

Or use the command-line tool:
    $ hd44780 --rows 2 print "Hello"
    $ hd44780 --backend sim --rows 2 print "Hello"

Reference Documentation
-----------------------
- HD44780U datasheet (Hitachi ADE-207-272)
- ST7066U datasheet (Sitronix)

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

__version__ = "1.0.0"

from hd44780.config import LcdConfig
from hd44780.driver import Lcd, RegisterSelect, encode_text
from hd44780.errors import (
    CharacterEncodingError,
    ConfigurationError,
    DriverClosedError,
    HardwareError,
    LcdError,
    NibbleTypeError,
    PinSetupError,
    PinWriteError,
    ProgrammingError,
)
from hd44780.events import EVENTS, LcdEvents
from hd44780.pins import OutputPin, PinSet
from hd44780.registers import DisplayControl, DisplayMode

__all__ = [
    "__version__",
    # Driver
    "Lcd",
    "LcdConfig",
    "RegisterSelect",
    "encode_text",
    # State
    "DisplayControl",
    "DisplayMode",
    # Pins
    "OutputPin",
    "PinSet",
    # Notifications
    "EVENTS",
    "LcdEvents",
    # Errors
    "LcdError",
    "ConfigurationError",
    "PinSetupError",
    "ProgrammingError",
    "NibbleTypeError",
    "CharacterEncodingError",
    "HardwareError",
    "PinWriteError",
    "DriverClosedError",
]
