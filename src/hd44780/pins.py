"""
Pin Set Contract
================

The driver does not talk to GPIO hardware directly. It drives five
output pins through a small protocol that every backend implements:

- ``write(value)``: drive the line low (0) or high (1). Must not return
  before the level is applied. Failures raise PinWriteError.
- ``close()``: release ("unexport") the line.

Backends live in hd44780.backends:

- **gpio**: Linux GPIO character device through lgpio
- **serial**: USB serial GPIO bridge through pyserial
- **simulator**: in-process controller model for tests and dry runs

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Protocol, runtime_checkable

from hd44780.errors import ConfigurationError

logger = logging.getLogger(__name__)


@runtime_checkable
class OutputPin(Protocol):
    """A single digital output line."""

    def write(self, value: int) -> None:
        ...

    def close(self) -> None:
        ...


@dataclass(frozen=True)
class PinSet:
    """
    The five lines of a 4-bit HD44780 bus.

    Attributes:
        rs: Register select (low = instruction, high = character data)
        enable: Enable strobe; data is latched on its falling edge
        data: D4..D7, index i carries bit i of each nibble
    """

    rs: OutputPin
    enable: OutputPin
    data: tuple[OutputPin, OutputPin, OutputPin, OutputPin]

    def __post_init__(self) -> None:
        if len(self.data) != 4:
            raise ConfigurationError(
                f"a 4-bit bus needs exactly 4 data pins, got {len(self.data)}"
            )
        for pin in self:
            if not isinstance(pin, OutputPin):
                raise ConfigurationError(
                    f"{pin!r} does not provide write() and close()"
                )

    def __iter__(self) -> Iterator[OutputPin]:
        yield self.rs
        yield self.enable
        yield from self.data

    def close(self) -> None:
        """Release all five pins, register select first."""
        for pin in self:
            pin.close()
        logger.debug("Released pin set")
