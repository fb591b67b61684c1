"""
Linux GPIO Backend
==================

Drives the bus through the GPIO character device (/dev/gpiochipN) using
the lgpio library. This works on any Linux board with a gpiochip driver,
including every Raspberry Pi model and kernel since the sysfs interface
was retired.

Line numbers are the chip's line offsets, which on a Raspberry Pi are the
BCM GPIO numbers.

Permissions
-----------
The user needs read/write access to /dev/gpiochipN. On Raspberry Pi OS
this means membership of the 'gpio' group:

    sudo usermod -a -G gpio $USER

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
from typing import Final

import lgpio

from hd44780.config import LcdConfig
from hd44780.errors import PinSetupError, PinWriteError
from hd44780.pins import PinSet

logger = logging.getLogger(__name__)

DEFAULT_CHIP: Final[int] = 0


class GpioChip:
    """
    An open gpiochip with the lines claimed from it.

    The chip handle is closed when the last claimed line is released.

    Args:
        chip: gpiochip number (0 for /dev/gpiochip0)

    Raises:
        PinSetupError: If the chip cannot be opened.
    """

    def __init__(self, chip: int = DEFAULT_CHIP):
        self.chip = chip
        try:
            self.handle = lgpio.gpiochip_open(chip)
        except lgpio.error as e:
            raise PinSetupError(None, f"cannot open /dev/gpiochip{chip}: {e}") from e
        self._claimed: set[int] = set()
        logger.debug("Opened gpiochip%d (handle %d)", chip, self.handle)

    def claim(self, line: int) -> "GpioPin":
        """
        Claim a line as an output, initially low.

        Raises:
            PinSetupError: If the line is busy or does not exist.
        """
        try:
            lgpio.gpio_claim_output(self.handle, line, 0)
        except lgpio.error as e:
            raise PinSetupError(line, f"cannot claim as output: {e}") from e
        self._claimed.add(line)
        logger.debug("Claimed gpiochip%d line %d", self.chip, line)
        return GpioPin(self, line)

    def write(self, line: int, value: int) -> None:
        try:
            lgpio.gpio_write(self.handle, line, value)
        except lgpio.error as e:
            raise PinWriteError(line, value, str(e)) from e

    def release(self, line: int) -> None:
        if line not in self._claimed:
            return
        self._claimed.discard(line)
        try:
            lgpio.gpio_free(self.handle, line)
        except lgpio.error as e:
            logger.warning("Error freeing line %d: %s", line, e)
        if not self._claimed:
            self.close()

    def close(self) -> None:
        """Close the chip handle, freeing any line still claimed."""
        for line in sorted(self._claimed):
            try:
                lgpio.gpio_free(self.handle, line)
            except lgpio.error as e:
                logger.warning("Error freeing line %d: %s", line, e)
        self._claimed.clear()
        try:
            lgpio.gpiochip_close(self.handle)
        except lgpio.error as e:
            logger.warning("Error closing gpiochip%d: %s", self.chip, e)
        else:
            logger.debug("Closed gpiochip%d", self.chip)


class GpioPin:
    """One claimed output line."""

    def __init__(self, chip: GpioChip, line: int):
        self.chip = chip
        self.line = line

    def write(self, value: int) -> None:
        self.chip.write(self.line, value)

    def close(self) -> None:
        self.chip.release(self.line)

    def __repr__(self) -> str:
        return f"GpioPin(chip={self.chip.chip}, line={self.line})"


def open_gpio_pins(config: LcdConfig, chip: int = DEFAULT_CHIP) -> PinSet:
    """
    Claim the six lines of config on a gpiochip.

    Either every line is claimed or none is: on failure the lines already
    claimed are freed before the error propagates.

    Raises:
        PinSetupError: If the chip cannot be opened or a line claimed.
    """
    gpio = GpioChip(chip)
    try:
        rs = gpio.claim(config.rs)
        enable = gpio.claim(config.enable)
        data = tuple(gpio.claim(line) for line in config.data)
    except PinSetupError:
        gpio.close()
        raise

    logger.info("Claimed gpiochip%d lines for %s", chip, config.describe())
    return PinSet(rs=rs, enable=enable, data=data)
