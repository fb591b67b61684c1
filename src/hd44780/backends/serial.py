"""
USB Serial GPIO Bridge Backend
==============================

Drives the bus through a USB GPIO module that takes text commands over a
virtual serial port, such as the Numato Lab USB GPIO boards:

    gpio set 3\r      drive line 3 high
    gpio clear 3\r    drive line 3 low

Lines above 9 are named with letters (A = 10 ... V = 31).

This is slow (every write is a serial round trip of a millisecond or so)
but every wait in the HD44780 protocol is a minimum, so the timing stays
within the datasheet limits. Handy for driving a display from a PC
without a GPIO header.

Port Settings
-------------
The bridges enumerate as USB CDC devices, so the baud rate is nominal;
19200 8N1 without flow control is used.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
from dataclasses import dataclass
from typing import Final, Optional

import serial
import serial.tools.list_ports

from hd44780.config import LcdConfig
from hd44780.errors import PinSetupError, PinWriteError
from hd44780.pins import PinSet

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_BAUD_RATE: Final[int] = 19200

DEFAULT_TIMEOUT: Final[float] = 1.0

LINE_NAMES: Final[str] = "0123456789ABCDEFGHIJKLMNOPQRSTUV"

# USB Vendor IDs of known bridges and common USB-serial chips
USB_VENDOR_IDS: Final[dict[int, str]] = {
    0x2A19: "Numato Lab",
    0x0403: "FTDI",
    0x10C4: "Silicon Labs",
    0x1A86: "QinHeng",
}


# =============================================================================
# Port Information
# =============================================================================

@dataclass(frozen=True)
class PortInfo:
    """
    Information about an available serial port.

    Attributes:
        device: System device path (e.g., '/dev/ttyACM0', 'COM3')
        description: Human-readable description from the driver
        vid: USB Vendor ID (None for non-USB ports)
        pid: USB Product ID (None for non-USB ports)
    """

    device: str
    description: str
    vid: Optional[int]
    pid: Optional[int]

    @property
    def vendor_name(self) -> Optional[str]:
        if self.vid is not None:
            return USB_VENDOR_IDS.get(self.vid)
        return None

    def __str__(self) -> str:
        parts = [self.device]
        if self.description:
            parts.append(f"- {self.description}")
        if self.vendor_name:
            parts.append(f"({self.vendor_name})")
        return " ".join(parts)


def list_serial_ports() -> list[PortInfo]:
    """List all serial ports on the system."""
    ports = []
    for port in serial.tools.list_ports.comports():
        ports.append(PortInfo(
            device=port.device,
            description=port.description or "",
            vid=port.vid,
            pid=port.pid,
        ))
        logger.debug(
            "Found port: %s (vid=%s)",
            port.device,
            f"{port.vid:04X}" if port.vid else "N/A",
        )
    return ports


def find_bridge_port() -> Optional[str]:
    """
    Attempt to auto-detect a GPIO bridge.

    Numato Lab devices are preferred; otherwise the first USB serial port
    is returned, or None if there is none.
    """
    usb_ports = [p for p in list_serial_ports() if p.vid is not None]
    if not usb_ports:
        logger.debug("No USB serial ports found")
        return None

    for port in usb_ports:
        if port.vid == 0x2A19:
            logger.info("Auto-detected GPIO bridge: %s", port.device)
            return port.device

    logger.info("Using first USB serial port: %s", usb_ports[0].device)
    return usb_ports[0].device


# =============================================================================
# Bridge
# =============================================================================

class SerialGpioBridge:
    """
    An open GPIO bridge.

    The port is closed when the last pin handed out is released.

    Args:
        device: Serial port device path
        baud_rate: Nominal baud rate

    Raises:
        PinSetupError: If the port cannot be opened.
    """

    def __init__(self, device: str, baud_rate: int = DEFAULT_BAUD_RATE):
        self.device = device
        logger.info("Opening GPIO bridge on %s", device)
        try:
            self.port = serial.Serial(
                port=device,
                baudrate=baud_rate,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                timeout=DEFAULT_TIMEOUT,
                write_timeout=DEFAULT_TIMEOUT,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
            )
        except serial.SerialException as e:
            raise PinSetupError(None, _describe_open_error(device, e)) from e
        self.port.reset_input_buffer()
        self._pins: set[int] = set()

    def pin(self, line: int) -> "BridgePin":
        """
        Hand out a line as an output, initially low.

        Raises:
            PinSetupError: If the bridge has no such line.
        """
        if not 0 <= line < len(LINE_NAMES):
            raise PinSetupError(line, f"bridge lines are 0..{len(LINE_NAMES) - 1}")
        self._pins.add(line)
        self.write(line, 0)
        return BridgePin(self, line)

    def write(self, line: int, value: int) -> None:
        verb = "set" if value else "clear"
        command = f"gpio {verb} {LINE_NAMES[line]}\r".encode("ascii")
        try:
            self.port.write(command)
            self.port.flush()
            # The bridge echoes every command; nothing else is read back
            self.port.reset_input_buffer()
        except serial.SerialException as e:
            raise PinWriteError(line, value, str(e)) from e

    def release(self, line: int) -> None:
        self._pins.discard(line)
        if not self._pins:
            self.close()

    def close(self) -> None:
        if self.port.is_open:
            try:
                self.port.close()
            except serial.SerialException as e:
                logger.warning("Error closing %s: %s", self.device, e)
            else:
                logger.debug("Closed GPIO bridge on %s", self.device)


class BridgePin:
    """One output line of a SerialGpioBridge."""

    def __init__(self, bridge: SerialGpioBridge, line: int):
        self.bridge = bridge
        self.line = line

    def write(self, value: int) -> None:
        self.bridge.write(self.line, value)

    def close(self) -> None:
        self.bridge.release(self.line)

    def __repr__(self) -> str:
        return f"BridgePin({self.bridge.device}, line={self.line})"


def _describe_open_error(device: str, error: Exception) -> str:
    message = str(error)
    if "Permission denied" in message:
        return (
            f"permission denied accessing {device}; you may need to add "
            "your user to the 'dialout' group: sudo usermod -a -G dialout $USER"
        )
    if "No such file" in message or "not found" in message.lower():
        return (
            f"serial port not found: {device}; "
            "use 'hd44780 ports' to list available ports"
        )
    if "busy" in message.lower() or "in use" in message.lower():
        return f"serial port {device} is busy; close any other program using it"
    return f"cannot open {device}: {message}"


def open_serial_pins(
    config: LcdConfig,
    device: str,
    baud_rate: int = DEFAULT_BAUD_RATE,
) -> PinSet:
    """
    Open a GPIO bridge and hand out the six lines of config.

    Raises:
        PinSetupError: If the port cannot be opened or a line does not
            exist on the bridge. The port is closed again in that case.
    """
    bridge = SerialGpioBridge(device, baud_rate)
    try:
        rs = bridge.pin(config.rs)
        enable = bridge.pin(config.enable)
        data = tuple(bridge.pin(line) for line in config.data)
    except (PinSetupError, PinWriteError):
        bridge.close()
        raise

    logger.info("Using %s lines for %s", device, config.describe())
    return PinSet(rs=rs, enable=enable, data=data)
