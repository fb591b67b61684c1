"""
Pin Backends
============

Each backend turns a configuration into an open PinSet:

- **gpio**: Linux GPIO character device via lgpio
  (``pip install hd44780-gpio[gpio]``). Not imported here so the rest
  of the package works without lgpio installed:

      from hd44780.backends.gpio import open_gpio_pins

- **serial**: USB serial GPIO bridge via pyserial
- **simulator**: in-process HD44780 model, no hardware needed

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

from hd44780.backends.serial import (
    DEFAULT_BAUD_RATE,
    BridgePin,
    PortInfo,
    SerialGpioBridge,
    find_bridge_port,
    list_serial_ports,
    open_serial_pins,
)
from hd44780.backends.simulator import (
    Controller,
    ControllerState,
    Line,
    SimulatedBus,
    SimulatedPin,
    Transfer,
)

__all__ = [
    # Serial bridge
    "DEFAULT_BAUD_RATE",
    "BridgePin",
    "PortInfo",
    "SerialGpioBridge",
    "find_bridge_port",
    "list_serial_ports",
    "open_serial_pins",
    # Simulator
    "Controller",
    "ControllerState",
    "Line",
    "SimulatedBus",
    "SimulatedPin",
    "Transfer",
]
