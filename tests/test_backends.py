"""
Pin Backend Tests
=================

Tests for the Linux GPIO and serial bridge backends with the hardware
libraries mocked out.

Note: lgpio only installs on Linux, so the GPIO backend is imported
against a stand-in module here.
"""

import importlib
import sys
import types
from unittest.mock import MagicMock, Mock, call, patch

import pytest
import serial

from hd44780.backends.serial import (
    BridgePin,
    PortInfo,
    SerialGpioBridge,
    find_bridge_port,
    list_serial_ports,
    open_serial_pins,
)
from hd44780.config import LcdConfig
from hd44780.driver import Lcd
from hd44780.errors import PinSetupError, PinWriteError

CONFIG = LcdConfig(columns=16, rows=2)


# =============================================================================
# Linux GPIO Backend
# =============================================================================

class FakeLgpioError(Exception):
    pass


@pytest.fixture
def lgpio_mock():
    """Import hd44780.backends.gpio against a mocked lgpio module."""
    module = types.ModuleType("lgpio")
    module.error = FakeLgpioError
    module.gpiochip_open = Mock(return_value=7)
    module.gpiochip_close = Mock(return_value=0)
    module.gpio_claim_output = Mock(return_value=0)
    module.gpio_write = Mock(return_value=0)
    module.gpio_free = Mock(return_value=0)

    with patch.dict(sys.modules, {"lgpio": module}):
        sys.modules.pop("hd44780.backends.gpio", None)
        gpio = importlib.import_module("hd44780.backends.gpio")
        yield module, gpio


class TestGpioBackend:
    """Test claiming and driving gpiochip lines."""

    def test_claims_lines_low(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        gpio.open_gpio_pins(CONFIG)
        lgpio.gpiochip_open.assert_called_once_with(0)
        assert lgpio.gpio_claim_output.call_args_list == [
            call(7, line, 0) for line in (25, 24, 23, 17, 18, 22)
        ]

    def test_other_chip(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        gpio.open_gpio_pins(CONFIG, chip=4)
        lgpio.gpiochip_open.assert_called_once_with(4)

    def test_write(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        pins = gpio.open_gpio_pins(CONFIG)
        pins.enable.write(1)
        lgpio.gpio_write.assert_called_once_with(7, 24, 1)

    def test_write_failure(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        pins = gpio.open_gpio_pins(CONFIG)
        lgpio.gpio_write.side_effect = FakeLgpioError("bad handle")
        with pytest.raises(PinWriteError, match="bad handle") as exc_info:
            pins.rs.write(0)
        assert exc_info.value.pin == 25

    def test_chip_open_failure(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        lgpio.gpiochip_open.side_effect = FakeLgpioError("no such device")
        with pytest.raises(PinSetupError, match="gpiochip0"):
            gpio.open_gpio_pins(CONFIG)

    def test_claim_failure_frees_claimed_lines(self, lgpio_mock):
        """Pin setup is all or nothing."""
        lgpio, gpio = lgpio_mock
        lgpio.gpio_claim_output.side_effect = [0, 0, FakeLgpioError("GPIO busy")]
        with pytest.raises(PinSetupError) as exc_info:
            gpio.open_gpio_pins(CONFIG)
        assert exc_info.value.pin == 23
        assert lgpio.gpio_free.call_args_list == [call(7, 24), call(7, 25)]
        lgpio.gpiochip_close.assert_called_once_with(7)

    def test_close_frees_every_line(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        pins = gpio.open_gpio_pins(CONFIG)
        pins.close()
        assert lgpio.gpio_free.call_count == 6
        lgpio.gpiochip_close.assert_called_once_with(7)

    def test_release_twice(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        pins = gpio.open_gpio_pins(CONFIG)
        pins.rs.close()
        pins.rs.close()
        assert lgpio.gpio_free.call_count == 1

    @pytest.mark.asyncio
    async def test_drives_display(self, lgpio_mock):
        lgpio, gpio = lgpio_mock
        async with Lcd(CONFIG, gpio.open_gpio_pins(CONFIG)) as lcd:
            await lcd.print("A")
        assert call(7, 25, 1) in lgpio.gpio_write.call_args_list
        lgpio.gpiochip_close.assert_called_once_with(7)


# =============================================================================
# Serial Bridge Backend
# =============================================================================

@pytest.fixture
def mock_serial():
    with patch("hd44780.backends.serial.serial.Serial") as serial_class:
        port = MagicMock()
        port.is_open = True
        serial_class.return_value = port
        yield serial_class, port


def sent(port: MagicMock) -> list:
    return [c.args[0] for c in port.write.call_args_list]


class TestSerialBridge:
    """Test the text command GPIO bridge."""

    def test_port_settings(self, mock_serial):
        serial_class, _ = mock_serial
        SerialGpioBridge("/dev/ttyACM0")
        kwargs = serial_class.call_args.kwargs
        assert kwargs["port"] == "/dev/ttyACM0"
        assert kwargs["baudrate"] == 19200
        assert kwargs["parity"] == serial.PARITY_NONE
        assert kwargs["rtscts"] is False

    def test_lines_start_low(self, mock_serial):
        _, port = mock_serial
        open_serial_pins(CONFIG, "/dev/ttyACM0")
        assert sent(port) == [
            f"gpio clear {name}\r".encode() for name in "PONHIM"
        ]

    def test_write_high(self, mock_serial):
        _, port = mock_serial
        pins = open_serial_pins(CONFIG, "/dev/ttyACM0")
        port.write.reset_mock()
        pins.enable.write(1)
        assert sent(port) == [b"gpio set O\r"]
        port.flush.assert_called()

    def test_low_line_numbers(self, mock_serial):
        _, port = mock_serial
        bridge = SerialGpioBridge("/dev/ttyACM0")
        pin = bridge.pin(3)
        pin.write(1)
        assert sent(port)[-1] == b"gpio set 3\r"
        assert isinstance(pin, BridgePin)

    def test_line_out_of_range(self, mock_serial):
        _, port = mock_serial
        config = LcdConfig(rs=0, enable=1, data=(2, 3, 4, 40))
        with pytest.raises(PinSetupError, match="pin 40"):
            open_serial_pins(config, "/dev/ttyACM0")
        port.close.assert_called_once()

    def test_write_failure(self, mock_serial):
        _, port = mock_serial
        pins = open_serial_pins(CONFIG, "/dev/ttyACM0")
        port.write.side_effect = serial.SerialException("device disconnected")
        with pytest.raises(PinWriteError, match="disconnected"):
            pins.data[0].write(1)

    def test_close_on_last_release(self, mock_serial):
        _, port = mock_serial
        pins = open_serial_pins(CONFIG, "/dev/ttyACM0")
        pins.rs.close()
        port.close.assert_not_called()
        pins.close()
        port.close.assert_called_once()

    @pytest.mark.parametrize("message, expected", [
        ("[Errno 13] Permission denied: '/dev/ttyACM0'", "dialout"),
        ("[Errno 2] No such file or directory", "hd44780 ports"),
        ("Device or resource busy", "busy"),
        ("something odd", "cannot open"),
    ])
    def test_open_errors(self, message, expected):
        with patch(
            "hd44780.backends.serial.serial.Serial",
            side_effect=serial.SerialException(message),
        ):
            with pytest.raises(PinSetupError, match=expected):
                SerialGpioBridge("/dev/ttyACM0")


class TestPortDiscovery:
    """Test serial port listing and bridge auto-detection."""

    @staticmethod
    def fake_port(device, vid=None, description="USB Serial"):
        return Mock(device=device, description=description, vid=vid, pid=0x0800)

    def test_list_ports(self):
        with patch(
            "serial.tools.list_ports.comports",
            return_value=[self.fake_port("/dev/ttyACM0", vid=0x2A19)],
        ):
            ports = list_serial_ports()
        assert ports == [PortInfo("/dev/ttyACM0", "USB Serial", 0x2A19, 0x0800)]
        assert ports[0].vendor_name == "Numato Lab"
        assert str(ports[0]) == "/dev/ttyACM0 - USB Serial (Numato Lab)"

    def test_prefers_numato(self):
        with patch("serial.tools.list_ports.comports", return_value=[
            self.fake_port("/dev/ttyS0"),
            self.fake_port("/dev/ttyUSB0", vid=0x0403),
            self.fake_port("/dev/ttyACM0", vid=0x2A19),
        ]):
            assert find_bridge_port() == "/dev/ttyACM0"

    def test_first_usb_port(self):
        with patch("serial.tools.list_ports.comports", return_value=[
            self.fake_port("/dev/ttyS0"),
            self.fake_port("/dev/ttyUSB0", vid=0x0403),
        ]):
            assert find_bridge_port() == "/dev/ttyUSB0"

    def test_no_usb_ports(self):
        with patch("serial.tools.list_ports.comports", return_value=[
            self.fake_port("/dev/ttyS0"),
        ]):
            assert find_bridge_port() is None
