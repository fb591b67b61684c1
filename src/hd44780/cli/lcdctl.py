"""
hd44780 - Display Command-Line Interface
========================================

This module implements the command-line interface for driving a
character LCD. Each invocation opens the pins, wakes the display (unless
--no-init is given), runs one command and releases the pins again.

Usage Examples
--------------
Print on the second row of a 16x2 display:
    $ hd44780 --rows 2 print --row 1 "Hello"

Show the cursor and make it blink, without clearing the screen:
    $ hd44780 --no-init set --cursor --blink

Try a command without hardware:
    $ hd44780 --backend sim --rows 2 print "Hello"

Drive a display through a USB serial GPIO bridge:
    $ hd44780 --backend serial --port /dev/ttyACM0 print "Hello"

Wiring
------
Pins default to the HD44780_* environment variables (see
hd44780.config), then to RS=25 E=24 D4-D7=23,17,18,22. Options given on
the command line win.

Exit Codes
----------
0 - Success
1 - Device error (pin write failed, unprintable text)
2 - Invalid arguments or configuration error
3 - Internal error

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import click

from hd44780 import __version__
from hd44780.backends.serial import (
    DEFAULT_BAUD_RATE,
    find_bridge_port,
    list_serial_ports,
    open_serial_pins,
)
from hd44780.backends.simulator import SimulatedBus
from hd44780.cli.errors import handle_cli_exception
from hd44780.config import LcdConfig
from hd44780.driver import Lcd
from hd44780.pins import PinSet

# Configure logging
logger = logging.getLogger(__name__)

BACKENDS = ("gpio", "serial", "sim")


# =============================================================================
# CLI Context and Utilities
# =============================================================================

class Context:
    """
    Shared context for CLI commands.

    Stores the backend choice, wiring overrides and verbosity.
    """

    def __init__(self) -> None:
        self.backend: str = "gpio"
        self.chip: int = 0
        self.port: Optional[str] = None
        self.baud: int = DEFAULT_BAUD_RATE
        self.verbose: bool = False
        self.overrides: dict = {}
        self.bus: Optional[SimulatedBus] = None

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(message)s",
        )

    def config(self) -> LcdConfig:
        """Environment configuration with command-line overrides applied."""
        return LcdConfig.from_env().with_overrides(**self.overrides)

    def open_pins(self, config: LcdConfig) -> PinSet:
        """Open the pin set of the selected backend."""
        if self.backend == "sim":
            self.bus = SimulatedBus(columns=config.columns, rows=config.rows)
            return self.bus.pin_set()

        if self.backend == "serial":
            device = self.port or find_bridge_port()
            if not device:
                raise click.BadParameter(
                    "no serial port given and auto-detect failed; "
                    "use --port or 'hd44780 ports'",
                    param_hint="--port",
                )
            return open_serial_pins(config, device, self.baud)

        # lgpio is an optional dependency; only load it when asked for
        from hd44780.backends.gpio import open_gpio_pins
        return open_gpio_pins(config, self.chip)


pass_context = click.make_pass_decorator(Context, ensure=True)


def run_on_display(ctx: Context, action: Callable[[Lcd], Awaitable[None]]) -> None:
    """
    Open the display, run one action against it and release the pins.

    With the simulator backend the resulting screen is printed.
    """
    try:
        config = ctx.config()
        pins = ctx.open_pins(config)

        async def session() -> None:
            async with Lcd(config, pins) as lcd:
                await action(lcd)

        asyncio.run(session())
    except Exception as e:
        handle_cli_exception(e, ctx.verbose)

    if ctx.bus is not None:
        click.echo(format_screen(ctx.bus))


def format_screen(bus: SimulatedBus) -> str:
    """Draw the simulated screen inside a frame."""
    controller = bus.controller
    border = "+" + "-" * controller.columns + "+"
    lines = [border]
    for row in controller.get_text_grid():
        lines.append("|" + row.ljust(controller.columns) + "|")
    lines.append(border)
    return "\n".join(lines)


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "--backend",
    type=click.Choice(BACKENDS),
    default="gpio",
    help="Pin backend: Linux GPIO, USB serial GPIO bridge, or simulator (default: gpio)",
)
@click.option("--chip", type=int, default=0, help="gpiochip number (default: 0)")
@click.option(
    "-p", "--port",
    type=str,
    default=None,
    help="Serial bridge device (auto-detect if not specified)",
)
@click.option(
    "-b", "--baud",
    type=int,
    default=DEFAULT_BAUD_RATE,
    help=f"Serial bridge baud rate (default: {DEFAULT_BAUD_RATE})",
)
@click.option("--rs", type=int, default=None, help="Register select line")
@click.option("--enable", type=int, default=None, help="Enable line")
@click.option(
    "--data",
    type=int,
    nargs=4,
    default=None,
    metavar="D4 D5 D6 D7",
    help="Data lines, D4 first",
)
@click.option("--rows", type=click.IntRange(1, 4), default=None, help="Display rows")
@click.option("--cols", type=click.IntRange(min=1), default=None, help="Display columns")
@click.option("--large-font", is_flag=True, help="5x10 font (one-row displays)")
@click.option("--no-init", is_flag=True, help="Skip the wake-up sequence")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.version_option(version=__version__, prog_name="hd44780")
@pass_context
def main(
    ctx: Context,
    backend: str,
    chip: int,
    port: Optional[str],
    baud: int,
    rs: Optional[int],
    enable: Optional[int],
    data: Optional[tuple[int, int, int, int]],
    rows: Optional[int],
    cols: Optional[int],
    large_font: bool,
    no_init: bool,
    verbose: bool,
) -> None:
    """
    Drive an HD44780 character LCD on a 4-bit bus.

    Every command wakes the display first, which clears it. Use --no-init
    to change a display that is already running.
    """
    ctx.backend = backend
    ctx.chip = chip
    ctx.port = port
    ctx.baud = baud
    ctx.verbose = verbose
    ctx.overrides = {
        "rs": rs,
        "enable": enable,
        "data": data or None,
        "rows": rows,
        "columns": cols,
        "large_font": large_font or None,
        "suppress_auto_init": no_init or None,
    }
    ctx.setup_logging()


# =============================================================================
# Commands
# =============================================================================

@main.command()
@pass_context
def init(ctx: Context) -> None:
    """Wake up and clear the display."""
    async def action(lcd: Lcd) -> None:
        if lcd.config.suppress_auto_init:
            await lcd.init()

    run_on_display(ctx, action)


@main.command("print")
@click.argument("text")
@click.option("--row", type=int, default=None, help="Row to start on")
@click.option("--col", type=int, default=0, help="Column to start on (default: 0)")
@click.option("--clear", "clear_first", is_flag=True, help="Clear the display first")
@pass_context
def print_text(ctx: Context, text: str, row: Optional[int], col: int, clear_first: bool) -> None:
    """
    Print TEXT at the cursor.

    Example:
        hd44780 --rows 2 print --row 1 "Second line"
    """
    async def action(lcd: Lcd) -> None:
        if clear_first:
            await lcd.clear()
        if row is not None:
            await lcd.set_cursor(col, row)
        await lcd.print(text)

    run_on_display(ctx, action)


@main.command()
@pass_context
def clear(ctx: Context) -> None:
    """Clear the display."""
    run_on_display(ctx, lambda lcd: lcd.clear())


@main.command()
@pass_context
def home(ctx: Context) -> None:
    """Return the cursor home and undo scrolling."""
    run_on_display(ctx, lambda lcd: lcd.home())


@main.command("set")
@click.option("--display/--no-display", default=None, help="Display on or off")
@click.option("--cursor/--no-cursor", default=None, help="Underline cursor")
@click.option("--blink/--no-blink", default=None, help="Blinking cursor")
@click.option("--autoscroll/--no-autoscroll", default=None, help="Shift display while typing")
@click.option(
    "--direction",
    type=click.Choice(["ltr", "rtl"]),
    default=None,
    help="Text direction",
)
@pass_context
def set_state(
    ctx: Context,
    display: Optional[bool],
    cursor: Optional[bool],
    blink: Optional[bool],
    autoscroll: Optional[bool],
    direction: Optional[str],
) -> None:
    """
    Change display, cursor and entry mode settings.

    Example:
        hd44780 --no-init set --cursor --blink
    """
    toggles = [
        (display, Lcd.display, Lcd.no_display),
        (cursor, Lcd.cursor, Lcd.no_cursor),
        (blink, Lcd.blink, Lcd.no_blink),
        (autoscroll, Lcd.autoscroll, Lcd.no_autoscroll),
    ]
    if direction is not None:
        toggles.append((direction == "ltr", Lcd.left_to_right, Lcd.right_to_left))

    async def action(lcd: Lcd) -> None:
        for wanted, turn_on, turn_off in toggles:
            if wanted is True:
                await turn_on(lcd)
            elif wanted is False:
                await turn_off(lcd)

    run_on_display(ctx, action)


@main.command()
@click.argument("direction", type=click.Choice(["left", "right"]))
@click.option("--steps", type=click.IntRange(min=1), default=1, help="Positions to shift (default: 1)")
@pass_context
def scroll(ctx: Context, direction: str, steps: int) -> None:
    """Shift the display left or right."""
    async def action(lcd: Lcd) -> None:
        shift = lcd.scroll_left if direction == "left" else lcd.scroll_right
        for _ in range(steps):
            await shift()

    run_on_display(ctx, action)


@main.command()
def ports() -> None:
    """
    List available serial ports.

    Known GPIO bridges and USB-serial chips are marked with their vendor.
    """
    port_list = list_serial_ports()
    if not port_list:
        click.echo("No serial ports found.")
        return

    click.echo("Available serial ports:")
    for port in port_list:
        click.echo(f"  {port}")

    auto_port = find_bridge_port()
    if auto_port:
        click.echo(f"\nSuggested port for a GPIO bridge: {auto_port}")


if __name__ == "__main__":
    main()
