#!/usr/bin/env python3
"""
HD44780 Simulator Demo
======================

This script demonstrates how to use the driver to:
1. Wake up a display
2. Print on several rows
3. Toggle the cursor and scroll the display
4. Get completion events instead of awaiting results

It runs against the simulated controller, so no hardware is needed. To
drive a real display, replace the simulated pins with:

    from hd44780.backends.gpio import open_gpio_pins
    pins = open_gpio_pins(config)

Usage:
    source .venv/bin/activate
    python examples/simulator_demo.py

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import asyncio

from hd44780 import Lcd, LcdConfig, LcdEvents
from hd44780.backends.simulator import SimulatedBus


def show(bus: SimulatedBus, title: str) -> None:
    print(f"\n{title}")
    for row in bus.controller.get_text_grid():
        print(f"  |{row:<{bus.controller.columns}}|")


async def main():
    # ==========================================================================
    # 1. Wake up a 20x4 display
    # ==========================================================================
    config = LcdConfig(columns=20, rows=4)
    bus = SimulatedBus(columns=config.columns, rows=config.rows)

    print(f"Opening display {config.describe()}...")
    async with Lcd(config, bus.pin_set()) as lcd:
        print(f"  Commands sent during init: {[hex(c) for c in bus.commands()]}")

        # ======================================================================
        # 2. Print on every row
        # ======================================================================
        for row, text in enumerate(["HD44780 demo", "4-bit bus", "row 2", "row 3"]):
            await lcd.set_cursor(0, row)
            await lcd.print(text)
        show(bus, "After printing:")

        # ======================================================================
        # 3. Cursor, blink and scrolling
        # ======================================================================
        await lcd.cursor()
        await lcd.blink()
        print(f"\nDisplay control register: {lcd.display_control}")

        for _ in range(3):
            await lcd.scroll_left()
        show(bus, "Scrolled left by 3:")

        await lcd.home()
        show(bus, "After home:")

        # ======================================================================
        # 4. Events
        # ======================================================================
        events = LcdEvents(lcd)
        events.on("printed", lambda text: print(f"\n  printed event: {text!r}"))
        events.on("clear", lambda _: print("  clear event"))

        await events.clear()
        await events.print("Done.")
        show(bus, "Final screen:")

    print(f"\nPins released: {bus.all_released}")


if __name__ == "__main__":
    asyncio.run(main())
