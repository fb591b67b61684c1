"""
Timing Primitives
=================

The controller has no busy flag on a write-only bus, so every step of the
protocol is paced by waiting at least as long as the datasheet says the
controller may need. Two primitives cover the range:

- **sleep_ms**: coarse, cooperative. Suspends the calling task through
  asyncio so unrelated work keeps running. Used for the millisecond waits
  of the wake-up sequence and of clear/home.
- **sleep_us**: precise, blocking. Spins on the monotonic performance
  counter. Used for the microsecond settle times after each nibble and
  byte, which are far below what the event loop can schedule.

sleep_us blocks the thread it runs on. The driver only calls it from its
own worker thread, never from the event loop thread.

Both primitives guarantee a lower bound only: they never return early,
but may return late.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import asyncio
import time
from typing import Final


# =============================================================================
# Controller Timing Constants
# =============================================================================

# Execution time after a command byte.
#   HD44780                 37us
#   ST7066U                 37us
#   NHD-0420DZ-FL-YBW-33V3  39us
COMMAND_SETTLE_US: Final[int] = 39

# Execution time after a character byte.
#   HD44780                 37us
#   ST7066U                 37us
#   NHD-0420DZ-FL-YBW-33V3  43us
CHARACTER_SETTLE_US: Final[int] = 43

# Enable cycle time / pulse width.
#                                  HD44780  ST7066U
#   Minimum enable cycle time        1000     1200  ns
#   Minimum enable pulse width        450      460  ns
ENABLE_CYCLE_US: Final[int] = 1

# Wake-up sequence waits (datasheet minimum in comments).
POWER_ON_DELAY_MS: Final[int] = 16      # > 15ms
FIRST_WAKE_DELAY_MS: Final[int] = 5     # > 4.1ms
WAKE_DELAY_MS: Final[int] = 1           # > 160us

# Clear display and return home need > 1.52ms. 2ms proved unreliable on
# real modules, 3ms did not.
CLEAR_DELAY_MS: Final[int] = 3


def sleep_us(microseconds: float) -> None:
    """
    Busy-wait for at least the given number of microseconds.

    Args:
        microseconds: Minimum time to wait. Zero or negative returns
                      immediately.
    """
    if microseconds <= 0:
        return
    deadline = time.perf_counter_ns() + int(microseconds * 1000) + 1
    while time.perf_counter_ns() < deadline:
        pass


async def sleep_ms(milliseconds: float) -> None:
    """
    Suspend the calling task for at least the given number of milliseconds.

    asyncio may wake a timer up to one clock resolution early, so that
    resolution is added to the requested delay.
    """
    if milliseconds <= 0:
        await asyncio.sleep(0)
        return
    resolution = time.get_clock_info("monotonic").resolution
    await asyncio.sleep(milliseconds / 1000 + resolution)
