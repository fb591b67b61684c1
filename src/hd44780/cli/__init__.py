"""
hd44780 Command-Line Interface
==============================

- **hd44780**: drive a display from the shell (print, clear, toggles,
  scrolling), on real GPIO, a USB serial GPIO bridge, or the simulator.

Implemented as a Click-based CLI application.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

__all__ = ["lcdctl"]
