"""
Driver Configuration
====================

A display is described by its wiring (which GPIO lines carry RS, E and
D4..D7) and its geometry. The configuration is immutable: a driver is
built for one wiring and keeps it for its lifetime.

Configuration can come from:
- Keyword arguments (defined here)
- Environment variables (LcdConfig.from_env)
- Command-line overrides (LcdConfig.with_overrides)

Environment Variables
---------------------
All optional; invalid values are ignored and the default kept.

    HD44780_RS           register select line (default 25)
    HD44780_ENABLE       enable line (default 24)
    HD44780_DATA         D4..D7 lines, comma separated (default 23,17,18,22)
    HD44780_COLUMNS      visible columns (default 16)
    HD44780_ROWS         rows, 1..4 (default 1)
    HD44780_LARGE_FONT   1/true/yes for the 5x10 font on one-row displays
    HD44780_NO_INIT      1/true/yes to skip the wake-up sequence

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from hd44780.errors import ConfigurationError
from hd44780.registers import MAX_ROWS

logger = logging.getLogger(__name__)

# Default wiring (BCM numbering, the common Raspberry Pi hookup)
DEFAULT_RS = 25
DEFAULT_ENABLE = 24
DEFAULT_DATA = (23, 17, 18, 22)

_TRUE_WORDS = ("1", "true", "yes", "on")


@dataclass(frozen=True)
class LcdConfig:
    """
    Wiring and geometry of one display.

    Attributes:
        rs: Register select GPIO line
        enable: Enable GPIO line
        data: D4..D7 GPIO lines; data[i] carries bit i of each nibble
        columns: Visible columns. Informational only: writes are never
                 bounded by it.
        rows: Number of rows (1..4)
        large_font: Use the 5x10 font. Only honoured when rows == 1.
        suppress_auto_init: Do not run the wake-up sequence when the
                            driver is constructed; call Lcd.init() later.
    """

    rs: int = DEFAULT_RS
    enable: int = DEFAULT_ENABLE
    data: tuple[int, int, int, int] = DEFAULT_DATA
    columns: int = 16
    rows: int = 1
    large_font: bool = False
    suppress_auto_init: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "data", tuple(self.data))

        if len(self.data) != 4:
            raise ConfigurationError(
                f"data must list exactly 4 pins (D4..D7), got {len(self.data)}"
            )

        pins = (self.rs, self.enable, *self.data)
        for pin in pins:
            if not isinstance(pin, int) or isinstance(pin, bool) or pin < 0:
                raise ConfigurationError(f"invalid pin number: {pin!r}")
        if len(set(pins)) != len(pins):
            raise ConfigurationError(f"pin assigned twice in {pins}")

        if not 1 <= self.rows <= MAX_ROWS:
            raise ConfigurationError(
                f"rows must be between 1 and {MAX_ROWS}, got {self.rows}"
            )
        if self.columns < 1:
            raise ConfigurationError(
                f"columns must be positive, got {self.columns}"
            )

    @property
    def pins(self) -> tuple[int, ...]:
        """All six line numbers in bus order: RS, E, D4..D7."""
        return (self.rs, self.enable, *self.data)

    @property
    def effective_large_font(self) -> bool:
        """True if the 5x10 font will actually be selected."""
        return self.large_font and self.rows == 1

    def with_overrides(self, **overrides: Any) -> "LcdConfig":
        """
        Return a copy with the given fields replaced.

        None values are skipped so unset command-line options leave the
        current value alone.
        """
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "LcdConfig":
        """
        Create LcdConfig from HD44780_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ (for tests)

        Returns:
            LcdConfig with values from the environment
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for name, key in (
            ("rs", "HD44780_RS"),
            ("enable", "HD44780_ENABLE"),
            ("columns", "HD44780_COLUMNS"),
            ("rows", "HD44780_ROWS"),
        ):
            if raw := env.get(key):
                try:
                    values[name] = int(raw, 0)
                except ValueError:
                    logger.warning("Ignoring invalid %s=%r", key, raw)

        if raw := env.get("HD44780_DATA"):
            try:
                data = tuple(int(part, 0) for part in raw.split(","))
            except ValueError:
                logger.warning("Ignoring invalid HD44780_DATA=%r", raw)
            else:
                if len(data) == 4:
                    values["data"] = data
                else:
                    logger.warning("Ignoring HD44780_DATA=%r: need 4 pins", raw)

        if raw := env.get("HD44780_LARGE_FONT"):
            values["large_font"] = raw.strip().lower() in _TRUE_WORDS
        if raw := env.get("HD44780_NO_INIT"):
            values["suppress_auto_init"] = raw.strip().lower() in _TRUE_WORDS

        return cls(**values)

    def describe(self) -> str:
        """One-line summary for log messages and the CLI."""
        font = " 5x10" if self.effective_large_font else ""
        data = ",".join(str(p) for p in self.data)
        return (
            f"{self.columns}x{self.rows}{font} "
            f"(RS={self.rs} E={self.enable} D4-D7={data})"
        )


