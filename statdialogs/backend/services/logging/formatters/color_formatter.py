# statdialogs/backend/services/logging/formatters/color_formatter.py
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from colorama import Fore

from .....utils.color_support import color_support

DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ColorFormatter(logging.Formatter):
    """Colors the level name and message of console records."""

    # level -> (color, bright)
    LEVEL_STYLES: Dict[int, Tuple[str, bool]] = {
        logging.DEBUG: (Fore.CYAN, False),
        logging.INFO: (Fore.GREEN, False),
        logging.WARNING: (Fore.YELLOW, True),
        logging.ERROR: (Fore.RED, True),
        logging.CRITICAL: (Fore.MAGENTA, True),
    }

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt or DEFAULT_FORMAT, datefmt or DEFAULT_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        if not color_support.supports_color():
            return super().format(record)

        original = (record.msg, record.levelname)
        color, bright = self.LEVEL_STYLES.get(record.levelno, ("", False))
        try:
            record.levelname = color_support.colored(record.levelname, color, bright=bright)
            if isinstance(record.msg, str) and color:
                record.msg = color_support.colored(record.msg, color)
            return super().format(record)
        finally:
            record.msg, record.levelname = original
