# statdialogs/utils/color_support.py
from __future__ import annotations

import os
import sys
from typing import Optional

from colorama import Fore, Style
from colorama import init as colorama_init

_COLOR_TERMS = ("xterm-color", "xterm-256color", "screen", "screen-256color")


class ColorSupport:
    """Decides whether console output may carry ANSI colors."""

    def __init__(self) -> None:
        self._force_color: Optional[bool] = self._env_override()
        self._cached: Optional[bool] = None
        self._apply()

    @staticmethod
    def _env_override() -> Optional[bool]:
        if os.environ.get("NO_COLOR") is not None:
            return False
        if os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes"):
            return True
        return None

    def _apply(self) -> None:
        colorama_init(strip=not self.supports_color(), convert=True, wrap=True, autoreset=True)

    def set_force_color(self, force: Optional[bool]) -> None:
        """Force colors on (``True``), off (``False``) or back to detection (``None``)."""

        if force not in (True, False, None):
            raise ValueError("force must be True, False or None")
        target = self._env_override() if force is None else force
        if target == self._force_color and self._cached is not None:
            return
        self._force_color = target
        self._cached = None
        self._apply()

    def supports_color(self) -> bool:
        if self._force_color is not None:
            return self._force_color
        if self._cached is None:
            self._cached = self._detect()
        return self._cached

    @staticmethod
    def _detect() -> bool:
        term = os.environ.get("TERM", "").lower()
        if "dumb" in term:
            return False
        if sys.platform == "win32":
            return any(key in os.environ for key in ("ANSICON", "WT_SESSION", "ConEmuANSI")) or (
                os.environ.get("TERM_PROGRAM", "") == "vscode"
            )
        stdout = sys.stdout
        if stdout is not None and hasattr(stdout, "isatty") and stdout.isatty():
            return True
        return bool(os.environ.get("COLORTERM")) or term in _COLOR_TERMS

    def colored(self, text: str, color: Optional[str] = None, bright: bool = False) -> str:
        if not text or not self.supports_color():
            return text
        prefix = (Style.BRIGHT if bright else "") + (color or "")
        return f"{prefix}{text}{Style.RESET_ALL}"

    def error(self, text: str) -> str:
        return self.colored(text, Fore.RED)

    def success(self, text: str) -> str:
        return self.colored(text, Fore.GREEN)

    def info(self, text: str) -> str:
        return self.colored(text, Fore.CYAN)


color_support = ColorSupport()
