from __future__ import annotations

import logging
import os
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigIOError
from .toml_io import dumps_toml, load_toml

logger = logging.getLogger(__name__)

APP_DIRECTORY = "statdialogs"
CONFIG_FILENAME = "config.toml"


class ConfigStorage:
    """Filesystem access for the configuration file."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = (path or self.default_path()).expanduser().resolve()

    @staticmethod
    def default_path() -> Path:
        if os.name == "nt":
            appdata = os.environ.get("APPDATA")
            base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
            return base / APP_DIRECTORY / CONFIG_FILENAME
        return Path.home() / ".config" / APP_DIRECTORY / CONFIG_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def set_path(self, new_path: Path) -> None:
        self._path = Path(new_path).expanduser().resolve()

    def exists(self) -> bool:
        return self._path.exists()

    def ensure_directory(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigIOError(
                f"Unable to create configuration directory {self._path.parent}: {exc}"
            ) from exc

    def backup(self, suffix: str = "backup") -> Optional[Path]:
        if not self._path.exists():
            return None
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        backup_path = self._path.with_name(f"{self._path.name}.{suffix}.{stamp}.bak")
        try:
            shutil.copy2(self._path, backup_path)
        except OSError as exc:
            logger.warning("Failed to back up configuration to %s: %s", backup_path, exc)
            return None
        return backup_path

    def read(self) -> Dict[str, Any]:
        return load_toml(self._path)

    def write(self, data: Dict[str, Any]) -> None:
        self.write_text(dumps_toml(data))

    def write_text(self, content: str) -> None:
        self.ensure_directory()
        try:
            self._path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ConfigIOError(f"Failed to write configuration file: {exc}") from exc


__all__ = ["ConfigStorage", "APP_DIRECTORY", "CONFIG_FILENAME"]
