from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from ....utils.color_support import color_support
from .formatters.color_formatter import DEFAULT_DATEFMT, DEFAULT_FORMAT, ColorFormatter


def _find_console_handler(root: logging.Logger) -> Optional[logging.Handler]:
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and getattr(handler, "stream", None) in (
            sys.stdout,
            sys.stderr,
        ):
            return handler
    return None


def setup_logging(
    verbose: bool = False,
    log_file: Optional[str] = None,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 3,
    force_color: Optional[bool] = None,
    preserve_existing_handlers: bool = False,
) -> None:
    """Configure the root logger for the CLI.

    Args:
        verbose: Log at DEBUG instead of INFO.
        log_file: Optional path of a rotating log file.
        max_bytes: Rotation threshold of the log file.
        backup_count: Rotated files to keep.
        force_color: ``True``/``False`` overrides terminal color detection.
        preserve_existing_handlers: Keep handlers installed by the host
            (pytest's caplog, an embedding application) instead of clearing them.
    """
    color_support.set_force_color(force_color)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)

    if not preserve_existing_handlers:
        root.handlers.clear()

    console = _find_console_handler(root) if preserve_existing_handlers else None
    if console is None:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ColorFormatter())
        root.addHandler(console)

    if log_file:
        path = Path(log_file)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        except OSError as exc:
            logging.error(color_support.error(f"Failed to initialize log file {path}: {exc}"))
        else:
            file_handler.setFormatter(logging.Formatter(DEFAULT_FORMAT, datefmt=DEFAULT_DATEFMT))
            root.addHandler(file_handler)
            logging.info(color_support.success(f"Log file initialized: {path}"))

    logging.debug(
        color_support.info(
            "Logging configured (verbose=%s, color=%s)" % (verbose, color_support.supports_color())
        )
    )
