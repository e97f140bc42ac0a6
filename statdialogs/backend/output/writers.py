# statdialogs/backend/output/writers.py

import json
import logging
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from colorama import Fore, Style

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Raised when results cannot be serialised or written."""


def _atomic_write(output_file: str, dump) -> None:
    """Write through a temporary file in the target directory, then move it into place."""

    target = Path(output_file)
    target.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=target.parent, encoding="utf-8") as handle:
        temp_path = Path(handle.name)
        try:
            dump(handle)
        except Exception:
            handle.close()
            temp_path.unlink(missing_ok=True)
            raise
    shutil.move(str(temp_path), str(target))


def output_to_json(data: Dict[str, Any], output_file: str, config: Optional[Dict[str, Any]] = None) -> None:
    """Write ``data`` as JSON. ``config['pretty_print']`` selects indented output."""

    pretty = bool((config or {}).get("pretty_print", True))
    try:
        _atomic_write(
            output_file,
            lambda handle: json.dump(data, handle, ensure_ascii=False, indent=2 if pretty else None),
        )
    except (TypeError, ValueError) as exc:
        logger.error(f"{Fore.RED}Results are not JSON serialisable: {exc}{Style.RESET_ALL}")
        raise ExportError(f"JSON error: {exc}") from exc
    except OSError as exc:
        logger.error(f"{Fore.RED}Error writing JSON output file '{output_file}': {exc}{Style.RESET_ALL}")
        raise
    logger.debug("JSON output written to '%s'", output_file)


def output_to_yaml(data: Dict[str, Any], output_file: str, config: Optional[Dict[str, Any]] = None) -> None:
    options = {
        "allow_unicode": True,
        "sort_keys": False,
        "default_flow_style": False,
        "width": 4096,
    }
    try:
        _atomic_write(output_file, lambda handle: yaml.safe_dump(data, handle, **options))
    except yaml.YAMLError as exc:
        logger.error(f"{Fore.RED}YAML error while dumping results: {exc}{Style.RESET_ALL}")
        raise ExportError(f"YAML error: {exc}") from exc
    except OSError as exc:
        logger.error(f"{Fore.RED}Error writing YAML output file '{output_file}': {exc}{Style.RESET_ALL}")
        raise
    logger.debug("YAML output written to '%s'", output_file)
