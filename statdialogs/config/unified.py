from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, Iterator, List, Optional

from .defaults import DEFAULT_CONFIG, DEFAULT_CONFIG_TOML
from .exceptions import ConfigError, ConfigIOError, ConfigValidationError
from .profiles import (
    DEFAULT_PROFILE,
    ProfileResolutionResult,
    ProfileService,
    deep_merge,
    normalise_profile_sections,
)
from .storage import ConfigStorage
from .toml_io import TOMLDecodeError, dumps_toml, loads_toml
from .validation import validate_config

logger = logging.getLogger(__name__)


class _Listener:
    """Holds a change callback weakly when the callable allows it."""

    __slots__ = ("_ref", "_strong")

    def __init__(self, callback: Callable[[], None]) -> None:
        self._strong: Optional[Callable[[], None]] = None
        try:
            if hasattr(callback, "__self__") and hasattr(callback, "__func__"):
                self._ref: Any = weakref.WeakMethod(callback)  # type: ignore[arg-type]
            else:
                self._ref = weakref.ref(callback)
        except TypeError:
            self._ref = None
            self._strong = callback

    def get(self) -> Optional[Callable[[], None]]:
        return self._strong if self._ref is None else self._ref()

    def matches(self, callback: Callable[[], None]) -> bool:
        return self.get() is callback


class UnifiedConfigManager:
    """Singleton owning the TOML configuration and its profiles."""

    _instance: ClassVar[Optional["UnifiedConfigManager"]] = None
    _lock: ClassVar[threading.RLock] = threading.RLock()

    def __new__(cls) -> "UnifiedConfigManager":
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if getattr(self, "_initialized", False):
            return

        self.storage = ConfigStorage()
        self._raw_config: Dict[str, Any] = deepcopy(DEFAULT_CONFIG)
        self._active_profile = DEFAULT_PROFILE
        self._profile_cache: Dict[str, ProfileResolutionResult] = {}
        self._listeners: List[_Listener] = []
        self._profiles = ProfileService()
        self._batch_depth = 0
        self._batch_dirty = False

        self._load_or_create()
        self._initialized = True

    @property
    def config_path(self) -> Path:
        return self.storage.path

    @property
    def active_profile(self) -> str:
        return self._active_profile

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------
    def _load_or_create(self) -> None:
        self.storage.ensure_directory()

        if not self.storage.exists():
            logger.info("Creating default configuration at %s", self.storage.path)
            self.storage.write_text(DEFAULT_CONFIG_TOML)
            self._raw_config = deepcopy(DEFAULT_CONFIG)
            return

        try:
            loaded = self.storage.read()
        except TOMLDecodeError as exc:
            logger.error("Configuration file %s is not valid TOML: %s", self.storage.path, exc)
            backup_path = self.storage.backup(suffix="corrupt")
            if backup_path:
                logger.error("Corrupt configuration backed up to %s", backup_path)
            self._raw_config = deepcopy(DEFAULT_CONFIG)
            self.storage.write_text(DEFAULT_CONFIG_TOML)
            return
        except OSError as exc:
            raise ConfigIOError(f"Unable to read configuration: {exc}") from exc

        merged = deep_merge(DEFAULT_CONFIG, loaded)
        corrected = normalise_profile_sections(merged)
        self._validate(merged)
        self._raw_config = merged
        if corrected:
            self._write()

    def _validate(self, data: Dict[str, Any]) -> None:
        validate_config(data)
        self._profiles.validate_profiles(data)

    def _write(self) -> None:
        self.storage.write(self._raw_config)

    def reload(self, config_path: Optional[Path] = None, profile: Optional[str] = None) -> None:
        with self._lock:
            if config_path is not None:
                self.storage.set_path(Path(config_path))
            self._profile_cache.clear()
            self._load_or_create()
            self._active_profile = DEFAULT_PROFILE
            if profile:
                self.set_active_profile(profile)
            else:
                self._notify_change()

    def save(self) -> None:
        with self._lock:
            self._write()
            self._notify_change()

    def validate_current(self) -> None:
        with self._lock:
            self._validate(self._raw_config)

    def reset_to_defaults(self) -> None:
        with self._lock:
            self._raw_config = deepcopy(DEFAULT_CONFIG)
            self._write()
            self._profile_cache.clear()
            self._active_profile = DEFAULT_PROFILE
            self._notify_change()

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------
    def set_active_profile(self, profile: str) -> None:
        resolved = self.resolve_profile(profile)
        self._active_profile = resolved.name
        self._notify_change()

    def resolve_profile(self, profile: Optional[str] = None) -> ProfileResolutionResult:
        with self._lock:
            return self._profiles.resolve(
                profile or self._active_profile, self._raw_config, self._profile_cache
            )

    def get_section(self, section: str) -> Dict[str, Any]:
        """Return a copy of one section of the active profile (empty when absent)."""

        value = self.resolve_profile().config.get(section, {})
        return deepcopy(value) if isinstance(value, dict) else {}

    def get_raw_config(self) -> Dict[str, Any]:
        return deepcopy(self._raw_config)

    def list_profiles(self) -> List[str]:
        with self._lock:
            return [DEFAULT_PROFILE, *sorted(self._raw_config.get("profiles", {}))]

    def import_profile(self, name: str, data: Dict[str, Any], inherit: str = DEFAULT_PROFILE) -> None:
        if not name:
            raise ConfigError("Profile name must not be empty")
        if name == DEFAULT_PROFILE:
            raise ConfigError("The default profile cannot be overwritten")
        with self._lock:
            profiles = self._raw_config.setdefault("profiles", {})
            if name in profiles:
                raise ConfigError(f"Profile '{name}' already exists")
            profile_data = deepcopy(data)
            profile_data["inherit"] = inherit
            profiles[name] = profile_data
            normalise_profile_sections(self._raw_config)
            try:
                self._validate(self._raw_config)
            except ConfigValidationError:
                del profiles[name]
                raise
            self._write()
            self._profile_cache.clear()
            self._notify_change()

    def remove_profile(self, name: str) -> None:
        if name == DEFAULT_PROFILE:
            raise ConfigError("The default profile cannot be deleted")
        with self._lock:
            profiles = self._raw_config.get("profiles", {})
            if name not in profiles:
                raise ConfigError(f"Profile '{name}' does not exist")
            del profiles[name]
            for profile in profiles.values():
                if profile.get("inherit") == name:
                    profile["inherit"] = DEFAULT_PROFILE
            if self._active_profile == name:
                self._active_profile = DEFAULT_PROFILE
            self._write()
            self._profile_cache.clear()
            self._notify_change()

    def export_profile_as_toml(self, name: Optional[str] = None) -> str:
        return dumps_toml({"profile": deepcopy(self.resolve_profile(name).config)})

    def import_profile_from_toml(self, name: str, content: str, inherit: str = DEFAULT_PROFILE) -> None:
        try:
            data = loads_toml(content)
        except TOMLDecodeError as exc:
            raise ConfigValidationError(f"Invalid TOML content: {exc}") from exc
        profile_data = data.get("profile", data)
        if not isinstance(profile_data, dict):
            raise ConfigValidationError("Profile import payload must be a table")
        self.import_profile(name, profile_data, inherit=inherit)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------
    def set_value(self, path: str, value: Any, profile: Optional[str] = None) -> None:
        """Set a dotted ``section.key`` value, or delete it when ``value`` is ``None``."""

        parts = path.split(".")
        with self._lock:
            if profile and profile != DEFAULT_PROFILE:
                cursor = self._raw_config.setdefault("profiles", {}).get(profile)
                if cursor is None:
                    raise ConfigError(f"Profile '{profile}' does not exist")
            else:
                cursor = self._raw_config
            for part in parts[:-1]:
                cursor = cursor.setdefault(part, {})
                if not isinstance(cursor, dict):
                    raise ConfigError(f"Configuration path '{path}' is not a table")
            key = parts[-1]
            if value is None:
                if key not in cursor:
                    return
                del cursor[key]
            else:
                if cursor.get(key) == value:
                    return
                cursor[key] = value
            self._persist()

    def _persist(self) -> None:
        self._profile_cache.clear()
        if self._batch_depth > 0:
            self._batch_dirty = True
            return
        self._write()
        self._notify_change()

    @contextmanager
    def batch_update(self) -> Iterator[None]:
        with self._lock:
            self._batch_depth += 1
        try:
            yield
        finally:
            with self._lock:
                self._batch_depth -= 1
                if self._batch_depth == 0 and self._batch_dirty:
                    self._batch_dirty = False
                    self._write()
                    self._notify_change()

    def set_values_batch(self, updates: Dict[str, Any], profile: Optional[str] = None) -> None:
        with self.batch_update():
            for path, value in updates.items():
                self.set_value(path, value, profile=profile)

    # ------------------------------------------------------------------
    # Change listeners
    # ------------------------------------------------------------------
    def add_change_listener(self, callback: Callable[[], None]) -> None:
        if not any(listener.matches(callback) for listener in self._listeners):
            self._listeners.append(_Listener(callback))

    def remove_change_listener(self, callback: Callable[[], None]) -> None:
        self._listeners = [l for l in self._listeners if not l.matches(callback)]

    def _notify_change(self) -> None:
        alive: List[_Listener] = []
        for listener in self._listeners:
            callback = listener.get()
            if callback is None:
                continue
            alive.append(listener)
            try:
                callback()
            except Exception as exc:  # pragma: no cover - defensive guard
                logger.error("Error in configuration change listener: %s", exc, exc_info=True)
        self._listeners = alive

    def cleanup(self) -> None:
        with self._lock:
            self._listeners.clear()
            self._profile_cache.clear()
            self._initialized = False
            type(self)._instance = None


__all__ = ["UnifiedConfigManager", "ProfileResolutionResult"]
