"""Profile resolution: named profiles overlay the default configuration."""
from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Dict, MutableMapping, Set

from .exceptions import ConfigError, ConfigValidationError

DEFAULT_PROFILE = "default"

# Sections a profile may override with flat keys, e.g. ``flag_significant_correlations = true``
PROFILE_SECTION_KEYS: Dict[str, Set[str]] = {
    "bivariate": {
        "pearson",
        "kendalls_tau_b",
        "spearman",
        "two_tailed",
        "flag_significant_correlations",
        "show_only_the_lower_triangle",
        "show_diagonal",
        "partial_correlation_kendalls_tau_b",
        "means_and_standard_deviations",
        "cross_product_deviations_and_covariances",
        "missing_values",
    },
    "two_independent_samples": {
        "mann_whitney_u",
        "kolmogorov_smirnov_z",
        "moses_extreme_reactions",
        "wald_wolfowitz_runs",
        "descriptive",
        "quartiles",
    },
    "worker": {"timeout_seconds", "exact_max_product", "exact_max_threshold"},
}


def deep_merge(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    result = deepcopy(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)
    return result


def rehome_flat_keys(container: Dict[str, Any]) -> bool:
    """Move flat profile keys into their section. Returns ``True`` when anything moved."""

    moved = False
    for section, keys in PROFILE_SECTION_KEYS.items():
        for key in keys:
            if key not in container:
                continue
            value = container.pop(key)
            target = container.get(section)
            if not isinstance(target, dict):
                target = {}
                container[section] = target
            target.setdefault(key, value)
            moved = True
    return moved


def normalise_profile_sections(data: Dict[str, Any]) -> bool:
    corrected = rehome_flat_keys(data)
    profiles = data.get("profiles", {})
    if isinstance(profiles, dict):
        for profile in profiles.values():
            if isinstance(profile, dict) and rehome_flat_keys(profile):
                corrected = True
    return corrected


@dataclass(frozen=True)
class ProfileResolutionResult:
    name: str
    config: Dict[str, Any]


class ProfileService:
    """Validation and inheritance resolution for configuration profiles."""

    def validate_profiles(self, data: Dict[str, Any]) -> None:
        profiles = data.get("profiles", {}) or {}
        for name, profile in profiles.items():
            parent = profile.get("inherit", DEFAULT_PROFILE)
            if parent != DEFAULT_PROFILE and parent not in profiles:
                raise ConfigValidationError(
                    f"Profile '{name}' inherits from unknown profile '{parent}'"
                )
        for name in profiles:
            self._detect_cycle(name, profiles)

    @staticmethod
    def _detect_cycle(start: str, profiles: Dict[str, Dict[str, Any]]) -> None:
        seen: Set[str] = set()
        current = start
        while current != DEFAULT_PROFILE:
            if current in seen:
                raise ConfigValidationError(
                    f"Circular inheritance detected at profile '{current}'"
                )
            seen.add(current)
            current = profiles[current].get("inherit", DEFAULT_PROFILE)

    def resolve(
        self,
        name: str,
        raw_config: Dict[str, Any],
        cache: MutableMapping[str, ProfileResolutionResult],
    ) -> ProfileResolutionResult:
        if name in cache:
            return cache[name]

        if name == DEFAULT_PROFILE:
            base = {k: deepcopy(v) for k, v in raw_config.items() if k != "profiles"}
            result = ProfileResolutionResult(DEFAULT_PROFILE, base)
            cache[name] = result
            return result

        profile = raw_config.get("profiles", {}).get(name)
        if profile is None:
            raise ConfigError(f"Profile '{name}' is not defined")

        parent = self.resolve(profile.get("inherit", DEFAULT_PROFILE), raw_config, cache)
        overrides = {k: deepcopy(v) for k, v in profile.items() if k != "inherit"}
        rehome_flat_keys(overrides)
        result = ProfileResolutionResult(name, deep_merge(parent.config, overrides))
        cache[name] = result
        return result


__all__ = [
    "DEFAULT_PROFILE",
    "PROFILE_SECTION_KEYS",
    "ProfileResolutionResult",
    "ProfileService",
    "deep_merge",
    "normalise_profile_sections",
    "rehome_flat_keys",
]
