from __future__ import annotations

from typing import Any, Dict

from .toml_io import loads_toml

DEFAULT_CONFIG_TOML = """\
# Version tracking for the configuration layout
config_version = "1.0"

[bivariate]
pearson = true
kendalls_tau_b = false
spearman = false
two_tailed = true
flag_significant_correlations = false
show_only_the_lower_triangle = false
show_diagonal = true
partial_correlation_kendalls_tau_b = false
means_and_standard_deviations = false
cross_product_deviations_and_covariances = false
missing_values = "pairwise"  # pairwise | listwise

[two_independent_samples]
mann_whitney_u = true
kolmogorov_smirnov_z = false
moses_extreme_reactions = false
wald_wolfowitz_runs = false
descriptive = false
quartiles = false

[worker]
# Seconds the CLI waits for the background worker before cancelling it
timeout_seconds = 300
exact_max_product = 400
exact_max_threshold = 220

[output]
format = "json"  # json | yaml
pretty_print = true
path = ""

[logging]
verbose = false
file = ""

[profiles.publication]
inherit = "default"

[profiles.publication.bivariate]
flag_significant_correlations = true
show_only_the_lower_triangle = true
show_diagonal = false
means_and_standard_deviations = true

[profiles.exploratory]
inherit = "default"

[profiles.exploratory.bivariate]
kendalls_tau_b = true
spearman = true

[profiles.exploratory.two_independent_samples]
kolmogorov_smirnov_z = true
descriptive = true
quartiles = true
"""

DEFAULT_CONFIG: Dict[str, Any] = loads_toml(DEFAULT_CONFIG_TOML)

_BOOLEAN = {"type": "boolean"}

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "config_version": {"type": "string"},
        "bivariate": {
            "type": "object",
            "properties": {
                "pearson": _BOOLEAN,
                "kendalls_tau_b": _BOOLEAN,
                "spearman": _BOOLEAN,
                "two_tailed": _BOOLEAN,
                "flag_significant_correlations": _BOOLEAN,
                "show_only_the_lower_triangle": _BOOLEAN,
                "show_diagonal": _BOOLEAN,
                "partial_correlation_kendalls_tau_b": _BOOLEAN,
                "means_and_standard_deviations": _BOOLEAN,
                "cross_product_deviations_and_covariances": _BOOLEAN,
                "missing_values": {"type": "string", "enum": ["pairwise", "listwise"]},
            },
            "required": ["pearson", "kendalls_tau_b", "spearman", "two_tailed"],
            "additionalProperties": True,
        },
        "two_independent_samples": {
            "type": "object",
            "properties": {
                "mann_whitney_u": _BOOLEAN,
                "kolmogorov_smirnov_z": _BOOLEAN,
                "moses_extreme_reactions": _BOOLEAN,
                "wald_wolfowitz_runs": _BOOLEAN,
                "descriptive": _BOOLEAN,
                "quartiles": _BOOLEAN,
            },
            "required": ["mann_whitney_u", "kolmogorov_smirnov_z"],
            "additionalProperties": True,
        },
        "worker": {
            "type": "object",
            "properties": {
                "timeout_seconds": {"type": "integer", "minimum": 1},
                "exact_max_product": {"type": "integer", "minimum": 0},
                "exact_max_threshold": {"type": "integer", "minimum": 0},
            },
            "required": ["timeout_seconds"],
            "additionalProperties": True,
        },
        "output": {
            "type": "object",
            "properties": {
                "format": {"type": "string", "enum": ["json", "yaml"]},
                "pretty_print": _BOOLEAN,
                "path": {"type": "string"},
            },
            "required": ["format", "pretty_print"],
            "additionalProperties": True,
        },
        "logging": {
            "type": "object",
            "properties": {
                "verbose": _BOOLEAN,
                "file": {"type": "string"},
            },
            "additionalProperties": True,
        },
        "profiles": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {"inherit": {"type": "string"}},
                "additionalProperties": True,
            },
        },
    },
    "required": ["bivariate", "two_independent_samples", "worker", "output"],
    "additionalProperties": True,
}

# Profile sections are optional overlays of the top-level sections
_PROFILE_PROPERTIES = CONFIG_SCHEMA["properties"]["profiles"]["additionalProperties"]["properties"]
for _section in ("bivariate", "two_independent_samples", "worker", "output", "logging"):
    _PROFILE_PROPERTIES[_section] = {
        "type": "object",
        "properties": CONFIG_SCHEMA["properties"][_section]["properties"],
        "additionalProperties": True,
    }

__all__ = ["DEFAULT_CONFIG_TOML", "DEFAULT_CONFIG", "CONFIG_SCHEMA"]
