from __future__ import annotations

from pathlib import Path

import pytest

from statdialogs.config import ConfigError, ConfigValidationError, UnifiedConfigManager


def test_unified_manager_roundtrip(unified_manager: UnifiedConfigManager) -> None:
    unified_manager.reload(profile="default")
    unified_manager.save()
    assert "default" in unified_manager.list_profiles()

    bivariate = unified_manager.get_section("bivariate")
    assert bivariate["pearson"] is True
    assert bivariate["missing_values"] == "pairwise"

    unified_manager.set_value("bivariate.spearman", True)
    unified_manager.set_value("worker.timeout_seconds", 42)
    unified_manager.reload()

    assert unified_manager.get_section("bivariate")["spearman"] is True
    assert unified_manager.get_section("worker")["timeout_seconds"] == 42


def test_get_section_returns_a_copy(unified_manager: UnifiedConfigManager) -> None:
    section = unified_manager.get_section("two_independent_samples")
    section["mann_whitney_u"] = False
    assert unified_manager.get_section("two_independent_samples")["mann_whitney_u"] is True
    assert unified_manager.get_section("missing-section") == {}


def test_builtin_profiles_inherit_from_default(unified_manager: UnifiedConfigManager) -> None:
    assert {"publication", "exploratory"} <= set(unified_manager.list_profiles())

    unified_manager.set_active_profile("publication")
    bivariate = unified_manager.get_section("bivariate")
    assert bivariate["flag_significant_correlations"] is True
    assert bivariate["show_diagonal"] is False
    # inherited untouched from default
    assert bivariate["pearson"] is True


def test_unknown_profile_is_rejected(unified_manager: UnifiedConfigManager) -> None:
    with pytest.raises(ConfigError):
        unified_manager.set_active_profile("does-not-exist")


def test_profile_lifecycle(unified_manager: UnifiedConfigManager) -> None:
    unified_manager.import_profile("pytest-profile", {"bivariate": {"kendalls_tau_b": True}})
    assert "pytest-profile" in unified_manager.list_profiles()
    assert unified_manager.resolve_profile("pytest-profile").config["bivariate"]["kendalls_tau_b"] is True

    with pytest.raises(ConfigError):
        unified_manager.import_profile("pytest-profile", {})

    unified_manager.remove_profile("pytest-profile")
    assert "pytest-profile" not in unified_manager.list_profiles()

    with pytest.raises(ConfigError):
        unified_manager.remove_profile("default")


def test_profile_toml_export_import(unified_manager: UnifiedConfigManager) -> None:
    exported = unified_manager.export_profile_as_toml("exploratory")
    assert "[profile.bivariate]" in exported

    unified_manager.import_profile_from_toml("copied", exported)
    resolved = unified_manager.resolve_profile("copied").config
    assert resolved["bivariate"]["spearman"] is True
    assert resolved["two_independent_samples"]["quartiles"] is True


def test_invalid_profile_import_rolls_back(unified_manager: UnifiedConfigManager) -> None:
    with pytest.raises(ConfigValidationError):
        unified_manager.import_profile("broken", {"bivariate": {"pearson": "sometimes"}})
    assert "broken" not in unified_manager.list_profiles()


def test_batch_updates_reduce_notifications(unified_manager: UnifiedConfigManager) -> None:
    events = 0

    def listener() -> None:
        nonlocal events
        events += 1

    unified_manager.add_change_listener(listener)

    unified_manager.set_values_batch({"bivariate.spearman": True, "output.format": "yaml"})
    assert events == 1

    events = 0
    unified_manager.set_values_batch({"bivariate.spearman": True, "output.format": "yaml"})
    assert events == 0


def test_corrupt_configuration_is_backed_up(tmp_path: Path, unified_manager: UnifiedConfigManager) -> None:
    config_file = tmp_path / "broken" / "config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text("this is = = not toml", encoding="utf-8")

    unified_manager.reload(config_path=config_file)

    backups = list(config_file.parent.glob("config.toml.corrupt.*.bak"))
    assert len(backups) == 1
    assert unified_manager.get_section("bivariate")["pearson"] is True


def test_invalid_values_fail_validation(tmp_path: Path, unified_manager: UnifiedConfigManager) -> None:
    config_file = tmp_path / "invalid" / "config.toml"
    config_file.parent.mkdir(parents=True)
    config_file.write_text('[output]\nformat = "xml"\n', encoding="utf-8")

    with pytest.raises(ConfigValidationError):
        unified_manager.reload(config_path=config_file)


def test_cleanup_resets_singleton(unified_manager: UnifiedConfigManager) -> None:
    assert UnifiedConfigManager() is unified_manager
    unified_manager.cleanup()
    assert UnifiedConfigManager._instance is None  # type: ignore[attr-defined]


def test_removed_listener_is_not_notified(unified_manager: UnifiedConfigManager) -> None:
    events = []

    def listener() -> None:
        events.append("changed")

    unified_manager.add_change_listener(listener)
    unified_manager.remove_change_listener(listener)
    unified_manager.set_value("bivariate.kendalls_tau_b", True)
    assert events == []


def test_reset_to_defaults_discards_changes(unified_manager: UnifiedConfigManager) -> None:
    unified_manager.set_value("output.format", "yaml")
    raw = unified_manager.get_raw_config()
    assert raw["output"]["format"] == "yaml"
    raw["output"]["format"] = "json"
    assert unified_manager.get_section("output")["format"] == "yaml"

    unified_manager.reset_to_defaults()
    assert unified_manager.get_section("output")["format"] == "json"
    assert unified_manager.active_profile == "default"
