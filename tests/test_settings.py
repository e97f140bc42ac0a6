from __future__ import annotations

import pytest

from statdialogs.config import UnifiedConfigManager
from statdialogs.dialogs.bivariate.settings import LISTWISE, BivariateSettings
from statdialogs.dialogs.two_independent_samples.settings import TwoIndependentSamplesSettings


def test_bivariate_defaults():
    settings = BivariateSettings()
    assert settings.correlation_coefficient.pearson is True
    assert settings.correlation_coefficient.kendalls_tau_b is False
    assert settings.test_of_significance.two_tailed is True
    assert settings.show_diagonal is True
    assert settings.missing_values.exclude_cases_pairwise is True


def test_bivariate_exclusive_options():
    settings = BivariateSettings()
    settings.set_one_tailed()
    assert settings.test_of_significance.one_tailed is True
    assert settings.test_of_significance.two_tailed is False

    settings.set_missing_values(LISTWISE)
    assert settings.listwise is True
    assert settings.missing_values.exclude_cases_pairwise is False

    with pytest.raises(ValueError):
        settings.set_missing_values("casewise")


def test_bivariate_payload_is_camel_case():
    settings = BivariateSettings()
    settings.correlation_coefficient.spearman = True
    payload = settings.to_payload()
    assert payload["correlationCoefficient"] == {"pearson": True, "kendallsTauB": False, "spearman": True}
    assert payload["testOfSignificance"] == {"twoTailed": True, "oneTailed": False}
    assert payload["missingValuesOptions"]["excludeCasesPairwise"] is True
    assert payload["statisticsOptions"]["meansAndStandardDeviations"] is False
    assert payload["showDiagonal"] is True


def test_bivariate_reset_returns_to_configured_defaults():
    settings = BivariateSettings.from_config({"pearson": True, "spearman": True, "missing_values": "listwise"})
    settings.correlation_coefficient.spearman = False
    settings.set_missing_values("pairwise")
    settings.flag_significant_correlations = True

    settings.reset()
    assert settings.correlation_coefficient.spearman is True
    assert settings.listwise is True
    assert settings.flag_significant_correlations is False


def test_bivariate_settings_from_active_profile(unified_manager: UnifiedConfigManager):
    unified_manager.set_active_profile("publication")
    settings = BivariateSettings.from_active_profile()
    assert settings.flag_significant_correlations is True
    assert settings.show_only_the_lower_triangle is True
    assert settings.statistics_options.means_and_standard_deviations is True


def test_two_samples_defaults_and_payload():
    settings = TwoIndependentSamplesSettings()
    assert settings.groups_defined is False
    settings.define_groups(1, 2)
    settings.test_type.moses_extreme_reactions = True

    payload = settings.to_payload()
    assert payload["group1"] == 1 and payload["group2"] == 2
    assert payload["testType"] == {
        "mannWhitneyU": True,
        "kolmogorovSmirnovZ": False,
        "mosesExtremeReactions": True,
        "waldWolfowitzRuns": False,
    }
    assert settings.analysis_types() == ["mannWhitneyU", "mosesExtremeReactions"]


def test_two_samples_reset_clears_groups(unified_manager: UnifiedConfigManager):
    unified_manager.set_active_profile("exploratory")
    settings = TwoIndependentSamplesSettings.from_active_profile()
    assert settings.test_type.kolmogorov_smirnov_z is True
    assert settings.display_statistics.quartiles is True

    settings.define_groups("m", "f")
    settings.test_type.kolmogorov_smirnov_z = False
    settings.reset()
    assert settings.group1 is None and settings.group2 is None
    assert settings.test_type.kolmogorov_smirnov_z is True
