from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

PAIRWISE = "pairwise"
LISTWISE = "listwise"


@dataclass
class CorrelationCoefficient:
    pearson: bool = True
    kendalls_tau_b: bool = False
    spearman: bool = False

    def any_selected(self) -> bool:
        return self.pearson or self.kendalls_tau_b or self.spearman


@dataclass
class TestOfSignificance:
    two_tailed: bool = True
    one_tailed: bool = False


@dataclass
class StatisticsOptions:
    means_and_standard_deviations: bool = False
    cross_product_deviations_and_covariances: bool = False


@dataclass
class MissingValuesOptions:
    exclude_cases_pairwise: bool = True
    exclude_cases_listwise: bool = False


@dataclass
class BivariateSettings:
    """Options of the Bivariate Correlations dialog."""

    correlation_coefficient: CorrelationCoefficient = field(default_factory=CorrelationCoefficient)
    test_of_significance: TestOfSignificance = field(default_factory=TestOfSignificance)
    flag_significant_correlations: bool = False
    show_only_the_lower_triangle: bool = False
    show_diagonal: bool = True
    partial_correlation_kendalls_tau_b: bool = False
    statistics_options: StatisticsOptions = field(default_factory=StatisticsOptions)
    missing_values: MissingValuesOptions = field(default_factory=MissingValuesOptions)

    def __post_init__(self) -> None:
        self._defaults: Optional[BivariateSettings] = None

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "BivariateSettings":
        settings = cls(
            correlation_coefficient=CorrelationCoefficient(
                pearson=bool(section.get("pearson", True)),
                kendalls_tau_b=bool(section.get("kendalls_tau_b", False)),
                spearman=bool(section.get("spearman", False)),
            ),
            flag_significant_correlations=bool(section.get("flag_significant_correlations", False)),
            show_only_the_lower_triangle=bool(section.get("show_only_the_lower_triangle", False)),
            show_diagonal=bool(section.get("show_diagonal", True)),
            partial_correlation_kendalls_tau_b=bool(section.get("partial_correlation_kendalls_tau_b", False)),
            statistics_options=StatisticsOptions(
                means_and_standard_deviations=bool(section.get("means_and_standard_deviations", False)),
                cross_product_deviations_and_covariances=bool(
                    section.get("cross_product_deviations_and_covariances", False)
                ),
            ),
        )
        settings.set_two_tailed(bool(section.get("two_tailed", True)))
        settings.set_missing_values(str(section.get("missing_values", PAIRWISE)))
        settings.remember_defaults()
        return settings

    @classmethod
    def from_active_profile(cls) -> "BivariateSettings":
        from ...config import UnifiedConfigManager

        return cls.from_config(UnifiedConfigManager().get_section("bivariate"))

    def remember_defaults(self) -> None:
        """Make the current values the state :meth:`reset` returns to."""

        self._defaults = None
        self._defaults = deepcopy(self)

    def reset(self) -> None:
        source = self._defaults if self._defaults is not None else BivariateSettings()
        for name in self.__dataclass_fields__:
            setattr(self, name, deepcopy(getattr(source, name)))

    def set_two_tailed(self, enabled: bool = True) -> None:
        self.test_of_significance = TestOfSignificance(two_tailed=enabled, one_tailed=not enabled)

    def set_one_tailed(self, enabled: bool = True) -> None:
        self.set_two_tailed(not enabled)

    def set_missing_values(self, mode: str) -> None:
        if mode not in (PAIRWISE, LISTWISE):
            raise ValueError(f"Unknown missing value handling: {mode!r}")
        self.missing_values = MissingValuesOptions(
            exclude_cases_pairwise=mode == PAIRWISE,
            exclude_cases_listwise=mode == LISTWISE,
        )

    @property
    def listwise(self) -> bool:
        return self.missing_values.exclude_cases_listwise

    def to_payload(self) -> Dict[str, Any]:
        """Render the camelCase options the calculation worker reads."""

        return {
            "correlationCoefficient": {
                "pearson": self.correlation_coefficient.pearson,
                "kendallsTauB": self.correlation_coefficient.kendalls_tau_b,
                "spearman": self.correlation_coefficient.spearman,
            },
            "testOfSignificance": {
                "twoTailed": self.test_of_significance.two_tailed,
                "oneTailed": self.test_of_significance.one_tailed,
            },
            "flagSignificantCorrelations": self.flag_significant_correlations,
            "showOnlyTheLowerTriangle": self.show_only_the_lower_triangle,
            "showDiagonal": self.show_diagonal,
            "partialCorrelationKendallsTauB": self.partial_correlation_kendalls_tau_b,
            "statisticsOptions": {
                "meansAndStandardDeviations": self.statistics_options.means_and_standard_deviations,
                "crossProductDeviationsAndCovariances": (
                    self.statistics_options.cross_product_deviations_and_covariances
                ),
            },
            "missingValuesOptions": {
                "excludeCasesPairwise": self.missing_values.exclude_cases_pairwise,
                "excludeCasesListwise": self.missing_values.exclude_cases_listwise,
            },
        }


__all__ = [
    "BivariateSettings",
    "CorrelationCoefficient",
    "TestOfSignificance",
    "StatisticsOptions",
    "MissingValuesOptions",
    "PAIRWISE",
    "LISTWISE",
]
