from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

# flag -> (worker analysis type, NPAR TESTS subcommand)
TEST_CODES: Dict[str, Tuple[str, str]] = {
    "mann_whitney_u": ("mannWhitneyU", "M-W"),
    "kolmogorov_smirnov_z": ("kolmogorovSmirnovZ", "K-S"),
    "moses_extreme_reactions": ("mosesExtremeReactions", "MOSES"),
    "wald_wolfowitz_runs": ("waldWolfowitzRuns", "W-W"),
}


@dataclass
class TestType:
    mann_whitney_u: bool = True
    kolmogorov_smirnov_z: bool = False
    moses_extreme_reactions: bool = False
    wald_wolfowitz_runs: bool = False

    def selected(self) -> List[str]:
        return [name for name in TEST_CODES if getattr(self, name)]


@dataclass
class DisplayStatistics:
    descriptive: bool = False
    quartiles: bool = False

    def any_selected(self) -> bool:
        return self.descriptive or self.quartiles


@dataclass
class TwoIndependentSamplesSettings:
    group1: Any = None
    group2: Any = None
    test_type: TestType = field(default_factory=TestType)
    display_statistics: DisplayStatistics = field(default_factory=DisplayStatistics)

    def __post_init__(self) -> None:
        self._defaults: Optional[TwoIndependentSamplesSettings] = None

    @classmethod
    def from_config(cls, section: Mapping[str, Any]) -> "TwoIndependentSamplesSettings":
        settings = cls(
            test_type=TestType(**{name: bool(section.get(name, name == "mann_whitney_u")) for name in TEST_CODES}),
            display_statistics=DisplayStatistics(
                descriptive=bool(section.get("descriptive", False)),
                quartiles=bool(section.get("quartiles", False)),
            ),
        )
        settings.remember_defaults()
        return settings

    @classmethod
    def from_active_profile(cls) -> "TwoIndependentSamplesSettings":
        from ...config import UnifiedConfigManager

        return cls.from_config(UnifiedConfigManager().get_section("two_independent_samples"))

    def remember_defaults(self) -> None:
        self._defaults = None
        self._defaults = deepcopy(self)

    def reset(self) -> None:
        source = self._defaults if self._defaults is not None else TwoIndependentSamplesSettings()
        for name in self.__dataclass_fields__:
            setattr(self, name, deepcopy(getattr(source, name)))

    def define_groups(self, group1: Any, group2: Any) -> None:
        self.group1 = group1
        self.group2 = group2

    @property
    def groups_defined(self) -> bool:
        return self.group1 is not None and self.group2 is not None

    def analysis_types(self) -> List[str]:
        return [TEST_CODES[name][0] for name in self.test_type.selected()]

    def to_payload(self) -> Dict[str, Any]:
        return {
            "group1": self.group1,
            "group2": self.group2,
            "testType": {TEST_CODES[name][0]: getattr(self.test_type, name) for name in TEST_CODES},
            "displayStatistics": {
                "descriptive": self.display_statistics.descriptive,
                "quartiles": self.display_statistics.quartiles,
            },
        }


__all__ = ["TwoIndependentSamplesSettings", "TestType", "DisplayStatistics", "TEST_CODES"]
