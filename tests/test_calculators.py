from __future__ import annotations

import math

import pytest

from statdialogs.backend.analysis.correlate.bivariate import BivariateCalculator, tie_factors
from statdialogs.backend.analysis.descriptives import DescriptiveCalculator, haverage_percentile
from statdialogs.backend.analysis.missing import is_missing, to_float
from statdialogs.backend.analysis.nonparametric.two_independent_samples import (
    TwoIndependentSamplesCalculator,
    exact_u_distribution,
    kolmogorov_p_value,
)


def _var(name, measure="scale", missing=None):
    return {"name": name, "label": "", "measure": measure, "decimals": 2, "values": [], "missing": missing}


ALL_COEFFICIENTS = {
    "correlationCoefficient": {"pearson": True, "kendallsTauB": True, "spearman": True},
    "testOfSignificance": {"twoTailed": True, "oneTailed": False},
    "showDiagonal": True,
}


def test_to_float_and_missing_rules():
    assert to_float("2.5") == 2.5
    assert to_float("") is None
    assert to_float(True) is None
    assert to_float(float("nan")) is None

    definition = {"discrete": [99], "range": {"min": -10, "max": -1}}
    assert is_missing(None, None, True)
    assert is_missing(99, definition, True)
    assert is_missing("99", definition, True)
    assert is_missing(-5, definition, True)
    assert not is_missing(5, definition, True)
    # ranges only apply to numeric variables
    assert not is_missing(-5, {"range": {"min": -10, "max": -1}}, False)


def test_haverage_percentiles():
    values = [1.0, 2.0, 3.0, 4.0]
    assert haverage_percentile(values, 25) == pytest.approx(1.25)
    assert haverage_percentile(values, 50) == pytest.approx(2.5)
    assert haverage_percentile(values, 75) == pytest.approx(3.75)
    assert haverage_percentile([], 50) is None


def test_descriptive_calculator_counts_missing():
    output = DescriptiveCalculator(_var("x", missing={"discrete": [0]}), [1, 2, 3, None, 0]).get_output()
    assert output["N"] == 3
    assert output["Missing"] == 2
    assert output["Mean"] == pytest.approx(2.0)
    assert output["StdDev"] == pytest.approx(1.0)
    assert output["Min"] == 1.0 and output["Max"] == 3.0


def test_tie_factors():
    factors = tie_factors([1, 1, 2, 3, 3, 3])
    # t = 2 and t = 3: (4 - 2) + (9 - 3)
    assert factors["tau"] == 8
    assert factors["ST"] == (8 - 2) + (27 - 3)


def test_perfect_positive_correlation():
    calculator = BivariateCalculator(
        [_var("x"), _var("y")], [[1, 2, 3, 4, 5], [2, 4, 6, 8, 10]], ALL_COEFFICIENTS
    )
    pearson = calculator.pearson("x", "y")
    assert pearson["Pearson"] == pytest.approx(1.0)
    assert pearson["N"] == 5
    assert calculator.kendalls_tau_b("x", "y")["KendallsTauB"] == pytest.approx(1.0)
    assert calculator.spearman("x", "y")["Spearman"] == pytest.approx(1.0)


def test_pearson_known_value():
    calculator = BivariateCalculator([_var("x"), _var("y")], [[1, 2, 3, 4], [1, 3, 2, 4]], ALL_COEFFICIENTS)
    result = calculator.pearson("x", "y")
    assert result["Pearson"] == pytest.approx(0.8)
    # t = 0.8 * sqrt(2 / 0.36), two-tailed with 2 df
    assert result["PValue"] == pytest.approx(0.2, abs=1e-6)
    assert result["Covariance"] == pytest.approx(4 / 3)


def test_kendall_known_value():
    calculator = BivariateCalculator([_var("x"), _var("y")], [[1, 2, 3, 4], [1, 3, 2, 4]], ALL_COEFFICIENTS)
    # 5 concordant, 1 discordant pair
    assert calculator.kendalls_tau_b("x", "y")["KendallsTauB"] == pytest.approx(4 / 6)


def test_pairwise_deletion_keeps_rows_aligned():
    calculator = BivariateCalculator(
        [_var("x"), _var("y")], [[1, None, 3, 4, 5], [2, 4, None, 8, 10]], ALL_COEFFICIENTS
    )
    pearson = calculator.pearson("x", "y")
    assert pearson["N"] == 3
    assert pearson["Pearson"] == pytest.approx(1.0)


def test_zero_spread_gives_no_coefficient():
    calculator = BivariateCalculator([_var("x"), _var("y")], [[1, 2, 3], [5, 5, 5]], ALL_COEFFICIENTS)
    assert calculator.pearson("x", "y")["Pearson"] is None
    assert calculator.kendalls_tau_b("x", "y")["KendallsTauB"] is None


def test_bivariate_output_shape():
    options = dict(ALL_COEFFICIENTS, statisticsOptions={"meansAndStandardDeviations": True})
    output = BivariateCalculator([_var("x"), _var("y")], [[1, 2, 3], [3, 1, 2]], options).get_output()
    assert [(c["variable1"], c["variable2"]) for c in output["correlation"]] == [("x", "x"), ("x", "y"), ("y", "y")]
    assert output["descriptiveStatistics"][0]["variable"] == "x"
    assert output["partialCorrelation"] == []
    assert output["matrixValidation"]["hasInvalidCorrelations"] is False
    assert output["metadata"][0]["hasInsufficientData"] is False


def test_metadata_flags_constant_variables():
    output = BivariateCalculator([_var("x"), _var("y")], [[1, 1, 1], [1, 2, 3]], ALL_COEFFICIENTS).get_output()
    assert output["metadata"][0]["insufficientType"] == ["stdDev"]


def test_partial_correlation_uses_control_variables():
    options = dict(
        ALL_COEFFICIENTS,
        partialCorrelationKendallsTauB=True,
        missingValuesOptions={"excludeCasesListwise": True},
        controlVariables=[_var("z")],
        controlData=[[2, 1, 3, 5, 4, 6]],
    )
    calculator = BivariateCalculator(
        [_var("x"), _var("y"), _var("w")],
        [[1, 2, 3, 4, 5, 6], [2, 1, 4, 3, 6, 5], [6, 5, 4, 3, 2, 1]],
        options,
    )
    partial = calculator.partial_results()
    assert partial
    assert {item["controlVariable"] for item in partial} == {"z"}
    first = partial[0]["partialCorrelation"]
    assert first["df"] == 3
    assert -1 <= first["Correlation"] <= 1


def test_exact_u_distribution():
    assert exact_u_distribution(1, 1) == [1, 1]
    assert exact_u_distribution(2, 2) == [1, 1, 2, 1, 1]
    assert sum(exact_u_distribution(3, 4)) == math.comb(7, 3)


def test_kolmogorov_p_value():
    assert kolmogorov_p_value(0) == 1.0
    assert kolmogorov_p_value(1.0) == pytest.approx(0.27, abs=1e-3)
    assert kolmogorov_p_value(3.0) < 1e-6


def _two_samples(values, groups, tests=None):
    options = {"group1": 1, "group2": 2}
    if tests:
        options["testType"] = tests
    return TwoIndependentSamplesCalculator(_var("score"), values, _var("group"), groups, options)


def test_mann_whitney_separated_groups():
    calculator = _two_samples([1, 2, 3, 4, 5, 6], [1, 1, 1, 2, 2, 2])
    ranks = calculator.frequencies_ranks()
    assert ranks["group1"]["SumRanks"] == 6
    assert ranks["group2"]["MeanRank"] == 5

    result = calculator.mann_whitney_u()
    assert result["U"] == 0
    assert result["W"] == 6
    assert result["showExact"] is True
    assert result["pExact"] == pytest.approx(0.1)


def test_other_two_sample_tests():
    calculator = _two_samples([1, 2, 3, 4, 5, 6], [1, 1, 1, 2, 2, 2])
    ks = calculator.kolmogorov_smirnov_z()
    assert ks["D_absolute"] == pytest.approx(1.0)
    assert ks["d_stat"] == pytest.approx(math.sqrt(1.5))

    moses = calculator.moses_extreme_reactions()
    assert moses["span"] == 2
    assert moses["outliers"] == 3

    runs = calculator.wald_wolfowitz_runs()
    assert runs["runsCount"] == 2


def test_cases_outside_groups_and_missing_are_ignored():
    calculator = _two_samples([1, 2, None, 4, 5, 9], [1, 1, 1, 2, 2, 3])
    assert calculator.n1 == 2
    assert calculator.n2 == 2


def test_empty_group_is_reported():
    output = _two_samples([1, 2, 3], [1, 1, 1]).get_output()
    assert output["metadata"]["insufficentType"] == ["hasEmptyGroup"]
    assert output["testStatisticsMannWhitneyU"]["pValue"] == 1
