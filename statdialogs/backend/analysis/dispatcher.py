"""Routes worker request payloads to the calculators."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping

from .correlate.bivariate import BivariateCalculator
from .descriptives import DescriptiveCalculator
from .nonparametric.two_independent_samples import TwoIndependentSamplesCalculator

logger = logging.getLogger(__name__)

Response = Dict[str, Any]

TWO_SAMPLE_TESTS = ("mannWhitneyU", "kolmogorovSmirnovZ", "mosesExtremeReactions", "waldWolfowitzRuns")


def _variable_name(payload: Mapping[str, Any]) -> str:
    variable = payload.get("variable1") or payload.get("variable")
    if isinstance(variable, Mapping):
        return str(variable.get("name", "unknown"))
    if isinstance(variable, list):
        return ", ".join(str(v.get("name")) for v in variable if isinstance(v, Mapping))
    return str(payload.get("analysisType", "unknown"))


def _bivariate(payload: Mapping[str, Any]) -> Dict[str, Any]:
    calculator = BivariateCalculator(
        payload.get("variable") or [], payload.get("data") or [], payload.get("options") or {}
    )
    return calculator.get_output()


def _descriptive(payload: Mapping[str, Any]) -> Dict[str, Any]:
    variable = payload["variable1"]
    output = DescriptiveCalculator(variable, payload.get("data1") or []).get_output()
    output.pop("variable", None)
    return {"descriptiveStatistics": {"variable1": dict(variable), **output}}


def _two_independent_samples(payload: Mapping[str, Any]) -> Dict[str, Any]:
    requested = set(payload.get("analysisType") or [])
    options = dict(payload.get("options") or {})
    options["testType"] = {name: name in requested for name in TWO_SAMPLE_TESTS}
    calculator = TwoIndependentSamplesCalculator(
        payload["variable1"],
        payload.get("data1") or [],
        payload["variable2"],
        payload.get("data2") or [],
        options,
    )
    return calculator.get_output()


def _route(payload: Mapping[str, Any]) -> Callable[[Mapping[str, Any]], Dict[str, Any]]:
    analysis_type = payload.get("analysisType")
    if analysis_type == "bivariate":
        return _bivariate
    if isinstance(analysis_type, (list, tuple)):
        if "descriptiveStatistics" in analysis_type:
            return _descriptive
        if "frequenciesRanks" in analysis_type or set(analysis_type) & set(TWO_SAMPLE_TESTS):
            return _two_independent_samples
    raise ValueError(f"Unsupported analysis type: {analysis_type!r}")


def handle_message(payload: Mapping[str, Any]) -> List[Response]:
    """Answer one request with its response messages.

    Calculation failures never raise: they become ``status: "error"`` responses
    naming the variable that failed.
    """
    name = _variable_name(payload)
    try:
        handler = _route(payload)
        results = handler(payload)
    except Exception as exc:
        logger.error("Calculation failed for %s: %s", name, exc, exc_info=True)
        return [{"status": "error", "variableName": name, "error": str(exc)}]
    return [{"status": "success", "variableName": name, "results": results}]


__all__ = ["handle_message", "TWO_SAMPLE_TESTS"]
