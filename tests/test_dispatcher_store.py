from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from statdialogs.backend.analysis.dispatcher import handle_message
from statdialogs.backend.output.factory import OutputFactory
from statdialogs.backend.output.writers import ExportError, output_to_yaml
from statdialogs.backend.results import InMemoryResultStore, ResultStoreError
from statdialogs.backend.workers import InlineWorker
from statdialogs.core.dataset import Dataset
from statdialogs.core.exceptions import DataSaveError

from conftest import make_variable


def _var(name, measure="scale"):
    return {"name": name, "label": "", "measure": measure, "decimals": 2, "values": [], "missing": None}


def test_bivariate_request_answers_with_success():
    [response] = handle_message(
        {
            "analysisType": "bivariate",
            "variable": [_var("a"), _var("b")],
            "data": [[1, 2, 3, 4, 5], [2, 1, 4, 3, 5]],
            "options": {"correlationCoefficient": {"pearson": True}},
        }
    )
    assert response["status"] == "success"
    assert response["variableName"] == "a, b"
    pairs = [(e["variable1"], e["variable2"]) for e in response["results"]["correlation"]]
    assert pairs == [("a", "a"), ("a", "b"), ("b", "b")]


def test_lower_triangle_without_diagonal_skips_self_pairs():
    [response] = handle_message(
        {
            "analysisType": "bivariate",
            "variable": [_var("a"), _var("b")],
            "data": [[1, 2, 3, 4, 5], [2, 1, 4, 3, 5]],
            "options": {
                "correlationCoefficient": {"pearson": True},
                "showOnlyTheLowerTriangle": True,
                "showDiagonal": False,
            },
        }
    )
    [entry] = response["results"]["correlation"]
    assert (entry["variable1"], entry["variable2"]) == ("a", "b")


def test_descriptive_request_wraps_variable():
    [response] = handle_message(
        {"analysisType": ["descriptiveStatistics"], "variable1": _var("score"), "data1": [1, 2, 3]}
    )
    assert response["status"] == "success"
    statistics = response["results"]["descriptiveStatistics"]
    assert statistics["variable1"]["name"] == "score"
    assert statistics["N"] == 3


def test_two_sample_request_runs_only_requested_tests():
    [response] = handle_message(
        {
            "analysisType": ["frequenciesRanks", "mannWhitneyU"],
            "variable1": _var("score"),
            "data1": [1, 2, 3, 4, 5, 6],
            "variable2": _var("group", "nominal"),
            "data2": [1, 1, 1, 2, 2, 2],
            "options": {"group1": 1, "group2": 2},
        }
    )
    results = response["results"]
    assert response["status"] == "success"
    assert results["testStatisticsMannWhitneyU"] is not None
    assert results["testStatisticsKolmogorovSmirnovZ"] is None


def test_unsupported_request_becomes_error_response():
    [response] = handle_message({"analysisType": "regression", "variable1": _var("x")})
    assert response["status"] == "error"
    assert response["variableName"] == "x"
    assert "Unsupported analysis type" in response["error"]


def test_inline_worker_delivers_before_returning():
    worker = InlineWorker()
    received = []
    worker.on_message = received.append
    worker.post_message({"analysisType": ["descriptiveStatistics"], "variable1": _var("x"), "data1": [4, 5]})
    assert [r["status"] for r in received] == ["success"]

    worker.terminate()
    worker.post_message({"analysisType": ["descriptiveStatistics"], "variable1": _var("x"), "data1": [4, 5]})
    assert len(received) == 1
    assert worker.terminated


def test_result_store_hierarchy_and_parents():
    store = InMemoryResultStore()
    log_id = store.add_log({"log": "CORRELATIONS"})
    analytic_id = store.add_analytic(log_id, {"title": "Correlation", "note": ""})
    store.add_statistic(analytic_id, {"title": "Correlations", "output_data": "{}", "components": "Correlations"})

    assert len({log_id, analytic_id}) == 2
    assert [s.title for s in store.statistics()] == ["Correlations"]
    assert store.logs[0].analytics[0].title == "Correlation"

    with pytest.raises(ResultStoreError):
        store.add_analytic(999, {"title": "orphan"})
    with pytest.raises(ResultStoreError):
        store.add_statistic(999, {"title": "orphan"})


def test_result_store_exports_json_and_yaml(tmp_path: Path):
    store = InMemoryResultStore()
    log_id = store.add_log({"log": "NPAR TESTS"})
    analytic_id = store.add_analytic(log_id, {"title": "Two-Independent-Samples Test"})
    store.add_statistic(analytic_id, {"title": "Ranks", "output_data": '{"tables": []}'})

    json_file = tmp_path / "out" / "results.json"
    store.export(json_file, "json")
    exported = json.loads(json_file.read_text(encoding="utf-8"))
    assert exported["logs"][0]["log"] == "NPAR TESTS"
    assert exported["logs"][0]["analytics"][0]["statistics"][0]["title"] == "Ranks"

    yaml_file = tmp_path / "results.yaml"
    store.export(yaml_file, "yaml")
    assert yaml.safe_load(yaml_file.read_text(encoding="utf-8")) == exported


def test_output_factory_rejects_unknown_format():
    assert OutputFactory.available_formats() == ["json", "yaml"]
    with pytest.raises(ValueError, match="Unknown output format"):
        OutputFactory.get_output("xml")


def test_dataset_from_csv_infers_variables(tmp_path: Path):
    csv_file = tmp_path / "data.csv"
    csv_file.write_text("score,sex,name\n1.5,1,ann\n2.5,2,bob\n,1,cy\n", encoding="utf-8")

    dataset = Dataset.from_csv(csv_file)
    score, sex, name = dataset.variables
    assert score.measure.value == "scale"
    assert name.measure.value == "nominal"
    assert dataset.column(score) == [1.5, 2.5, None]
    assert dataset.column(sex) == [1, 2, 1]
    with pytest.raises(KeyError):
        dataset.variable("missing")


def test_dataset_saves_pending_edits(tmp_path: Path):
    csv_file = tmp_path / "data.csv"
    csv_file.write_text("a,b\n1,2\n3,4\n", encoding="utf-8")
    dataset = Dataset.from_csv(csv_file)

    dataset.set_value(0, 0, 10)
    assert dataset.is_dirty
    dataset.check_and_save()
    assert not dataset.is_dirty
    assert csv_file.read_text(encoding="utf-8").splitlines()[1] == "10,2"


def test_dataset_save_failure_raises(tmp_path: Path):
    target = tmp_path / "missing_dir" / "data.csv"
    dataset = Dataset([make_variable("a", 0)], [[1]], path=target)
    dataset.set_value(0, 0, 2)
    with pytest.raises(DataSaveError):
        dataset.check_and_save()


def test_yaml_export_of_unrepresentable_data_leaves_no_file(tmp_path: Path):
    target = tmp_path / "results.yaml"
    with pytest.raises(ExportError, match="YAML error"):
        output_to_yaml({"logs": [object()]}, str(target))
    assert list(tmp_path.iterdir()) == []
