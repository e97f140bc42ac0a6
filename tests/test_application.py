from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

pytest.importorskip("PyQt6.QtCore")

from statdialogs.core.application import coerce_group_value, run
from statdialogs.core.variables import VariableType
from statdialogs.dialogs.workers import inline_worker_factory

from conftest import make_variable


@pytest.fixture
def csv_file(tmp_path: Path) -> Path:
    path = tmp_path / "data.csv"
    path.write_text(
        "height,weight,age,sex\n"
        "150,50,30,1\n"
        "160,62,25,2\n"
        "170,61,41,1\n"
        "180,80,38,2\n"
        "190,85,52,1\n"
        "175,70,47,2\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def config_args(unified_manager, tmp_path: Path):
    return ["--config", str(tmp_path / "cli" / "config.toml")]


def _run(argv):
    return run(argv, worker_factory=inline_worker_factory)


def test_config_validate(config_args, capsys):
    assert _run([*config_args, "--config-validate"]) == 0
    assert "Configuration is valid." in capsys.readouterr().out


def test_bivariate_exports_json(config_args, csv_file: Path, tmp_path: Path):
    output = tmp_path / "results.json"
    code = _run(
        [*config_args, "bivariate", str(csv_file), "--vars", "height", "weight", "age", "--spearman", "--quiet",
         "-o", str(output)]
    )
    assert code == 0
    exported = json.loads(output.read_text(encoding="utf-8"))
    [log] = exported["logs"]
    assert log["log"] == "CORRELATIONS {VARIABLES=height weight age}"
    titles = [s["title"] for s in log["analytics"][0]["statistics"]]
    assert titles == ["Correlation", "Nonparametric Correlation"]


def test_two_samples_exports_yaml(config_args, csv_file: Path, tmp_path: Path):
    output = tmp_path / "results.yaml"
    code = _run(
        [*config_args, "two-samples", str(csv_file), "--vars", "height", "--group", "sex", "--groups", "1", "2",
         "--tests", "mann-whitney", "wald-wolfowitz", "-f", "yaml", "-o", str(output), "--quiet"]
    )
    assert code == 0
    exported = yaml.safe_load(output.read_text(encoding="utf-8"))
    log = exported["logs"][0]
    assert log["log"] == "NPAR TESTS /M-W=height BY sex(1 2) /W-W=height BY sex(1 2)"
    titles = [s["title"] for s in log["analytics"][0]["statistics"]]
    assert "Mann-Whitney U Test Statistics" in titles
    assert "Wald-Wolfowitz Test Statistics" in titles


def test_unknown_variable_is_usage_error(config_args, csv_file: Path):
    assert _run([*config_args, "bivariate", str(csv_file), "--vars", "height", "shoe"]) == 2


def test_single_variable_cannot_correlate(config_args, csv_file: Path):
    assert _run([*config_args, "bivariate", str(csv_file), "--vars", "height"]) == 2


def test_missing_dataset_fails(config_args, tmp_path: Path):
    assert _run([*config_args, "bivariate", str(tmp_path / "nope.csv"), "--vars", "a", "b"]) == 1


def test_coerce_group_value_follows_column_type():
    numeric = make_variable("sex", 0)
    text = make_variable("sex", 0, type=VariableType.STRING)
    assert coerce_group_value("1", numeric, [1, 2]) == 1
    assert isinstance(coerce_group_value("1", numeric, [1, 2]), int)
    assert coerce_group_value("1.5", numeric, [1.5, 2]) == 1.5
    assert coerce_group_value("m", numeric, [1, 2]) == "m"
    assert coerce_group_value("1", text, ["1", "2"]) == "1"
