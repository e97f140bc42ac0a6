import importlib
import logging
import sys
from types import ModuleType

import pytest

from statdialogs.cli.parser import parse_arguments


def reload_module(module_name: str) -> ModuleType:
    if module_name in sys.modules:
        del sys.modules[module_name]
    return importlib.import_module(module_name)


def test_cli_parser_import_does_not_clear_existing_root_handlers():
    root_logger = logging.getLogger()
    sentinel_handler = logging.NullHandler()
    root_logger.addHandler(sentinel_handler)
    try:
        before_handlers = list(root_logger.handlers)
        reload_module("statdialogs.cli.parser")
        after_handlers = list(root_logger.handlers)
        assert after_handlers == before_handlers
    finally:
        root_logger.removeHandler(sentinel_handler)


def test_bivariate_arguments():
    args = parse_arguments(
        ["--profile", "publication", "bivariate", "data.csv", "--vars", "a", "b", "--kendall", "--listwise"]
    )
    assert args.command == "bivariate"
    assert args.profile == "publication"
    assert args.vars == ["a", "b"]
    assert args.kendall is True
    assert args.pearson is None
    assert args.listwise is True
    assert args.pairwise is None


def test_bivariate_coefficients_can_be_disabled():
    args = parse_arguments(["bivariate", "data.csv", "--vars", "a", "b", "--no-pearson", "--spearman"])
    assert args.pearson is False
    assert args.spearman is True


def test_pairwise_and_listwise_are_exclusive():
    with pytest.raises(SystemExit):
        parse_arguments(["bivariate", "data.csv", "--vars", "a", "b", "--pairwise", "--listwise"])


def test_two_samples_arguments():
    args = parse_arguments(
        [
            "two-samples",
            "data.csv",
            "--vars",
            "score",
            "--group",
            "sex",
            "--groups",
            "1",
            "2",
            "--tests",
            "moses",
            "wald-wolfowitz",
            "-f",
            "yaml",
        ]
    )
    assert args.command == "two-samples"
    assert args.groups == ["1", "2"]
    assert args.tests == ["moses", "wald-wolfowitz"]
    assert args.format == "yaml"


def test_two_samples_requires_groups():
    with pytest.raises(SystemExit):
        parse_arguments(["two-samples", "data.csv", "--vars", "score", "--group", "sex"])


def test_command_required_unless_validating_config():
    with pytest.raises(SystemExit):
        parse_arguments([])
    args = parse_arguments(["--config-validate"])
    assert args.config_validate is True
    assert args.command is None
