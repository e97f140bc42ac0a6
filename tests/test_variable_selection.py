from __future__ import annotations

import pytest

from conftest import make_variable
from statdialogs.core.variables import Measure, Variable, VariableType, column_header, display_name
from statdialogs.dialogs.variable_selection import Bucket, VariablePartition


@pytest.fixture
def variables():
    return [make_variable(name, index) for index, name in enumerate(["a", "b", "c", "d"])]


def test_initial_partition_keeps_order(variables):
    partition = VariablePartition(variables)
    assert [v.name for v in partition.available] == ["a", "b", "c", "d"]
    assert partition.test == []
    assert partition.grouping is None


def test_move_to_test_removes_from_available(variables):
    partition = VariablePartition(variables)
    assert partition.move_to_test(variables[2])
    assert partition.move_to_test(variables[0])
    assert [v.name for v in partition.test] == ["c", "a"]
    assert [v.name for v in partition.available] == ["b", "d"]
    assert partition.bucket_of(variables[2]) == Bucket.TEST


def test_move_to_available_restores_original_position(variables):
    partition = VariablePartition(variables)
    partition.move_to_test(variables[1])
    partition.move_to_test(variables[2])
    partition.move_to_available(variables[2])
    partition.move_to_available(variables[1])
    assert [v.name for v in partition.available] == ["a", "b", "c", "d"]


def test_direct_moves_between_lists(variables):
    partition = VariablePartition(variables)
    partition.move_to_test(variables[0])
    partition.move_to_control(variables[0])
    assert partition.test == []
    assert [v.name for v in partition.control] == ["a"]

    partition.move_to_grouping(variables[0])
    assert partition.control == []
    assert partition.grouping is variables[0]


def test_replacing_grouping_returns_previous_to_available(variables):
    partition = VariablePartition(variables)
    partition.move_to_grouping(variables[1])
    partition.move_to_grouping(variables[3])
    assert partition.grouping is variables[3]
    assert [v.name for v in partition.available] == ["a", "b", "c"]


def test_every_variable_lives_in_one_bucket(variables):
    partition = VariablePartition(variables)
    partition.move_to_test(variables[0])
    partition.move_to_test(variables[0])
    partition.move_to_control(variables[1])
    partition.move_to_grouping(variables[2])

    ids = [v.temp_id for v in partition.available + partition.test + partition.control]
    ids.append(partition.grouping.temp_id)
    assert sorted(ids) == sorted(v.temp_id for v in variables)


def test_unknown_variables_are_ignored(variables):
    partition = VariablePartition(variables)
    stranger = make_variable("zzz", 99)
    assert partition.move_to_test(stranger) is False
    assert partition.move_to_available(stranger) is False
    assert partition.test == []
    assert len(partition.available) == 4


def test_reorder_requires_a_permutation(variables):
    partition = VariablePartition(variables)
    for variable in variables[:3]:
        partition.move_to_test(variable)

    assert partition.reorder(Bucket.TEST, [variables[2], variables[0], variables[1]])
    assert [v.name for v in partition.test] == ["c", "a", "b"]

    assert not partition.reorder(Bucket.TEST, [variables[0], variables[1]])
    assert not partition.reorder(Bucket.TEST, [variables[0], variables[1], variables[3]])
    assert [v.name for v in partition.test] == ["c", "a", "b"]


def test_highlight_resolves_variable(variables):
    partition = VariablePartition(variables)
    partition.set_highlighted("var-2", Bucket.AVAILABLE)
    assert partition.highlighted_variable is variables[2]
    assert partition.highlighted.source == Bucket.AVAILABLE

    partition.clear_highlighted()
    assert partition.highlighted_variable is None


def test_moving_highlighted_variable_clears_highlight(variables):
    partition = VariablePartition(variables)
    partition.set_highlighted("var-0", Bucket.AVAILABLE)
    partition.move_to_test(variables[0])
    assert partition.highlighted is None


def test_reset_restores_initial_partition(variables):
    partition = VariablePartition(variables, test=[variables[3]])
    partition.move_to_test(variables[0])
    partition.move_to_available(variables[3])
    partition.set_highlighted("var-1", Bucket.AVAILABLE)

    partition.reset()
    assert [v.name for v in partition.test] == ["d"]
    assert [v.name for v in partition.available] == ["a", "b", "c"]
    assert partition.highlighted is None


def test_accepts_predicate_blocks_moves(variables):
    partition = VariablePartition(variables, accepts=lambda variable, target: variable.name != "b")
    assert partition.move_to_test(variables[1]) is False
    assert partition.move_to_test(variables[0]) is True


def test_variable_dict_round_trip_uses_camel_case():
    variable = make_variable("income", 3, label="Income", decimals=1)
    data = variable.to_dict()
    assert data["tempId"] == "var-3"
    assert data["columnIndex"] == 3
    assert data["measure"] == "scale"
    assert Variable.from_dict(data) == variable


def test_display_helpers():
    labelled = make_variable("inc", 0, label="Income")
    plain = make_variable("age", 1)
    assert display_name(labelled) == "Income [inc]"
    assert display_name(plain) == "age"
    assert column_header(labelled, 0) == "Income"
    assert column_header(None, 4) == "Variable 5"


def test_nominal_variables_cannot_be_correlated():
    from statdialogs.core.variables import is_selectable_for_correlation

    assert is_selectable_for_correlation(make_variable("x", 0))
    assert is_selectable_for_correlation(make_variable("o", 1, measure=Measure.ORDINAL))
    assert not is_selectable_for_correlation(make_variable("n", 2, measure=Measure.NOMINAL))
    assert not is_selectable_for_correlation(make_variable("s", 3, type=VariableType.STRING))
    unknown = make_variable("u", 4, measure=Measure.UNKNOWN)
    assert not is_selectable_for_correlation(unknown)
    assert is_selectable_for_correlation(unknown, allow_unknown=True)
