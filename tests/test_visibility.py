"""
Tests for the Visibility Evaluator.

Tests verify that the evaluator correctly:
    - Shows unconditional fields and hides fields with unanswered dependencies
    - Applies every operator, including its coercion rules
    - Fails closed (hidden) on malformed input instead of raising
    - Prunes answers of hidden fields, including down dependency chains
"""

import pytest
from formlogic.conditions import Condition
from formlogic.examples import build_feedback_form
from formlogic.model import FieldDefinition, FieldKind
from formlogic.serialization import schema_from_dict
from formlogic.visibility import (
    compute_visibility,
    evaluate_condition,
    includes,
    is_field_visible,
    prune_answers,
    resolve,
    values_equal,
)


def fld(field_id, kind=FieldKind.FREE_TEXT, rule=None, **kwargs):
    return FieldDefinition(id=field_id, kind=kind, label=field_id, visibility_rule=rule, **kwargs)


def when(depends_on, operator, comparand):
    return Condition(depends_on=depends_on, operator=operator, comparand=comparand)


class TestScenarios:
    """End-to-end scenarios for the three rule shapes forms actually use."""

    def test_equals_yes_then_no(self):
        fields = [
            fld("A", FieldKind.SINGLE_CHOICE, options=["Yes", "No"]),
            fld("B", rule=when("A", "equals", "Yes")),
        ]
        assert compute_visibility(fields, {"A": "Yes"}) == {"A": True, "B": True}

        answers = {"A": "No", "B": "details typed while visible"}
        assert compute_visibility(fields, answers)["B"] is False
        assert prune_answers(fields, answers) == {"A": "No"}

    def test_includes_on_multi_choice(self):
        fields = [
            fld("B", FieldKind.MULTI_CHOICE, options=["X", "Y"]),
            fld("C", FieldKind.MULTI_CHOICE, options=["X", "Y"], rule=when("B", "includes", "Y")),
        ]
        assert compute_visibility(fields, {"B": ["X", "Y"]})["C"] is True
        assert compute_visibility(fields, {"B": ["X"]})["C"] is False

    def test_greater_with_coercion_failure(self):
        fields = [fld("a"), fld("b", rule=when("a", "greater", 3))]
        assert compute_visibility(fields, {"a": 5})["b"] is True
        assert compute_visibility(fields, {"a": 2})["b"] is False
        assert compute_visibility(fields, {"a": "abc"})["b"] is False


class TestPresence:
    """An unanswered dependency hides its dependent regardless of operator."""

    def test_field_without_rule_is_always_visible(self):
        assert is_field_visible(fld("a"), {}) is True

    @pytest.mark.parametrize("operator", ["equals", "not_equals", "includes", "greater",
                                          "greater_or_equal", "less", "less_or_equal"])
    def test_missing_dependency_answer_hides(self, operator):
        assert evaluate_condition(when("a", operator, "x"), {}) is False

    def test_none_answer_counts_as_missing(self):
        assert evaluate_condition(when("a", "not_equals", "x"), {"a": None}) is False

    def test_not_equals_with_present_answer(self):
        assert evaluate_condition(when("a", "not_equals", "x"), {"a": "y"}) is True
        assert evaluate_condition(when("a", "not_equals", "x"), {"a": " x "}) is False


class TestEquality:
    """equals / not_equals comparison rules."""

    @pytest.mark.parametrize("answer,comparand,expected", [
        ("Yes", "Yes", True),
        ("  Yes ", "Yes", True),
        ("Yes", "yes", False),
        (3, 3.0, True),
        (3, 4, False),
        (5, "5", True),
        (5.0, "5", True),
        ("5", 5, True),
        (2.5, "2.5", True),
        (["a"], "a", False),
    ])
    def test_values_equal(self, answer, comparand, expected):
        assert values_equal(answer, comparand) is expected

    def test_mixed_kinds_never_raise(self):
        assert values_equal({"x": 1}, None) is False

    def test_int_too_long_to_print_never_matches(self):
        huge = 10**5000
        assert values_equal(huge, "x") is False
        assert values_equal("x", huge) is False
        assert evaluate_condition(when("a", "not_equals", "x"), {"a": huge}) is True


class TestIncludes:
    """includes only ever matches sequences."""

    @pytest.mark.parametrize("answer", ["Y", "XY", 1, 1.5, None, {"Y": True}])
    @pytest.mark.parametrize("comparand", ["Y", 1, None])
    def test_non_sequence_answer_is_false(self, answer, comparand):
        assert includes(answer, comparand) is False

    def test_members_compared_as_strings(self):
        assert includes([1, 2, 3], "2") is True
        assert includes(("a", "b"), "b") is True
        assert includes(["1"], 1) is True
        assert includes([], "a") is False

    def test_int_too_long_to_print_is_skipped(self):
        assert includes([10**5000, "a"], "a") is True
        assert includes([10**5000], "x") is False


class TestNumericOperators:
    """greater / less family coerce both sides or fail closed."""

    @pytest.mark.parametrize("operator,answer,comparand,expected", [
        ("greater", 5, 3, True),
        ("greater", 3, 3, False),
        ("greater_or_equal", 3, 3, True),
        ("less", 2, 3, True),
        ("less", 3, 3, False),
        ("less_or_equal", 3, 3, True),
        ("greater", "5", "3", True),
        ("greater", " 5 ", 3, True),
        ("less", 2.5, "3", True),
    ])
    def test_comparisons(self, operator, answer, comparand, expected):
        assert evaluate_condition(when("a", operator, comparand), {"a": answer}) is expected

    @pytest.mark.parametrize("operator", ["greater", "greater_or_equal", "less", "less_or_equal"])
    @pytest.mark.parametrize("answer,comparand", [
        ("abc", 3),
        (5, "abc"),
        ([5], 3),
        (True, 0),
        (5, None),
        ("nan", 3),
        ("", 3),
        (10**400, 3),
        (5, 10**400),
    ])
    def test_non_numeric_is_false(self, operator, answer, comparand):
        assert evaluate_condition(when("a", operator, comparand), {"a": answer}) is False


def test_unknown_operator_hides():
    assert evaluate_condition(when("a", "between", 3), {"a": 3}) is False


def test_dependency_on_unknown_field_hides():
    fields = [fld("a"), fld("b", rule=when("ghost", "equals", "x"))]
    assert compute_visibility(fields, {"a": "x"})["b"] is False
    # A stray answer for a non-field is pruned before it can satisfy anything
    assert resolve(fields, {"a": "x", "ghost": "x"}).visibility["b"] is False


@pytest.mark.parametrize("depends_on", [["a"], {"id": "a"}, None, 3])
def test_non_string_dependency_hides(depends_on):
    fields = [fld("a"), fld("b", rule=when(depends_on, "equals", "x"))]
    assert compute_visibility(fields, {"a": "x"}) == {"a": True, "b": False}
    assert resolve(fields, {"a": "x", "b": "y"}).answers == {"a": "x"}


def test_non_string_field_id_is_skipped():
    fields = [fld("a"), fld(["b"])]
    assert compute_visibility(fields, {"a": "x"}) == {"a": True}
    assert prune_answers(fields, {"a": "x", "b": "y"}) == {"a": "x"}


def test_loaded_schema_with_list_dependency_hides():
    schema = schema_from_dict({
        "title": "t",
        "fields": [
            {"id": "a", "kind": "free_text", "label": "A"},
            {"id": "b", "kind": "free_text", "label": "B",
             "visibility_rule": {"depends_on": ["a"], "operator": "equals", "comparand": "x"}},
        ],
    })
    assert compute_visibility(schema.fields, {"a": "x"})["b"] is False


class TestPruning:
    """Hidden fields never keep answers, and pruning settles in one call."""

    def chain(self):
        return [
            fld("a"),
            fld("b", rule=when("a", "equals", "go")),
            fld("c", rule=when("b", "equals", "go")),
            fld("d", rule=when("c", "equals", "go")),
        ]

    def test_all_visible_keeps_everything(self):
        answers = {"a": "go", "b": "go", "c": "go", "d": "done"}
        assert prune_answers(self.chain(), answers) == answers

    def test_hiding_head_of_chain_prunes_every_dependent(self):
        answers = {"a": "stop", "b": "go", "c": "go", "d": "done"}
        resolution = resolve(self.chain(), answers)
        assert resolution.answers == {"a": "stop"}
        assert resolution.visibility == {"a": True, "b": False, "c": False, "d": False}
        assert resolution.pruned == ["b", "c", "d"]

    def test_pruning_is_idempotent(self):
        fields = self.chain()
        for answers in [
            {"a": "stop", "b": "go", "c": "go", "d": "done"},
            {"a": "go", "b": "stop", "c": "go", "d": "done"},
            {"b": "go", "c": "go"},
            {},
        ]:
            once = prune_answers(fields, answers)
            assert prune_answers(fields, once) == once

    def test_hidden_fields_have_no_pruned_entry(self):
        fields = self.chain()
        answers = {"a": "go", "b": "stop", "c": "go", "d": "done"}
        resolution = resolve(fields, answers)
        for field_id, visible in resolution.visibility.items():
            if not visible:
                assert field_id not in resolution.answers

    def test_unknown_answer_keys_are_dropped(self):
        assert prune_answers([fld("a")], {"a": "x", "zzz": 1}) == {"a": "x"}

    def test_input_is_not_mutated(self):
        answers = {"a": "stop", "b": "go"}
        prune_answers(self.chain(), answers)
        assert answers == {"a": "stop", "b": "go"}

    def test_visible_ids(self):
        resolution = resolve(self.chain(), {"a": "go"})
        assert resolution.visible_ids() == ["a", "b"]


def test_feedback_form_flow():
    form = build_feedback_form()
    answers = {
        "used_before": "Yes",
        "features": ["Dashboard", "Export"],
        "export_rating": 1,
        "export_issue": "CSV is empty",
        "satisfaction": 4,
        "improve": "faster",
    }
    resolution = resolve(form.fields, answers)
    assert resolution.pruned == ["improve"]
    assert resolution.visibility["export_issue"] is True

    answers["used_before"] = "No"
    resolution = resolve(form.fields, answers)
    assert resolution.answers == {"used_before": "No", "satisfaction": 4}
    assert resolution.pruned == ["features", "export_rating", "export_issue", "improve"]
