"""
Tests for formlogic core model objects and visibility rules.

These tests verify:
    - Basic model creation and defaults
    - Operator parsing
    - Condition immutability
    - Retrieval methods on FormSchema
"""

import dataclasses

import pytest
from formlogic.conditions import Condition, ConditionOperator
from formlogic.model import FieldDefinition, FieldKind, FormSchema, FormStatus


class TestConditionOperator:
    """Test operator parsing."""

    def test_parse_all_recognised_operators(self):
        """Every canonical name parses to its member."""
        for name in ["equals", "not_equals", "includes", "greater",
                     "greater_or_equal", "less", "less_or_equal"]:
            assert ConditionOperator.parse(name).value == name

    def test_parse_strips_whitespace(self):
        assert ConditionOperator.parse(" equals ") == ConditionOperator.EQUALS

    def test_parse_member_returns_member(self):
        assert ConditionOperator.parse(ConditionOperator.LESS) == ConditionOperator.LESS

    @pytest.mark.parametrize("raw", ["eq", "EQUALS", "contains", "", None, 3, ["equals"]])
    def test_parse_unrecognised_returns_none(self, raw):
        """Unknown names never raise."""
        assert ConditionOperator.parse(raw) is None


class TestCondition:
    """Test visibility rule objects."""

    def test_create_condition(self):
        cond = Condition(depends_on="a", operator="equals", comparand="Yes")
        assert cond.depends_on == "a"
        assert cond.parsed_operator == ConditionOperator.EQUALS
        assert cond.comparand == "Yes"

    def test_unknown_operator_is_kept(self):
        """An unrecognised operator survives construction; validation reports it."""
        cond = Condition(depends_on="a", operator="between", comparand=1)
        assert cond.operator == "between"
        assert cond.parsed_operator is None

    def test_condition_immutable(self):
        cond = Condition(depends_on="a", operator="equals", comparand="Yes")
        with pytest.raises(dataclasses.FrozenInstanceError):
            cond.comparand = "No"


class TestFieldDefinition:
    """Test field (question) objects."""

    def test_minimal_field(self):
        """Should create field with just id, kind and label."""
        fld = FieldDefinition(id="name", kind=FieldKind.FREE_TEXT, label="Your name")
        assert fld.required is False
        assert fld.options is None
        assert fld.max is None
        assert fld.visibility_rule is None
        assert not fld.is_conditional

    def test_conditional_field(self):
        fld = FieldDefinition(
            id="why",
            kind=FieldKind.FREE_TEXT,
            label="Why?",
            visibility_rule=Condition(depends_on="ok", operator="equals", comparand="No"),
        )
        assert fld.is_conditional


class TestFormSchema:
    """Test FormSchema (root container) objects."""

    def build_schema(self):
        return FormSchema(
            id="f1",
            title="Survey",
            fields=[
                FieldDefinition(id="a", kind=FieldKind.FREE_TEXT, label="A"),
                FieldDefinition(id="b", kind=FieldKind.RATING, label="B", max=5),
            ],
        )

    def test_defaults(self):
        schema = FormSchema()
        assert schema.status == FormStatus.DRAFT
        assert schema.fields == []
        assert not schema.is_published

    def test_is_published(self):
        schema = FormSchema(status=FormStatus.PUBLISHED)
        assert schema.is_published

    def test_get_field(self):
        schema = self.build_schema()
        assert schema.get_field("b").kind == FieldKind.RATING
        assert schema.get_field("missing") is None

    def test_field_index(self):
        schema = self.build_schema()
        assert schema.field_index("a") == 0
        assert schema.field_index("b") == 1
        assert schema.field_index("missing") == -1

    def test_field_ids_preserve_order(self):
        assert self.build_schema().field_ids() == ["a", "b"]
