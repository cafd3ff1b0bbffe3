"""
Conditional visibility rules.

A field may carry a single Condition that decides whether it is shown:

    {depends_on: <earlier field id>, operator: <name>, comparand: <literal>}

ARCHITECTURAL RULE:
    A Condition is structure only.
    It does NOT evaluate itself (that belongs in formlogic.visibility)
    and it does NOT check that depends_on exists (formlogic.validator).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ConditionOperator(Enum):
    """
    Comparison operators recognised in visibility rules.

    Keep this minimal. Every operator here must be:
        - Meaningful for a single answer vs. a literal
        - Unambiguous for every field kind
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    INCLUDES = "includes"
    GREATER = "greater"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS = "less"
    LESS_OR_EQUAL = "less_or_equal"

    @classmethod
    def parse(cls, raw: Any) -> Optional["ConditionOperator"]:
        """Return the operator named by ``raw``, or None if it is not recognised."""
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip())
        except ValueError:
            return None


NUMERIC_OPERATORS = frozenset({
    ConditionOperator.GREATER,
    ConditionOperator.GREATER_OR_EQUAL,
    ConditionOperator.LESS,
    ConditionOperator.LESS_OR_EQUAL,
})


@dataclass(frozen=True)
class Condition:
    """
    A visibility rule attached to a field.

    Example:
        Show "why_not" only when "recommend" was answered "No":

        Condition(depends_on="recommend", operator="equals", comparand="No")

    Properties:
        depends_on:
            Id of the field being tested (the dependency). Must name a
            field that appears strictly earlier in the form.

        operator:
            Operator name, kept as the raw string. An unrecognised name is
            reported by the validator and evaluates to "hidden".

        comparand:
            Literal the dependency's answer is compared against
            (str, int or float).

    IMPORTANT:
        This object is immutable (frozen=True).
    """

    depends_on: str
    operator: str
    comparand: Any = None

    @property
    def parsed_operator(self) -> Optional[ConditionOperator]:
        return ConditionOperator.parse(self.operator)
