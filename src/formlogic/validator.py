"""
Schema Validator — pre-save gate for form schemas.

Checks, for every field at position i:
    - id and label are non-empty after trimming whitespace
    - choice fields have at least one option
    - rating fields have a positive maximum
    - a visibility rule depends on a field at a position j < i
      and uses a recognised operator

and, for the schema as a whole:
    - at least one field
    - no two fields share an id

Because every rule must point strictly backwards, the dependency
relation between fields is acyclic by construction. No general
cycle detection is needed.

IMPORTANT: Validation is pure. validate_* never raises; it returns
a ValidationResult listing every violation. Only ensure_valid()
raises, and it is meant to be called right before a save.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Sequence, Union

from formlogic.conditions import ConditionOperator
from formlogic.model import CHOICE_KINDS, FieldDefinition, FieldKind, FormSchema, FormStatus


class SchemaViolation(Exception):
    """Raised when a schema that fails validation is about to be saved."""

    def __init__(self, reasons: Sequence[str]):
        self.reasons = list(reasons)
        super().__init__("; ".join(self.reasons) or "schema is invalid")


@dataclass
class ValidationResult:
    """Outcome of validating a schema: ok, or the list of reasons it is not."""

    violations: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.violations

    def add_violation(self, msg: str) -> None:
        if msg not in self.violations:
            self.violations.append(msg)

    def __bool__(self) -> bool:
        return self.ok


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_positive_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value > 0


def validate_fields(fields: Sequence[FieldDefinition]) -> ValidationResult:
    """
    Validate an ordered sequence of field definitions.

    Returns a ValidationResult; result.ok is True when the schema can be saved.
    """
    result = ValidationResult()

    if not fields:
        result.add_violation("form must have at least one field")
        return result

    # First position of every id, so rules resolve to the earliest match
    first_index: Dict[str, int] = {}
    for i, fld in enumerate(fields):
        if isinstance(fld.id, str):
            first_index.setdefault(fld.id, i)

    for i, fld in enumerate(fields):
        prefix = f"fields[{i}]"

        if _is_blank(fld.id):
            result.add_violation(f"{prefix}: id is required")
        elif first_index.get(fld.id, i) < i:
            result.add_violation(
                f"{prefix}: duplicate id '{fld.id}' (already used by fields[{first_index[fld.id]}])"
            )

        if _is_blank(fld.label):
            result.add_violation(f"{prefix}: label is required")

        if fld.kind in CHOICE_KINDS:
            if not fld.options:
                result.add_violation(f"{prefix}: {fld.kind.value} requires non-empty options")
        elif fld.kind == FieldKind.RATING:
            if not _is_positive_number(fld.max):
                result.add_violation(f"{prefix}: rating requires a positive max")
        elif fld.kind != FieldKind.FREE_TEXT:
            result.add_violation(f"{prefix}: unknown kind {fld.kind!r}")

        rule = fld.visibility_rule
        if rule is None:
            continue

        # Checked before any lookup: a list or dict here is not even hashable
        if _is_blank(rule.depends_on):
            result.add_violation(f"{prefix}: visibility rule depends_on must be a field id")
        else:
            dep_index = first_index.get(rule.depends_on, -1)
            if dep_index == -1:
                result.add_violation(
                    f"{prefix}: visibility rule depends on unknown field '{rule.depends_on}'"
                )
            elif dep_index >= i:
                result.add_violation(
                    f"{prefix}: visibility rule must depend on an earlier field, "
                    f"'{rule.depends_on}' is at fields[{dep_index}]"
                )

        if ConditionOperator.parse(rule.operator) is None:
            result.add_violation(f"{prefix}: unknown operator '{rule.operator}'")

    return result


def validate_schema(schema: FormSchema) -> ValidationResult:
    """
    Validate a whole form: its fields plus title and status.
    """
    result = validate_fields(schema.fields)

    if _is_blank(schema.title):
        result.add_violation("title is required")
    if not isinstance(schema.status, FormStatus):
        result.add_violation(f"unknown status {schema.status!r}")

    return result


def ensure_valid(target: Union[FormSchema, Sequence[FieldDefinition]]) -> None:
    """
    Raise SchemaViolation unless ``target`` validates cleanly.

    Accepts either a FormSchema or a bare field sequence.
    """
    if isinstance(target, FormSchema):
        result = validate_schema(target)
    else:
        result = validate_fields(target)
    if not result.ok:
        raise SchemaViolation(result.violations)


def dependency_candidates(fields: Sequence[FieldDefinition], index: int) -> List[FieldDefinition]:
    """Fields a rule on ``fields[index]`` may depend on: those strictly before it."""
    if index <= 0:
        return []
    return list(fields[:index])
