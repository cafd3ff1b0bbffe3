"""
Visibility Evaluator — which fields are answerable given the current answers.

Rules:
    1. A field without a visibility rule is always visible.
    2. A field with a rule is visible iff its dependency has an answer
       AND the rule's operator holds between that answer and the comparand.
    3. Anything unexpected (unknown operator, missing dependency,
       type mismatch) resolves to "hidden". Nothing here raises.

Pruning:
    Whenever the answers change, visibility is recomputed for every field,
    answers of hidden fields are dropped, and visibility is computed again
    from the pruned answers. Rules only point backwards (enforced by
    formlogic.validator), so a prune can hide dependents of a pruned field
    but can never un-hide anything. The re-run repeats only while it keeps
    dropping answers, which for a chain A -> B -> C -> D means one re-run
    per level.

IMPORTANT: Every function is a pure function of (fields, answers).
Nothing is cached; recomputing on every keystroke is the intended usage.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from formlogic.conditions import NUMERIC_OPERATORS, Condition, ConditionOperator
from formlogic.model import AnswerSet, FieldDefinition, VisibilityMap

logger = logging.getLogger(__name__)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: Any) -> Optional[float]:
    """Coerce ``value`` to a float, or None if it is not numeric."""
    if not _is_number(value) and not isinstance(value, str):
        return None
    try:
        return float(value)
    except (ValueError, OverflowError):
        # OverflowError: ints too large for a float, e.g. 10**400
        return None


def _to_text(value: Any) -> Optional[str]:
    """
    String form used when comparing values of different kinds,
    or None when there is none (ints past the str conversion digit limit).
    """
    try:
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        return str(value)
    except ValueError:
        return None


def _text_equal(left: Any, right: Any) -> bool:
    left_text = _to_text(left)
    right_text = _to_text(right)
    return left_text is not None and left_text == right_text


def values_equal(answer: Any, comparand: Any) -> bool:
    """
    Loose equality used by ``equals`` / ``not_equals``.

    str vs str compares trimmed text, number vs number compares numerically,
    anything else falls back to comparing string forms.
    """
    if isinstance(answer, str) and isinstance(comparand, str):
        return answer.strip() == comparand.strip()
    if _is_number(answer) and _is_number(comparand):
        return answer == comparand
    return _text_equal(answer, comparand)


def includes(answer: Any, comparand: Any) -> bool:
    """True iff ``answer`` is a list of choices containing ``comparand``."""
    if not isinstance(answer, (list, tuple)):
        return False
    return any(_text_equal(item, comparand) for item in answer)


def compare_numbers(answer: Any, comparand: Any, operator: ConditionOperator) -> bool:
    left = _to_number(answer)
    right = _to_number(comparand)
    if left is None or right is None or math.isnan(left) or math.isnan(right):
        return False

    if operator == ConditionOperator.GREATER:
        return left > right
    if operator == ConditionOperator.GREATER_OR_EQUAL:
        return left >= right
    if operator == ConditionOperator.LESS:
        return left < right
    if operator == ConditionOperator.LESS_OR_EQUAL:
        return left <= right
    return False


def _has_answer(answers: AnswerSet, field_id: str) -> bool:
    # A list or dict here would not even be hashable
    if not isinstance(field_id, str):
        return False
    return answers.get(field_id) is not None


def evaluate_condition(condition: Condition, answers: AnswerSet) -> bool:
    """
    Evaluate a single visibility rule against the current answers.

    Args:
        condition: The rule to evaluate.
        answers: Current answers keyed by field id.

    Returns:
        True if the rule holds; False otherwise, including for every
        malformed input.
    """
    if not _has_answer(answers, condition.depends_on):
        return False

    operator = ConditionOperator.parse(condition.operator)
    if operator is None:
        logger.debug("Unknown operator %r, treating as hidden", condition.operator)
        return False

    answer = answers[condition.depends_on]

    if operator == ConditionOperator.EQUALS:
        return values_equal(answer, condition.comparand)
    if operator == ConditionOperator.NOT_EQUALS:
        return not values_equal(answer, condition.comparand)
    if operator == ConditionOperator.INCLUDES:
        return includes(answer, condition.comparand)
    if operator in NUMERIC_OPERATORS:
        return compare_numbers(answer, condition.comparand, operator)
    return False


def is_field_visible(fld: FieldDefinition, answers: AnswerSet) -> bool:
    if fld.visibility_rule is None:
        return True
    return evaluate_condition(fld.visibility_rule, answers)


def compute_visibility(fields: Sequence[FieldDefinition], answers: AnswerSet) -> VisibilityMap:
    """
    Compute visibility for every field from the current answers.

    Each field is evaluated independently against ``answers``;
    no field's result feeds into another within the same pass.
    """
    return {
        fld.id: is_field_visible(fld, answers)
        for fld in fields
        if isinstance(fld.id, str)
    }


def _drop_hidden(fields: Sequence[FieldDefinition], answers: AnswerSet,
                 visibility: VisibilityMap) -> AnswerSet:
    known = {fld.id for fld in fields if isinstance(fld.id, str)}
    return {
        field_id: value
        for field_id, value in answers.items()
        if field_id in known and visibility.get(field_id, False)
    }


@dataclass
class Resolution:
    """Visibility and the answers worth keeping, after pruning has settled."""

    visibility: VisibilityMap = field(default_factory=dict)
    answers: AnswerSet = field(default_factory=dict)
    pruned: List[str] = field(default_factory=list)

    def visible_ids(self) -> List[str]:
        return [field_id for field_id, shown in self.visibility.items() if shown]


def resolve(fields: Sequence[FieldDefinition], answers: AnswerSet) -> Resolution:
    """
    Recompute visibility and prune hidden answers until nothing more drops.

    Returns a Resolution whose visibility reflects the pruned answers and
    whose ``pruned`` lists the ids whose answers were dropped, in form order
    followed by any ids that are not fields of the form.
    """
    visibility = compute_visibility(fields, answers)
    kept = _drop_hidden(fields, answers, visibility)

    # Answers only ever shrink, so this stops after at most len(fields) extra
    # passes. For rules one level deep the first re-run already settles it.
    while True:
        visibility = compute_visibility(fields, kept)
        settled = _drop_hidden(fields, kept, visibility)
        if len(settled) == len(kept):
            break
        kept = settled

    order = {
        fld.id: i for i, fld in reversed(list(enumerate(fields))) if isinstance(fld.id, str)
    }
    pruned = sorted(
        (field_id for field_id in answers if field_id not in kept),
        key=lambda field_id: order.get(field_id, len(order)),
    )
    if pruned:
        logger.debug("Pruned answers for hidden fields: %s", ", ".join(map(str, pruned)))

    return Resolution(visibility=visibility, answers=kept, pruned=pruned)


def prune_answers(fields: Sequence[FieldDefinition], answers: AnswerSet) -> AnswerSet:
    """
    Return a copy of ``answers`` without entries for hidden fields.

    Idempotent: pruning an already pruned answer set changes nothing.
    """
    return resolve(fields, answers).answers
