"""
Answer shape checks applied when a response is recorded.

This is the store's concern, not the visibility engine's: the engine
never rejects answers, it only hides fields and prunes. A store that
accepts submissions uses check_answers() on the already pruned answers
to refuse values that cannot belong to their field, and to enforce
``required`` on fields that are visible.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Sequence

from formlogic.model import AnswerSet, FieldDefinition, FieldKind


def is_empty_answer(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _check_value(fld: FieldDefinition, value: Any) -> List[str]:
    problems: List[str] = []
    options = fld.options or []

    if fld.kind == FieldKind.FREE_TEXT:
        if not isinstance(value, str):
            problems.append(f"field '{fld.id}' must be a string")

    elif fld.kind == FieldKind.SINGLE_CHOICE:
        if not isinstance(value, str):
            problems.append(f"field '{fld.id}' must be a string")
        elif value not in options:
            problems.append(f"field '{fld.id}' must be one of {options}")

    elif fld.kind == FieldKind.MULTI_CHOICE:
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            problems.append(f"field '{fld.id}' must be a list of strings")
        else:
            for item in value:
                if item not in options:
                    problems.append(f"field '{fld.id}' contains invalid option '{item}'")

    elif fld.kind == FieldKind.RATING:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            problems.append(f"field '{fld.id}' must be a number")
        elif not 1 <= value <= (fld.max or 0):
            problems.append(f"field '{fld.id}' rating must be between 1 and {fld.max}")

    return problems


def check_answers(fields: Sequence[FieldDefinition], answers: AnswerSet,
                  visibility: Mapping[str, bool]) -> List[str]:
    """
    Return every problem with ``answers``; an empty list means acceptable.

    Hidden fields are skipped entirely: their answers are pruned before
    this is called, and ``required`` only applies to what the respondent
    could actually see.
    """
    problems: List[str] = []
    for fld in fields:
        if not isinstance(fld.id, str) or not visibility.get(fld.id, False):
            continue

        value = answers.get(fld.id)
        if is_empty_answer(value):
            if fld.required:
                problems.append(f"field '{fld.id}' is required")
            continue

        problems.extend(_check_value(fld, value))
    return problems
