"""
Authoring and response-collection surfaces.

FormBuilder
    Mutates a form's field sequence. Offers only earlier fields as
    dependency candidates, and refuses to save while the validator
    reports any violation.

ResponseSession
    Holds one respondent's answers. Every mutation recomputes visibility
    for all fields and prunes answers of hidden fields before anything
    else can read them, so what is rendered and what is submitted is
    always the pruned answer set.

Neither class renders anything; they are the contract the rendering
layer drives.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, List, Optional

from formlogic.conditions import Condition
from formlogic.model import AnswerSet, FieldDefinition, FormSchema, FormStatus, VisibilityMap
from formlogic.store import FormStore, SubmissionReceipt
from formlogic.validator import dependency_candidates, ensure_valid, validate_schema
from formlogic.visibility import Resolution, resolve

logger = logging.getLogger(__name__)


class FormBuilder:
    """Editable form under construction."""

    def __init__(self, title: str = "", form_id: str = "",
                 fields: Optional[List[FieldDefinition]] = None,
                 status: FormStatus = FormStatus.DRAFT):
        self.title = title
        self.form_id = form_id
        self.status = status
        self.fields: List[FieldDefinition] = copy.deepcopy(fields) if fields else []

    @classmethod
    def from_schema(cls, schema: FormSchema) -> "FormBuilder":
        return cls(title=schema.title, form_id=schema.id, fields=schema.fields, status=schema.status)

    def _index_of(self, field_id: str) -> int:
        for i, fld in enumerate(self.fields):
            if fld.id == field_id:
                return i
        raise KeyError(f"no field with id '{field_id}'")

    def add_field(self, fld: FieldDefinition, index: Optional[int] = None) -> None:
        fld = copy.deepcopy(fld)
        if index is None:
            self.fields.append(fld)
        else:
            self.fields.insert(index, fld)

    def remove_field(self, field_id: str) -> FieldDefinition:
        """
        Remove a field. Rules of other fields that depended on it are cleared,
        since nothing earlier is left for them to test.
        """
        removed = self.fields.pop(self._index_of(field_id))
        for fld in self.fields:
            if fld.visibility_rule is not None and fld.visibility_rule.depends_on == field_id:
                logger.debug("Clearing rule on %s, its dependency %s was removed", fld.id, field_id)
                fld.visibility_rule = None
        return removed

    def move_field(self, field_id: str, new_index: int) -> None:
        """
        Reorder a field. A move can turn a rule into a forward reference;
        the validator reports it and saving stays blocked until it is fixed.
        """
        fld = self.fields.pop(self._index_of(field_id))
        self.fields.insert(new_index, fld)

    def dependency_candidates(self, field_id: str) -> List[FieldDefinition]:
        return dependency_candidates(self.fields, self._index_of(field_id))

    def set_rule(self, field_id: str, condition: Condition) -> None:
        """
        Attach ``condition`` to a field.

        Raises:
            KeyError: If ``field_id`` is not a field of the form
            ValueError: If the dependency is not an earlier field
        """
        candidates = {fld.id for fld in self.dependency_candidates(field_id)}
        if condition.depends_on not in candidates:
            raise ValueError(
                f"field '{field_id}' can only depend on an earlier field, not '{condition.depends_on}'"
            )
        self.fields[self._index_of(field_id)].visibility_rule = condition

    def clear_rule(self, field_id: str) -> None:
        self.fields[self._index_of(field_id)].visibility_rule = None

    def build(self) -> FormSchema:
        return FormSchema(
            id=self.form_id,
            title=self.title,
            status=self.status,
            fields=copy.deepcopy(self.fields),
        )

    def violations(self) -> List[str]:
        return validate_schema(self.build()).violations

    @property
    def can_save(self) -> bool:
        return not self.violations()

    def save(self, store: FormStore) -> str:
        """
        Persist the form through ``store``.

        Raises:
            SchemaViolation: While any violation exists; the store is not called
        """
        schema = self.build()
        ensure_valid(schema)
        self.form_id = store.save(schema)
        return self.form_id

    def publish(self, store: FormStore) -> str:
        previous = self.status
        self.status = FormStatus.PUBLISHED
        try:
            return self.save(store)
        except Exception:
            self.status = previous
            raise


class ResponseSession:
    """
    One respondent filling in one form.

    Answers are never exposed unpruned: after set_answer() or clear_answer()
    the session holds exactly the answers of fields that are still visible.
    """

    def __init__(self, schema: FormSchema):
        self.schema = schema
        self._resolution: Resolution = resolve(schema.fields, {})

    def _apply(self, answers: AnswerSet) -> None:
        self._resolution = resolve(self.schema.fields, answers)

    def _require_field(self, field_id: str) -> None:
        if self.schema.get_field(field_id) is None:
            raise KeyError(f"no field with id '{field_id}'")

    @property
    def answers(self) -> AnswerSet:
        return dict(self._resolution.answers)

    @property
    def visibility(self) -> VisibilityMap:
        return dict(self._resolution.visibility)

    @property
    def pruned_ids(self) -> List[str]:
        """Ids whose answers the last mutation discarded."""
        return list(self._resolution.pruned)

    def is_visible(self, field_id: str) -> bool:
        return self._resolution.visibility.get(field_id, False)

    def visible_fields(self) -> List[FieldDefinition]:
        return [fld for fld in self.schema.fields if self.is_visible(fld.id)]

    def set_answer(self, field_id: str, value: Any) -> VisibilityMap:
        self._require_field(field_id)
        answers = dict(self._resolution.answers)
        answers[field_id] = value
        self._apply(answers)
        return self.visibility

    def clear_answer(self, field_id: str) -> VisibilityMap:
        self._require_field(field_id)
        answers = dict(self._resolution.answers)
        answers.pop(field_id, None)
        self._apply(answers)
        return self.visibility

    def reset(self) -> None:
        self._apply({})

    def submit(self, store: FormStore) -> SubmissionReceipt:
        """Send the pruned answers to ``store`` and start over on success."""
        receipt = store.submit(self.schema.id, self.answers)
        self.reset()
        return receipt
