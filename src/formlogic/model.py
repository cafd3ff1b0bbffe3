"""
Core Form Model Objects

Defines the fundamental data structures of a questionnaire:
    - Fields (questions)
    - Forms (ordered field sequence plus publication status)
    - Answer sets and visibility maps (plain mappings)

ARCHITECTURAL RULE:
    These objects:
        - Know nothing about rendering, storage or analytics
        - Are fully serializable (see formlogic.serialization)
        - Represent structure, not behavior
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from .conditions import Condition


# field id -> answer (str, number, or list of str depending on field kind)
AnswerSet = Dict[str, Any]

# field id -> visible?
VisibilityMap = Dict[str, bool]


class FieldKind(Enum):
    """The four kinds of question a form can ask."""

    FREE_TEXT = "free_text"
    SINGLE_CHOICE = "single_choice"
    MULTI_CHOICE = "multi_choice"
    RATING = "rating"


CHOICE_KINDS = frozenset({FieldKind.SINGLE_CHOICE, FieldKind.MULTI_CHOICE})


class FormStatus(Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


@dataclass
class FieldDefinition:
    """
    One question in a form.

    Properties:
        id:
            Stable identifier, unique within a form.
            Referenced by visibility rules and by submitted answers.

        kind:
            FieldKind of the question.

        label:
            Display text (must be non-empty to save).

        required:
            Advisory flag for the rendering layer.
            The visibility engine does not enforce it.

        options:
            Ordered choices. Required (non-empty) for single_choice and
            multi_choice, None otherwise.

        max:
            Top of the rating scale. Required (positive) for rating,
            None otherwise.

        visibility_rule:
            Optional Condition. If None, the field is always visible.
    """

    id: str
    kind: FieldKind
    label: str
    required: bool = False
    options: Optional[List[str]] = None
    max: Optional[int] = None
    visibility_rule: Optional[Condition] = None

    @property
    def is_conditional(self) -> bool:
        return self.visibility_rule is not None


@dataclass
class FormSchema:
    """
    Root container for a questionnaire.

    Mutated only by the authoring surface. Once status is PUBLISHED,
    responders treat it as read-only (enforced by the store, not here).

    Properties:
        id:
            Form identifier (assigned by the store on first save if empty)

        title:
            Form title

        status:
            FormStatus.DRAFT or FormStatus.PUBLISHED

        fields:
            Ordered sequence of FieldDefinition. Order matters:
            visibility rules may only point backwards.

    INVARIANTS (checked by formlogic.validator):
        - At least one field
        - Field ids are unique
        - Every rule depends on a strictly earlier field
    """

    id: str = ""
    title: str = ""
    status: FormStatus = FormStatus.DRAFT
    fields: List[FieldDefinition] = field(default_factory=list)

    @property
    def is_published(self) -> bool:
        return self.status == FormStatus.PUBLISHED

    def get_field(self, field_id: str) -> Optional[FieldDefinition]:
        """
        Retrieve a field by ID.

        Args:
            field_id: Field identifier

        Returns:
            FieldDefinition or None if not found
        """
        for fld in self.fields:
            if fld.id == field_id:
                return fld
        return None

    def field_index(self, field_id: str) -> int:
        """Position of the first field with ``field_id``, or -1."""
        for i, fld in enumerate(self.fields):
            if fld.id == field_id:
                return i
        return -1

    def field_ids(self) -> List[str]:
        return [fld.id for fld in self.fields]
