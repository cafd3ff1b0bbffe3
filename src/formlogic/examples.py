"""
Example form builder used by tests and the CLI demo.

Builds a short product-feedback questionnaire with a chain of
conditional questions:

    used_before (single_choice)
      -> features (multi_choice)        shown if used_before == "Yes"
           -> export_rating (rating)    shown if features includes "Export"
                -> export_issue (text)  shown if export_rating <= 2
    satisfaction (rating)
      -> improve (text)                 shown if satisfaction < 3
"""
from formlogic.conditions import Condition
from formlogic.model import FieldDefinition, FieldKind, FormSchema, FormStatus


def build_feedback_form(status: FormStatus = FormStatus.PUBLISHED) -> FormSchema:
    form = FormSchema(id="feedback", title="Product feedback", status=status)

    form.fields = [
        FieldDefinition(
            id="used_before",
            kind=FieldKind.SINGLE_CHOICE,
            label="Have you used the product before?",
            required=True,
            options=["Yes", "No"],
        ),
        FieldDefinition(
            id="features",
            kind=FieldKind.MULTI_CHOICE,
            label="Which features do you use?",
            options=["Dashboard", "Export", "Sharing"],
            visibility_rule=Condition(depends_on="used_before", operator="equals", comparand="Yes"),
        ),
        FieldDefinition(
            id="export_rating",
            kind=FieldKind.RATING,
            label="How well does export work for you?",
            max=5,
            visibility_rule=Condition(depends_on="features", operator="includes", comparand="Export"),
        ),
        FieldDefinition(
            id="export_issue",
            kind=FieldKind.FREE_TEXT,
            label="What goes wrong with export?",
            visibility_rule=Condition(depends_on="export_rating", operator="less_or_equal", comparand=2),
        ),
        FieldDefinition(
            id="satisfaction",
            kind=FieldKind.RATING,
            label="Overall satisfaction",
            required=True,
            max=5,
        ),
        FieldDefinition(
            id="improve",
            kind=FieldKind.FREE_TEXT,
            label="What should we improve?",
            visibility_rule=Condition(depends_on="satisfaction", operator="less", comparand="3"),
        ),
    ]

    return form
