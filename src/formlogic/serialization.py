"""
Serialization helpers for form objects (FormSchema, FieldDefinition, Condition).

Provides lossless JSON/YAML round-trip via an intermediate dict representation.
This module intentionally keeps the serialized structure stable and explicit.

Loading also accepts the form builder's wire format, in which fields look like

    {"id": "q2", "type": "checkbox", "label": "...", "options": [...],
     "showIf": {"fieldId": "q1", "op": "eq", "value": "Yes"}}

and normalises it to the canonical names on the way in. Dumping always
produces the canonical format.
"""
from __future__ import annotations

import json
from typing import Any, Dict

import yaml

from formlogic.conditions import Condition
from formlogic.model import FieldDefinition, FieldKind, FormSchema, FormStatus


class SchemaFormatError(ValueError):
    """Raised when a document cannot be mapped onto the form model."""
    pass


# Builder wire names -> canonical names
_KIND_ALIASES = {
    "text": FieldKind.FREE_TEXT,
    "multiple": FieldKind.SINGLE_CHOICE,
    "checkbox": FieldKind.MULTI_CHOICE,
}

_OPERATOR_ALIASES = {
    "eq": "equals",
    "ne": "not_equals",
    "gt": "greater",
    "gte": "greater_or_equal",
    "lt": "less",
    "lte": "less_or_equal",
}


def _require_mapping(d: Any, what: str) -> Dict[str, Any]:
    if not isinstance(d, dict):
        raise SchemaFormatError(f"{what} must be a mapping, got {type(d).__name__}")
    return d


def condition_to_dict(c: Condition | None) -> Dict[str, Any] | None:
    if c is None:
        return None
    return {"depends_on": c.depends_on, "operator": c.operator, "comparand": c.comparand}


def condition_from_dict(d: Any) -> Condition | None:
    if d is None:
        return None
    d = _require_mapping(d, "visibility rule")
    depends_on = d.get("depends_on", d.get("dependsOn", d.get("fieldId", "")))
    operator = d.get("operator", d.get("op", ""))
    if isinstance(operator, str):
        operator = _OPERATOR_ALIASES.get(operator, operator)
    comparand = d.get("comparand", d.get("value"))
    return Condition(depends_on=depends_on, operator=operator, comparand=comparand)


def kind_from_value(value: Any) -> FieldKind:
    if isinstance(value, FieldKind):
        return value
    if isinstance(value, str) and value in _KIND_ALIASES:
        return _KIND_ALIASES[value]
    try:
        return FieldKind(value)
    except ValueError:
        raise SchemaFormatError(f"unknown field kind: {value!r}") from None


def field_to_dict(f: FieldDefinition) -> Dict[str, Any]:
    return {
        "id": f.id,
        "kind": f.kind.value,
        "label": f.label,
        "required": f.required,
        "options": list(f.options) if f.options is not None else None,
        "max": f.max,
        "visibility_rule": condition_to_dict(f.visibility_rule),
    }


def field_from_dict(d: Any) -> FieldDefinition:
    d = _require_mapping(d, "field")
    options = d.get("options")
    return FieldDefinition(
        id=d.get("id", ""),
        kind=kind_from_value(d.get("kind", d.get("type"))),
        label=d.get("label", ""),
        required=bool(d.get("required", False)),
        options=list(options) if options is not None else None,
        max=d.get("max"),
        visibility_rule=condition_from_dict(
            d.get("visibility_rule", d.get("visibilityRule", d.get("showIf")))
        ),
    )


def status_from_value(value: Any) -> FormStatus:
    if value is None or value == "":
        return FormStatus.DRAFT
    try:
        return FormStatus(value)
    except ValueError:
        raise SchemaFormatError(f"unknown form status: {value!r}") from None


def schema_to_dict(s: FormSchema) -> Dict[str, Any]:
    return {
        "id": s.id,
        "title": s.title,
        "status": s.status.value,
        "fields": [field_to_dict(f) for f in s.fields],
    }


def schema_from_dict(d: Any) -> FormSchema:
    d = _require_mapping(d, "form")
    fields = d.get("fields") or []
    if not isinstance(fields, list):
        raise SchemaFormatError("fields must be a list")
    return FormSchema(
        id=d.get("id", ""),
        title=d.get("title", ""),
        status=status_from_value(d.get("status")),
        fields=[field_from_dict(f) for f in fields],
    )


def schema_to_json(s: FormSchema) -> str:
    return json.dumps(schema_to_dict(s), sort_keys=True)


def schema_from_json(s: str) -> FormSchema:
    d = json.loads(s)
    return schema_from_dict(d)


def schema_to_yaml(s: FormSchema) -> str:
    return yaml.safe_dump(schema_to_dict(s), sort_keys=False)


def schema_from_yaml(s: str) -> FormSchema:
    d = yaml.safe_load(s)
    return schema_from_dict(d)
