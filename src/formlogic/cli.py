"""
Command line entry point.

    formlogic validate SCHEMA
        Exit 0 if the schema can be saved, 1 with one reason per line if not.

    formlogic visible SCHEMA ANSWERS
        Print the visibility of every field and the pruned answers.

SCHEMA and ANSWERS are read as YAML when they end in .yaml/.yml,
as JSON otherwise.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

import yaml

from formlogic.serialization import schema_from_dict
from formlogic.validator import validate_schema
from formlogic.visibility import resolve

logger = logging.getLogger(__name__)


def _read_document(path: str) -> Any:
    text = Path(path).read_text(encoding="utf-8")
    if path.endswith((".yaml", ".yml")):
        return yaml.safe_load(text)
    return json.loads(text)


def _dump(data: Any, fmt: str) -> str:
    if fmt == "yaml":
        return yaml.safe_dump(data, sort_keys=False)
    return json.dumps(data, indent=2)


def _cmd_validate(args: argparse.Namespace) -> int:
    schema = schema_from_dict(_read_document(args.schema))
    result = validate_schema(schema)
    if result.ok:
        print(f"OK: {schema.title or schema.id} ({len(schema.fields)} fields)")
        return 0
    for reason in result.violations:
        print(reason)
    return 1


def _cmd_visible(args: argparse.Namespace) -> int:
    schema = schema_from_dict(_read_document(args.schema))
    answers = _read_document(args.answers) or {}
    if not isinstance(answers, dict):
        print("answers must be a mapping of field id to value", file=sys.stderr)
        return 2

    resolution = resolve(schema.fields, answers)
    print(_dump({
        "visibility": resolution.visibility,
        "answers": resolution.answers,
        "pruned": resolution.pruned,
    }, args.format))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="formlogic",
        description="Validate form schemas and evaluate conditional visibility",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p_validate = sub.add_parser("validate", help="Check whether a schema can be saved")
    p_validate.add_argument("schema", help="Path to schema (JSON or YAML)")
    p_validate.set_defaults(func=_cmd_validate)

    p_visible = sub.add_parser("visible", help="Compute visibility and pruned answers")
    p_visible.add_argument("schema", help="Path to schema (JSON or YAML)")
    p_visible.add_argument("answers", help="Path to answers mapping (JSON or YAML)")
    p_visible.add_argument("--format", choices=["json", "yaml"], default="json")
    p_visible.set_defaults(func=_cmd_visible)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.func(args)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        # SchemaFormatError and json.JSONDecodeError are both ValueErrors
        logger.debug("Failed to load input", exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
