#!/usr/bin/env python3
"""
Report Builder - Render failing template entries into the rejection message.

The output has no timestamps and keeps the order of the results it is given,
so identical input always renders identical text.

Example:
    ************************************************************
    	INVALID COMMIT
    ************************************************************
    Missing or invalid commit message entries:
    ------------------------------------------------------------

    - Bug (KEY_VALUE): key is missing; expected: pattern '[A-Z]+-[0-9]+'; example: Bug: ABC-123

    ************************************************************
"""

from typing import List

from commit_template import FieldKind, ValidationStatus, ValueType
from template_evaluator import FieldResult

LINE_BREAK_ASTERISK = "*" * 60
LINE_BREAK_HYPHEN = "-" * 60
MESSAGE_INVALID_COMMIT = "\tINVALID COMMIT\t"
MESSAGE_MISSING_OR_INVALID_ENTRIES = "Missing or invalid commit message entries:"
MESSAGE_VALIDATION_EXCEPTION = "Commit message validation failed"

STATUS_TEXT = {
    ValidationStatus.VALID: "value is valid",
    ValidationStatus.MISSING_KEY: "key is missing",
    ValidationStatus.MISSING_VALUE: "value is missing",
    ValidationStatus.INVALID_VALUE: "value is invalid",
}


def describe_expected(result: FieldResult) -> str:
    """Expected type or pattern of an entry."""
    declaration = result.declaration
    if declaration.kind == FieldKind.KEY_VALUE and declaration.value_type != ValueType.STRING:
        return declaration.value_type.name
    if declaration.value:
        return f"pattern '{declaration.value}'"
    return declaration.value_type.name


def format_field_result(result: FieldResult) -> str:
    """
    Format one failing entry as a single report line.

    Example:
        - Bug (KEY_VALUE): value is invalid; expected: pattern '[A-Z]+-[0-9]+'; example: Bug: ABC-123; No values matching '[A-Z]+-[0-9]+' format
    """
    parts = [
        f"- {result.name} ({result.declaration.kind.name}): {STATUS_TEXT[result.status]}",
        f"expected: {describe_expected(result)}",
    ]
    if result.declaration.example_value:
        parts.append(f"example: {result.declaration.example_value}")
    if result.message:
        parts.append(result.message)
    return "; ".join(parts)


def render_report(results: List[FieldResult]) -> str:
    """
    Render failing entries into the full rejection message.

    Args:
        results: Failing FieldResults in template order

    Returns:
        Report text
    """
    entries = "\n".join(format_field_result(result) for result in results)
    return "\n".join([
        "",
        LINE_BREAK_ASTERISK,
        MESSAGE_INVALID_COMMIT,
        LINE_BREAK_ASTERISK,
        MESSAGE_MISSING_OR_INVALID_ENTRIES,
        LINE_BREAK_HYPHEN,
        "",
        entries,
        "",
        LINE_BREAK_ASTERISK,
    ])
