#!/usr/bin/env python3
"""
Tests for report_builder.py - rendering of failing template entries.
"""

import unittest

from commit_template import FieldDeclaration, FieldKind, ValidationStatus, ValueType
from report_builder import (
    LINE_BREAK_ASTERISK,
    LINE_BREAK_HYPHEN,
    MESSAGE_MISSING_OR_INVALID_ENTRIES,
    describe_expected,
    format_field_result,
    render_report,
)
from template_evaluator import FieldResult


BUG = FieldDeclaration(FieldKind.KEY_VALUE, key="Bug", value="[A-Z]+-[0-9]+", example_value="Bug: ABC-123")
REVIEWED = FieldDeclaration(FieldKind.KEY_VALUE, key="Reviewed", value_type=ValueType.BOOLEAN,
                            example_value="Reviewed: true")
RELEASE = FieldDeclaration(FieldKind.SUBJECT_PATTERN, name="Release tag", value=r"^\[RELEASE\]")


class TestFormatFieldResult(unittest.TestCase):
    """Test single report lines."""

    def test_missing_key_line(self):
        line = format_field_result(FieldResult(BUG, ValidationStatus.MISSING_KEY))

        self.assertEqual(
            line,
            "- Bug (KEY_VALUE): key is missing; expected: pattern '[A-Z]+-[0-9]+'; example: Bug: ABC-123",
        )

    def test_invalid_value_line_includes_diagnostic(self):
        result = FieldResult(REVIEWED, ValidationStatus.INVALID_VALUE, ["yes"], "not a boolean value")

        self.assertEqual(
            format_field_result(result),
            "- Reviewed (KEY_VALUE): value is invalid; expected: BOOLEAN; example: Reviewed: true; not a boolean value",
        )

    def test_pattern_entry_without_example(self):
        line = format_field_result(FieldResult(RELEASE, ValidationStatus.MISSING_VALUE))

        self.assertEqual(line, "- Release tag (SUBJECT_PATTERN): value is missing; expected: pattern '^\\[RELEASE\\]'")

    def test_describe_expected_string_without_pattern(self):
        entry = FieldDeclaration(FieldKind.KEY_VALUE, key="Notes")

        self.assertEqual(describe_expected(FieldResult(entry, ValidationStatus.MISSING_KEY)), "STRING")


class TestRenderReport(unittest.TestCase):
    """Test the full rejection message."""

    def test_render_layout(self):
        results = [
            FieldResult(BUG, ValidationStatus.MISSING_KEY),
            FieldResult(RELEASE, ValidationStatus.MISSING_VALUE),
        ]

        lines = render_report(results).split("\n")

        self.assertEqual(lines[0], "")
        self.assertEqual(lines[1], LINE_BREAK_ASTERISK)
        self.assertEqual(lines[2].strip(), "INVALID COMMIT")
        self.assertEqual(lines[3], LINE_BREAK_ASTERISK)
        self.assertEqual(lines[4], MESSAGE_MISSING_OR_INVALID_ENTRIES)
        self.assertEqual(lines[5], LINE_BREAK_HYPHEN)
        self.assertEqual(lines[6], "")
        self.assertTrue(lines[7].startswith("- Bug (KEY_VALUE)"))
        self.assertTrue(lines[8].startswith("- Release tag (SUBJECT_PATTERN)"))
        self.assertEqual(lines[9], "")
        self.assertEqual(lines[10], LINE_BREAK_ASTERISK)
        self.assertEqual(len(lines), 11)

    def test_render_is_stable(self):
        results = [FieldResult(BUG, ValidationStatus.INVALID_VALUE, ["x"], "No values matching '[A-Z]+-[0-9]+' format")]

        self.assertEqual(render_report(results), render_report(list(results)))


if __name__ == '__main__':
    unittest.main()
