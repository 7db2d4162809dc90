#!/usr/bin/env python3
"""
Value Extractor - Pull candidate values for template entries out of a commit message.

Supported strategies:
- KEY_VALUE: first line starting with the key, value after the first ':'
- SUBJECT_PATTERN: every regex match in the subject (first line)
- BODY_PATTERN: every regex match in the full message
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from commit_template import FieldDeclaration, FieldKind


class ValueState(Enum):
    """Whether an entry was found in the message."""
    ABSENT = "ABSENT"
    EMPTY = "EMPTY"
    PRESENT = "PRESENT"


@dataclass(frozen=True)
class ExtractedValue:
    """
    Values extracted for one template entry.

    Attributes:
        state: ABSENT (key never occurred), EMPTY (occurred without a value
            or pattern matched nothing) or PRESENT
        values: Extracted strings, in order of occurrence
    """
    state: ValueState
    values: List[str] = field(default_factory=list)

    @classmethod
    def absent(cls) -> "ExtractedValue":
        return cls(ValueState.ABSENT)

    @classmethod
    def empty(cls) -> "ExtractedValue":
        return cls(ValueState.EMPTY)

    @classmethod
    def of(cls, values: List[str]) -> "ExtractedValue":
        if not values:
            return cls.empty()
        return cls(ValueState.PRESENT, list(values))


def split_lines(message: str) -> List[str]:
    return message.splitlines()


def subject_of(message: str) -> str:
    """First line of the commit message."""
    lines = split_lines(message)
    return lines[0] if lines else ""


def extract_key_value(lines: List[str], key: str) -> Optional[str]:
    """
    Extract the value of the first line whose stripped text starts with key.

    Args:
        lines: Commit message lines
        key: Literal key

    Returns:
        Stripped value after the first ':', '' if the line has no value,
        None if no line starts with key

    Example:
        >>> extract_key_value(["Fix it", "", "Bug: ABC-1"], "Bug")
        'ABC-1'
        >>> extract_key_value(["Bug:"], "Bug")
        ''
        >>> extract_key_value(["Fix it"], "Bug") is None
        True
    """
    for line in lines:
        if not line.strip().startswith(key):
            continue
        _, separator, remainder = line.partition(":")
        if not separator:
            return ""
        return remainder.strip()
    return None


def extract_matching_strings(text: str, pattern: str) -> List[str]:
    """
    Collect every non-overlapping match of pattern in text.

    Both text and pattern are stripped first.

    Raises:
        re.error: If pattern is not a valid regular expression
    """
    regex = re.compile(pattern.strip())
    return [match.group(0) for match in regex.finditer(text.strip())]


def extract(message: str, declaration: FieldDeclaration) -> ExtractedValue:
    """
    Extract values for a template entry using its kind's strategy.

    Args:
        message: Full commit message
        declaration: Template entry

    Returns:
        ExtractedValue

    Raises:
        re.error: If a pattern kind declares an invalid regular expression
    """
    if declaration.kind == FieldKind.KEY_VALUE:
        value = extract_key_value(split_lines(message), declaration.key)
        if value is None:
            return ExtractedValue.absent()
        if not value:
            return ExtractedValue.empty()
        return ExtractedValue.of([value])

    if declaration.kind == FieldKind.SUBJECT_PATTERN:
        return ExtractedValue.of(extract_matching_strings(subject_of(message), declaration.value))

    return ExtractedValue.of(extract_matching_strings(message, declaration.value))
