#!/usr/bin/env python3
"""
Type Validator - Check extracted values against the declared value type.

Rules:
- BOOLEAN: value contains 'true' or 'false' (case-insensitive, anywhere)
- INTEGER: value is a base-10 integer within signed 32-bit range
- STRING: stripped value fully matches the entry's value pattern, then
  optionally passes endpoint validation
"""

import logging
import re
from typing import Optional

from commit_template import FieldDeclaration, ValidationResult, ValueType
from endpoint_validator import MESSAGE_NO_ENDPOINT_DETAILS, EndpointValidator

logger = logging.getLogger(__name__)

BOOLEAN_PATTERN = re.compile(r"true|false", re.IGNORECASE)
INTEGER_PATTERN = re.compile(r"^[+-]?[0-9]+$")

INT_MIN = -(2 ** 31)
INT_MAX = 2 ** 31 - 1

MESSAGE_NOT_BOOLEAN = "not a boolean value"
MESSAGE_NOT_NUMBER = "not a number value"


def validate_boolean(value: str) -> ValidationResult:
    """
    Example:
        >>> validate_boolean("it's TRUE").is_valid
        True
        >>> validate_boolean("yes").is_valid
        False
    """
    if not BOOLEAN_PATTERN.search(value):
        return ValidationResult.invalid(MESSAGE_NOT_BOOLEAN)
    return ValidationResult.valid()


def validate_integer(value: str) -> ValidationResult:
    """
    Example:
        >>> validate_integer("42").is_valid
        True
        >>> validate_integer("4.2").is_valid
        False
    """
    if not INTEGER_PATTERN.match(value):
        return ValidationResult.invalid(MESSAGE_NOT_NUMBER)
    if not INT_MIN <= int(value) <= INT_MAX:
        return ValidationResult.invalid(MESSAGE_NOT_NUMBER)
    return ValidationResult.valid()


def validate_string(declaration: FieldDeclaration, value: str,
                    endpoint_validator: Optional[EndpointValidator] = None) -> ValidationResult:
    """
    Validate a string value against the entry's pattern and endpoint.

    An empty value pattern accepts any value.

    Args:
        declaration: Template entry
        value: Extracted value
        endpoint_validator: Used when the entry requires endpoint validation

    Returns:
        ValidationResult

    Raises:
        re.error: If the value pattern is not a valid regular expression
    """
    pattern = declaration.value.strip()
    if pattern and not re.fullmatch(pattern, value.strip()):
        return ValidationResult.invalid(f"No values matching '{declaration.value}' format")

    if not declaration.validate_against_endpoint:
        return ValidationResult.valid()

    if not declaration.endpoint_type or not declaration.endpoint_name:
        logger.warning(
            "Unable to validate the value of template entry %s against endpoint as endpoint details are missing",
            declaration.display_name)
        return ValidationResult.valid(MESSAGE_NO_ENDPOINT_DETAILS)

    if endpoint_validator is None:
        logger.warning("No endpoint validator available for template entry %s", declaration.display_name)
        return ValidationResult.valid(MESSAGE_NO_ENDPOINT_DETAILS)

    return endpoint_validator.validate(declaration, value.strip())


def validate_value(declaration: FieldDeclaration, value: str,
                   endpoint_validator: Optional[EndpointValidator] = None) -> ValidationResult:
    """Validate a KEY_VALUE entry value according to its declared type."""
    if declaration.value_type == ValueType.BOOLEAN:
        return validate_boolean(value)
    if declaration.value_type == ValueType.INTEGER:
        return validate_integer(value)
    return validate_string(declaration, value, endpoint_validator)
