#!/usr/bin/env python3
"""
Template Evaluator - Validate a commit message against every mandatory entry of a template.

Entries are independent of each other, so they are evaluated concurrently on a
thread pool. Results are put back in template order before the failing ones
are returned, which keeps reports identical across runs.

Per entry:
    key absent        -> MISSING_KEY
    empty / no match  -> MISSING_VALUE
    value present     -> VALID or INVALID_VALUE
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from commit_template import (
    CommitTemplate,
    FieldDeclaration,
    FieldKind,
    ValidationResult,
    ValidationStatus,
    active_entries,
)
from endpoint_validator import EndpointValidator
from type_validator import validate_string, validate_value
from value_extractor import ValueState, extract

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


@dataclass(frozen=True)
class FieldResult:
    """
    Validation result of one template entry.

    Attributes:
        declaration: Template entry
        status: Validation outcome
        values: Values extracted from the commit message
        message: Diagnostic text
    """
    declaration: FieldDeclaration
    status: ValidationStatus
    values: List[str] = field(default_factory=list)
    message: str = ""

    @property
    def name(self) -> str:
        return self.declaration.display_name

    @property
    def is_valid(self) -> bool:
        return self.status == ValidationStatus.VALID


class TemplateEvaluator:
    """
    Evaluate commit messages against commit templates.

    Args:
        endpoint_validator: Used by entries requiring endpoint validation
        max_workers: Upper bound of concurrently evaluated entries
    """

    def __init__(self, endpoint_validator: Optional[EndpointValidator] = None,
                 max_workers: int = DEFAULT_MAX_WORKERS):
        self.endpoint_validator = endpoint_validator
        self.max_workers = max(1, max_workers)

    def evaluate(self, message: str, template: CommitTemplate, context: str = "") -> List[FieldResult]:
        """
        Evaluate message against all non-inert mandatory entries of template.

        Args:
            message: Full commit message
            template: Commit template
            context: Prefix for log lines (project, commit)

        Returns:
            Failing FieldResults in template order (empty if the message is valid)
        """
        entries = active_entries(template)
        if not entries:
            return []

        indexed: List[Tuple[int, FieldResult]] = []
        workers = min(self.max_workers, len(entries))

        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self.evaluate_entry, message, entry, context): index
                for index, entry in enumerate(entries)
            }
            for future in as_completed(futures):
                indexed.append((futures[future], future.result()))

        indexed.sort(key=lambda item: item[0])
        return [result for _, result in indexed if not result.is_valid]

    def evaluate_entry(self, message: str, declaration: FieldDeclaration, context: str = "") -> FieldResult:
        """
        Evaluate one template entry. Never raises.

        Args:
            message: Full commit message
            declaration: Template entry
            context: Prefix for log lines

        Returns:
            FieldResult
        """
        try:
            result = self._evaluate_entry(message, declaration)
        except re.error as e:
            result = FieldResult(declaration, ValidationStatus.INVALID_VALUE,
                                 message=f"Invalid regex pattern: {e}")
        except Exception as e:
            logger.exception("%sfailed to evaluate template entry %s", _prefix(context), declaration.display_name)
            result = FieldResult(declaration, ValidationStatus.INVALID_VALUE, message=str(e))

        logger.info("%stemplate entry name: %s, entry value pattern: %s, entry actual value: %s, status: %s",
                    _prefix(context), declaration.display_name, declaration.value,
                    result.values, result.status.name)
        return result

    def _evaluate_entry(self, message: str, declaration: FieldDeclaration) -> FieldResult:
        extracted = extract(message, declaration)

        if extracted.state == ValueState.ABSENT:
            return FieldResult(declaration, ValidationStatus.MISSING_KEY)
        if extracted.state == ValueState.EMPTY:
            return FieldResult(declaration, ValidationStatus.MISSING_VALUE)

        if declaration.kind == FieldKind.KEY_VALUE:
            outcome = validate_value(declaration, extracted.values[0], self.endpoint_validator)
            return FieldResult(declaration, outcome.status, extracted.values, outcome.message)

        # Pattern kinds: every match is validated on its own
        invalid: List[ValidationResult] = []
        for value in extracted.values:
            outcome = validate_string(declaration, value, self.endpoint_validator)
            if outcome.status == ValidationStatus.INVALID_VALUE:
                invalid.append(outcome)

        if invalid:
            return FieldResult(declaration, ValidationStatus.INVALID_VALUE, extracted.values,
                               "; ".join(outcome.message for outcome in invalid))
        return FieldResult(declaration, ValidationStatus.VALID, extracted.values)


def _prefix(context: str) -> str:
    return f"{context} - " if context else ""
