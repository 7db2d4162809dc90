#!/usr/bin/env python3
"""
Endpoint Validator - Cross-check template entry values against external systems.

Each EndpointType has one handler. Unknown endpoint types and endpoints without
connection details fail open (VALID with a diagnostic) so that endpoint
configuration never blocks a commit. Lookup failures fail the field only.
"""

import logging
import re
from typing import Callable, Dict, Iterable, Optional, Protocol

from commit_template import EndpointConfig, EndpointType, FieldDeclaration, ValidationResult
from issue_tracker import IssueTrackerError, JiraClient

logger = logging.getLogger(__name__)

MESSAGE_NO_ENDPOINT_DETAILS = "No endpoint details in config"
MESSAGE_UNKNOWN_ENDPOINT_TYPE = "Unknown endpoint type"
MESSAGE_ISSUE_NOT_VALID = "issue not valid/found"

# Resolves (endpoint name, endpoint type) to connection details
EndpointLookup = Callable[[str, EndpointType], Optional[EndpointConfig]]

# Builds an issue tracker client; the validator closes it after each lookup
IssueTrackerFactory = Callable[[EndpointConfig], "IssueTrackerClient"]


class IssueTrackerClient(Protocol):
    """Interface expected from issue tracker clients."""

    def check_issue(self, issue_id: str, allowed_states: Iterable[str]) -> bool:
        ...

    def close(self) -> None:
        ...


def strip_brackets(value: str) -> str:
    """
    Remove '[' and ']' from an issue identifier.

    Example:
        >>> strip_brackets("[ABC-123]")
        'ABC-123'
    """
    return re.sub(r"[\[\]]", "", value)


class EndpointValidator:
    """
    Dispatch endpoint validation to the handler registered for the entry's endpoint type.

    Args:
        endpoint_lookup: Resolves endpoint names to EndpointConfig
        issue_tracker_factory: Builds issue tracker clients (default: JiraClient)
    """

    def __init__(self, endpoint_lookup: EndpointLookup,
                 issue_tracker_factory: Optional[IssueTrackerFactory] = None):
        self.endpoint_lookup = endpoint_lookup
        self.issue_tracker_factory = issue_tracker_factory or JiraClient.from_endpoint
        self.handlers: Dict[EndpointType, Callable[[FieldDeclaration, str], ValidationResult]] = {
            EndpointType.JIRA: self._validate_against_issue_tracker,
        }

    def validate(self, declaration: FieldDeclaration, value: str) -> ValidationResult:
        """
        Validate value against the external endpoint configured for declaration.

        Args:
            declaration: Template entry with endpoint details
            value: Value extracted from the commit message

        Returns:
            ValidationResult
        """
        try:
            endpoint_type = EndpointType[declaration.endpoint_type]
        except KeyError:
            logger.warning(
                "Unable to validate the value of template entry %s against endpoint as endpoint type %s is unknown",
                declaration.display_name, declaration.endpoint_type)
            return ValidationResult.valid(MESSAGE_UNKNOWN_ENDPOINT_TYPE)

        handler = self.handlers.get(endpoint_type)
        if handler is None:
            logger.warning("No handler registered for endpoint type %s", endpoint_type.name)
            return ValidationResult.valid(MESSAGE_UNKNOWN_ENDPOINT_TYPE)

        return handler(declaration, value)

    def _validate_against_issue_tracker(self, declaration: FieldDeclaration, value: str) -> ValidationResult:
        issue_id = strip_brackets(value)

        endpoint = self.endpoint_lookup(declaration.endpoint_name, EndpointType.JIRA)
        if endpoint is None:
            logger.warning("No endpoint named %s is configured for template entry %s",
                           declaration.endpoint_name, declaration.display_name)
            return ValidationResult.valid(MESSAGE_NO_ENDPOINT_DETAILS)

        try:
            client = self.issue_tracker_factory(endpoint)
            try:
                exists = client.check_issue(issue_id, declaration.allowed_statuses)
            finally:
                client.close()
        except IssueTrackerError as e:
            return ValidationResult.invalid(str(e))
        except Exception as e:
            logger.exception("Issue lookup for %s at %s failed", issue_id, endpoint.url)
            return ValidationResult.invalid(f"Issue lookup failed: {e}")

        logger.info("Issue %s valid? %s", issue_id, exists)
        if not exists:
            return ValidationResult.invalid(f"{MESSAGE_ISSUE_NOT_VALID}: {issue_id}")
        return ValidationResult.valid()
