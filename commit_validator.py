#!/usr/bin/env python3
"""
Commit Validator - Accept or reject an incoming commit based on its project's template.

Configuration problems never block a commit: missing, disabled or unreadable
project rules and missing templates all accept the commit. A commit is only
rejected when its message fails at least one mandatory template entry, and the
rejection carries the rendered report.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from commit_template import CommitTemplate, EndpointConfig, EndpointType
from endpoint_validator import EndpointValidator, IssueTrackerFactory
from plugin_config import ConfigurationError, PluginConfig, normalize_branch
from report_builder import render_report
from template_evaluator import DEFAULT_MAX_WORKERS, TemplateEvaluator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationDecision:
    """
    Outcome of validating a commit.

    Attributes:
        accepted: Whether the commit may proceed
        message: Rendered report when rejected, empty otherwise
    """
    accepted: bool
    message: str = ""

    @classmethod
    def accept(cls) -> "ValidationDecision":
        return cls(True)

    @classmethod
    def reject(cls, message: str) -> "ValidationDecision":
        return cls(False, message)


class CommitValidator:
    """
    Validate commit messages for the projects configured in a PluginConfig.

    Args:
        config: Configuration provider
        issue_tracker_factory: Builds issue tracker clients for endpoint validation
        max_workers: Upper bound of concurrently evaluated template entries
    """

    def __init__(self, config: PluginConfig, issue_tracker_factory: Optional[IssueTrackerFactory] = None,
                 max_workers: int = DEFAULT_MAX_WORKERS):
        self.config = config
        endpoint_validator = EndpointValidator(self._lookup_endpoint, issue_tracker_factory)
        self.evaluator = TemplateEvaluator(endpoint_validator, max_workers=max_workers)

    def _lookup_endpoint(self, name: str, endpoint_type: EndpointType) -> Optional[EndpointConfig]:
        try:
            return self.config.get_endpoint_config(name, endpoint_type)
        except ConfigurationError as e:
            logger.warning("Unable to read endpoint %s from plugin config: %s", name, e)
            return None

    def _resolve_template(self, project: str, branch: str, context: str) -> Optional[CommitTemplate]:
        try:
            rules = self.config.get_project_rules(project, branch)
        except ConfigurationError as e:
            logger.warning(
                "%s - skipping the commit validation as there is an error while reading the validation rules from plugin config: %s",
                context, e)
            return None

        if rules is None:
            logger.debug("%s - skipping the commit validation as the project is not configured with any validation rules",
                         context)
            return None

        if not rules.enabled:
            logger.debug("%s - skipping the commit validation as the project is not enabled for validation", context)
            return None

        try:
            template = self.config.get_template(rules.commit_template)
        except ConfigurationError as e:
            logger.warning("%s - skipping the commit validation as commit template %s cannot be read: %s",
                           context, rules.commit_template, e)
            return None

        if template is None:
            logger.debug(
                "%s - either no commit template is configured for this project or unable to find the configured one in the plugin config, commit template: %s",
                context, rules.commit_template)
        return template

    def on_commit_received(self, message: str, project: str, branch: str, commit: str = "") -> ValidationDecision:
        """
        Validate a commit message.

        Args:
            message: Full commit message
            project: Project name
            branch: Target branch, with or without refs/heads/
            commit: Commit id (used for logging only)

        Returns:
            ValidationDecision
        """
        context = f"Project: {project}, commit: {commit or '<unknown>'}"

        template = self._resolve_template(project, normalize_branch(branch), context)
        if template is None:
            return ValidationDecision.accept()

        logger.info("%s - validating the commit validation rules of template %s...", context, template.name)
        failures = self.evaluator.evaluate(message, template, context)

        if not failures:
            logger.info("%s - commit message is valid", context)
            return ValidationDecision.accept()

        logger.info("%s - commit message has %d missing or invalid entries", context, len(failures))
        return ValidationDecision.reject(render_report(failures))
