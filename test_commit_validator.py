#!/usr/bin/env python3
"""
Tests for commit_validator.py - accept/reject decisions for incoming commits.

Test coverage:
- Configuration problems and unconfigured projects accept the commit
- Rejections carry the rendered report
- Endpoint validation wiring through the plugin config
"""

import unittest
from unittest import mock

from commit_validator import CommitValidator, ValidationDecision
from plugin_config import ConfigurationError, PluginConfig
from report_builder import LINE_BREAK_ASTERISK


def make_config(**template_overrides) -> PluginConfig:
    bug = {
        "name": "Bug",
        "kind": "KEY_VALUE",
        "key": "Bug",
        "value": "[A-Z]+-[0-9]+",
        "example_value": "Bug: ABC-123",
    }
    bug.update(template_overrides)
    return PluginConfig({
        "projects": {
            "core": {"enabled": True, "commit_template": "default", "branches": ["main"]},
            "disabled": {"enabled": False, "commit_template": "default"},
            "orphan": {"enabled": True, "commit_template": "missing"},
        },
        "templates": {"default": {"mandatory_entries": [bug]}},
        "endpoints": {"jira": {"main": {"url": "https://jira.example.com", "username": "bot", "password": "x"}}},
    })


class TestAcceptWithoutValidation(unittest.TestCase):
    """Test cases where the commit is accepted without evaluating any template."""

    def test_unconfigured_project(self):
        decision = CommitValidator(make_config()).on_commit_received("Subject", "other", "main")

        self.assertEqual(decision, ValidationDecision.accept())

    def test_branch_not_covered(self):
        decision = CommitValidator(make_config()).on_commit_received("Subject", "core", "refs/heads/dev")

        self.assertTrue(decision.accepted)

    def test_disabled_project(self):
        decision = CommitValidator(make_config()).on_commit_received("Subject", "disabled", "main")

        self.assertTrue(decision.accepted)

    def test_missing_template(self):
        decision = CommitValidator(make_config()).on_commit_received("Subject", "orphan", "main")

        self.assertTrue(decision.accepted)

    def test_config_read_error(self):
        """Test errors while reading project rules never block a commit."""
        config = mock.Mock(spec=PluginConfig)
        config.get_project_rules.side_effect = ConfigurationError("broken")

        with self.assertLogs("commit_validator", level="WARNING"):
            decision = CommitValidator(config).on_commit_received("Subject", "core", "main")

        self.assertTrue(decision.accepted)
        config.get_template.assert_not_called()

    def test_malformed_template(self):
        config = make_config(kind="NOPE")

        decision = CommitValidator(config).on_commit_received("Subject", "core", "main")

        self.assertTrue(decision.accepted)

    def test_malformed_allowed_statuses(self):
        config = make_config(validate_against_endpoint=True, endpoint_type="JIRA", endpoint_name="main",
                             allowed_statuses=5)

        decision = CommitValidator(config).on_commit_received("Fix\n\nBug: ABC-1", "core", "main")

        self.assertEqual(decision, ValidationDecision.accept())

    def test_quoted_enabled_flag(self):
        """Test a quoted 'false' does not switch validation on."""
        config = make_config()
        config.data["projects"]["core"]["enabled"] = "false"

        decision = CommitValidator(config).on_commit_received("Fix crash", "core", "main")

        self.assertTrue(decision.accepted)


class TestMalformedConfig(unittest.TestCase):
    """Test every kind of broken configuration accepts a commit that would otherwise be rejected."""

    def broken_configs(self):
        def projects_not_mapping(data):
            data["projects"] = ["core"]

        def templates_not_mapping(data):
            data["templates"] = "default"

        def project_not_mapping(data):
            data["projects"]["core"] = "default"

        def branches_not_list(data):
            data["projects"]["core"]["branches"] = 5

        def enabled_not_bool(data):
            data["projects"]["core"]["enabled"] = "yes"

        def entries_not_list(data):
            data["templates"]["default"]["mandatory_entries"] = "Bug"

        def entry_not_mapping(data):
            data["templates"]["default"]["mandatory_entries"] = ["Bug"]

        def unknown_type(data):
            data["templates"]["default"]["mandatory_entries"][0]["type"] = "FLOAT"

        def statuses_not_list(data):
            data["templates"]["default"]["mandatory_entries"][0]["allowed_statuses"] = {"Open": 1}

        return [projects_not_mapping, templates_not_mapping, project_not_mapping, branches_not_list,
                enabled_not_bool, entries_not_list, entry_not_mapping, unknown_type, statuses_not_list]

    def test_broken_config_accepts_commit(self):
        for breakage in self.broken_configs():
            with self.subTest(breakage=breakage.__name__):
                config = make_config()
                breakage(config.data)

                decision = CommitValidator(config).on_commit_received("Fix crash", "core", "main")

                self.assertEqual(decision, ValidationDecision.accept())

    def test_intact_config_rejects_commit(self):
        decision = CommitValidator(make_config()).on_commit_received("Fix crash", "core", "main")

        self.assertFalse(decision.accepted)


class TestValidation(unittest.TestCase):
    """Test accept and reject decisions for configured projects."""

    def test_valid_message_accepted(self):
        decision = CommitValidator(make_config()).on_commit_received(
            "Fix crash\n\nBug: ABC-123", "core", "refs/heads/main", commit="abc123")

        self.assertTrue(decision.accepted)
        self.assertEqual(decision.message, "")

    def test_missing_entry_rejected_with_report(self):
        decision = CommitValidator(make_config()).on_commit_received("Fix crash", "core", "main")

        self.assertFalse(decision.accepted)
        self.assertIn(LINE_BREAK_ASTERISK, decision.message)
        self.assertIn("- Bug (KEY_VALUE): key is missing", decision.message)
        self.assertIn("example: Bug: ABC-123", decision.message)

    def test_identical_runs_render_identical_reports(self):
        validator = CommitValidator(make_config())

        first = validator.on_commit_received("Fix crash\n\nBug: nope", "core", "main")
        second = validator.on_commit_received("Fix crash\n\nBug: nope", "core", "main")

        self.assertEqual(first.message, second.message)


class TestEndpointWiring(unittest.TestCase):
    """Test endpoint validation through the configured endpoints."""

    def jira_config(self, endpoint_name="main"):
        return make_config(validate_against_endpoint=True, endpoint_type="JIRA",
                           endpoint_name=endpoint_name, allowed_statuses=["Open"])

    def test_issue_tracker_built_from_endpoint_config(self):
        tracker = mock.Mock()
        tracker.check_issue.return_value = True
        factory = mock.Mock(return_value=tracker)

        decision = CommitValidator(self.jira_config(), issue_tracker_factory=factory).on_commit_received(
            "Fix\n\nBug: ABC-1", "core", "main")

        self.assertTrue(decision.accepted)
        endpoint = factory.call_args[0][0]
        self.assertEqual(endpoint.url, "https://jira.example.com")
        self.assertEqual(endpoint.username, "bot")
        tracker.check_issue.assert_called_once_with("ABC-1", ("Open",))

    def test_rejected_issue(self):
        tracker = mock.Mock()
        tracker.check_issue.return_value = False

        decision = CommitValidator(self.jira_config(), issue_tracker_factory=lambda e: tracker).on_commit_received(
            "Fix\n\nBug: ABC-1", "core", "main")

        self.assertFalse(decision.accepted)
        self.assertIn("issue not valid/found: ABC-1", decision.message)

    def test_non_numeric_timeout_fails_open(self):
        config = self.jira_config()
        config.data["endpoints"]["jira"]["main"]["timeout"] = "soon"
        factory = mock.Mock()

        decision = CommitValidator(config, issue_tracker_factory=factory).on_commit_received(
            "Fix\n\nBug: ABC-1", "core", "main")

        self.assertEqual(decision, ValidationDecision.accept())
        factory.assert_not_called()

    def test_tracker_closed_after_lookup(self):
        tracker = mock.Mock()
        tracker.check_issue.return_value = True

        CommitValidator(self.jira_config(), issue_tracker_factory=lambda e: tracker).on_commit_received(
            "Fix\n\nBug: ABC-1", "core", "main")

        tracker.close.assert_called_once_with()

    def test_unknown_endpoint_name_fails_open(self):
        factory = mock.Mock()

        decision = CommitValidator(self.jira_config("nowhere"), issue_tracker_factory=factory).on_commit_received(
            "Fix\n\nBug: ABC-1", "core", "main")

        self.assertTrue(decision.accepted)
        factory.assert_not_called()


if __name__ == '__main__':
    unittest.main()
