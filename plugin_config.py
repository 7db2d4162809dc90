#!/usr/bin/env python3
"""
Plugin configuration - Project rules, commit templates and endpoints.

The configuration is a YAML document with three sections:

    projects:    project name -> enabled, commit_template, branches
    templates:   template name -> mandatory_entries
    endpoints:   endpoint type -> endpoint name -> url, username, password

PluginConfig answers the three lookups the commit validator needs and can
check a configuration against config_schema.json.
"""

import fnmatch
import json
import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from commit_template import CommitTemplate, EndpointConfig, EndpointType, ProjectRules

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"

# Parsed configuration files keyed by resolved path
_config_cache: Dict[Path, Dict[str, Any]] = {}

_schema: Optional[Dict[str, Any]] = None


class ConfigurationError(ValueError):
    """Exception raised when the configuration cannot be read or is malformed."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(f"{source}: {message}" if source else message)
        self.source = source


def load_schema() -> Dict[str, Any]:
    """Load the configuration JSON Schema (once)."""
    global _schema
    if _schema is None:
        with open(SCHEMA_PATH, encoding="utf-8") as f:
            _schema = json.load(f)
    return _schema


def load_config_file(config_path: Path, use_cache: bool = True) -> Dict[str, Any]:
    """
    Read and parse a YAML configuration file with caching.

    Args:
        config_path: Path to the YAML file
        use_cache: Whether to use cached configurations (default: True)

    Returns:
        Parsed configuration mapping

    Raises:
        ConfigurationError: If the file cannot be read or parsed
    """
    config_path = Path(config_path).resolve()
    if use_cache and config_path in _config_cache:
        return _config_cache[config_path]

    try:
        content = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration: {e}", str(config_path))

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML: {e}", str(config_path))

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a mapping", str(config_path))

    if use_cache:
        _config_cache[config_path] = data

    return data


def clear_cache() -> None:
    _config_cache.clear()


def normalize_branch(branch: str) -> str:
    """
    Example:
        >>> normalize_branch("refs/heads/release/1.0")
        'release/1.0'
    """
    prefix = "refs/heads/"
    if branch.startswith(prefix):
        return branch[len(prefix):]
    return branch


class PluginConfig:
    """
    Configuration provider backed by a parsed configuration mapping.

    Args:
        data: Parsed configuration
        source: Where the configuration came from (used in error messages)
    """

    def __init__(self, data: Dict[str, Any], source: str = ""):
        self.data = data
        self.source = source

    @classmethod
    def load(cls, config_path: Path, use_cache: bool = True) -> "PluginConfig":
        return cls(load_config_file(config_path, use_cache), str(config_path))

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"'{name}' must be a mapping", self.source)
        return section

    def get_project_rules(self, project: str, branch: str) -> Optional[ProjectRules]:
        """
        Get the validation rules of a project for a branch.

        Args:
            project: Project name
            branch: Branch name, with or without refs/heads/

        Returns:
            ProjectRules, or None if the project is not configured or the
            branch does not match any configured branch pattern

        Raises:
            ConfigurationError: If the project section is malformed
        """
        raw = self._section("projects").get(project)
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Project '{project}' must be a mapping", self.source)

        template = raw.get("commit_template")
        if not template or not isinstance(template, str):
            raise ConfigurationError(f"Project '{project}' has no commit_template", self.source)

        branches = raw.get("branches") or []
        if isinstance(branches, str):
            branches = [branches]
        if not isinstance(branches, list):
            raise ConfigurationError(f"Project '{project}': branches must be a list", self.source)

        branch = normalize_branch(branch)
        if branches and not any(fnmatch.fnmatchcase(branch, str(pattern)) for pattern in branches):
            return None

        enabled = raw.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ConfigurationError(f"Project '{project}': enabled must be true or false, got {enabled!r}", self.source)

        return ProjectRules(
            enabled=enabled,
            commit_template=template,
            branches=tuple(str(pattern) for pattern in branches),
        )

    def get_template(self, name: str) -> Optional[CommitTemplate]:
        """
        Raises:
            ConfigurationError: If the template is malformed
        """
        raw = self._section("templates").get(name)
        if raw is None:
            return None
        try:
            return CommitTemplate.from_dict(name, raw)
        except ValueError as e:
            raise ConfigurationError(str(e), self.source)

    def get_endpoint_config(self, name: str, endpoint_type: EndpointType = EndpointType.JIRA) -> Optional[EndpointConfig]:
        """
        Get connection details of an endpoint.

        The password is read from the environment variable named by
        password_env when present.

        Raises:
            ConfigurationError: If the endpoint section is malformed
        """
        endpoints = self._section("endpoints").get(endpoint_type.name.lower()) or {}
        raw = endpoints.get(name) if isinstance(endpoints, dict) else None
        if raw is None:
            return None
        if not isinstance(raw, dict) or not raw.get("url"):
            raise ConfigurationError(f"Endpoint '{name}' must define a url", self.source)

        password = str(raw.get("password") or "")
        if raw.get("password_env"):
            password = os.environ.get(str(raw["password_env"]), password)

        try:
            timeout = float(raw.get("timeout", 10.0))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Endpoint '{name}': timeout must be a number, got {raw.get('timeout')!r}",
                                     self.source)

        return EndpointConfig(
            name=name,
            url=str(raw["url"]),
            username=str(raw.get("username") or ""),
            password=password,
            timeout=timeout,
        )

    def template_names(self) -> List[str]:
        return list(self._section("templates").keys())

    def check(self) -> List[str]:
        """
        Check the configuration and return all problems found.

        Checks:
        - JSON Schema (config_schema.json)
        - every template entry pattern compiles
        - every project references an existing template

        Returns:
            List of problem descriptions (empty if the configuration is valid)
        """
        problems = []

        validator = Draft7Validator(load_schema())
        for error in sorted(validator.iter_errors(self.data), key=lambda e: list(e.absolute_path)):
            location = "/".join(str(part) for part in error.absolute_path) or "<root>"
            problems.append(f"{location}: {error.message}")

        if problems:
            return problems

        for template_name, raw in self._section("templates").items():
            for index, entry in enumerate(raw.get("mandatory_entries") or []):
                pattern = entry.get("value", "")
                if not pattern:
                    continue
                try:
                    re.compile(pattern.strip())
                except re.error as e:
                    problems.append(f"templates/{template_name}/mandatory_entries/{index}: Invalid regex pattern: {e}")

        templates = self._section("templates")
        for project, raw in self._section("projects").items():
            if raw.get("commit_template") not in templates:
                problems.append(f"projects/{project}: Unknown commit_template '{raw.get('commit_template')}'")

        return problems
