#!/usr/bin/env python3
"""
Issue tracker client used to cross-check issue identifiers found in commit messages.

Only one query is needed: does an issue exist, and is it in one of a set of
allowed states. The Jira REST API v2 is used for that.
"""

import logging
import re
from typing import Iterable, Optional

import requests

from commit_template import EndpointConfig

logger = logging.getLogger(__name__)

ISSUE_ID_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*-[0-9]+$")


class IssueTrackerError(Exception):
    """Base exception for issue tracker lookups."""
    pass


class InvalidIdentifier(IssueTrackerError):
    """Exception raised when an issue identifier is malformed."""
    pass


class TransportError(IssueTrackerError):
    """Exception raised when the tracker cannot be queried."""
    pass


class JiraClient:
    """
    Minimal Jira client answering "does this issue exist in an allowed state".

    Attributes:
        base_url: Jira server URL without trailing slash
        timeout: Request timeout in seconds
    """

    def __init__(self, base_url: str, username: str = "", password: str = "",
                 timeout: float = 10.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        # Sessions passed in are owned by the caller
        self._owns_session = session is None
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, password)
        self.session.headers.update({"Accept": "application/json"})

    @classmethod
    def from_endpoint(cls, endpoint: EndpointConfig) -> "JiraClient":
        return cls(endpoint.url, endpoint.username, endpoint.password, timeout=endpoint.timeout)

    def close(self) -> None:
        """Release pooled connections of a session created by this client."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "JiraClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def issue_url(self, issue_id: str) -> str:
        return f"{self.base_url}/rest/api/2/issue/{issue_id}"

    def get_issue_status(self, issue_id: str) -> Optional[str]:
        """
        Fetch the status name of an issue.

        Returns:
            Status name, or None if the issue does not exist

        Raises:
            InvalidIdentifier: If issue_id is malformed
            TransportError: On HTTP or connection failures
        """
        if not ISSUE_ID_PATTERN.match(issue_id):
            raise InvalidIdentifier(f"Invalid issue id '{issue_id}'")

        try:
            response = self.session.get(
                self.issue_url(issue_id),
                params={"fields": "status"},
                timeout=self.timeout,
            )
            if response.status_code == 404:
                return None
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise TransportError(f"Failed to query issue {issue_id}: {e}")
        except ValueError as e:
            raise TransportError(f"Invalid response for issue {issue_id}: {e}")

        status = (payload.get("fields") or {}).get("status") or {}
        return status.get("name", "")

    def check_issue(self, issue_id: str, allowed_states: Iterable[str]) -> bool:
        """
        Check whether an issue exists and is in one of the allowed states.

        An empty allowed_states accepts any existing issue. State names are
        compared case-insensitively.

        Raises:
            InvalidIdentifier: If issue_id is malformed
            TransportError: On HTTP or connection failures
        """
        status = self.get_issue_status(issue_id)
        if status is None:
            logger.debug("Issue %s not found at %s", issue_id, self.base_url)
            return False

        allowed = {state.strip().lower() for state in allowed_states}
        if not allowed:
            return True

        in_state = status.lower() in allowed
        logger.debug("Issue %s status %r allowed=%s", issue_id, status, in_state)
        return in_state
