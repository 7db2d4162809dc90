#!/usr/bin/env python3
"""
Commit Template - Data model for commit message templates.

A commit template is an ordered list of mandatory entries (field declarations)
that every commit message of a project has to provide.

Key Features:
- Field kinds: KEY_VALUE, SUBJECT_PATTERN, BODY_PATTERN
- Value types: BOOLEAN, INTEGER, STRING
- Endpoint types for cross-checking values against external systems
- Build declarations and templates from plain config mappings
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class FieldKind(Enum):
    """Extraction strategy of a template entry."""
    KEY_VALUE = "KEY_VALUE"
    SUBJECT_PATTERN = "SUBJECT_PATTERN"
    BODY_PATTERN = "BODY_PATTERN"


class ValueType(Enum):
    """Type of the value expected for a template entry."""
    BOOLEAN = "BOOLEAN"
    INTEGER = "INTEGER"
    STRING = "STRING"


class EndpointType(Enum):
    """External systems a value can be validated against."""
    JIRA = "JIRA"


class ValidationStatus(Enum):
    """Outcome of validating one template entry."""
    VALID = "VALID"
    MISSING_KEY = "MISSING_KEY"
    MISSING_VALUE = "MISSING_VALUE"
    INVALID_VALUE = "INVALID_VALUE"


# Short names used by older plugin configs
_KIND_ALIASES = {
    "KEY_VAL": FieldKind.KEY_VALUE,
    "STR_SUB": FieldKind.SUBJECT_PATTERN,
    "STR_BODY": FieldKind.BODY_PATTERN,
}


def _parse_enum(enum_cls, raw: Any, field_name: str, aliases: Optional[Dict[str, Enum]] = None):
    """Resolve a config string to an enum member (case-insensitive)."""
    name = str(raw).strip().upper()
    if aliases and name in aliases:
        return aliases[name]
    try:
        return enum_cls[name]
    except KeyError:
        valid = ", ".join(member.name for member in enum_cls)
        raise ValueError(f"Invalid {field_name} '{raw}'. Expected one of: {valid}")


@dataclass(frozen=True)
class ValidationResult:
    """
    Result of validating a single value.

    Attributes:
        status: Validation outcome
        message: Diagnostic text (empty when there is nothing to say)
    """
    status: ValidationStatus
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.status == ValidationStatus.VALID

    @classmethod
    def valid(cls, message: str = "") -> "ValidationResult":
        return cls(ValidationStatus.VALID, message)

    @classmethod
    def invalid(cls, message: str) -> "ValidationResult":
        return cls(ValidationStatus.INVALID_VALUE, message)


@dataclass(frozen=True)
class FieldDeclaration:
    """
    One mandatory entry of a commit template.

    Attributes:
        kind: Extraction strategy
        name: Display name (used for pattern kinds)
        key: Literal key for KEY_VALUE entries
        value: Regular expression the value must match (or locate, for pattern kinds)
        value_type: Expected value type
        example_value: Example shown to the committer
        validate_against_endpoint: Whether the value is cross-checked externally
        endpoint_type: External system type name (see EndpointType)
        endpoint_name: Name of the configured endpoint instance
        allowed_statuses: External statuses accepted by the endpoint check
    """
    kind: FieldKind
    name: str = ""
    key: str = ""
    value: str = ""
    value_type: ValueType = ValueType.STRING
    example_value: str = ""
    validate_against_endpoint: bool = False
    endpoint_type: str = ""
    endpoint_name: str = ""
    allowed_statuses: Tuple[str, ...] = ()

    @property
    def is_inert(self) -> bool:
        """True when neither key nor value pattern is declared."""
        return not self.key and not self.value

    @property
    def display_name(self) -> str:
        if self.kind == FieldKind.KEY_VALUE:
            return self.key
        return self.name or self.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldDeclaration":
        """
        Build a declaration from a config mapping.

        Args:
            data: Mapping with keys as written in the plugin config

        Returns:
            FieldDeclaration

        Raises:
            ValueError: If kind or type are unknown, or allowed_statuses is not a list

        Example:
            >>> FieldDeclaration.from_dict({"kind": "KEY_VALUE", "key": "Bug", "value": "[A-Z]+-[0-9]+"}).key
            'Bug'
        """
        if not isinstance(data, dict):
            raise ValueError(f"Template entry must be a mapping, got {type(data).__name__}")

        kind = _parse_enum(FieldKind, data.get("kind", "KEY_VALUE"), "kind", _KIND_ALIASES)
        value_type = _parse_enum(ValueType, data.get("type", "STRING"), "type")

        # Unknown endpoint types are kept as-is and fail open at validation time
        endpoint_type = str(data.get("endpoint_type") or "").strip().upper()

        statuses = data.get("allowed_statuses") or []
        if isinstance(statuses, str):
            statuses = [s.strip() for s in statuses.split(",") if s.strip()]
        elif not isinstance(statuses, list):
            raise ValueError(f"allowed_statuses must be a list, got {type(statuses).__name__}")

        return cls(
            kind=kind,
            name=str(data.get("name") or ""),
            key=str(data.get("key") or ""),
            value=str(data.get("value") or ""),
            value_type=value_type,
            example_value=str(data.get("example_value") or ""),
            validate_against_endpoint=bool(data.get("validate_against_endpoint", False)),
            endpoint_type=endpoint_type,
            endpoint_name=str(data.get("endpoint_name") or ""),
            allowed_statuses=tuple(str(s) for s in statuses),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Inverse of from_dict, omitting empty optional keys."""
        data: Dict[str, Any] = {"kind": self.kind.value}
        if self.name:
            data["name"] = self.name
        if self.key:
            data["key"] = self.key
        if self.value:
            data["value"] = self.value
        data["type"] = self.value_type.value
        if self.example_value:
            data["example_value"] = self.example_value
        if self.validate_against_endpoint:
            data["validate_against_endpoint"] = True
            if self.endpoint_type:
                data["endpoint_type"] = self.endpoint_type
            if self.endpoint_name:
                data["endpoint_name"] = self.endpoint_name
            if self.allowed_statuses:
                data["allowed_statuses"] = list(self.allowed_statuses)
        return data


@dataclass(frozen=True)
class CommitTemplate:
    """Named, ordered collection of mandatory entries."""
    name: str
    mandatory_entries: Tuple[FieldDeclaration, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, name: str, data: Dict[str, Any]) -> "CommitTemplate":
        if not isinstance(data, dict):
            raise ValueError(f"Template '{name}' must be a mapping")

        raw_entries = data.get("mandatory_entries") or []
        if not isinstance(raw_entries, list):
            raise ValueError(f"Template '{name}': mandatory_entries must be a list")

        entries = []
        for index, raw in enumerate(raw_entries):
            try:
                entries.append(FieldDeclaration.from_dict(raw))
            except (TypeError, ValueError) as e:
                raise ValueError(f"Template '{name}', entry {index}: {e}")

        return cls(name=name, mandatory_entries=tuple(entries))

    def to_dict(self) -> Dict[str, Any]:
        return {"mandatory_entries": [entry.to_dict() for entry in self.mandatory_entries]}


@dataclass(frozen=True)
class ProjectRules:
    """Validation rules configured for a project."""
    enabled: bool
    commit_template: str
    branches: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EndpointConfig:
    """Connection details of an external endpoint instance."""
    name: str
    url: str
    username: str = ""
    password: str = ""
    timeout: float = 10.0


def active_entries(template: CommitTemplate) -> List[FieldDeclaration]:
    """Mandatory entries minus the inert ones."""
    return [entry for entry in template.mandatory_entries if not entry.is_inert]
