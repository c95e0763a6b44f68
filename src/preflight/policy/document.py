"""
AWS IAM policy document model.

IAM lets ``Action`` and ``NotAction`` be written either as a bare string
(exactly one action) or as an array of strings. ``decode_action_list``
and ``encode_action_list`` normalize those to tuples. ``Resource`` and
condition values accept the same two shapes and keep the one they were
written in.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

from preflight.errors import PolicyDecodeError

DEFAULT_POLICY_VERSION = "2012-10-17"
WILDCARD_PRINCIPAL = "*"


def decode_action_list(value: Any, field_path: str) -> tuple[str, ...]:
    """
    Normalize an Action/NotAction value to a tuple of strings.

    Args:
        value: Decoded JSON value (string or list of strings)
        field_path: Path used in error messages, e.g. ``Statement[0].Action``

    Returns:
        Tuple of action names in document order

    Raises:
        PolicyDecodeError: If the value is neither a string nor a list of strings
    """
    if isinstance(value, str):
        return (value,)

    if isinstance(value, list):
        actions = []
        for index, item in enumerate(value):
            if not isinstance(item, str):
                raise PolicyDecodeError(
                    f"{field_path}[{index}]",
                    f"expected string, got {type(item).__name__}",
                )
            actions.append(item)
        return tuple(actions)

    raise PolicyDecodeError(
        field_path,
        f"expected string or array of strings, got {type(value).__name__}",
    )


def encode_action_list(actions: tuple[str, ...] | list[str]) -> str | list[str]:
    """Encode actions as a bare string when there is exactly one, else a list."""
    if len(actions) == 1:
        return actions[0]
    return list(actions)


def _decode_string(value: Any, field_path: str) -> str:
    if not isinstance(value, str):
        raise PolicyDecodeError(
            field_path, f"expected string, got {type(value).__name__}"
        )
    return value


def _decode_string_or_list(value: Any, field_path: str) -> str | tuple[str, ...]:
    """
    Decode a value IAM allows as a string or an array of strings.

    A bare string stays a string and an array becomes a tuple, so the
    original shape is kept for comparison and re-encoding.
    """
    if isinstance(value, list):
        return decode_action_list(value, field_path)
    if not isinstance(value, str):
        raise PolicyDecodeError(
            field_path,
            f"expected string or array of strings, got {type(value).__name__}",
        )
    return value


def _encode_string_or_list(value: str | tuple[str, ...]) -> str | list[str]:
    if isinstance(value, tuple):
        return list(value)
    return value


def _decode_string_map(
    value: Any, field_path: str
) -> dict[str, str | tuple[str, ...]]:
    if not isinstance(value, dict):
        raise PolicyDecodeError(
            field_path, f"expected object, got {type(value).__name__}"
        )
    return {
        _decode_string(key, field_path): _decode_string_or_list(
            item, f"{field_path}.{key}"
        )
        for key, item in value.items()
    }


def _encode_string_map(
    mapping: dict[str, str | tuple[str, ...]]
) -> dict[str, str | list[str]]:
    return {key: _encode_string_or_list(value) for key, value in mapping.items()}


@dataclass(frozen=True)
class Principal:
    """
    Statement principal.

    Only the federated principal is compared against baselines. A wildcard
    principal (``"*"``) and other principal types such as ``Service`` or
    ``AWS`` are decoded so they round-trip, but are otherwise opaque.

    Attributes:
        federated: Federated identity provider ARN
        everyone: True for the ``"*"`` principal
        others: Remaining principal types as (type, value) pairs
    """

    federated: str | None = None
    everyone: bool = False
    others: tuple[tuple[str, str | tuple[str, ...]], ...] = ()

    def to_dict(self) -> dict[str, Any] | str:
        """Convert to IAM JSON shape (``"*"`` for the wildcard principal)."""
        if self.everyone:
            return WILDCARD_PRINCIPAL
        data: dict[str, Any] = {}
        if self.federated is not None:
            data["Federated"] = self.federated
        for key, value in self.others:
            data[key] = _encode_string_or_list(value)
        return data

    @classmethod
    def from_dict(cls, data: Any, field_path: str = "Principal") -> Principal:
        """Create from dictionary or the ``"*"`` wildcard."""
        if data == WILDCARD_PRINCIPAL:
            return cls(everyone=True)
        if not isinstance(data, dict):
            raise PolicyDecodeError(
                field_path,
                f"expected object or \"*\", got {type(data).__name__}",
            )
        federated = data.get("Federated")
        if federated is not None:
            federated = _decode_string(federated, f"{field_path}.Federated")
        others = tuple(
            (key, _decode_string_or_list(value, f"{field_path}.{key}"))
            for key, value in data.items()
            if key != "Federated"
        )
        return cls(federated=federated, others=others)


@dataclass(frozen=True)
class Condition:
    """
    Statement condition block.

    Attributes:
        string_equals: StringEquals operator map
        string_like: StringLike operator map
    """

    string_equals: dict[str, str | tuple[str, ...]] | None = None
    string_like: dict[str, str | tuple[str, ...]] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        data: dict[str, Any] = {}
        if self.string_equals is not None:
            data["StringEquals"] = _encode_string_map(self.string_equals)
        if self.string_like is not None:
            data["StringLike"] = _encode_string_map(self.string_like)
        return data

    @classmethod
    def from_dict(cls, data: Any, field_path: str = "Condition") -> Condition:
        """Create from dictionary."""
        if not isinstance(data, dict):
            raise PolicyDecodeError(
                field_path, f"expected object, got {type(data).__name__}"
            )
        string_equals = data.get("StringEquals")
        string_like = data.get("StringLike")
        return cls(
            string_equals=(
                _decode_string_map(string_equals, f"{field_path}.StringEquals")
                if string_equals is not None
                else None
            ),
            string_like=(
                _decode_string_map(string_like, f"{field_path}.StringLike")
                if string_like is not None
                else None
            ),
        )


@dataclass(frozen=True)
class Statement:
    """
    One statement of an IAM policy document.

    Attributes:
        sid: Statement ID, empty when the document does not set one
        effect: "Allow" or "Deny"
        action: Actions granted or denied
        not_action: Actions excluded
        principal: Principal (trust policies)
        resource: Resource ARN or wildcard, or a tuple of them
        condition: Condition block
    """

    sid: str = ""
    effect: str | None = None
    action: tuple[str, ...] | None = None
    not_action: tuple[str, ...] | None = None
    principal: Principal | None = None
    resource: str | tuple[str, ...] | None = None
    condition: Condition | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to IAM JSON shape."""
        data: dict[str, Any] = {}
        if self.sid:
            data["Sid"] = self.sid
        if self.effect is not None:
            data["Effect"] = self.effect
        if self.principal is not None:
            data["Principal"] = self.principal.to_dict()
        if self.action is not None:
            data["Action"] = encode_action_list(self.action)
        if self.not_action is not None:
            data["NotAction"] = encode_action_list(self.not_action)
        if self.resource is not None:
            data["Resource"] = _encode_string_or_list(self.resource)
        if self.condition is not None:
            data["Condition"] = self.condition.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Any, field_path: str = "Statement") -> Statement:
        """Create from a decoded IAM JSON statement."""
        if not isinstance(data, dict):
            raise PolicyDecodeError(
                field_path, f"expected object, got {type(data).__name__}"
            )

        sid = data.get("Sid", "")
        effect = data.get("Effect")
        resource = data.get("Resource")

        return cls(
            sid=_decode_string(sid, f"{field_path}.Sid"),
            effect=(
                _decode_string(effect, f"{field_path}.Effect")
                if effect is not None
                else None
            ),
            action=(
                decode_action_list(data["Action"], f"{field_path}.Action")
                if "Action" in data
                else None
            ),
            not_action=(
                decode_action_list(data["NotAction"], f"{field_path}.NotAction")
                if "NotAction" in data
                else None
            ),
            principal=(
                Principal.from_dict(data["Principal"], f"{field_path}.Principal")
                if "Principal" in data
                else None
            ),
            resource=(
                _decode_string_or_list(resource, f"{field_path}.Resource")
                if resource is not None
                else None
            ),
            condition=(
                Condition.from_dict(data["Condition"], f"{field_path}.Condition")
                if "Condition" in data
                else None
            ),
        )


@dataclass(frozen=True)
class PolicyDocument:
    """
    An IAM policy document.

    Attributes:
        version: Policy language version
        statements: Statements in document order
    """

    version: str | None = None
    statements: tuple[Statement, ...] = field(default_factory=tuple)

    def statements_by_sid(self, sid: str) -> list[Statement]:
        """Get all statements with the given SID, in document order."""
        return [s for s in self.statements if s.sid == sid]

    def to_dict(self) -> dict[str, Any]:
        """Convert to IAM JSON shape."""
        data: dict[str, Any] = {}
        if self.version is not None:
            data["Version"] = self.version
        data["Statement"] = [s.to_dict() for s in self.statements]
        return data

    def to_json(self, indent: int | None = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Any) -> PolicyDocument:
        """Create from a decoded IAM JSON document."""
        if not isinstance(data, dict):
            raise PolicyDecodeError(
                "", f"policy document must be an object, got {type(data).__name__}"
            )

        version = data.get("Version")
        if version is not None:
            version = _decode_string(version, "Version")

        raw_statements = data.get("Statement", [])
        if isinstance(raw_statements, dict):
            statements = (Statement.from_dict(raw_statements, "Statement"),)
        elif isinstance(raw_statements, list):
            statements = tuple(
                Statement.from_dict(item, f"Statement[{index}]")
                for index, item in enumerate(raw_statements)
            )
        else:
            raise PolicyDecodeError(
                "Statement",
                f"expected object or array, got {type(raw_statements).__name__}",
            )

        return cls(version=version, statements=statements)

    @classmethod
    def from_json(cls, text: str) -> PolicyDocument:
        """
        Create from JSON text.

        IAM returns policy documents URL-encoded, so text that does not
        start with a JSON object is unquoted first.
        """
        payload = text.strip()
        if not payload.startswith("{"):
            payload = unquote(payload)
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise PolicyDecodeError("", f"invalid JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def load(cls, document: Any) -> PolicyDocument:
        """Create from whatever shape a cloud SDK returned (dict or text)."""
        if isinstance(document, str):
            return cls.from_json(document)
        return cls.from_dict(document)
