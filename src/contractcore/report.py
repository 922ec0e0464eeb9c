"""Validation error and report models.

Validation defects are collected as data. Every component returns lists of
``FieldError``; the set validator groups them into a ``ValidationReport``
keyed by contract and record index.
"""

from __future__ import annotations

import base64
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from contractcore.canonical import canonical_hash, canonical_json


class ErrorKind(Enum):
    """Closed taxonomy of validation defects."""

    MISSING_REQUIRED_FIELD = "MissingRequiredField"
    UNEXPECTED_FIELD = "UnexpectedField"
    TYPE_MISMATCH = "TypeMismatch"
    UNRESOLVED_PATH = "UnresolvedPath"
    UNKNOWN_DIRECTIVE = "UnknownDirective"
    INVALID_DIRECTIVE_ARGUMENT = "InvalidDirectiveArgument"
    DANGLING_REFERENCE = "DanglingReference"
    MALFORMED_INPUT = "MalformedInput"

    @classmethod
    def from_string(cls, value: str) -> ErrorKind:
        for kind in cls:
            if kind.value == value or kind.name == value.upper():
                return kind
        raise ValueError(f"Unknown error kind: {value}")


def kind_of(value: Any) -> str:
    """Name the dynamic kind of a runtime value in schema terms."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and not math.isfinite(value):
        return "non-finite number"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "bytes"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, Sequence):
        return "array"
    return type(value).__name__


def join_path(parent: str, name: Any) -> str:
    """Append a field name to a dotted path."""
    return f"{parent}.{name}" if parent else str(name)


def _json_safe(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, float) and not math.isfinite(value):
        return repr(value)
    if isinstance(value, Mapping):
        return {str(k): _json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(v) for v in value]
    if value is None or isinstance(value, (str, int, float)):
        return value
    return repr(value)


@dataclass(frozen=True)
class FieldError:
    """A single defect, located by dotted field path.

    Attributes:
        kind: Error taxonomy entry
        path: Dotted field path (``""`` for the record or contract itself)
        message: Human-readable description
        expected: Expected kind or type, where one applies
        actual: Actual kind found, where one applies
        target: Referenced contract name (dangling references)
        value: Offending identifier value (dangling references)
    """

    kind: ErrorKind
    path: str
    message: str
    expected: str | None = None
    actual: str | None = None
    target: str | None = None
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "path": self.path,
            "message": self.message,
        }
        if self.expected is not None:
            result["expected"] = self.expected
        if self.actual is not None:
            result["actual"] = self.actual
        if self.target is not None:
            result["target"] = self.target
        if self.value is not None:
            result["value"] = _json_safe(self.value)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FieldError:
        return cls(
            kind=ErrorKind.from_string(data["kind"]),
            path=data.get("path", ""),
            message=data.get("message", ""),
            expected=data.get("expected"),
            actual=data.get("actual"),
            target=data.get("target"),
            value=data.get("value"),
        )

    def __str__(self) -> str:
        location = self.path or "<record>"
        return f"{location}: [{self.kind.value}] {self.message}"


@dataclass
class RecordReport:
    """All defects found in one record."""

    contract: str
    index: int
    record_id: Any = None
    errors: list[FieldError] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "contract": self.contract,
            "index": self.index,
            "record_id": _json_safe(self.record_id),
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ValidationReport:
    """Outcome of validating a data set.

    ``schema_errors`` holds defects of the contracts themselves (and of data
    set entries naming no known contract). ``records`` holds per-record
    defects, including dangling references.
    """

    schema_errors: dict[str, list[FieldError]] = field(default_factory=dict)
    records: list[RecordReport] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.schema_errors = {
            name: list(errors)
            for name, errors in sorted(self.schema_errors.items())
            if errors
        }
        self.records = sorted(
            (r for r in self.records if r.errors),
            key=lambda r: (r.contract, r.index),
        )

    @property
    def ok(self) -> bool:
        return not self.schema_errors and not self.records

    @property
    def error_count(self) -> int:
        return (
            sum(len(errors) for errors in self.schema_errors.values())
            + sum(len(r.errors) for r in self.records)
        )

    def all_errors(self) -> list[FieldError]:
        """Every error in report order."""
        errors: list[FieldError] = []
        for schema_errors in self.schema_errors.values():
            errors.extend(schema_errors)
        for record in self.records:
            errors.extend(record.errors)
        return errors

    def errors_of_kind(self, kind: ErrorKind) -> list[FieldError]:
        return [e for e in self.all_errors() if e.kind == kind]

    def record(self, contract: str, index: int) -> RecordReport | None:
        for record in self.records:
            if record.contract == contract and record.index == index:
                return record
        return None

    def contracts(self) -> list[str]:
        """Names of contracts with at least one error."""
        return sorted(set(self.schema_errors) | {r.contract for r in self.records})

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.ok,
            "error_count": self.error_count,
            "schema_errors": {
                name: [e.to_dict() for e in errors]
                for name, errors in self.schema_errors.items()
            },
            "records": [r.to_dict() for r in self.records],
        }

    def to_json(self) -> str:
        return canonical_json(self.to_dict())

    def digest(self) -> str:
        """Stable hash of the report's canonical form."""
        return canonical_hash(self.to_dict())

    def summary_lines(self) -> list[str]:
        lines = []
        for name, errors in self.schema_errors.items():
            for error in errors:
                lines.append(f"{name} (schema): {error}")
        for record in self.records:
            label = f"{record.contract}[{record.index}]"
            if record.record_id is not None:
                label += f" id={record.record_id!r}"
            for error in record.errors:
                lines.append(f"{label}: {error}")
        return lines


class ValidationError(Exception):
    """Raised by the ``*_or_raise`` entry points when a data set is invalid."""

    def __init__(self, message: str, report: ValidationReport):
        super().__init__(message)
        self.report = report

    @property
    def errors(self) -> list[FieldError]:
        return self.report.all_errors()
