"""contractcore - validation of data records against contract schemas."""

from __future__ import annotations

__version__ = "0.3.0"

from contractcore.ast import Contract, SchemaLoadError, load_schema
from contractcore.config import DEFAULT_CONFIG, LENIENT_CONFIG, ValidationConfig
from contractcore.contracts.directives import (
    Attachment,
    DirectiveRegistry,
    DirectiveSpec,
    check_directive,
)
from contractcore.contracts.registry import ContractRegistry
from contractcore.report import (
    ErrorKind,
    FieldError,
    RecordReport,
    ValidationError,
    ValidationReport,
)
from contractcore.validate.engine import (
    compile_schema,
    is_valid,
    validate_set,
    validate_set_or_raise,
)
from contractcore.validate.matcher import matches
from contractcore.validate.records import validate_arguments, validate_record
from contractcore.validate.references import RecordIndex, RecordLookup, validate_references
from contractcore.validate.resolver import UnresolvedPath, resolve

__all__ = [
    "Attachment",
    "Contract",
    "ContractRegistry",
    "DEFAULT_CONFIG",
    "DirectiveRegistry",
    "DirectiveSpec",
    "ErrorKind",
    "FieldError",
    "LENIENT_CONFIG",
    "RecordIndex",
    "RecordLookup",
    "RecordReport",
    "SchemaLoadError",
    "UnresolvedPath",
    "ValidationConfig",
    "ValidationError",
    "ValidationReport",
    "__version__",
    "check_directive",
    "compile_schema",
    "is_valid",
    "load_schema",
    "matches",
    "resolve",
    "validate_arguments",
    "validate_record",
    "validate_references",
    "validate_set",
    "validate_set_or_raise",
]
