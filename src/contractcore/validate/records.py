"""Record validation against a single contract.

All field errors of a record are collected before returning.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from contractcore.ast import Contract, Parameter, Property
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.contracts.directives import OPTIONAL_DIRECTIVE
from contractcore.report import ErrorKind, FieldError, join_path, kind_of
from contractcore.validate.matcher import matches


def is_required(field: Property | Parameter) -> bool:
    """Required unless declared optional or annotated ``@optional``."""
    return field.required and not field.has_directive(OPTIONAL_DIRECTIVE)


def validate_record(
    contract: Contract,
    record: Any,
    contracts: Mapping[str, Contract] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[FieldError]:
    """Validate one data record against ``contract``.

    A ``None`` value counts as absent.

    Args:
        contract: Contract the record belongs to
        record: Mapping of field name to value
        contracts: Every contract of the schema by name
        config: Validation configuration

    Returns:
        List of field errors (empty if the record conforms)
    """
    if not isinstance(record, Mapping):
        return [FieldError(
            kind=ErrorKind.TYPE_MISMATCH,
            path="",
            message=f"record must be an object, got {kind_of(record)}",
            expected="object",
            actual=kind_of(record),
        )]

    errors: list[FieldError] = []
    for prop in contract.properties:
        value = record.get(prop.name)
        if value is None:
            if is_required(prop):
                errors.append(FieldError(
                    kind=ErrorKind.MISSING_REQUIRED_FIELD,
                    path=prop.name,
                    message=f"missing required field '{prop.name}'",
                    expected=prop.type.describe(),
                ))
            continue
        errors.extend(matches(prop.type, value, prop.name, contracts, config))

    if config.strict:
        declared = {p.name for p in contract.properties}
        for key in record:
            if key not in declared:
                errors.append(FieldError(
                    kind=ErrorKind.UNEXPECTED_FIELD,
                    path=str(key),
                    message=f"field '{key}' is not declared on {contract.name}",
                    actual=kind_of(record[key]),
                ))

    return errors


def validate_arguments(
    contract: Contract,
    method_name: str,
    args: Sequence[Any],
    contracts: Mapping[str, Contract] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[FieldError]:
    """Check positional call arguments against a method signature.

    The method body is never evaluated; only parameter shapes are checked.
    Error paths are ``<method>.<parameter>``.
    """
    method = contract.get_method(method_name)
    if method is None:
        return [FieldError(
            kind=ErrorKind.UNRESOLVED_PATH,
            path=method_name,
            message=f"contract '{contract.name}' has no method '{method_name}'",
        )]

    errors: list[FieldError] = []
    params = method.parameters
    for i, param in enumerate(params):
        path = join_path(method_name, param.name)
        value = args[i] if i < len(args) else None
        if value is None:
            if is_required(param):
                errors.append(FieldError(
                    kind=ErrorKind.MISSING_REQUIRED_FIELD,
                    path=path,
                    message=f"missing required argument '{param.name}'",
                    expected=param.type.describe(),
                ))
            continue
        errors.extend(matches(param.type, value, path, contracts, config))

    for i in range(len(params), len(args)):
        errors.append(FieldError(
            kind=ErrorKind.UNEXPECTED_FIELD,
            path=f"{method_name}[{i}]",
            message=f"{method_name} takes {len(params)} argument(s), got {len(args)}",
            actual=kind_of(args[i]),
        ))

    return errors
