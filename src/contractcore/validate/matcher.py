"""Type matcher: does one runtime value conform to one ``Type`` node?

Pure and registry-free. Foreign records are checked for identifier shape
only; whether the referenced record exists is decided by
``contractcore.validate.references``.
"""

from __future__ import annotations

import base64
import binascii
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from contractcore.ast import (
    ArrayType,
    Contract,
    ForeignRecord,
    MapType,
    ObjectType,
    Primitive,
    PrimitiveKind,
    PublicKey,
    Type,
)
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.publickey import public_key_problem
from contractcore.report import ErrorKind, FieldError, join_path, kind_of

_MISSING = object()

# Number literal grammar of JSON (RFC 8259).
_JSON_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")


def is_bytes_text(value: str) -> bool:
    """Check that text is canonical (padded, standard alphabet) base64."""
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def primitive_matches(kind: PrimitiveKind, value: Any, config: ValidationConfig = DEFAULT_CONFIG) -> bool:
    """Exact-kind check for a primitive value; no coercion."""
    if kind == PrimitiveKind.STRING:
        return isinstance(value, str)
    if kind == PrimitiveKind.NUMBER:
        return _is_number(value)
    if kind == PrimitiveKind.BOOLEAN:
        return isinstance(value, bool)
    if kind == PrimitiveKind.BYTES:
        if isinstance(value, (bytes, bytearray, memoryview)):
            return True
        return config.accept_bytes_text and isinstance(value, str) and is_bytes_text(value)
    raise TypeError(f"Unsupported primitive kind: {kind!r}")


def _key_matches(kind: PrimitiveKind, key: Any, config: ValidationConfig) -> bool:
    """Map keys arrive as text from JSON, so text forms of scalars are accepted."""
    if primitive_matches(kind, key, config):
        return True
    if not isinstance(key, str):
        return False
    if kind == PrimitiveKind.NUMBER:
        return _JSON_NUMBER_RE.fullmatch(key) is not None
    if kind == PrimitiveKind.BOOLEAN:
        return key in ("true", "false")
    return False


def identifier_type(target: str, contracts: Mapping[str, Contract] | None, config: ValidationConfig) -> Type:
    """Type of the identifier field of ``target``; string when undeclared."""
    if contracts and target in contracts:
        prop = contracts[target].get_property(config.id_field_for(target))
        if prop is not None and isinstance(prop.type, Primitive):
            return prop.type
    return Primitive(PrimitiveKind.STRING)


def foreign_identifier(value: Any, id_field: str) -> Any:
    """Extract the identifier of a foreign-record value.

    A reference is either the bare identifier or a mapping holding it under
    the identifier field (``{"id": "u1"}``). Returns ``_MISSING`` when the
    value has neither shape.
    """
    if isinstance(value, Mapping):
        if set(value) != {id_field}:
            return _MISSING
        return value[id_field]
    return value


def is_missing(value: Any) -> bool:
    return value is _MISSING


def matches(
    type_: Type,
    value: Any,
    path: str = "",
    contracts: Mapping[str, Contract] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[FieldError]:
    """Match ``value`` against ``type_``.

    Args:
        type_: Declared type
        value: Runtime value
        path: Dotted path of the value, used in error reports
        contracts: Contracts by name, used to find identifier kinds of
            foreign-record targets
        config: Validation configuration

    Returns:
        List of errors (empty if the value conforms)
    """
    errors: list[FieldError] = []
    _match(type_, value, path, contracts, config, errors)
    return errors


def _mismatch(path: str, expected: str, value: Any, detail: str | None = None) -> FieldError:
    actual = kind_of(value)
    message = f"expected {expected}, got {actual}"
    if detail:
        message = f"{message} ({detail})"
    return FieldError(
        kind=ErrorKind.TYPE_MISMATCH,
        path=path,
        message=message,
        expected=expected,
        actual=actual,
    )


def _match(
    type_: Type,
    value: Any,
    path: str,
    contracts: Mapping[str, Contract] | None,
    config: ValidationConfig,
    errors: list[FieldError],
) -> None:
    if isinstance(type_, Primitive):
        if not primitive_matches(type_.value, value, config):
            errors.append(_mismatch(path, type_.describe(), value))

    elif isinstance(type_, ObjectType):
        _match_object(type_, value, path, contracts, config, errors)

    elif isinstance(type_, ArrayType):
        if isinstance(value, (str, bytes, bytearray)) or not isinstance(value, Sequence):
            errors.append(_mismatch(path, type_.describe(), value))
            return
        for i, item in enumerate(value):
            _match(type_.element, item, f"{path}[{i}]", contracts, config, errors)

    elif isinstance(type_, MapType):
        _match_map(type_, value, path, contracts, config, errors)

    elif isinstance(type_, ForeignRecord):
        id_type = identifier_type(type_.contract, contracts, config)
        identifier = foreign_identifier(value, config.id_field_for(type_.contract))
        if is_missing(identifier) or not primitive_matches(id_type.value, identifier, config):
            errors.append(_mismatch(
                path,
                f"{type_.describe()} reference",
                value,
                f"identifier must be a {id_type.describe()}",
            ))

    elif isinstance(type_, PublicKey):
        problem = public_key_problem(value, verify_point=config.verify_key_points)
        if problem is not None:
            errors.append(_mismatch(path, type_.describe(), value, problem))

    else:
        raise TypeError(f"Unsupported type node at {path or '<root>'}: {type_!r}")


def _match_object(
    type_: ObjectType,
    value: Any,
    path: str,
    contracts: Mapping[str, Contract] | None,
    config: ValidationConfig,
    errors: list[FieldError],
) -> None:
    if not isinstance(value, Mapping):
        errors.append(_mismatch(path, "object", value))
        return

    for object_field in type_.fields:
        field_path = join_path(path, object_field.name)
        field_value = value.get(object_field.name)
        if field_value is None:
            if object_field.required:
                errors.append(FieldError(
                    kind=ErrorKind.MISSING_REQUIRED_FIELD,
                    path=field_path,
                    message=f"missing required field '{object_field.name}'",
                    expected=object_field.type.describe(),
                ))
            continue
        _match(object_field.type, field_value, field_path, contracts, config, errors)

    if config.strict:
        declared = {f.name for f in type_.fields}
        for key in value:
            if key not in declared:
                errors.append(FieldError(
                    kind=ErrorKind.UNEXPECTED_FIELD,
                    path=join_path(path, key),
                    message=f"field '{key}' is not declared",
                    actual=kind_of(value[key]),
                ))


def _match_map(
    type_: MapType,
    value: Any,
    path: str,
    contracts: Mapping[str, Contract] | None,
    config: ValidationConfig,
    errors: list[FieldError],
) -> None:
    if not isinstance(value, Mapping):
        errors.append(_mismatch(path, type_.describe(), value))
        return

    for key, item in value.items():
        item_path = join_path(path, key)
        if isinstance(type_.key, Primitive) and not _key_matches(type_.key.value, key, config):
            errors.append(_mismatch(item_path, f"{type_.key.describe()} key", key))
        _match(type_.value, item, item_path, contracts, config, errors)
