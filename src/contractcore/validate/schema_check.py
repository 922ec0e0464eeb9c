"""Schema well-formedness checks.

A contract whose AST is internally inconsistent yields ``MalformedInput``
errors; data validation is skipped for such a contract because nothing
meaningful can be said about its records. Directive problems are reported
alongside but do not block data validation.
"""

from __future__ import annotations

from collections.abc import Mapping

from contractcore.ast import (
    SCALAR_TYPES,
    ArrayType,
    Contract,
    ForeignRecord,
    IndexDirection,
    MapType,
    ObjectType,
    Primitive,
    PrimitiveKind,
    PublicKey,
    Type,
)
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.contracts.directives import Attachment, DirectiveRegistry, check_directive
from contractcore.report import ErrorKind, FieldError, join_path
from contractcore.validate.resolver import UnresolvedPath, resolve

IDENTIFIER_KINDS = (PrimitiveKind.STRING, PrimitiveKind.NUMBER)


def _malformed(path: str, message: str) -> FieldError:
    return FieldError(kind=ErrorKind.MALFORMED_INPUT, path=path, message=message)


def is_fatal(error: FieldError) -> bool:
    """True for errors that make a contract unusable for data validation."""
    return error.kind == ErrorKind.MALFORMED_INPUT


def check_type(
    type_: Type,
    path: str,
    contracts: Mapping[str, Contract],
) -> list[FieldError]:
    """Check that a type node is well-formed and its references resolve."""
    errors: list[FieldError] = []
    _check_type(type_, path, contracts, errors)
    return errors


def _check_foreign(type_: ForeignRecord, path: str, contracts: Mapping[str, Contract], errors: list[FieldError]) -> None:
    if type_.contract not in contracts:
        errors.append(_malformed(path, f"references unknown contract '{type_.contract}'"))


def _check_type(type_: Type, path: str, contracts: Mapping[str, Contract], errors: list[FieldError]) -> None:
    if isinstance(type_, (Primitive, PublicKey)):
        return

    if isinstance(type_, ForeignRecord):
        _check_foreign(type_, path, contracts, errors)
        return

    if isinstance(type_, ObjectType):
        seen: set[str] = set()
        for object_field in type_.fields:
            field_path = join_path(path, object_field.name)
            if object_field.name in seen:
                errors.append(_malformed(field_path, f"duplicate field '{object_field.name}'"))
            seen.add(object_field.name)
            _check_type(object_field.type, field_path, contracts, errors)
        return

    if isinstance(type_, ArrayType):
        if not isinstance(type_.element, Primitive):
            errors.append(_malformed(
                path, f"array elements must be primitive, got {type_.element.describe()}"
            ))
        return

    if isinstance(type_, MapType):
        if not isinstance(type_.key, Primitive):
            errors.append(_malformed(path, f"map keys must be primitive, got {type_.key.describe()}"))
        if isinstance(type_.value, ForeignRecord):
            _check_foreign(type_.value, path, contracts, errors)
        elif not isinstance(type_.value, Primitive):
            errors.append(_malformed(
                path, f"map values must be primitive or a record reference, got {type_.value.describe()}"
            ))
        return

    errors.append(_malformed(path, f"unsupported type node {type(type_).__name__}"))


def _check_unique(names: list[str], what: str, prefix: str, errors: list[FieldError]) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            errors.append(_malformed(join_path(prefix, name), f"duplicate {what} '{name}'"))
        seen.add(name)


def check_contract(
    contract: Contract,
    contracts: Mapping[str, Contract],
    registry: DirectiveRegistry | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[FieldError]:
    """Check one contract's schema.

    Args:
        contract: Contract to check
        contracts: Every contract of the schema by name (for references)
        registry: Known directives
        config: Validation configuration (identifier convention)

    Returns:
        List of ``MalformedInput``, ``UnknownDirective`` and
        ``InvalidDirectiveArgument`` errors
    """
    if registry is None:
        registry = DirectiveRegistry.default()
    errors: list[FieldError] = []

    # Properties
    _check_unique([p.name for p in contract.properties], "property", "", errors)
    for prop in contract.properties:
        _check_type(prop.type, prop.name, contracts, errors)
        for directive in prop.directives:
            errors.extend(check_directive(directive, contract, Attachment.PROPERTY, registry, prop.name))

    id_prop = contract.get_property(config.id_field_for(contract.name))
    if id_prop is not None:
        if not (isinstance(id_prop.type, Primitive) and id_prop.type.value in IDENTIFIER_KINDS):
            errors.append(_malformed(
                id_prop.name,
                f"identifier field must be string or number, got {id_prop.type.describe()}",
            ))

    # Contract-level directives
    for directive in contract.directives:
        errors.extend(check_directive(directive, contract, Attachment.CONTRACT, registry))

    # Indexes
    for index in contract.indexes:
        for index_field in index.fields:
            dotted = ".".join(index_field.field_path)
            try:
                resolved = resolve(contract, index_field.field_path)
            except UnresolvedPath as e:
                errors.append(_malformed(dotted, f"index field {e}"))
                continue
            if not isinstance(resolved, SCALAR_TYPES):
                errors.append(_malformed(dotted, f"index field must be scalar, got {resolved.describe()}"))
            if not isinstance(index_field.direction, IndexDirection):
                errors.append(_malformed(
                    dotted, f"index direction must be 'asc' or 'desc', got {index_field.direction!r}"
                ))

    # Methods
    _check_unique([m.name for m in contract.methods], "method", "", errors)
    for method in contract.methods:
        _check_unique([p.name for p in method.parameters], "parameter", method.name, errors)
        for param in method.parameters:
            param_path = join_path(method.name, param.name)
            _check_type(param.type, param_path, contracts, errors)
            for directive in param.directives:
                errors.extend(check_directive(directive, contract, Attachment.PARAMETER, registry, param_path))
        for return_value in method.return_values:
            _check_type(return_value.type, join_path(method.name, return_value.name or "<return>"), contracts, errors)
        for directive in method.directives:
            errors.extend(check_directive(directive, contract, Attachment.METHOD, registry, method.name))

    return errors
