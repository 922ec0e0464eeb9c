"""Cross-record reference validation.

Every ``ForeignRecord`` position in a record must name an existing record of
the target contract. Lookups go through an immutable identifier index built
once per data set, optionally chained with an external lookup supplied by
the storage layer.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any, Protocol

from contractcore.ast import ArrayType, Contract, ForeignRecord, MapType, ObjectType, Type
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.contracts.registry import ContractRegistry
from contractcore.report import ErrorKind, FieldError, RecordReport, join_path
from contractcore.validate.matcher import (
    foreign_identifier,
    identifier_type,
    is_missing,
    primitive_matches,
)

DataSet = Mapping[str, Sequence[Any]]


class RecordLookup(Protocol):
    """Read-only record lookup, as provided by a storage layer."""

    def lookup_record(self, contract: str, identifier: Any) -> Mapping[str, Any] | None:
        ...


def is_identifier(value: Any) -> bool:
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


class RecordIndex:
    """Identifier index over a data set: contract name -> identifier -> record."""

    def __init__(self, data_set: DataSet, config: ValidationConfig = DEFAULT_CONFIG):
        index: dict[str, dict[Hashable, Mapping[str, Any]]] = {}
        for contract, records in data_set.items():
            if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
                continue
            id_field = config.id_field_for(contract)
            by_id: dict[Hashable, Mapping[str, Any]] = {}
            for record in records:
                if not isinstance(record, Mapping):
                    continue
                identifier = record.get(id_field)
                if is_identifier(identifier):
                    by_id.setdefault(identifier, record)
            index[contract] = by_id
        self._index = MappingProxyType({name: MappingProxyType(ids) for name, ids in index.items()})

    def lookup_record(self, contract: str, identifier: Any) -> Mapping[str, Any] | None:
        if not is_identifier(identifier):
            return None
        return self._index.get(contract, {}).get(identifier)

    def identifiers(self, contract: str) -> list[Any]:
        return list(self._index.get(contract, {}))

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._index.values())


class ChainedLookup:
    """First lookup that finds the record wins."""

    def __init__(self, *lookups: RecordLookup):
        self.lookups = lookups

    def lookup_record(self, contract: str, identifier: Any) -> Mapping[str, Any] | None:
        for lookup in self.lookups:
            record = lookup.lookup_record(contract, identifier)
            if record is not None:
                return record
        return None


def iter_foreign_references(
    type_: Type,
    value: Any,
    path: str,
    contracts: Mapping[str, Contract] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> Iterator[tuple[str, str, Any]]:
    """Yield ``(path, target_contract, identifier)`` for each reference in ``value``.

    Values that do not have the declared shape are skipped; the type matcher
    reports those.
    """
    if value is None:
        return

    if isinstance(type_, ForeignRecord):
        identifier = foreign_identifier(value, config.id_field_for(type_.contract))
        if is_missing(identifier):
            return
        id_type = identifier_type(type_.contract, contracts, config)
        if primitive_matches(id_type.value, identifier, config):
            yield path, type_.contract, identifier

    elif isinstance(type_, ObjectType):
        if isinstance(value, Mapping):
            for object_field in type_.fields:
                yield from iter_foreign_references(
                    object_field.type, value.get(object_field.name),
                    join_path(path, object_field.name), contracts, config,
                )

    elif isinstance(type_, MapType):
        if isinstance(value, Mapping):
            for key, item in value.items():
                yield from iter_foreign_references(type_.value, item, join_path(path, key), contracts, config)

    elif isinstance(type_, ArrayType):
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
            for i, item in enumerate(value):
                yield from iter_foreign_references(type_.element, item, f"{path}[{i}]", contracts, config)


def check_references(
    contract: Contract,
    record: Any,
    lookup: RecordLookup,
    contracts: Mapping[str, Contract] | None = None,
    config: ValidationConfig = DEFAULT_CONFIG,
) -> list[FieldError]:
    """Report a ``DanglingReference`` for each unresolvable reference in one record."""
    if not isinstance(record, Mapping):
        return []

    errors: list[FieldError] = []
    for prop in contract.properties:
        for path, target, identifier in iter_foreign_references(
            prop.type, record.get(prop.name), prop.name, contracts, config
        ):
            if lookup.lookup_record(target, identifier) is None:
                errors.append(FieldError(
                    kind=ErrorKind.DANGLING_REFERENCE,
                    path=path,
                    message=f"no {target} record with {config.id_field_for(target)} {identifier!r}",
                    target=target,
                    value=identifier,
                ))
    return errors


def validate_references(
    data_set: DataSet,
    schema: ContractRegistry | Sequence[Contract],
    config: ValidationConfig | None = None,
    lookup: RecordLookup | None = None,
) -> list[RecordReport]:
    """Check every foreign-record reference across the data set.

    Args:
        data_set: Records by contract name
        schema: Compiled registry or plain contracts
        config: Validation configuration
        lookup: External lookup consulted after the data set itself

    Returns:
        One report per record with dangling references
    """
    if not isinstance(schema, ContractRegistry):
        schema = ContractRegistry(schema, config=config)
    config = config or schema.config

    index: RecordLookup = RecordIndex(data_set, config)
    if lookup is not None:
        index = ChainedLookup(index, lookup)

    reports = []
    for name, records in data_set.items():
        if name not in schema or schema.is_malformed(name):
            continue
        if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
            continue
        contract = schema.get(name)
        id_field = config.id_field_for(name)
        for i, record in enumerate(records):
            errors = check_references(contract, record, index, schema.contracts, config)
            if errors:
                record_id = record.get(id_field) if isinstance(record, Mapping) else None
                reports.append(RecordReport(contract=name, index=i, record_id=record_id, errors=errors))
    return reports
