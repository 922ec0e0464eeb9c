"""Set validation: the entry point.

``validate_set`` validates every record of every contract, then every
cross-record reference, and merges the results into one report. It is pure:
inputs are read, never modified, and nothing outlives the call except the
returned report.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from contractcore.ast import Contract
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.contracts.directives import DirectiveRegistry
from contractcore.contracts.registry import ContractRegistry
from contractcore.report import (
    ErrorKind,
    FieldError,
    RecordReport,
    ValidationError,
    ValidationReport,
)
from contractcore.validate.records import validate_record
from contractcore.validate.references import (
    ChainedLookup,
    DataSet,
    RecordIndex,
    RecordLookup,
    check_references,
)

logger = logging.getLogger(__name__)


def _identifier_convention(config: ValidationConfig) -> tuple[str, tuple[tuple[str, str], ...]]:
    return config.id_field, tuple(sorted(config.id_fields.items()))


def compile_schema(
    schema: ContractRegistry | Sequence[Contract],
    config: ValidationConfig | None = None,
    directives: DirectiveRegistry | None = None,
) -> ContractRegistry:
    """Compile contracts into a registry, or pass a compiled one through.

    A compiled registry keeps the identifier convention it was checked with;
    a ``config`` naming a different one only affects data checks, which is
    logged as a warning.
    """
    if isinstance(schema, ContractRegistry):
        if config is not None and _identifier_convention(config) != _identifier_convention(schema.config):
            logger.warning(
                "Registry was compiled with identifier fields %s but validation uses %s; "
                "schema checks keep the registry's convention",
                _identifier_convention(schema.config), _identifier_convention(config),
            )
        return schema
    return ContractRegistry(schema, directives=directives, config=config or DEFAULT_CONFIG)


def _record_tasks(
    registry: ContractRegistry,
    data_set: DataSet,
    schema_errors: dict[str, list[FieldError]],
) -> list[tuple[str, int, Any]]:
    tasks = []
    for name in sorted(data_set):
        records = data_set[name]
        if name not in registry:
            schema_errors.setdefault(name, []).append(FieldError(
                kind=ErrorKind.MALFORMED_INPUT,
                path="",
                message=f"data set names unknown contract '{name}'",
            ))
            continue
        if isinstance(records, (str, bytes)) or not isinstance(records, Sequence):
            schema_errors.setdefault(name, []).append(FieldError(
                kind=ErrorKind.MALFORMED_INPUT,
                path="",
                message=f"records of '{name}' must be a list",
            ))
            continue
        if registry.is_malformed(name):
            logger.debug("Skipping %d record(s) of malformed contract %s", len(records), name)
            continue
        tasks.extend((name, i, record) for i, record in enumerate(records))
    return tasks


def validate_set(
    schema: ContractRegistry | Sequence[Contract],
    data_set: DataSet,
    config: ValidationConfig | None = None,
    directives: DirectiveRegistry | None = None,
    lookup: RecordLookup | None = None,
) -> ValidationReport:
    """Validate a whole data set against a schema.

    Args:
        schema: Contracts, or a registry compiled from them
        data_set: Records by contract name
        config: Validation configuration (defaults to the registry's)
        directives: Known directives, when compiling ``schema`` here
        lookup: External record lookup consulted after the data set itself

    Returns:
        Report grouped by contract and record index; ``report.ok`` is True
        only when nothing at all was found
    """
    start = time.perf_counter()
    registry = compile_schema(schema, config, directives)
    config = config or registry.config

    schema_errors = registry.schema_errors()
    tasks = _record_tasks(registry, data_set, schema_errors)

    index: RecordLookup = RecordIndex(data_set, config)
    if lookup is not None:
        index = ChainedLookup(index, lookup)

    contracts = registry.contracts

    def check(task: tuple[str, int, Any]) -> RecordReport:
        name, i, record = task
        contract = contracts[name]
        errors = validate_record(contract, record, contracts, config)
        errors.extend(check_references(contract, record, index, contracts, config))
        record_id = record.get(config.id_field_for(name)) if isinstance(record, Mapping) else None
        return RecordReport(contract=name, index=i, record_id=record_id, errors=errors)

    if config.max_workers > 1 and len(tasks) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            record_reports = list(executor.map(check, tasks))
    else:
        record_reports = [check(task) for task in tasks]

    report = ValidationReport(schema_errors=schema_errors, records=record_reports)

    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "Validated %d record(s) across %d contract(s): %s (%d error(s), %.1f ms)",
        len(tasks), len(data_set), "ok" if report.ok else "invalid", report.error_count, elapsed_ms,
    )
    return report


def validate_set_or_raise(
    schema: ContractRegistry | Sequence[Contract],
    data_set: DataSet,
    config: ValidationConfig | None = None,
    directives: DirectiveRegistry | None = None,
    lookup: RecordLookup | None = None,
) -> ValidationReport:
    """Validate and raise ``ValidationError`` if anything was found."""
    report = validate_set(schema, data_set, config, directives, lookup)
    if not report.ok:
        raise ValidationError(f"Validation failed with {report.error_count} errors", report)
    return report


def is_valid(
    schema: ContractRegistry | Sequence[Contract],
    data_set: DataSet,
    config: ValidationConfig | None = None,
) -> bool:
    """Check if a data set is valid."""
    return validate_set(schema, data_set, config).ok
