"""Contract registry for one schema.

A ``ContractRegistry`` is the compiled, immutable handle for a schema: it
indexes contracts by name, runs the schema checks once, and remembers which
contracts are too malformed for data validation. Build one per schema; there
is no process-wide instance.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from contractcore.ast import Contract
from contractcore.config import DEFAULT_CONFIG, ValidationConfig
from contractcore.contracts.directives import DirectiveRegistry
from contractcore.report import ErrorKind, FieldError
from contractcore.validate.schema_check import check_contract, is_fatal

logger = logging.getLogger(__name__)


class ContractRegistry:
    """Compiled schema: contracts by name plus their schema errors."""

    def __init__(
        self,
        contracts: Iterable[Contract],
        directives: DirectiveRegistry | None = None,
        config: ValidationConfig | None = None,
    ):
        self.config = config or DEFAULT_CONFIG
        self.directives = directives or DirectiveRegistry.default()

        by_name: dict[str, Contract] = {}
        errors: dict[str, list[FieldError]] = {}

        for contract in contracts:
            if contract.name in by_name:
                errors.setdefault(contract.name, []).append(FieldError(
                    kind=ErrorKind.MALFORMED_INPUT,
                    path="",
                    message=f"contract '{contract.name}' is declared more than once",
                ))
                continue
            by_name[contract.name] = contract

        for name, contract in by_name.items():
            contract_errors = check_contract(contract, by_name, self.directives, self.config)
            if contract_errors:
                errors.setdefault(name, []).extend(contract_errors)

        self._contracts: Mapping[str, Contract] = MappingProxyType(by_name)
        self._errors: Mapping[str, tuple[FieldError, ...]] = MappingProxyType(
            {name: tuple(errs) for name, errs in errors.items()}
        )
        self._malformed = frozenset(
            name for name, errs in errors.items() if any(is_fatal(e) for e in errs)
        )

        for name in sorted(self._malformed):
            logger.warning("Contract %s has a malformed schema; its records will not be validated", name)
        logger.debug("Compiled %d contract(s)", len(by_name))

    @property
    def contracts(self) -> Mapping[str, Contract]:
        return self._contracts

    def __contains__(self, name: object) -> bool:
        return name in self._contracts

    def get(self, name: str) -> Contract:
        """Get a contract by name."""
        if name not in self._contracts:
            raise ValueError(f"Unknown contract: {name}")
        return self._contracts[name]

    def list_contracts(self) -> list[str]:
        """List all contract names."""
        return sorted(self._contracts.keys())

    def schema_errors(self, name: str | None = None) -> dict[str, list[FieldError]]:
        """Schema errors by contract name, optionally for a single contract."""
        if name is not None:
            return {name: list(self._errors.get(name, ()))} if name in self._errors else {}
        return {n: list(errs) for n, errs in sorted(self._errors.items())}

    def is_malformed(self, name: str) -> bool:
        return name in self._malformed

    @property
    def ok(self) -> bool:
        return not self._errors
