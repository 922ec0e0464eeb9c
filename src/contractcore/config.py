"""
Configuration for the validation engine.

Supports:
- Environment variable configuration
- YAML file configuration
- Runtime overrides via dataclass fields
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_ID_FIELD = "id"
DEFAULT_MAX_WORKERS = 1

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass
class ValidationConfig:
    """
    Configuration for one or more ``validate_set`` calls.

    Defaults:
    - strict: True (closed objects, undeclared record keys are errors)
    - id_field: "id" (identifier used to resolve foreign records)
    - max_workers: 1 (sequential validation)
    - verify_key_points: False (public keys are checked for shape only)
    """

    # Closed-object policy
    strict: bool = True

    # Identifier convention
    id_field: str = DEFAULT_ID_FIELD
    id_fields: dict[str, str] = field(default_factory=dict)  # per-contract override

    # Per-record fan-out
    max_workers: int = DEFAULT_MAX_WORKERS

    # Value conventions
    verify_key_points: bool = False  # opt-in secp256k1 point check
    accept_bytes_text: bool = True  # base64 text satisfies ``bytes``

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.id_field, str) or not self.id_field:
            raise ValueError(f"id_field must be a non-empty string, got {self.id_field!r}")

        for contract, id_field in self.id_fields.items():
            if not isinstance(id_field, str) or not id_field:
                raise ValueError(f"id_fields[{contract!r}] must be a non-empty string")

        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    def id_field_for(self, contract: str) -> str:
        """Identifier field name for records of ``contract``."""
        return self.id_fields.get(contract, self.id_field)

    @classmethod
    def from_env(cls) -> ValidationConfig:
        """
        Create configuration from environment variables.

        Environment variables:
            CONTRACTCORE_STRICT: Closed-object policy (true/false)
            CONTRACTCORE_ID_FIELD: Identifier field name
            CONTRACTCORE_MAX_WORKERS: Worker threads for per-record validation
            CONTRACTCORE_VERIFY_KEY_POINTS: Check public-key curve points (true/false)
            CONTRACTCORE_ACCEPT_BYTES_TEXT: Accept base64 text for bytes (true/false)
        """
        return cls(
            strict=_env_flag("CONTRACTCORE_STRICT", True),
            id_field=os.getenv("CONTRACTCORE_ID_FIELD", DEFAULT_ID_FIELD),
            max_workers=int(os.getenv("CONTRACTCORE_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))),
            verify_key_points=_env_flag("CONTRACTCORE_VERIFY_KEY_POINTS", False),
            accept_bytes_text=_env_flag("CONTRACTCORE_ACCEPT_BYTES_TEXT", True),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ValidationConfig:
        """Create configuration from dictionary (e.g., YAML)."""
        id_fields = data.get("id_fields") or {}
        if not isinstance(id_fields, dict):
            raise ValueError("id_fields must be a mapping of contract name to field name")

        return cls(
            strict=bool(data.get("strict", True)),
            id_field=data.get("id_field", DEFAULT_ID_FIELD),
            id_fields=dict(id_fields),
            max_workers=int(data.get("max_workers", DEFAULT_MAX_WORKERS)),
            verify_key_points=bool(data.get("verify_key_points", False)),
            accept_bytes_text=bool(data.get("accept_bytes_text", True)),
        )

    @classmethod
    def from_yaml(cls, path: Path | str) -> ValidationConfig:
        """Load configuration from a YAML file.

        The settings may sit at the top level or under a ``validation`` key.
        """
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        if isinstance(data.get("validation"), dict):
            data = data["validation"]
        return cls.from_dict(data)

    def with_overrides(self, **overrides: Any) -> ValidationConfig:
        """Return a copy with the given non-None fields replaced."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ValidationConfig.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "strict": self.strict,
            "id_field": self.id_field,
            "id_fields": dict(sorted(self.id_fields.items())),
            "max_workers": self.max_workers,
            "verify_key_points": self.verify_key_points,
            "accept_bytes_text": self.accept_bytes_text,
        }


DEFAULT_CONFIG = ValidationConfig()

LENIENT_CONFIG = ValidationConfig(strict=False)
