"""Directive registry and structural directive checks.

Directives annotate contracts, properties, methods and parameters. Only their
structure is checked here: the name must be registered for the attachment
point, the argument count must fit, and every field-reference argument must
resolve against the owning contract. What a directive *does* (access control,
delegation) is enforced elsewhere.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum

from contractcore.ast import Contract, Directive, ForeignRecord, PublicKey, Type
from contractcore.report import ErrorKind, FieldError
from contractcore.validate.resolver import UnresolvedPath, resolve


class Attachment(Enum):
    """Where a directive is attached."""

    CONTRACT = "contract"
    PROPERTY = "property"
    METHOD = "method"
    PARAMETER = "parameter"


@dataclass(frozen=True)
class DirectiveSpec:
    """Registration of one directive name.

    Attributes:
        name: Directive name, without the ``@``
        arity: Allowed attachments mapped to the maximum number of
            arguments there (None means unbounded)
        argument_types: Type classes an argument may resolve to (empty
            means any)
        description: Human-readable summary
    """

    name: str
    arity: Mapping[Attachment, int | None]
    argument_types: tuple[type, ...] = ()
    description: str = ""

    @property
    def attachments(self) -> list[Attachment]:
        return [a for a in Attachment if a in self.arity]

    def allows(self, attachment: Attachment) -> bool:
        return attachment in self.arity

    def max_arguments(self, attachment: Attachment) -> int | None:
        return self.arity.get(attachment, 0)

    def accepts_type(self, type_: Type) -> bool:
        return not self.argument_types or isinstance(type_, self.argument_types)


# Directive names used by the contract language.
AUTH_SUBJECT_TYPES = (PublicKey, ForeignRecord)

DEFAULT_DIRECTIVES: tuple[DirectiveSpec, ...] = (
    DirectiveSpec(
        name="public",
        arity={Attachment.CONTRACT: 0},
        description="Anyone may read records and call methods",
    ),
    DirectiveSpec(
        name="private",
        arity={Attachment.CONTRACT: 0},
        description="Only authorised keys may read records",
    ),
    DirectiveSpec(
        name="read",
        arity={Attachment.CONTRACT: None, Attachment.PROPERTY: 0},
        argument_types=AUTH_SUBJECT_TYPES,
        description="Grants read access to the referenced keys, or to the annotated field's key",
    ),
    DirectiveSpec(
        name="call",
        arity={Attachment.CONTRACT: None, Attachment.METHOD: None},
        argument_types=AUTH_SUBJECT_TYPES,
        description="Restricts method calls to the referenced keys (any caller when bare)",
    ),
    DirectiveSpec(
        name="delegate",
        arity={Attachment.PROPERTY: 0},
        description="Authorisation through this field is delegated to the referenced record",
    ),
    DirectiveSpec(
        name="optional",
        arity={Attachment.PROPERTY: 0, Attachment.PARAMETER: 0},
        description="Field or parameter may be omitted",
    ),
)

OPTIONAL_DIRECTIVE = "optional"


@dataclass
class DirectiveRegistry:
    """Directive names known for each attachment point.

    Instances are built per validation setup; there is no process-wide
    registry.
    """

    specs: dict[str, DirectiveSpec] = field(default_factory=dict)

    @classmethod
    def default(cls) -> DirectiveRegistry:
        return cls.from_specs(DEFAULT_DIRECTIVES)

    @classmethod
    def from_specs(cls, specs: Iterable[DirectiveSpec]) -> DirectiveRegistry:
        registry = cls()
        for spec in specs:
            registry.register(spec)
        return registry

    def register(self, spec: DirectiveSpec) -> None:
        """Register (or replace) a directive."""
        if not spec.arity:
            raise ValueError(f"Directive '{spec.name}' must allow at least one attachment")
        self.specs[spec.name] = spec

    def get(self, name: str) -> DirectiveSpec:
        if name not in self.specs:
            raise ValueError(f"Unknown directive: {name}")
        return self.specs[name]

    def lookup(self, name: str, attachment: Attachment) -> DirectiveSpec | None:
        spec = self.specs.get(name)
        if spec is None or not spec.allows(attachment):
            return None
        return spec

    def names(self, attachment: Attachment | None = None) -> list[str]:
        return sorted(
            name for name, spec in self.specs.items()
            if attachment is None or spec.allows(attachment)
        )


def check_directive(
    directive: Directive,
    owner: Contract,
    attachment: Attachment,
    registry: DirectiveRegistry | None = None,
    location: str = "",
) -> list[FieldError]:
    """Check one directive's structural legality.

    Args:
        directive: Directive to check
        owner: Contract the directive's field references resolve against
        attachment: Where the directive is attached
        registry: Known directives (defaults to the language's built-ins)
        location: Path of the annotated element, for error reports

    Returns:
        List of errors (empty if the directive is legal)
    """
    if registry is None:
        registry = DirectiveRegistry.default()

    where = location or owner.name
    spec = registry.lookup(directive.name, attachment)
    if spec is None:
        allowed = ", ".join(f"@{n}" for n in registry.names(attachment)) or "none"
        return [FieldError(
            kind=ErrorKind.UNKNOWN_DIRECTIVE,
            path=location,
            message=f"@{directive.name} is not a known {attachment.value} directive on {where} (allowed: {allowed})",
            actual=directive.name,
        )]

    errors: list[FieldError] = []
    limit = spec.max_arguments(attachment)
    if limit is not None and len(directive.arguments) > limit:
        errors.append(FieldError(
            kind=ErrorKind.INVALID_DIRECTIVE_ARGUMENT,
            path=location,
            message=(
                f"@{directive.name} on a {attachment.value} takes at most {limit} "
                f"argument(s), got {len(directive.arguments)}"
            ),
        ))

    for argument in directive.arguments:
        try:
            resolved = resolve(owner, argument.path)
        except UnresolvedPath as e:
            errors.append(FieldError(
                kind=ErrorKind.INVALID_DIRECTIVE_ARGUMENT,
                path=argument.dotted(),
                message=f"@{directive.name} on {where}: {e}",
            ))
            continue
        if not spec.accepts_type(resolved):
            expected = " or ".join(t.__name__ for t in spec.argument_types)
            errors.append(FieldError(
                kind=ErrorKind.INVALID_DIRECTIVE_ARGUMENT,
                path=argument.dotted(),
                message=f"@{directive.name} on {where}: '{argument.dotted()}' is {resolved.describe()}",
                expected=expected,
                actual=resolved.describe(),
            ))

    return errors
