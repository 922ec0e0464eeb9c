"""Field resolver: dotted field paths against contract shapes."""

from __future__ import annotations

from collections.abc import Sequence

from contractcore.ast import Contract, ObjectType, Type
from contractcore.report import ErrorKind, FieldError


class UnresolvedPath(LookupError):
    """A field path segment that names no field."""

    def __init__(self, path: Sequence[str], at_segment: int, reason: str | None = None):
        self.path = tuple(path)
        self.at_segment = at_segment
        if reason is None:
            if not self.path:
                reason = "empty field path"
            else:
                reason = f"no field '{self.path[at_segment]}'"
        self.reason = reason
        super().__init__(f"cannot resolve '{self.dotted}': {reason}")

    @property
    def dotted(self) -> str:
        return ".".join(self.path)

    def to_error(self, kind: ErrorKind = ErrorKind.UNRESOLVED_PATH) -> FieldError:
        return FieldError(kind=kind, path=self.dotted, message=str(self))


def resolve(contract: Contract, path: Sequence[str]) -> Type:
    """Resolve ``path`` to the type of the field it names.

    The first segment names a property of ``contract``; each further segment
    names a field of the object type reached so far.

    Raises:
        UnresolvedPath: On the first segment that does not resolve
    """
    if not path:
        raise UnresolvedPath(path, 0)

    prop = contract.get_property(path[0])
    if prop is None:
        raise UnresolvedPath(path, 0, f"contract '{contract.name}' has no property '{path[0]}'")

    current: Type = prop.type
    for i, segment in enumerate(path[1:], start=1):
        if not isinstance(current, ObjectType):
            raise UnresolvedPath(
                path, i, f"'{'.'.join(path[:i])}' is {current.describe()}, not an object"
            )
        object_field = current.get_field(segment)
        if object_field is None:
            raise UnresolvedPath(path, i)
        current = object_field.type

    return current


def try_resolve(contract: Contract, path: Sequence[str]) -> Type | None:
    """Like ``resolve`` but returns None instead of raising."""
    try:
        return resolve(contract, path)
    except UnresolvedPath:
        return None
