"""Contract schema AST.

The parser emits contracts as JSON nodes tagged by ``kind``. This module
models those nodes as frozen dataclasses and loads them from the parsed JSON
form. It contains no validation logic beyond what is needed to read a node.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SchemaLoadError(ValueError):
    """Raised when an AST node cannot be read at all."""

    def __init__(self, message: str, node_path: str = "<root>"):
        self.node_path = node_path
        super().__init__(f"{node_path}: {message}")


class PrimitiveKind(Enum):
    """Primitive value kinds."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    BYTES = "bytes"


class IndexDirection(Enum):
    """Sort direction of an index field."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class Primitive:
    value: PrimitiveKind

    def describe(self) -> str:
        return self.value.value


@dataclass(frozen=True)
class ObjectField:
    name: str
    type: Type
    required: bool = True


@dataclass(frozen=True)
class ObjectType:
    fields: tuple[ObjectField, ...] = ()

    def get_field(self, name: str) -> ObjectField | None:
        for object_field in self.fields:
            if object_field.name == name:
                return object_field
        return None

    def describe(self) -> str:
        return "object"


@dataclass(frozen=True)
class ArrayType:
    """Homogeneous array. Only primitive elements are well-formed."""

    element: Type

    def describe(self) -> str:
        return f"{self.element.describe()}[]"


@dataclass(frozen=True)
class MapType:
    key: Type
    value: Type

    def describe(self) -> str:
        return f"map<{self.key.describe()}, {self.value.describe()}>"


@dataclass(frozen=True)
class ForeignRecord:
    """Reference to a record of another contract."""

    contract: str

    def describe(self) -> str:
        return self.contract


@dataclass(frozen=True)
class PublicKey:
    def describe(self) -> str:
        return "PublicKey"


Type = Primitive | ObjectType | ArrayType | MapType | ForeignRecord | PublicKey

SCALAR_TYPES = (Primitive, ForeignRecord, PublicKey)


@dataclass(frozen=True)
class FieldReference:
    path: tuple[str, ...]

    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class Directive:
    name: str
    arguments: tuple[FieldReference, ...] = ()


@dataclass(frozen=True)
class Property:
    name: str
    type: Type
    required: bool = True
    directives: tuple[Directive, ...] = ()

    def has_directive(self, name: str) -> bool:
        return any(d.name == name for d in self.directives)


@dataclass(frozen=True)
class IndexField:
    field_path: tuple[str, ...]
    direction: IndexDirection | str = IndexDirection.ASC


@dataclass(frozen=True)
class Index:
    fields: tuple[IndexField, ...] = ()


@dataclass(frozen=True)
class Parameter:
    name: str
    type: Type
    required: bool = True
    directives: tuple[Directive, ...] = ()

    def has_directive(self, name: str) -> bool:
        return any(d.name == name for d in self.directives)


@dataclass(frozen=True)
class ReturnValue:
    name: str
    type: Type


MethodAttribute = Parameter | ReturnValue | Directive


@dataclass(frozen=True)
class Method:
    """Contract method. ``code`` is opaque and never evaluated."""

    name: str
    code: str = ""
    attributes: tuple[MethodAttribute, ...] = ()

    @property
    def parameters(self) -> list[Parameter]:
        return [a for a in self.attributes if isinstance(a, Parameter)]

    @property
    def return_values(self) -> list[ReturnValue]:
        return [a for a in self.attributes if isinstance(a, ReturnValue)]

    @property
    def directives(self) -> list[Directive]:
        return [a for a in self.attributes if isinstance(a, Directive)]


ContractAttribute = Property | Index | Method | Directive


@dataclass(frozen=True)
class Contract:
    """A named record-type schema."""

    name: str
    namespace: str = ""
    attributes: tuple[ContractAttribute, ...] = field(default_factory=tuple)

    @property
    def properties(self) -> list[Property]:
        return [a for a in self.attributes if isinstance(a, Property)]

    @property
    def indexes(self) -> list[Index]:
        return [a for a in self.attributes if isinstance(a, Index)]

    @property
    def methods(self) -> list[Method]:
        return [a for a in self.attributes if isinstance(a, Method)]

    @property
    def directives(self) -> list[Directive]:
        return [a for a in self.attributes if isinstance(a, Directive)]

    def get_property(self, name: str) -> Property | None:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def get_method(self, name: str) -> Method | None:
        for method in self.methods:
            if method.name == name:
                return method
        return None


# Loading from the parser's JSON form


def _require(node: Mapping[str, Any], key: str, node_path: str) -> Any:
    if key not in node:
        raise SchemaLoadError(f"missing '{key}'", node_path)
    return node[key]


def _expect_mapping(node: Any, node_path: str) -> Mapping[str, Any]:
    if not isinstance(node, Mapping):
        raise SchemaLoadError(f"expected an object node, got {type(node).__name__}", node_path)
    return node


def _expect_list(node: Any, node_path: str) -> Sequence[Any]:
    if isinstance(node, (str, bytes)) or not isinstance(node, Sequence):
        raise SchemaLoadError(f"expected a list, got {type(node).__name__}", node_path)
    return node


def _expect_str(node: Any, node_path: str) -> str:
    if not isinstance(node, str):
        raise SchemaLoadError(f"expected a string, got {type(node).__name__}", node_path)
    return node


def type_from_dict(node: Any, node_path: str = "<type>") -> Type:
    """Build a ``Type`` from a kind-tagged node."""
    node = _expect_mapping(node, node_path)
    kind = _require(node, "kind", node_path)

    if kind == "primitive":
        value = _require(node, "value", node_path)
        try:
            return Primitive(PrimitiveKind(value))
        except ValueError:
            raise SchemaLoadError(f"unknown primitive '{value}'", node_path)

    if kind == "object":
        fields = _expect_list(node.get("fields", []), f"{node_path}.fields")
        return ObjectType(fields=tuple(
            _object_field_from_dict(f, f"{node_path}.fields[{i}]") for i, f in enumerate(fields)
        ))

    if kind == "array":
        value = _require(node, "value", node_path)
        # The parser emits the element type wrapped in a single-item list.
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)):
            if len(value) != 1:
                raise SchemaLoadError(
                    f"array must declare exactly one element type, got {len(value)}", node_path
                )
            value = value[0]
        return ArrayType(element=type_from_dict(value, f"{node_path}.value"))

    if kind == "map":
        return MapType(
            key=type_from_dict(_require(node, "key", node_path), f"{node_path}.key"),
            value=type_from_dict(_require(node, "value", node_path), f"{node_path}.value"),
        )

    if kind == "foreignrecord":
        return ForeignRecord(contract=_expect_str(_require(node, "contract", node_path), node_path))

    if kind == "publickey":
        return PublicKey()

    raise SchemaLoadError(f"unknown type kind '{kind}'", node_path)


def _object_field_from_dict(node: Any, node_path: str) -> ObjectField:
    node = _expect_mapping(node, node_path)
    return ObjectField(
        name=_expect_str(_require(node, "name", node_path), node_path),
        type=type_from_dict(_require(node, "type", node_path), f"{node_path}.type"),
        required=bool(node.get("required", True)),
    )


def directive_from_dict(node: Any, node_path: str = "<directive>") -> Directive:
    node = _expect_mapping(node, node_path)
    arguments = []
    for i, arg in enumerate(_expect_list(node.get("arguments", []), f"{node_path}.arguments")):
        arg_path = f"{node_path}.arguments[{i}]"
        arg = _expect_mapping(arg, arg_path)
        if arg.get("kind", "fieldreference") != "fieldreference":
            raise SchemaLoadError(f"unsupported directive argument kind '{arg.get('kind')}'", arg_path)
        path = _expect_list(_require(arg, "path", arg_path), arg_path)
        arguments.append(FieldReference(path=tuple(_expect_str(p, arg_path) for p in path)))
    return Directive(
        name=_expect_str(_require(node, "name", node_path), node_path),
        arguments=tuple(arguments),
    )


def _directives(node: Mapping[str, Any], node_path: str) -> tuple[Directive, ...]:
    items = _expect_list(node.get("directives", []), f"{node_path}.directives")
    return tuple(directive_from_dict(d, f"{node_path}.directives[{i}]") for i, d in enumerate(items))


def _method_attribute_from_dict(node: Any, node_path: str) -> MethodAttribute:
    node = _expect_mapping(node, node_path)
    kind = _require(node, "kind", node_path)
    if kind == "parameter":
        return Parameter(
            name=_expect_str(_require(node, "name", node_path), node_path),
            type=type_from_dict(_require(node, "type", node_path), f"{node_path}.type"),
            required=bool(node.get("required", True)),
            directives=_directives(node, node_path),
        )
    if kind == "returnvalue":
        return ReturnValue(
            name=_expect_str(node.get("name", ""), node_path),
            type=type_from_dict(_require(node, "type", node_path), f"{node_path}.type"),
        )
    if kind == "directive":
        return directive_from_dict(node, node_path)
    raise SchemaLoadError(f"unknown method attribute kind '{kind}'", node_path)


def _contract_attribute_from_dict(node: Any, node_path: str) -> ContractAttribute:
    node = _expect_mapping(node, node_path)
    kind = _require(node, "kind", node_path)

    if kind == "property":
        return Property(
            name=_expect_str(_require(node, "name", node_path), node_path),
            type=type_from_dict(_require(node, "type", node_path), f"{node_path}.type"),
            required=bool(node.get("required", True)),
            directives=_directives(node, node_path),
        )

    if kind == "index":
        fields = []
        for i, item in enumerate(_expect_list(node.get("fields", []), f"{node_path}.fields")):
            item_path = f"{node_path}.fields[{i}]"
            item = _expect_mapping(item, item_path)
            path = _expect_list(_require(item, "fieldPath", item_path), item_path)
            direction = item.get("direction", "asc")
            try:
                direction = IndexDirection(direction)
            except ValueError:
                # Kept as raw text; schema checks report it as malformed input.
                pass
            fields.append(IndexField(
                field_path=tuple(_expect_str(p, item_path) for p in path),
                direction=direction,
            ))
        return Index(fields=tuple(fields))

    if kind == "method":
        attributes = _expect_list(node.get("attributes", []), f"{node_path}.attributes")
        return Method(
            name=_expect_str(_require(node, "name", node_path), node_path),
            code=node.get("code", "") or "",
            attributes=tuple(
                _method_attribute_from_dict(a, f"{node_path}.attributes[{i}]")
                for i, a in enumerate(attributes)
            ),
        )

    if kind == "directive":
        return directive_from_dict(node, node_path)

    raise SchemaLoadError(f"unknown contract attribute kind '{kind}'", node_path)


def contract_from_dict(node: Any, node_path: str = "<contract>") -> Contract:
    """Build a ``Contract`` from a ``kind: contract`` node."""
    node = _expect_mapping(node, node_path)
    name = _expect_str(_require(node, "name", node_path), node_path)
    node_path = f"{node_path}({name})"

    namespace = node.get("namespace", "")
    if isinstance(namespace, Mapping):
        namespace = namespace.get("value", "")

    attributes = _expect_list(node.get("attributes", []), f"{node_path}.attributes")
    return Contract(
        name=name,
        namespace=namespace or "",
        attributes=tuple(
            _contract_attribute_from_dict(a, f"{node_path}.attributes[{i}]")
            for i, a in enumerate(attributes)
        ),
    )


def load_schema(nodes: Iterable[Any]) -> list[Contract]:
    """Load every contract from a parsed AST root.

    Root nodes of other kinds are skipped; the parser may emit them alongside
    contracts.
    """
    if isinstance(nodes, Mapping):
        nodes = [nodes]
    contracts = []
    for i, node in enumerate(nodes):
        node = _expect_mapping(node, f"<root>[{i}]")
        if node.get("kind") != "contract":
            continue
        contracts.append(contract_from_dict(node, f"<root>[{i}]"))
    return contracts
