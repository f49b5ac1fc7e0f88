"""Data model produced by a model build.

This module defines the closed set of records that make up a built
:class:`Model`:

- ``TypeId`` and the six schema node variants stored in the type table
- Field, parameter, body, response and signature descriptors
- Parameter aggregates (the buildable calling convention)
- ``OperationDescriptor`` and the ``Model`` aggregate itself

Records are frozen dataclasses holding tuples and read-only mappings, so a
built model cannot be changed and two builds compare structurally with
``==``. The builder works on its own copy of the document, so later changes
to the input do not reach a built model.
"""

import dataclasses
from collections.abc import Mapping
from enum import Enum
from functools import cached_property
from types import MappingProxyType
from typing import Any, Literal, TypeAlias

__all__ = [
    'TypeId',
    'PrimitiveKind',
    'PrimitiveNode',
    'ObjectNode',
    'ArrayNode',
    'EnumVariant',
    'EnumNode',
    'MapNode',
    'AliasNode',
    'SchemaNode',
    'TypeRef',
    'FieldDescriptor',
    'TypeDescriptor',
    'ParameterLocation',
    'ParameterDescriptor',
    'BodyDescriptor',
    'ResponseDescriptor',
    'ReturnDescriptor',
    'PathLiteral',
    'PathPlaceholder',
    'PathSegment',
    'ArgumentSource',
    'SignatureArgument',
    'AggregateConstructor',
    'AggregateMutator',
    'AggregateDescriptor',
    'OperationDescriptor',
    'ApiInfo',
    'Model',
]

record = dataclasses.dataclass(frozen=True, kw_only=True)


@dataclasses.dataclass(frozen=True, order=True)
class TypeId:
    """Canonical identity of one type in the type table.

    The key is the JSON pointer of the schema that defines the type, so two
    named schemas never share a TypeId and an inline schema is identified by
    the place it is used.
    """

    key: str

    def __str__(self) -> str:
        return self.key


class PrimitiveKind(str, Enum):
    STRING = 'string'
    INT32 = 'int32'
    INT64 = 'int64'
    FLOAT32 = 'float32'
    FLOAT64 = 'float64'
    BOOLEAN = 'boolean'
    ANY = 'any'


@record
class PrimitiveNode:
    kind: PrimitiveKind
    format: str | None = None
    constraints: Mapping[str, Any] = dataclasses.field(default_factory=dict)
    description: str | None = None
    default: Any = None
    nullable: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'constraints', MappingProxyType(dict(self.constraints)))


@record
class ArrayNode:
    items: 'TypeRef'
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    description: str | None = None
    default: Any = None
    nullable: bool = False


@record
class MapNode:
    """String-keyed map whose values all have one type."""

    values: 'TypeRef'
    description: str | None = None
    default: Any = None
    nullable: bool = False


@record
class AliasNode:
    """A named type that is another type under a new name."""

    target: 'TypeRef'
    description: str | None = None
    default: Any = None
    nullable: bool = False


@record
class EnumVariant:
    """One case of a closed enumeration.

    Attributes:
        value: The literal exactly as written in the document; this is the
            serialization value regardless of the case label.
        name: The sanitized case label.
    """

    value: str
    name: str

    @property
    def renamed(self) -> bool:
        return self.value != self.name


@record
class EnumNode:
    variants: tuple[EnumVariant, ...]
    base: PrimitiveKind = PrimitiveKind.STRING
    description: str | None = None
    default: Any = None
    nullable: bool = False

    @property
    def decode_table(self) -> dict[str, str]:
        """Map every literal back to the label of its case."""
        return {variant.value: variant.name for variant in self.variants}

    def variant_for(self, value: str) -> EnumVariant | None:
        for variant in self.variants:
            if variant.value == value:
                return variant
        return None


TypeRef: TypeAlias = TypeId | PrimitiveNode | ArrayNode


@record
class FieldDescriptor:
    """One property of an object type.

    Attributes:
        raw_name: The property name as written in the document.
        name: The sanitized field identifier.
        type: The field's type; optional fields are nullable-wrapped by the
            emitter, the type itself is never wrapped here.
        required: Whether the property is in its owner's required set.
        indirect: The reference closes a cycle and must be stored behind an
            owning indirection.
    """

    raw_name: str
    name: str
    type: TypeRef
    required: bool
    description: str | None = None
    default: Any = None
    nullable: bool = False
    read_only: bool = False
    write_only: bool = False
    indirect: bool = False

    @property
    def renamed(self) -> bool:
        return self.raw_name != self.name


@record
class ObjectNode:
    fields: tuple[FieldDescriptor, ...]
    additional_properties: TypeRef | None = None
    description: str | None = None
    default: Any = None
    nullable: bool = False

    def get_field(self, raw_name: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.raw_name == raw_name:
                return field
        return None

    @property
    def required_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(field for field in self.fields if field.required)

    @property
    def optional_fields(self) -> tuple[FieldDescriptor, ...]:
        return tuple(field for field in self.fields if not field.required)


SchemaNode: TypeAlias = (
    PrimitiveNode | ObjectNode | ArrayNode | EnumNode | MapNode | AliasNode
)


@record
class TypeDescriptor:
    type_id: TypeId
    raw_name: str
    name: str
    node: SchemaNode
    origin: Literal['named', 'synthesized']

    @property
    def description(self) -> str | None:
        return self.node.description


class ParameterLocation(str, Enum):
    PATH = 'path'
    QUERY = 'query'
    HEADER = 'header'
    COOKIE = 'cookie'


@record
class ParameterDescriptor:
    raw_name: str
    name: str
    location: ParameterLocation
    type: TypeRef
    required: bool
    default: Any = None
    description: str | None = None
    deprecated: bool = False

    @property
    def is_array(self) -> bool:
        """Array values are sent comma-joined."""
        return isinstance(self.type, ArrayNode)


@record
class BodyDescriptor:
    name: str
    type: TypeRef
    required: bool
    content_type: str
    description: str | None = None


@record
class ResponseDescriptor:
    """A declared response; ``type`` is None when it carries no content."""

    status_code: int
    content_type: str | None
    type: TypeRef | None
    description: str | None = None


@record
class ReturnDescriptor:
    """The return type of an operation's signature.

    ``type`` is None for an empty (unit) result.
    """

    status_code: int | None
    content_type: str | None
    type: TypeRef | None

    @property
    def is_empty(self) -> bool:
        return self.type is None

    @property
    def is_text(self) -> bool:
        return self.content_type is not None and self.content_type.startswith('text/')


@record
class PathLiteral:
    text: str


@record
class PathPlaceholder:
    parameter: ParameterDescriptor


PathSegment: TypeAlias = PathLiteral | PathPlaceholder


class ArgumentSource(str, Enum):
    PARAMETER = 'parameter'
    AGGREGATE = 'aggregate'
    BODY = 'body'


@record
class SignatureArgument:
    name: str
    type: TypeRef
    required: bool
    source: ArgumentSource


@record
class AggregateConstructor:
    name: str
    parameters: tuple[ParameterDescriptor, ...]


@record
class AggregateMutator:
    """Value-returning setter for one optional parameter."""

    name: str
    parameter: ParameterDescriptor


@record
class AggregateDescriptor:
    type_id: TypeId
    name: str
    fields: tuple[ParameterDescriptor, ...]
    constructor: AggregateConstructor
    mutators: tuple[AggregateMutator, ...]
    default_constructible: bool

    def get_mutator(self, raw_name: str) -> AggregateMutator | None:
        for mutator in self.mutators:
            if mutator.parameter.raw_name == raw_name:
                return mutator
        return None


@record
class OperationDescriptor:
    operation_id: str
    name: str
    http_method: str
    path: str
    pointer: str
    parameters: tuple[ParameterDescriptor, ...]
    body: BodyDescriptor | None
    responses: tuple[ResponseDescriptor, ...]
    returns: ReturnDescriptor
    path_plan: tuple[PathSegment, ...]
    signature: tuple[SignatureArgument, ...]
    aggregate: TypeId | None = None
    summary: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    deprecated: bool = False

    @property
    def path_parameters(self) -> tuple[ParameterDescriptor, ...]:
        return tuple(
            p for p in self.parameters if p.location == ParameterLocation.PATH
        )

    def get_parameter(
        self, raw_name: str, location: ParameterLocation | None = None
    ) -> ParameterDescriptor | None:
        for parameter in self.parameters:
            if parameter.raw_name == raw_name and (
                location is None or parameter.location == location
            ):
                return parameter
        return None


@record
class ApiInfo:
    title: str
    version: str
    client_name: str
    description: str | None = None
    contact_email: str | None = None
    license_name: str | None = None
    license_url: str | None = None
    terms_of_service: str | None = None


@record
class Model:
    """The closed result of one model build."""

    api: ApiInfo
    types: tuple[TypeDescriptor, ...]
    aggregates: tuple[AggregateDescriptor, ...]
    operations: tuple[OperationDescriptor, ...]
    cycles: tuple[tuple[TypeId, TypeId], ...] = ()

    @cached_property
    def _types_by_id(self) -> dict[TypeId, TypeDescriptor]:
        return {descriptor.type_id: descriptor for descriptor in self.types}

    @cached_property
    def _aggregates_by_id(self) -> dict[TypeId, AggregateDescriptor]:
        return {aggregate.type_id: aggregate for aggregate in self.aggregates}

    def get_type(self, type_id: TypeId) -> TypeDescriptor:
        return self._types_by_id[type_id]

    def type_by_name(self, name: str) -> TypeDescriptor | None:
        for descriptor in self.types:
            if descriptor.name == name:
                return descriptor
        return None

    def get_aggregate(self, type_id: TypeId) -> AggregateDescriptor:
        return self._aggregates_by_id[type_id]

    def get_operation(self, name: str) -> OperationDescriptor | None:
        """Look an operation up by its method name or raw operation id."""
        for operation in self.operations:
            if name in (operation.name, operation.operation_id):
                return operation
        return None

    def resolve_ref_name(self, ref: TypeRef | None) -> str:
        """Render a type reference as a readable type expression."""
        if ref is None:
            return '()'
        if isinstance(ref, TypeId):
            if ref in self._aggregates_by_id:
                return self._aggregates_by_id[ref].name
            return self.get_type(ref).name
        if isinstance(ref, ArrayNode):
            return f'[{self.resolve_ref_name(ref.items)}]'
        if ref.format:
            return f'{ref.kind.value}<{ref.format}>'
        return ref.kind.value

    def types_in_dependency_order(self) -> list[TypeDescriptor]:
        """Types sorted so that a type's dependencies come before it.

        Cycles are broken at the first type visited again.
        """
        result: list[TypeDescriptor] = []
        visited: set[TypeId] = set()
        visiting: set[TypeId] = set()

        def visit(type_id: TypeId) -> None:
            if type_id in visited or type_id in visiting:
                return
            visiting.add(type_id)
            descriptor = self._types_by_id[type_id]
            for dependency in type_dependencies(descriptor.node):
                if dependency in self._types_by_id:
                    visit(dependency)
            visiting.remove(type_id)
            visited.add(type_id)
            result.append(descriptor)

        for descriptor in self.types:
            visit(descriptor.type_id)

        return result

    def to_dict(self) -> dict[str, Any]:
        """Convert the model to plain JSON-compatible data."""
        return _plain(self)


def ref_dependencies(ref: TypeRef | None) -> list[TypeId]:
    """TypeIds a type reference points at, inline arrays included."""
    if ref is None or isinstance(ref, PrimitiveNode):
        return []
    if isinstance(ref, TypeId):
        return [ref]
    return ref_dependencies(ref.items)


def type_dependencies(node: SchemaNode) -> list[TypeId]:
    """TypeIds a schema node refers to, in declaration order."""
    match node:
        case ObjectNode():
            dependencies = []
            for field in node.fields:
                dependencies.extend(ref_dependencies(field.type))
            dependencies.extend(ref_dependencies(node.additional_properties))
            return dependencies
        case ArrayNode():
            return ref_dependencies(node.items)
        case MapNode():
            return ref_dependencies(node.values)
        case AliasNode():
            return ref_dependencies(node.target)
        case PrimitiveNode() | EnumNode():
            return []


_KIND_TAGS = {
    PrimitiveNode: 'primitive',
    ObjectNode: 'object',
    ArrayNode: 'array',
    EnumNode: 'enum',
    MapNode: 'map',
    AliasNode: 'alias',
}


def _plain(value: Any) -> Any:
    if isinstance(value, TypeId):
        return {'type_id': value.key}
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value):
        data = {}
        if type(value) in _KIND_TAGS:
            data['kind'] = _KIND_TAGS[type(value)]
        for field in dataclasses.fields(value):
            data[field.name] = _plain(getattr(value, field.name))
        return data
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, Mapping):
        return {str(key): _plain(item) for key, item in value.items()}
    return value
