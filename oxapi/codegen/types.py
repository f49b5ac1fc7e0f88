"""Type table construction.

This module provides:
- TypeTableBuilder, which turns the schemas of a document into the type table
  of a model (one TypeDescriptor per named or synthesized type)
- build_types, a shortcut that builds the table for the named schemas only

Named schemas get their TypeId and name before any schema body is processed,
so self- and mutually-referential schemas link to each other by TypeId. Bodies
are then built depth first; a reference to a type whose body is still being
built is a cycle, which is recorded and marked on the referencing field.
"""

import json
import logging
from typing import Any

from oxapi.codegen.model import (
    AliasNode,
    ArrayNode,
    EnumNode,
    EnumVariant,
    FieldDescriptor,
    MapNode,
    ObjectNode,
    PrimitiveKind,
    PrimitiveNode,
    SchemaNode,
    TypeId,
    TypeRef,
)
from oxapi.codegen.naming import NamingContext
from oxapi.codegen.schema import (
    SchemaResolver,
    canonical_pointer,
    join_pointer,
    split_pointer,
)
from oxapi.codegen.type_registry import TypeRegistry
from oxapi.config import Namespace, NamingRules
from oxapi.exceptions import MalformedSchemaError

__all__ = [
    'TypeTableBuilder',
    'build_types',
    'STRING_FORMATS',
    'CONSTRAINT_KEYWORDS',
]

logger = logging.getLogger(__name__)

SCHEMAS_POINTER = '#/components/schemas'

STRING_FORMATS = frozenset(
    {
        'date',
        'date-time',
        'time',
        'uri',
        'email',
        'uuid',
        'binary',
        'byte',
        'password',
        'hostname',
        'ipv4',
        'ipv6',
    }
)

CONSTRAINT_KEYWORDS = (
    'minimum',
    'maximum',
    'exclusiveMinimum',
    'exclusiveMaximum',
    'multipleOf',
    'minLength',
    'maxLength',
    'pattern',
)

_PRIMITIVE_TYPES = ('string', 'integer', 'number', 'boolean')


class TypeTableBuilder:
    """Builds the type table of one document.

    Args:
        resolver: Resolver over the document being built.
        naming: The build's naming context; type names are assigned in its
            global type scope.
        registry: Arena receiving the types. A new one is created if omitted.

    Example:
        >>> builder = TypeTableBuilder(SchemaResolver(document), NamingContext(rules))
        >>> builder.register_named_schemas()
        >>> builder.build()
        >>> [entry.name for entry in builder.registry]
        ['Pet', 'PetStatus']
    """

    def __init__(
        self,
        resolver: SchemaResolver,
        naming: NamingContext,
        registry: TypeRegistry | None = None,
    ):
        self.resolver = resolver
        self.naming = naming
        self.registry = registry if registry is not None else TypeRegistry()
        self._schemas: dict[TypeId, Any] = {}
        self._aliases_in_progress: set[str] = set()

    # -------------------------------------------------------------------------
    # Named schemas
    # -------------------------------------------------------------------------

    def register_named_schemas(self) -> list[TypeId]:
        """Allocate a TypeId and a name for every schema in components/schemas."""
        components = self.resolver.document.get('components') or {}
        schemas = components.get('schemas') or {}
        if not isinstance(schemas, dict):
            raise MalformedSchemaError(SCHEMAS_POINTER, 'schemas is not a mapping')

        type_ids = []
        for raw_name, schema in schemas.items():
            type_id = TypeId(join_pointer(SCHEMAS_POINTER, raw_name))
            name = self.naming.sanitize(raw_name, Namespace.TYPE)
            self.registry.allocate(type_id, raw_name, name, 'named')
            self._schemas[type_id] = schema
            type_ids.append(type_id)
        return type_ids

    def build(self) -> None:
        """Build the body of every allocated named schema."""
        for type_id in list(self._schemas):
            self._ensure(type_id)

    @property
    def cycles(self) -> tuple[tuple[TypeId, TypeId], ...]:
        return tuple(
            (TypeId(source), TypeId(target)) for source, target in self.resolver.cycles
        )

    # -------------------------------------------------------------------------
    # Type references
    # -------------------------------------------------------------------------

    def type_ref(self, schema: Any, location: str, owner: str, hint: str) -> TypeRef:
        """Type reference for a schema used at a location.

        References become the TypeId of their target. Primitives and arrays
        whose items are inline-representable are returned inline. Anything
        else is synthesized as a new type named after its owner and the hint.

        Args:
            schema: The schema as written at the usage site.
            location: Pointer of the schema.
            owner: Name of the owning type or operation.
            hint: What the schema is within its owner (a property name, ``Item``).
        """
        if not isinstance(schema, dict):
            raise MalformedSchemaError(location, 'schema is not a mapping')

        if '$ref' in schema:
            return self._reference(schema['$ref'], location)

        member = self._single_all_of_reference(schema)
        if member is not None:
            return self._reference(member, join_pointer(location, 'allOf', 0))

        kind = self._classify(schema, location)
        if kind == 'primitive':
            return self._primitive(schema, location)
        if kind == 'array' and self._is_inline(self._items(schema, location), location):
            return self._array(schema, location, owner, hint)

        return self.synthesize(schema, location, f'{owner}.{hint}')

    def synthesize(self, schema: Any, location: str, raw_name: str) -> TypeId:
        """Allocate and build a type for an unnamed schema.

        The TypeId is the schema's own location, so a schema reached twice
        through the same location is only built once.
        """
        type_id = TypeId(location)
        if type_id not in self.registry:
            name = self.naming.sanitize(raw_name, Namespace.TYPE)
            self.registry.allocate(type_id, raw_name, name, 'synthesized')
            self._schemas[type_id] = schema
        self._ensure(type_id)
        return type_id

    def _reference(self, ref: Any, location: str) -> TypeRef:
        if not isinstance(ref, str):
            raise MalformedSchemaError(location, '$ref is not a string')

        type_id = TypeId(canonical_pointer(ref))
        if type_id in self.registry:
            self._ensure(type_id)
            return type_id

        target, pointer = self.resolver.follow(
            self.resolver.resolve_pointer(type_id.key), type_id.key
        )
        type_id = TypeId(pointer)
        if type_id in self.registry:
            self._ensure(type_id)
            return type_id

        if not isinstance(target, dict):
            raise MalformedSchemaError(pointer, 'schema is not a mapping')

        tokens = split_pointer(pointer)
        raw_name = tokens[-1] if tokens else 'Root'
        if self._is_inline(target, pointer):
            return self.type_ref(target, pointer, '', raw_name)
        return self.synthesize(target, pointer, raw_name)

    def _ensure(self, type_id: TypeId) -> None:
        if self.registry.is_complete(type_id):
            return

        if self.resolver.in_progress(type_id.key):
            self.resolver.record_cycle(self.resolver.stack[-1], type_id.key)
            return

        entry = self.registry.get(type_id)
        with self.resolver.resolving(type_id.key):
            node = self._build_body(self._schemas[type_id], type_id.key, entry.name)
        self.registry.complete(type_id, node)

    # -------------------------------------------------------------------------
    # Schema classification
    # -------------------------------------------------------------------------

    def _classify(self, schema: dict, location: str) -> str:
        if 'allOf' in schema:
            return 'all_of'
        if 'oneOf' in schema or 'anyOf' in schema:
            return 'primitive'

        schema_type = schema.get('type')
        if 'enum' in schema:
            return 'enum' if self._is_string_enum(schema, location) else 'primitive'
        if schema_type == 'array' or (schema_type is None and 'items' in schema):
            return 'array'
        if schema_type == 'object' or (
            schema_type is None
            and ('properties' in schema or 'additionalProperties' in schema)
        ):
            if schema.get('properties') or schema.get('additionalProperties') is False:
                return 'object'
            return 'map'
        if schema_type is None or schema_type in _PRIMITIVE_TYPES:
            return 'primitive'

        raise MalformedSchemaError(location, f'unknown schema type {schema_type!r}')

    def _is_string_enum(self, schema: dict, location: str) -> bool:
        values = schema['enum']
        if not isinstance(values, list) or not values:
            raise MalformedSchemaError(location, 'enum has no literals')

        schema_type = schema.get('type')
        if schema_type == 'string':
            return True
        if schema_type not in (None, 'object'):
            return False
        return all(isinstance(value, str) for value in values if value is not None)

    def _is_inline(self, schema: Any, location: str) -> bool:
        if not isinstance(schema, dict):
            raise MalformedSchemaError(location, 'schema is not a mapping')
        if '$ref' in schema or self._single_all_of_reference(schema) is not None:
            return True

        kind = self._classify(schema, location)
        if kind == 'array':
            items_location = join_pointer(location, 'items')
            return self._is_inline(self._items(schema, location), items_location)
        return kind == 'primitive'

    def _items(self, schema: dict, location: str) -> dict:
        items = schema.get('items')
        if items is None:
            raise MalformedSchemaError(location, 'array schema has no items')
        if not isinstance(items, dict):
            raise MalformedSchemaError(
                join_pointer(location, 'items'), 'schema is not a mapping'
            )
        return items

    def _single_all_of_reference(self, schema: dict) -> str | None:
        members = schema.get('allOf')
        if (
            isinstance(members, list)
            and len(members) == 1
            and isinstance(members[0], dict)
            and '$ref' in members[0]
            and not schema.get('properties')
        ):
            return members[0]['$ref']
        return None

    # -------------------------------------------------------------------------
    # Schema bodies
    # -------------------------------------------------------------------------

    def _build_body(self, schema: Any, location: str, name: str) -> SchemaNode:
        if not isinstance(schema, dict):
            raise MalformedSchemaError(location, 'schema is not a mapping')

        if '$ref' in schema or self._single_all_of_reference(schema) is not None:
            return self._alias(schema, location, name)

        match self._classify(schema, location):
            case 'enum':
                return self._enum(schema, location, name)
            case 'object':
                properties = schema.get('properties') or {}
                if not isinstance(properties, dict):
                    raise MalformedSchemaError(
                        join_pointer(location, 'properties'), 'properties is not a mapping'
                    )
                entries = {
                    raw_name: (prop, join_pointer(location, 'properties', raw_name))
                    for raw_name, prop in properties.items()
                }
                return self._object(
                    entries, list(schema.get('required') or []), schema, location, name
                )
            case 'all_of':
                entries, required = self._collect_all_of(schema, location, {location})
                return self._object(entries, required, schema, location, name)
            case 'map':
                required = schema.get('required') or []
                if required:
                    raise MalformedSchemaError(
                        join_pointer(location, 'required'),
                        f"required property '{required[0]}' is not declared",
                    )
                return MapNode(
                    values=self._additional_properties(schema, location, name),
                    description=schema.get('description'),
                    default=schema.get('default'),
                    nullable=bool(schema.get('nullable', False)),
                )
            case 'array':
                return self._array(schema, location, name, 'Item')
            case 'primitive':
                return self._primitive(schema, location)

    def _alias(self, schema: dict, location: str, name: str) -> AliasNode:
        # A chain of plain references must end in a concrete schema.
        self.resolver.follow(schema, location)

        self._aliases_in_progress.add(location)
        try:
            target = self.type_ref(schema, location, name, 'Target')
        finally:
            self._aliases_in_progress.discard(location)

        if isinstance(target, TypeId) and self.resolver.in_progress(target.key):
            stack = self.resolver.stack
            loop = stack[stack.index(target.key) :]
            if all(pointer in self._aliases_in_progress for pointer in loop[:-1]):
                raise MalformedSchemaError(
                    location, 'alias cycle without a concrete schema'
                )

        return AliasNode(
            target=target,
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=bool(schema.get('nullable', False)),
        )

    def _enum(self, schema: dict, location: str, name: str) -> EnumNode:
        variants = []
        seen = set()
        nullable = bool(schema.get('nullable', False))

        for literal in schema['enum']:
            if literal is None:
                nullable = True
                continue
            value = literal if isinstance(literal, str) else json.dumps(literal)
            if value in seen:
                logger.debug('Skipping repeated enum literal %r at %s', value, location)
                continue
            seen.add(value)
            variants.append(
                EnumVariant(
                    value=value,
                    name=self.naming.sanitize(value, Namespace.VARIANT, name),
                )
            )

        if not variants:
            raise MalformedSchemaError(location, 'enum has no literals')

        return EnumNode(
            variants=tuple(variants),
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=nullable,
        )

    def _object(
        self,
        entries: dict[str, tuple[Any, str]],
        required: list[str],
        schema: dict,
        location: str,
        name: str,
    ) -> ObjectNode:
        for raw_name in required:
            if raw_name not in entries:
                raise MalformedSchemaError(
                    join_pointer(location, 'required'),
                    f"required property '{raw_name}' is not declared",
                )

        fields = tuple(
            self._field(raw_name, prop, prop_location, raw_name in required, name)
            for raw_name, (prop, prop_location) in entries.items()
        )

        additional = None
        if schema.get('additionalProperties') not in (None, False):
            additional = self._additional_properties(schema, location, name)

        return ObjectNode(
            fields=fields,
            additional_properties=additional,
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=bool(schema.get('nullable', False)),
        )

    def _field(
        self, raw_name: str, schema: Any, location: str, required: bool, owner: str
    ) -> FieldDescriptor:
        if not isinstance(schema, dict):
            raise MalformedSchemaError(location, 'schema is not a mapping')

        name = self.naming.sanitize(raw_name, Namespace.FIELD, owner)
        type_ref = self.type_ref(schema, location, owner, raw_name)

        return FieldDescriptor(
            raw_name=raw_name,
            name=name,
            type=type_ref,
            required=required,
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=bool(schema.get('nullable', False)),
            read_only=bool(schema.get('readOnly', False)),
            write_only=bool(schema.get('writeOnly', False)),
            indirect=self._closes_cycle(type_ref),
        )

    def _closes_cycle(self, type_ref: TypeRef) -> bool:
        """Whether a reference leads, through aliases only, to a type being built."""
        seen = set()
        while isinstance(type_ref, TypeId) and type_ref not in seen:
            if self.resolver.in_progress(type_ref.key):
                return True
            seen.add(type_ref)
            node = self.registry.get(type_ref).node
            if not isinstance(node, AliasNode):
                return False
            type_ref = node.target
        return False

    def _collect_all_of(
        self, schema: dict, location: str, seen: set[str]
    ) -> tuple[dict[str, tuple[Any, str]], list[str]]:
        """Merge the properties and required sets of all allOf members.

        A property declared by a later member replaces an earlier one in place.
        """
        members = schema['allOf']
        if not isinstance(members, list) or not members:
            raise MalformedSchemaError(
                join_pointer(location, 'allOf'), 'allOf has no members'
            )

        entries: dict[str, tuple[Any, str]] = {}
        required: list[str] = []

        def merge(member: dict, member_location: str) -> None:
            properties = member.get('properties') or {}
            for raw_name, prop in properties.items():
                entries[raw_name] = (prop, join_pointer(member_location, 'properties', raw_name))
            for raw_name in member.get('required') or []:
                if raw_name not in required:
                    required.append(raw_name)

        for index, member in enumerate(members):
            member_location = join_pointer(location, 'allOf', index)
            member, member_location = self.resolver.follow(member, member_location)
            if not isinstance(member, dict):
                raise MalformedSchemaError(member_location, 'schema is not a mapping')

            if 'allOf' in member:
                if member_location in seen:
                    raise MalformedSchemaError(member_location, 'allOf composition is cyclic')
                sub_entries, sub_required = self._collect_all_of(
                    member, member_location, seen | {member_location}
                )
                entries.update(sub_entries)
                required.extend(r for r in sub_required if r not in required)
            merge(member, member_location)

        # Properties written next to allOf belong to the composition too.
        merge(schema, location)
        return entries, required

    def _additional_properties(self, schema: dict, location: str, name: str) -> TypeRef:
        additional = schema.get('additionalProperties')
        if isinstance(additional, dict) and additional:
            return self.type_ref(
                additional, join_pointer(location, 'additionalProperties'), name, 'Value'
            )
        return PrimitiveNode(kind=PrimitiveKind.ANY)

    def _array(self, schema: dict, location: str, owner: str, hint: str) -> ArrayNode:
        items = self._items(schema, location)
        return ArrayNode(
            items=self.type_ref(items, join_pointer(location, 'items'), owner, hint),
            min_items=schema.get('minItems'),
            max_items=schema.get('maxItems'),
            unique_items=bool(schema.get('uniqueItems', False)),
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=bool(schema.get('nullable', False)),
        )

    def _primitive(self, schema: dict, location: str) -> PrimitiveNode:
        constraints = {key: schema[key] for key in CONSTRAINT_KEYWORDS if key in schema}
        schema_format = schema.get('format')
        kept_format = None

        if 'oneOf' in schema or 'anyOf' in schema:
            logger.debug('Representing oneOf/anyOf at %s as a free-form value', location)
            kind = PrimitiveKind.ANY
        else:
            if 'enum' in schema:
                # Non-string enumerations stay primitive; the literals become a constraint.
                constraints['enum'] = list(schema['enum'])

            match schema.get('type'):
                case 'string':
                    kind = PrimitiveKind.STRING
                    if schema_format in STRING_FORMATS:
                        kept_format = schema_format
                    elif schema_format is not None:
                        logger.debug(
                            'Unrecognized string format %r at %s', schema_format, location
                        )
                case 'integer':
                    kind = (
                        PrimitiveKind.INT64
                        if schema_format == 'int64'
                        else PrimitiveKind.INT32
                    )
                    if schema_format not in (None, 'int32', 'int64'):
                        logger.debug(
                            'Unrecognized integer format %r at %s', schema_format, location
                        )
                case 'number':
                    kind = (
                        PrimitiveKind.FLOAT64
                        if schema_format == 'double'
                        else PrimitiveKind.FLOAT32
                    )
                    if schema_format not in (None, 'float', 'double'):
                        logger.debug(
                            'Unrecognized number format %r at %s', schema_format, location
                        )
                case 'boolean':
                    kind = PrimitiveKind.BOOLEAN
                case _:
                    kind = PrimitiveKind.ANY

        return PrimitiveNode(
            kind=kind,
            format=kept_format,
            constraints=constraints,
            description=schema.get('description'),
            default=schema.get('default'),
            nullable=bool(schema.get('nullable', False)),
        )


def build_types(
    document: dict[str, Any], rules: NamingRules | None = None
) -> dict[TypeId, SchemaNode]:
    """Build the type table of the named schemas of a document.

    Raises:
        BuildError: If any schema cannot be turned into a type.
    """
    builder = TypeTableBuilder(SchemaResolver(document), NamingContext(rules or NamingRules()))
    builder.register_named_schemas()
    builder.build()
    return {entry.type_id: entry.node for entry in builder.registry}
