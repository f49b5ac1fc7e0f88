"""Type registry for the types allocated during a model build.

A TypeId is allocated (with its final name) before the body of its schema is
processed, so references to a type can be linked while the type itself is
still being built. The registry keeps allocation order, which is the order
types appear in the built model.
"""

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Literal

from oxapi.codegen.model import SchemaNode, TypeDescriptor, TypeId


@dataclass
class TypeEntry:
    """A registered type.

    Attributes:
        type_id: The canonical identity of the type.
        raw_name: The name the type was derived from.
        name: The sanitized type name.
        origin: Whether the type is a named schema or synthesized from a usage site.
        node: The type body, None until the body has been built.
    """

    type_id: TypeId
    raw_name: str
    name: str
    origin: Literal['named', 'synthesized']
    node: SchemaNode | None = None

    @property
    def is_complete(self) -> bool:
        return self.node is not None

    def to_descriptor(self) -> TypeDescriptor:
        return TypeDescriptor(
            type_id=self.type_id,
            raw_name=self.raw_name,
            name=self.name,
            node=self.node,
            origin=self.origin,
        )


class TypeRegistry:
    """Arena of the types allocated in one build, indexed by TypeId.

    Example:
        >>> registry = TypeRegistry()
        >>> pet = TypeId('#/components/schemas/Pet')
        >>> registry.allocate(pet, raw_name='Pet', name='Pet')
        >>> registry.complete(pet, node)
        >>> registry.get(pet).name
        'Pet'
    """

    def __init__(self):
        """Initialize an empty type registry."""
        self._entries: dict[TypeId, TypeEntry] = {}
        self._by_name: dict[str, TypeId] = {}

    def allocate(
        self,
        type_id: TypeId,
        raw_name: str,
        name: str,
        origin: Literal['named', 'synthesized'] = 'named',
    ) -> TypeEntry:
        """Allocate a TypeId before its body is built.

        Raises:
            ValueError: If the TypeId or the name is already allocated.
        """
        if type_id in self._entries:
            raise ValueError(f"Type '{type_id}' is already allocated")
        if name in self._by_name:
            raise ValueError(f"Type name '{name}' is already allocated")

        entry = TypeEntry(type_id=type_id, raw_name=raw_name, name=name, origin=origin)
        self._entries[type_id] = entry
        self._by_name[name] = type_id
        return entry

    def complete(self, type_id: TypeId, node: SchemaNode) -> None:
        """Attach the built body to an allocated type."""
        self._entries[type_id].node = node

    def has_type(self, type_id: TypeId) -> bool:
        return type_id in self._entries

    def is_complete(self, type_id: TypeId) -> bool:
        entry = self._entries.get(type_id)
        return entry is not None and entry.is_complete

    def get(self, type_id: TypeId) -> TypeEntry:
        return self._entries[type_id]

    def get_by_name(self, name: str) -> TypeEntry | None:
        type_id = self._by_name.get(name)
        if type_id is None:
            return None
        return self._entries[type_id]

    def incomplete(self) -> list[TypeId]:
        return [entry.type_id for entry in self if not entry.is_complete]

    def descriptors(self) -> tuple[TypeDescriptor, ...]:
        """Descriptors of all types, in allocation order.

        Raises:
            ValueError: If any allocated type has no body.
        """
        missing = self.incomplete()
        if missing:
            raise ValueError(
                f'Types without a body: {", ".join(str(t) for t in missing)}'
            )
        return tuple(entry.to_descriptor() for entry in self)

    def __iter__(self) -> Iterator[TypeEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, type_id: TypeId) -> bool:
        return type_id in self._entries
