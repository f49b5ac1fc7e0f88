"""Parameter processing for OpenAPI operations.

This module provides the ParameterProcessor class that merges the parameter
declarations of a path item and an operation and turns them, together with
the request body, into descriptors.
"""

from typing import TYPE_CHECKING, Any

from oxapi.codegen.model import (
    BodyDescriptor,
    ParameterDescriptor,
    ParameterLocation,
    PrimitiveKind,
    PrimitiveNode,
)
from oxapi.codegen.schema import join_pointer
from oxapi.config import Namespace
from oxapi.exceptions import MalformedSchemaError

if TYPE_CHECKING:
    from oxapi.codegen.naming import NamingContext
    from oxapi.codegen.types import TypeTableBuilder

__all__ = ['ParameterProcessor', 'RawParameter', 'select_content_type']

# Content types that should be treated as JSON
JSON_CONTENT_TYPES = {'application/json', 'text/json'}

BODY_NAME = 'body'

RawParameter = tuple[dict[str, Any], str]


def is_json_content_type(content_type: str) -> bool:
    return content_type in JSON_CONTENT_TYPES or content_type.endswith('+json')


def select_content_type(content: dict, prefer_text: bool = False) -> tuple[str, Any]:
    """Select the best content type from available options.

    Prefers JSON content types, then (when ``prefer_text`` is set) ``text/*``
    types, then the first declared one.

    Args:
        content: Dictionary mapping content types to media type objects.
        prefer_text: Whether text content beats other non-JSON content.

    Returns:
        Tuple of (selected_content_type, selected_media_type).
    """
    for content_type, media_type in content.items():
        if is_json_content_type(content_type):
            return content_type, media_type

    if prefer_text:
        for content_type, media_type in content.items():
            if content_type.startswith('text/'):
                return content_type, media_type

    return next(iter(content.items()))


class ParameterProcessor:
    """Handles extraction of OpenAPI parameters and request bodies.

    Example:
        >>> processor = ParameterProcessor(types, naming)
        >>> merged = processor.merge_parameters(path_item, operation, path_pointer, pointer)
        >>> parameters = processor.build_parameters(merged, 'list_users', 'listUsers')
        >>> body = processor.extract_request_body(operation, pointer, 'list_users', 'listUsers')
    """

    def __init__(self, types: 'TypeTableBuilder', naming: 'NamingContext'):
        """Initialize the parameter processor.

        Args:
            types: The type table builder that types parameter schemas.
            naming: The naming context of the build.
        """
        self.types = types
        self.naming = naming

    def merge_parameters(
        self,
        path_item: dict,
        operation: dict,
        path_pointer: str,
        operation_pointer: str,
    ) -> list[RawParameter]:
        """Merge path item and operation parameter declarations.

        An operation parameter replaces a path item parameter with the same
        name and location. Path item parameters that are not replaced come
        first, in declaration order, followed by the operation's parameters.

        Returns:
            The resolved parameter objects with their pointers.

        Raises:
            MalformedSchemaError: If a parameter has no name, an unknown
                location, or a list declares the same name and location twice.
        """
        shared = self._resolve_list(path_item, path_pointer)
        own = self._resolve_list(operation, operation_pointer)

        overridden = {self._key(param) for param, _ in own}
        merged = [entry for entry in shared if self._key(entry[0]) not in overridden]
        merged.extend(own)
        return merged

    def _resolve_list(self, container: dict, pointer: str) -> list[RawParameter]:
        declared = container.get('parameters') or []
        list_pointer = join_pointer(pointer, 'parameters')
        if not isinstance(declared, list):
            raise MalformedSchemaError(list_pointer, 'parameters is not a list')

        resolved = []
        seen = set()
        for index, param in enumerate(declared):
            param, location = self.types.resolver.follow(
                param, join_pointer(list_pointer, index)
            )
            if not isinstance(param, dict):
                raise MalformedSchemaError(location, 'parameter is not a mapping')
            if not isinstance(param.get('name'), str) or not param['name']:
                raise MalformedSchemaError(location, 'parameter has no name')
            if param.get('in') not in {loc.value for loc in ParameterLocation}:
                raise MalformedSchemaError(
                    location, f"unknown parameter location {param.get('in')!r}"
                )

            key = self._key(param)
            if key in seen:
                raise MalformedSchemaError(
                    location,
                    f"parameter '{key[0]}' in {key[1]} is declared more than once",
                )
            seen.add(key)
            resolved.append((param, location))
        return resolved

    @staticmethod
    def _key(param: dict) -> tuple[str, str]:
        return param['name'], param['in']

    def build_parameters(
        self, merged: list[RawParameter], scope: str, owner: str
    ) -> list[ParameterDescriptor]:
        """Create parameter descriptors in the given order.

        Args:
            merged: Resolved parameters, already in signature order.
            scope: Naming scope of the operation's parameters.
            owner: Raw name that prefixes types synthesized for parameter schemas.
        """
        return [
            self.build_parameter(param, location, scope, owner)
            for param, location in merged
        ]

    def build_parameter(
        self, param: dict, location: str, scope: str, owner: str
    ) -> ParameterDescriptor:
        raw_name = param['name']
        param_location = ParameterLocation(param['in'])
        name = self.naming.sanitize(raw_name, Namespace.PARAMETER, scope)

        schema, schema_location = self._parameter_schema(param, location)
        if schema is None:
            param_type = PrimitiveNode(kind=PrimitiveKind.STRING)
            default = None
        else:
            param_type = self.types.type_ref(schema, schema_location, owner, raw_name)
            default = schema.get('default') if isinstance(schema, dict) else None

        return ParameterDescriptor(
            raw_name=raw_name,
            name=name,
            location=param_location,
            type=param_type,
            # Path parameters are always required.
            required=param_location == ParameterLocation.PATH
            or bool(param.get('required', False)),
            default=default,
            description=param.get('description'),
            deprecated=bool(param.get('deprecated', False)),
        )

    def _parameter_schema(self, param: dict, location: str) -> tuple[Any, str]:
        if 'schema' in param:
            return param['schema'], join_pointer(location, 'schema')

        content = param.get('content')
        if isinstance(content, dict) and content:
            content_type, media_type = select_content_type(content)
            if isinstance(media_type, dict) and 'schema' in media_type:
                return media_type['schema'], join_pointer(
                    location, 'content', content_type, 'schema'
                )
        return None, location

    def extract_request_body(
        self, operation: dict, operation_pointer: str, scope: str, owner: str
    ) -> BodyDescriptor | None:
        """Extract request body information from an operation.

        Args:
            operation: The operation object.
            operation_pointer: Pointer of the operation.
            scope: Naming scope of the operation's parameters; the body's name
                is assigned after all parameters.
            owner: Raw name that prefixes a synthesized body type.

        Returns:
            The body descriptor, or None if the operation has no body content.
        """
        if 'requestBody' not in operation:
            return None

        body, location = self.types.resolver.follow(
            operation['requestBody'], join_pointer(operation_pointer, 'requestBody')
        )
        if not isinstance(body, dict):
            raise MalformedSchemaError(location, 'request body is not a mapping')

        content = body.get('content')
        if not isinstance(content, dict) or not content:
            return None

        content_type, media_type = select_content_type(content)
        if isinstance(media_type, dict) and 'schema' in media_type:
            body_type = self.types.type_ref(
                media_type['schema'],
                join_pointer(location, 'content', content_type, 'schema'),
                owner,
                'RequestBody',
            )
        else:
            body_type = PrimitiveNode(kind=PrimitiveKind.ANY)

        return BodyDescriptor(
            name=self.naming.sanitize(BODY_NAME, Namespace.PARAMETER, scope),
            type=body_type,
            required=bool(body.get('required', False)),
            content_type=content_type,
            description=body.get('description'),
        )
