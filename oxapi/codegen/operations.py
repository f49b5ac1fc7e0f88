"""Operation synthesis.

For every path and HTTP method of a document this module produces an
OperationDescriptor:

- the method name, assigned in the client type's method scope
- parameters ordered path first (in template order), then the remaining
  parameters in declaration order
- the request body, the declared responses and the selected return type
- the path substitution plan
- the call signature, either positional or through a parameter aggregate
"""

import logging
import re
from typing import Any

from oxapi.codegen.model import (
    AggregateConstructor,
    AggregateDescriptor,
    AggregateMutator,
    ArgumentSource,
    BodyDescriptor,
    OperationDescriptor,
    ParameterDescriptor,
    ParameterLocation,
    PathLiteral,
    PathPlaceholder,
    PathSegment,
    SignatureArgument,
    TypeId,
)
from oxapi.codegen.naming import NamingContext
from oxapi.codegen.processors import ParameterProcessor, ResponseProcessor
from oxapi.codegen.processors.parameter_processor import RawParameter
from oxapi.codegen.schema import join_pointer
from oxapi.codegen.types import TypeTableBuilder
from oxapi.config import BuildOptions, Namespace
from oxapi.exceptions import MalformedSchemaError

__all__ = [
    'HTTP_METHODS',
    'CLIENT_SCOPE',
    'OperationSynthesizer',
    'fallback_operation_id',
    'path_placeholders',
    'path_plan',
]

logger = logging.getLogger(__name__)

HTTP_METHODS = ('get', 'post', 'put', 'delete', 'patch', 'head', 'options', 'trace')

CLIENT_SCOPE = 'client'

AGGREGATE_ARGUMENT = 'params'

_PLACEHOLDER = re.compile(r'\{([^{}]+)\}')


def fallback_operation_id(method: str, path: str) -> str:
    """Operation id for an operation that does not declare one.

    Example:
        >>> fallback_operation_id('get', '/users/{userId}')
        'get_users__userId'
    """
    clean_path = re.sub(r'[{}/]', '_', path).strip('_')
    return f'{method}_{clean_path}' if clean_path else method


def path_placeholders(path: str) -> list[str]:
    """Placeholder names of a path template, in order of first appearance."""
    names = []
    for name in _PLACEHOLDER.findall(path):
        if name not in names:
            names.append(name)
    return names


def path_plan(
    path: str, parameters: dict[str, ParameterDescriptor]
) -> tuple[PathSegment, ...]:
    """Split a path template into literals and the parameters filling placeholders.

    Args:
        path: The path template.
        parameters: Path parameters by raw name.
    """
    segments: list[PathSegment] = []
    position = 0
    for match in _PLACEHOLDER.finditer(path):
        if match.start() > position:
            segments.append(PathLiteral(text=path[position : match.start()]))
        segments.append(PathPlaceholder(parameter=parameters[match.group(1)]))
        position = match.end()
    if position < len(path):
        segments.append(PathLiteral(text=path[position:]))
    return tuple(segments)


class OperationSynthesizer:
    """Synthesizes the operations of one document.

    Args:
        types: The type table builder of the build; parameter, body and
            response schemas are typed through it.
        naming: The naming context of the build.
        options: Build options selecting the calling convention.
    """

    def __init__(
        self, types: TypeTableBuilder, naming: NamingContext, options: BuildOptions
    ):
        self.types = types
        self.naming = naming
        self.options = options
        self.parameters = ParameterProcessor(types, naming)
        self.responses = ResponseProcessor(types)
        self.aggregates: list[AggregateDescriptor] = []

        for reserved in options.client_reserved_methods:
            self.naming.reserve(reserved, Namespace.METHOD, CLIENT_SCOPE)

    def synthesize(self) -> list[OperationDescriptor]:
        """Synthesize every operation, in path order and then method order."""
        paths = self.types.resolver.document.get('paths') or {}
        if not isinstance(paths, dict):
            raise MalformedSchemaError('#/paths', 'paths is not a mapping')

        operations = []
        for path, path_item in paths.items():
            path_pointer = join_pointer('#/paths', path)
            path_item, path_pointer = self.types.resolver.follow(path_item, path_pointer)
            if not isinstance(path_item, dict):
                raise MalformedSchemaError(path_pointer, 'path item is not a mapping')

            for method in HTTP_METHODS:
                if method not in path_item:
                    continue
                operation = path_item[method]
                pointer = join_pointer(path_pointer, method)
                if not isinstance(operation, dict):
                    raise MalformedSchemaError(pointer, 'operation is not a mapping')
                operations.append(
                    self.synthesize_operation(
                        path, method, path_item, operation, path_pointer, pointer
                    )
                )
        return operations

    def synthesize_operation(
        self,
        path: str,
        method: str,
        path_item: dict,
        operation: dict[str, Any],
        path_pointer: str,
        pointer: str,
    ) -> OperationDescriptor:
        operation_id = operation.get('operationId') or fallback_operation_id(method, path)
        name = self.naming.sanitize(operation_id, Namespace.METHOD, CLIENT_SCOPE)

        merged = self.parameters.merge_parameters(path_item, operation, path_pointer, pointer)
        ordered = self._order_parameters(path, merged, pointer)
        parameters = self.parameters.build_parameters(ordered, name, operation_id)
        body = self.parameters.extract_request_body(operation, pointer, name, operation_id)

        responses = self.responses.extract_responses(operation, pointer, operation_id)
        returns = self.responses.select_return(responses)

        path_parameters = {
            p.raw_name: p for p in parameters if p.location == ParameterLocation.PATH
        }

        aggregate = None
        if self.options.use_parameter_aggregates and parameters:
            aggregate = self._aggregate(operation_id, pointer, parameters)
            signature = self._aggregate_signature(name, aggregate, body)
        else:
            signature = self._positional_signature(parameters, body)

        return OperationDescriptor(
            operation_id=operation_id,
            name=name,
            http_method=method,
            path=path,
            pointer=pointer,
            parameters=tuple(parameters),
            body=body,
            responses=tuple(responses),
            returns=returns,
            path_plan=path_plan(path, path_parameters),
            signature=signature,
            aggregate=aggregate.type_id if aggregate else None,
            summary=operation.get('summary'),
            description=operation.get('description'),
            tags=tuple(operation.get('tags') or ()),
            deprecated=bool(operation.get('deprecated', False)),
        )

    def _order_parameters(
        self, path: str, merged: list[RawParameter], pointer: str
    ) -> list[RawParameter]:
        """Put path parameters first, in the order their placeholders appear.

        Raises:
            MalformedSchemaError: If a placeholder has no path parameter or a
                path parameter has no placeholder.
        """
        by_name = {
            param['name']: (param, location)
            for param, location in merged
            if param['in'] == 'path'
        }
        placeholders = path_placeholders(path)

        for placeholder in placeholders:
            if placeholder not in by_name:
                raise MalformedSchemaError(
                    pointer, f"path placeholder '{{{placeholder}}}' has no path parameter"
                )
        for raw_name, (_, location) in by_name.items():
            if raw_name not in placeholders:
                raise MalformedSchemaError(
                    location, f"path parameter '{raw_name}' does not appear in '{path}'"
                )

        ordered = [by_name[placeholder] for placeholder in placeholders]
        ordered.extend(entry for entry in merged if entry[0]['in'] != 'path')
        return ordered

    def _positional_signature(
        self, parameters: list[ParameterDescriptor], body: BodyDescriptor | None
    ) -> tuple[SignatureArgument, ...]:
        arguments = [
            SignatureArgument(
                name=p.name,
                type=p.type,
                required=p.required,
                source=ArgumentSource.PARAMETER,
            )
            for p in parameters
        ]
        if body is not None:
            arguments.append(
                SignatureArgument(
                    name=body.name,
                    type=body.type,
                    required=body.required,
                    source=ArgumentSource.BODY,
                )
            )
        return tuple(arguments)

    def _aggregate_signature(
        self, name: str, aggregate: AggregateDescriptor, body: BodyDescriptor | None
    ) -> tuple[SignatureArgument, ...]:
        scope = f'{name}.signature'
        arguments = [
            SignatureArgument(
                name=self.naming.sanitize(AGGREGATE_ARGUMENT, Namespace.PARAMETER, scope),
                type=aggregate.type_id,
                required=True,
                source=ArgumentSource.AGGREGATE,
            )
        ]
        if body is not None:
            arguments.append(
                SignatureArgument(
                    name=self.naming.sanitize(body.name, Namespace.PARAMETER, scope),
                    type=body.type,
                    required=body.required,
                    source=ArgumentSource.BODY,
                )
            )
        return tuple(arguments)

    def _aggregate(
        self, operation_id: str, pointer: str, parameters: list[ParameterDescriptor]
    ) -> AggregateDescriptor:
        """Build the parameter aggregate of an operation.

        Required parameters are taken by the constructor; every optional
        parameter gets a mutator that returns an updated aggregate.
        """
        name = self.naming.sanitize(
            f'{operation_id} {self.options.aggregate_suffix}', Namespace.TYPE
        )
        constructor_name = self.naming.sanitize(
            self.options.constructor_name, Namespace.METHOD, name
        )

        required = tuple(p for p in parameters if p.required)
        mutators = tuple(
            AggregateMutator(
                name=self.naming.sanitize(
                    f'{self.options.mutator_prefix}_{p.raw_name}', Namespace.METHOD, name
                ),
                parameter=p,
            )
            for p in parameters
            if not p.required
        )

        aggregate = AggregateDescriptor(
            type_id=TypeId(join_pointer(pointer, 'parameters')),
            name=name,
            fields=tuple(parameters),
            constructor=AggregateConstructor(name=constructor_name, parameters=required),
            mutators=mutators,
            default_constructible=not required,
        )
        self.aggregates.append(aggregate)
        logger.debug(
            'Synthesized parameter aggregate %s with %d mutators', name, len(mutators)
        )
        return aggregate
