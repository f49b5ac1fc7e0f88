"""Response processing for OpenAPI operations.

This module provides the ResponseProcessor class that maps the declared
responses of an operation to descriptors and selects the type the
operation's signature returns.
"""

import logging
from typing import TYPE_CHECKING

from oxapi.codegen.model import (
    PrimitiveKind,
    PrimitiveNode,
    ResponseDescriptor,
    ReturnDescriptor,
)
from oxapi.codegen.processors.parameter_processor import select_content_type
from oxapi.codegen.schema import join_pointer
from oxapi.exceptions import MalformedSchemaError

if TYPE_CHECKING:
    from oxapi.codegen.types import TypeTableBuilder

__all__ = ['ResponseProcessor', 'is_success']

logger = logging.getLogger(__name__)


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class ResponseProcessor:
    """Handles extraction of OpenAPI response definitions.

    Example:
        >>> processor = ResponseProcessor(types)
        >>> responses = processor.extract_responses(operation, pointer, 'listUsers')
        >>> returns = processor.select_return(responses)
    """

    def __init__(self, types: 'TypeTableBuilder'):
        self.types = types

    def extract_responses(
        self, operation: dict, operation_pointer: str, owner: str
    ) -> list[ResponseDescriptor]:
        """Extract every response with a numeric status code, in declaration order.

        Text content is typed as a string. Inline schemas of success responses
        synthesize ``<Operation>Response``; those of other responses include
        the status code in the name.

        Args:
            operation: The operation object.
            operation_pointer: Pointer of the operation.
            owner: Raw name that prefixes synthesized response types.
        """
        declared = operation.get('responses') or {}
        responses_pointer = join_pointer(operation_pointer, 'responses')
        if not isinstance(declared, dict):
            raise MalformedSchemaError(responses_pointer, 'responses is not a mapping')

        responses = []
        for status_code_str, response in declared.items():
            try:
                status_code = int(status_code_str)
            except ValueError:
                # Skip non-numeric status codes like 'default'
                logger.debug(f'Skipping non-numeric status code: {status_code_str}')
                continue

            response, location = self.types.resolver.follow(
                response, join_pointer(responses_pointer, status_code_str)
            )
            if not isinstance(response, dict):
                raise MalformedSchemaError(location, 'response is not a mapping')

            content = response.get('content')
            if not isinstance(content, dict) or not content:
                responses.append(
                    ResponseDescriptor(
                        status_code=status_code,
                        content_type=None,
                        type=None,
                        description=response.get('description'),
                    )
                )
                continue

            content_type, media_type = select_content_type(content, prefer_text=True)
            if content_type.startswith('text/'):
                response_type = PrimitiveNode(kind=PrimitiveKind.STRING)
            elif isinstance(media_type, dict) and 'schema' in media_type:
                hint = 'Response' if is_success(status_code) else f'{status_code} Response'
                response_type = self.types.type_ref(
                    media_type['schema'],
                    join_pointer(location, 'content', content_type, 'schema'),
                    owner,
                    hint,
                )
            else:
                response_type = PrimitiveNode(kind=PrimitiveKind.ANY)

            responses.append(
                ResponseDescriptor(
                    status_code=status_code,
                    content_type=content_type,
                    type=response_type,
                    description=response.get('description'),
                )
            )

        return responses

    def select_return(self, responses: list[ResponseDescriptor]) -> ReturnDescriptor:
        """Select the signature's return type.

        The lowest 2xx response that carries content wins. A success without
        any content (such as 204) returns the empty result, as does an
        operation without success responses.
        """
        successes = sorted(
            (r for r in responses if is_success(r.status_code)),
            key=lambda r: r.status_code,
        )
        for response in successes:
            if response.type is not None:
                return ReturnDescriptor(
                    status_code=response.status_code,
                    content_type=response.content_type,
                    type=response.type,
                )

        status_code = successes[0].status_code if successes else None
        return ReturnDescriptor(status_code=status_code, content_type=None, type=None)
