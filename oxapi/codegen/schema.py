"""Schema loading and reference resolution for OpenAPI documents.

This module provides utilities for:
- Loading OpenAPI 3.0 documents from URLs or local files (YAML/JSON)
- Resolving internal ``$ref`` pointers to the nodes they point at
- Tracking the resolution stack so that cyclic references are detected and
  recorded instead of followed forever
"""

import copy
import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

import httpx
import yaml
from openapi_pydantic.v3.v3_0 import OpenAPI
from pydantic import ValidationError

from oxapi.exceptions import (
    MalformedSchemaError,
    SchemaLoadError,
    SchemaValidationError,
    UnresolvedReferenceError,
    UnsupportedReferenceError,
)

logger = logging.getLogger(__name__)

__all__ = [
    'SchemaLoader',
    'SchemaResolver',
    'resolve',
    'canonical_pointer',
    'escape_token',
    'join_pointer',
    'split_pointer',
]

SUPPORTED_VERSION_PREFIX = '3.0'


# =============================================================================
# Schema Loader
# =============================================================================


class SchemaLoader:
    """Loads OpenAPI documents from URLs or file paths.

    The document is validated against the OpenAPI 3.0 object model, but it is
    returned as the generic tree produced by the JSON or YAML parser so that
    references can be resolved by pointer. Only OpenAPI 3.0.x documents are
    accepted.

    Example:
        >>> loader = SchemaLoader()
        >>> document = loader.load('https://api.example.com/openapi.json')
        >>> # or
        >>> document = loader.load('/path/to/openapi.yaml')
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        base_path: str | Path | None = None,
    ):
        """Initialize the schema loader.

        Args:
            http_client: Optional HTTP client to use for URL requests.
                        If not provided, a default client will be created.
            base_path: Base path for resolving relative file paths.
                      Defaults to current working directory.
        """
        self._http_client = http_client
        self._base_path = Path(base_path) if base_path else Path.cwd()

    def load(self, source: str) -> dict[str, Any]:
        """Load and check an OpenAPI document from a URL or file path.

        Args:
            source: URL or file path to the OpenAPI document.

        Returns:
            The decoded document tree.

        Raises:
            SchemaLoadError: If the document cannot be loaded from the source.
            SchemaValidationError: If the document is not an OpenAPI 3.0 document.
        """
        try:
            if self._is_url(source):
                content = self._load_from_url(source)
            else:
                content = self._load_from_file(source)
        except (SchemaLoadError, SchemaValidationError):
            raise
        except Exception as e:
            raise SchemaLoadError(source, cause=e)

        self._validate(content, source)
        logger.debug('Loaded OpenAPI %s document from %s', content['openapi'], source)
        return content

    def _is_url(self, text: str) -> bool:
        """Check if a string is a URL."""
        try:
            result = urlparse(text)
            return result.scheme in ('http', 'https')
        except ValueError:
            return False

    def _load_from_url(self, url: str) -> Any:
        """Load document content from a URL."""
        try:
            if self._http_client:
                response = self._http_client.get(url)
            else:
                response = httpx.get(url, follow_redirects=True, timeout=30.0)

            response.raise_for_status()
            content_type = response.headers.get('content-type', '')
            content = response.text

            if 'yaml' in content_type or url.endswith(('.yaml', '.yml')):
                return yaml.safe_load(content)
            else:
                return json.loads(content)

        except httpx.HTTPError as e:
            raise SchemaLoadError(url, cause=e)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(url, cause=e)

    def _load_from_file(self, file_path: str) -> Any:
        """Load document content from a file."""
        path = Path(file_path)
        if not path.is_absolute():
            path = self._base_path / path

        if not path.exists():
            raise SchemaLoadError(
                str(file_path), cause=FileNotFoundError(f'File not found: {path}')
            )

        try:
            content = path.read_text(encoding='utf-8')
            if path.suffix.lower() in ('.yaml', '.yml'):
                return yaml.safe_load(content)
            else:
                return json.loads(content)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise SchemaLoadError(str(file_path), cause=e)
        except OSError as e:
            raise SchemaLoadError(str(file_path), cause=e)

    def _validate(self, content: Any, source: str) -> None:
        if not isinstance(content, dict):
            raise SchemaValidationError(source, errors=['document is not a mapping'])

        if 'swagger' in content:
            raise SchemaValidationError(
                source,
                errors=[f"Swagger {content['swagger']} documents are not supported"],
            )

        version = str(content.get('openapi', ''))
        if not version:
            raise SchemaValidationError(source, errors=["missing 'openapi' version"])
        if not version.startswith(SUPPORTED_VERSION_PREFIX):
            raise SchemaValidationError(
                source,
                errors=[f'OpenAPI {version} is not supported, expected 3.0.x'],
            )

        try:
            OpenAPI.model_validate(content)
        except ValidationError as e:
            raise SchemaValidationError(
                source, errors=[_format_error(error) for error in e.errors()]
            )


def _format_error(error: dict[str, Any]) -> str:
    location = '.'.join(str(part) for part in error['loc'])
    return f"{location}: {error['msg']}" if location else error['msg']


# =============================================================================
# JSON pointers
# =============================================================================


def escape_token(token: str) -> str:
    return token.replace('~', '~0').replace('/', '~1')


def unescape_token(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')


def join_pointer(base: str, *tokens: str | int) -> str:
    """Append escaped tokens to a JSON pointer.

    Example:
        >>> join_pointer('#/paths', '/users/{id}', 'get')
        '#/paths/~1users~1{id}/get'
    """
    return base + ''.join(f'/{escape_token(str(token))}' for token in tokens)


def split_pointer(pointer: str) -> list[str]:
    """Split an internal reference into its unescaped tokens.

    Raises:
        UnsupportedReferenceError: If the reference points outside the document.
    """
    if not pointer.startswith('#'):
        raise UnsupportedReferenceError(pointer)

    fragment = unquote(pointer[1:])
    if not fragment:
        return []
    if not fragment.startswith('/'):
        raise UnresolvedReferenceError(pointer, 'not a JSON pointer')
    return [unescape_token(token) for token in fragment[1:].split('/')]


def canonical_pointer(pointer: str) -> str:
    """The canonical spelling of an internal reference."""
    return join_pointer('#', *split_pointer(pointer))


# =============================================================================
# Schema Resolver
# =============================================================================


class SchemaResolver:
    """Resolves internal references in one document tree.

    Besides plain pointer lookups, the resolver keeps the stack of pointers
    whose resolution is in progress. A reference to a pointer that is already on
    the stack closes a cycle; such cycles are recorded (in the order they are
    found) and are never followed again.

    Example:
        >>> resolver = SchemaResolver(document)
        >>> pet = resolver.resolve_pointer('#/components/schemas/Pet')
        >>> with resolver.resolving('#/components/schemas/Pet'):
        ...     resolver.in_progress('#/components/schemas/Pet')
        True
    """

    def __init__(self, document: dict[str, Any]):
        # Defaults and literals in the model come from this copy only.
        self.document = copy.deepcopy(document)
        self._stack: list[str] = []
        self._cycles: list[tuple[str, str]] = []

    def resolve_pointer(self, pointer: str) -> Any:
        """Walk a pointer to the node it names.

        Raises:
            UnsupportedReferenceError: If the pointer points outside the document.
            UnresolvedReferenceError: If no node exists at the pointer.
        """
        current: Any = self.document
        for token in split_pointer(pointer):
            if isinstance(current, dict):
                if token not in current:
                    raise UnresolvedReferenceError(pointer)
                current = current[token]
            elif isinstance(current, list):
                try:
                    current = current[int(token)]
                except (ValueError, IndexError):
                    raise UnresolvedReferenceError(pointer)
            else:
                raise UnresolvedReferenceError(pointer)
        return current

    def follow(self, node: Any, location: str) -> tuple[Any, str]:
        """Follow a chain of ``$ref`` nodes to the first concrete node.

        Args:
            node: A node that may be a reference object.
            location: Pointer of ``node`` itself.

        Returns:
            The concrete node and its canonical pointer.

        Raises:
            MalformedSchemaError: If the chain loops without reaching a
                concrete node.
        """
        seen = [location]
        while isinstance(node, dict) and isinstance(node.get('$ref'), str):
            target = canonical_pointer(node['$ref'])
            if target in seen:
                raise MalformedSchemaError(
                    location,
                    'reference chain loops without reaching a concrete schema: '
                    + ' -> '.join(seen + [target]),
                )
            seen.append(target)
            node = self.resolve_pointer(target)
        return node, seen[-1]

    @contextmanager
    def resolving(self, pointer: str) -> Iterator[None]:
        """Keep a pointer on the resolution stack while its node is processed."""
        self._stack.append(pointer)
        try:
            yield
        finally:
            self._stack.pop()

    def in_progress(self, pointer: str) -> bool:
        return pointer in self._stack

    @property
    def stack(self) -> tuple[str, ...]:
        return tuple(self._stack)

    def record_cycle(self, source: str, target: str) -> None:
        """Record a reference from ``source`` back to ``target`` on the stack."""
        if (source, target) not in self._cycles:
            logger.debug('Recorded cyclic reference %s -> %s', source, target)
            self._cycles.append((source, target))

    @property
    def cycles(self) -> list[tuple[str, str]]:
        return list(self._cycles)


def resolve(document: dict[str, Any], pointer: str) -> Any:
    """Resolve a pointer, and any reference chain at its target, to a schema object.

    The result is the concrete schema object as written in the document, with
    every ``$ref`` hop followed. It is the raw input of the type table; the
    typed node built from it is found in the table returned by
    :func:`oxapi.codegen.types.build_types`.

    Raises:
        UnresolvedReferenceError: If the pointer or a reference has no target.
        UnsupportedReferenceError: If a reference leaves the document.
        MalformedSchemaError: If the reference chain loops.
    """
    resolver = SchemaResolver(document)
    node, _ = resolver.follow(resolver.resolve_pointer(pointer), canonical_pointer(pointer))
    return node
