"""oxapi - Build typed client models from OpenAPI specifications.

oxapi resolves the schemas and operations of an OpenAPI 3.0 document into an
immutable model for a statically-typed client library: a deduplicated type
table, collision-free and reserved-word safe identifiers, and per-operation
call signatures in a positional or a parameter aggregate calling convention.

Quick Start:
    >>> from oxapi import BuildOptions, build_model
    >>>
    >>> model = build_model(document, BuildOptions())
    >>> model.api.client_name
    'PetStoreApi'

CLI Usage:
    $ oxapi build --config oxapi.yaml
    $ oxapi inspect ./api.yaml --aggregates
"""

from importlib.metadata import PackageNotFoundError, version

from oxapi.codegen.codegen import Codegen, build_model
from oxapi.codegen.model import Model
from oxapi.codegen.schema import SchemaLoader, SchemaResolver
from oxapi.config import (
    BuildOptions,
    CodegenConfig,
    DocumentConfig,
    NamingRules,
    get_config,
)
from oxapi.exceptions import (
    BuildError,
    ConfigurationError,
    DuplicateIdentifierError,
    MalformedSchemaError,
    OutputError,
    OxapiError,
    SchemaError,
    SchemaLoadError,
    SchemaReferenceError,
    SchemaValidationError,
    UnresolvedReferenceError,
    UnsupportedReferenceError,
)

__all__ = [
    # Main entry points
    'build_model',
    'Codegen',
    'Model',
    'SchemaLoader',
    'SchemaResolver',
    # Configuration
    'BuildOptions',
    'NamingRules',
    'CodegenConfig',
    'DocumentConfig',
    'get_config',
    # Exceptions
    'OxapiError',
    'SchemaError',
    'SchemaLoadError',
    'SchemaValidationError',
    'BuildError',
    'SchemaReferenceError',
    'UnresolvedReferenceError',
    'UnsupportedReferenceError',
    'MalformedSchemaError',
    'DuplicateIdentifierError',
    'ConfigurationError',
    'OutputError',
]

try:
    __version__ = version('oxapi')
except PackageNotFoundError:
    __version__ = 'unknown'
