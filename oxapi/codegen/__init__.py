"""Model building for oxapi.

This package turns a decoded OpenAPI document into the immutable client model
that an emitter renders into source code.

Main Components:
    - build_model: The entry point of a model build
    - Codegen: Loads a configured document, builds and exports its model
    - SchemaLoader: Loads OpenAPI documents from URLs or files
    - SchemaResolver: Resolves internal $ref pointers and tracks cycles
    - TypeTableBuilder: Builds the type table from the document's schemas
    - OperationSynthesizer: Builds operation descriptors and signatures
    - NamingContext: Assigns unique, reserved-word safe identifiers

Example:
    >>> from oxapi.codegen import build_model
    >>> from oxapi.config import BuildOptions
    >>>
    >>> model = build_model(document, BuildOptions(use_parameter_aggregates=True))
    >>> [operation.name for operation in model.operations]
    ['list_users', 'get_user_by_id']
"""

from oxapi.codegen.codegen import Codegen, build_model
from oxapi.codegen.model import Model
from oxapi.codegen.naming import NamingContext, sanitize
from oxapi.codegen.operations import OperationSynthesizer
from oxapi.codegen.schema import SchemaLoader, SchemaResolver, resolve
from oxapi.codegen.type_registry import TypeRegistry
from oxapi.codegen.types import TypeTableBuilder, build_types

__all__ = [
    'Codegen',
    'build_model',
    'build_types',
    'Model',
    'NamingContext',
    'sanitize',
    'OperationSynthesizer',
    'SchemaLoader',
    'SchemaResolver',
    'resolve',
    'TypeRegistry',
    'TypeTableBuilder',
]
