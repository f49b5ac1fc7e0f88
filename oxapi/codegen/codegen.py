"""Model building for oxapi.

This module provides ``build_model``, the single entry point that turns a
decoded OpenAPI document into an immutable :class:`Model`, and the Codegen
class that loads a configured document, builds its model and exports it.
"""

import json
import logging
import re
from typing import Any

from upath import UPath

from oxapi.codegen.docs import model_docs
from oxapi.codegen.model import ApiInfo, Model
from oxapi.codegen.naming import NamingContext, convert_case
from oxapi.codegen.operations import OperationSynthesizer
from oxapi.codegen.schema import SchemaLoader, SchemaResolver
from oxapi.codegen.types import TypeTableBuilder
from oxapi.config import BuildOptions, Casing, DocumentConfig, Namespace
from oxapi.exceptions import MalformedSchemaError, OutputError

__all__ = ['build_model', 'client_name_for', 'Codegen']

logger = logging.getLogger(__name__)

CLIENT_SUFFIX = 'Api'


def client_name_for(title: str) -> str:
    """Client type name derived from an API title.

    Example:
        >>> client_name_for('Pet Store (v2)')
        'PetStoreV2Api'
    """
    sanitized = re.sub(r'[^A-Za-z0-9\s]', '', title)
    return convert_case(sanitized, Casing.PASCAL) + CLIENT_SUFFIX


def _api_info(document: dict[str, Any], client_name: str) -> ApiInfo:
    info = document.get('info') or {}
    contact = info.get('contact') or {}
    license_ = info.get('license') or {}
    return ApiInfo(
        title=str(info.get('title', '')),
        version=str(info.get('version', '')),
        client_name=client_name,
        description=info.get('description'),
        contact_email=contact.get('email'),
        license_name=license_.get('name'),
        license_url=license_.get('url'),
        terms_of_service=info.get('termsOfService'),
    )


def build_model(document: dict[str, Any], options: BuildOptions | None = None) -> Model:
    """Build the client model of a decoded OpenAPI document.

    The build runs in a fixed order: named schemas get their names first, then
    their bodies are built, then operations are synthesized (which may add
    synthesized types and aggregates), and finally the client type is named.
    Identical documents and options therefore always produce equal models.

    Args:
        document: The decoded document tree.
        options: Build options. Defaults are used if omitted.

    Returns:
        The immutable model.

    Raises:
        BuildError: If any part of the document cannot be built. No partial
            model is ever returned.
    """
    options = options or BuildOptions()
    if not isinstance(document, dict):
        raise MalformedSchemaError('#', 'document is not a mapping')

    naming = NamingContext(options.naming)
    resolver = SchemaResolver(document)

    types = TypeTableBuilder(resolver, naming)
    types.register_named_schemas()
    types.build()

    synthesizer = OperationSynthesizer(types, naming, options)
    operations = synthesizer.synthesize()

    title = str((document.get('info') or {}).get('title', ''))
    client_name = naming.sanitize(
        options.client_name or client_name_for(title), Namespace.TYPE
    )

    model = Model(
        api=_api_info(document, client_name),
        types=types.registry.descriptors(),
        aggregates=tuple(synthesizer.aggregates),
        operations=tuple(operations),
        cycles=types.cycles,
    )
    logger.debug(
        'Built model for %r: %d types, %d operations, %d cycles',
        title,
        len(model.types),
        len(model.operations),
        len(model.cycles),
    )
    return model


class Codegen:
    """Builds and exports the model of one configured document.

    Attributes:
        config: The DocumentConfig containing source and output settings.

    Example:
        >>> from oxapi.config import DocumentConfig
        >>> from oxapi.codegen.codegen import Codegen
        >>>
        >>> config = DocumentConfig(
        ...     source="https://api.example.com/openapi.json",
        ...     output="./model.json"
        ... )
        >>> codegen = Codegen(config)
        >>> model = codegen.build()
        >>> codegen.export(model)
    """

    def __init__(
        self, config: DocumentConfig, schema_loader: SchemaLoader | None = None
    ):
        """Initialize the code generator.

        Args:
            config: Configuration specifying the source document and output.
            schema_loader: Optional custom schema loader. If not provided,
                          a default SchemaLoader will be created.
        """
        self.config = config
        self.document: dict[str, Any] | None = None
        self._schema_loader = schema_loader or SchemaLoader()

    def _load_schema(self) -> None:
        """Load the document from the configured source.

        Raises:
            SchemaLoadError: If the document cannot be loaded from the source.
            SchemaValidationError: If the document is not OpenAPI 3.0.
        """
        self.document = self._schema_loader.load(self.config.source)

    def build(self) -> Model:
        self._load_schema()

        assert self.document is not None

        model = build_model(self.document, self.config.options)
        logger.info(
            'Built %s from %s: %d types, %d aggregates, %d operations',
            model.api.client_name,
            self.config.source,
            len(model.types),
            len(model.aggregates),
            len(model.operations),
        )
        return model

    def export(self, model: Model) -> str | None:
        """Write the model and its documentation lines as JSON to the output path.

        Returns:
            The output path, or None if no output is configured.

        Raises:
            OutputError: If the file cannot be written.
        """
        if not self.config.output:
            return None

        path = UPath(self.config.output)
        content = {'model': model.to_dict(), 'docs': model_docs(model)}
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(content, indent=2, default=str) + '\n')
        except OSError as e:
            raise OutputError(self.config.output, cause=e)

        logger.info('Wrote model to %s', self.config.output)
        return self.config.output

    def generate(self) -> str | None:
        """Build the model and export it."""
        return self.export(self.build())
