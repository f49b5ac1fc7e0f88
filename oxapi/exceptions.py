"""Custom exceptions for oxapi.

This module defines the hierarchy of exceptions raised while loading an
OpenAPI document and building the client model from it. Every failure of the
model build itself derives from :class:`BuildError` and names the document
location that caused it.
"""


class OxapiError(Exception):
    """Base exception for all oxapi errors.

    All exceptions raised by oxapi inherit from this class, making it easy
    to catch every oxapi-related error with a single except clause.

    Example:
        try:
            model = build_model(document, options)
        except OxapiError as e:
            print(f"oxapi error: {e}")
    """

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class SchemaError(OxapiError):
    """Base exception for errors obtaining the document tree."""

    pass


class SchemaLoadError(SchemaError):
    """Failed to load an OpenAPI document from a source.

    Attributes:
        source: The source path or URL that failed to load.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, source: str, cause: Exception | None = None):
        self.source = source
        self.cause = cause
        message = f"Failed to load schema from '{source}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)


class SchemaValidationError(SchemaError):
    """The loaded document is not a supported OpenAPI document.

    Attributes:
        source: The source path or URL of the invalid document.
        errors: List of validation error messages.
    """

    def __init__(self, source: str, errors: list[str] | None = None):
        self.source = source
        self.errors = errors or []
        message = f"Schema validation failed for '{source}'"
        if errors:
            message += f': {"; ".join(errors)}'
        super().__init__(message)


class BuildError(OxapiError):
    """Base exception for failures while building the client model.

    Any build error aborts model construction entirely; no partial model is
    ever returned.

    Attributes:
        location: JSON pointer of the offending document location, if known.
    """

    def __init__(self, message: str, location: str | None = None):
        self.location = location
        super().__init__(message)


class SchemaReferenceError(BuildError):
    """Failed to resolve a $ref reference in the document.

    Attributes:
        reference: The $ref string that could not be resolved.
        reason: Explanation of why the reference couldn't be resolved.
    """

    def __init__(self, reference: str, reason: str | None = None):
        self.reference = reference
        self.reason = reason
        message = f"Failed to resolve reference '{reference}'"
        if reason:
            message += f': {reason}'
        super().__init__(message, location=reference)


class UnresolvedReferenceError(SchemaReferenceError):
    """A reference points at a location that does not exist in the document."""

    def __init__(self, pointer: str, reason: str | None = None):
        self.pointer = pointer
        super().__init__(pointer, reason or 'no such location in the document')


class UnsupportedReferenceError(SchemaReferenceError):
    """A reference points outside the document (another file or a URL)."""

    def __init__(self, pointer: str):
        self.pointer = pointer
        super().__init__(
            pointer,
            'references outside the document are not supported. '
            'Consider bundling the document into a single file.',
        )


class MalformedSchemaError(BuildError):
    """A schema or operation violates a structural precondition.

    Attributes:
        reason: What is wrong at the location.
    """

    def __init__(self, location: str, reason: str):
        self.reason = reason
        super().__init__(f"Malformed schema at '{location}': {reason}", location)


class DuplicateIdentifierError(BuildError):
    """No unique identifier could be found within a namespace and scope.

    This is a safety net for exhausted disambiguation and is not expected to
    trigger for real documents.

    Attributes:
        namespace: The identifier namespace (type, field, parameter, ...).
        scope: The scope inside the namespace (an owning type or operation).
    """

    def __init__(self, namespace: str, scope: str):
        self.namespace = namespace
        self.scope = scope
        super().__init__(
            f"Could not find a unique {namespace} identifier in scope '{scope}'",
            location=scope,
        )


class ConfigurationError(OxapiError):
    """Error in configuration.

    Attributes:
        config_path: The path to the configuration file, if applicable.
        field: The specific configuration field that is invalid.
    """

    def __init__(
        self, message: str, config_path: str | None = None, field: str | None = None
    ):
        self.config_path = config_path
        self.field = field
        full_message = message
        if config_path:
            full_message = f"{message} in '{config_path}'"
        if field:
            full_message += f' (field: {field})'
        super().__init__(full_message)


class OutputError(OxapiError):
    """Error writing the exported model.

    Attributes:
        output_path: The path where output was being written.
        cause: The underlying exception that caused the failure.
    """

    def __init__(self, output_path: str, cause: Exception | None = None):
        self.output_path = output_path
        self.cause = cause
        message = f"Failed to write output to '{output_path}'"
        if cause:
            message += f': {cause}'
        super().__init__(message)
