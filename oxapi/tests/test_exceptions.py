"""Test suite for oxapi exceptions.

This module tests the exception hierarchy: the attributes each error keeps
and the messages it renders.
"""

import pytest

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


class TestOxapiError:
    """Tests for the base OxapiError exception."""

    def test_basic_message(self):
        """Test that the error stores the message."""
        error = OxapiError('Something went wrong')
        assert error.message == 'Something went wrong'
        assert str(error) == 'Something went wrong'

    def test_inheritance(self):
        """Test that OxapiError inherits from Exception."""
        error = OxapiError('Test')
        assert isinstance(error, Exception)

    def test_can_be_caught_as_exception(self):
        """Test that the error can be caught as a generic Exception."""
        with pytest.raises(Exception):
            raise OxapiError('Test error')


class TestSchemaErrors:
    """Tests for document loading exceptions."""

    def test_schema_error_inheritance(self):
        """Test that SchemaError inherits from OxapiError."""
        error = SchemaError('Schema issue')
        assert isinstance(error, OxapiError)

    def test_schema_load_error_with_source(self):
        """Test SchemaLoadError with just a source."""
        error = SchemaLoadError('https://api.example.com/openapi.json')
        assert error.source == 'https://api.example.com/openapi.json'
        assert error.cause is None
        assert 'https://api.example.com/openapi.json' in str(error)

    def test_schema_load_error_with_cause(self):
        """Test SchemaLoadError with a cause exception."""
        cause = ConnectionError('Network unavailable')
        error = SchemaLoadError('https://api.example.com/openapi.json', cause=cause)
        assert error.cause == cause
        assert 'Network unavailable' in str(error)

    def test_schema_validation_error_with_errors(self):
        """Test SchemaValidationError with validation errors."""
        errors = ["missing 'info' object", "'paths' is not a mapping"]
        error = SchemaValidationError('./api.yaml', errors=errors)
        assert error.source == './api.yaml'
        assert error.errors == errors
        assert "missing 'info' object; 'paths' is not a mapping" in str(error)

    def test_schema_validation_error_without_errors(self):
        """Test SchemaValidationError without detailed errors."""
        error = SchemaValidationError('./api.yaml')
        assert error.errors == []
        assert str(error) == "Schema validation failed for './api.yaml'"


class TestBuildErrors:
    """Tests for model build exceptions."""

    def test_build_error_location(self):
        """Test that BuildError keeps the offending location."""
        error = BuildError('Build failed', location='#/paths/~1users/get')
        assert error.location == '#/paths/~1users/get'
        assert isinstance(error, OxapiError)

    def test_build_error_without_location(self):
        """Test that the location is optional."""
        assert BuildError('Build failed').location is None

    def test_schema_reference_error(self):
        """Test SchemaReferenceError."""
        error = SchemaReferenceError('#/components/schemas/Pet', reason='Schema not found')
        assert error.reference == '#/components/schemas/Pet'
        assert error.reason == 'Schema not found'
        assert error.location == '#/components/schemas/Pet'
        assert 'Schema not found' in str(error)

    def test_unresolved_reference_error(self):
        """Test UnresolvedReferenceError names the pointer."""
        error = UnresolvedReferenceError('#/components/schemas/Missing')
        assert isinstance(error, SchemaReferenceError)
        assert isinstance(error, BuildError)
        assert error.pointer == '#/components/schemas/Missing'
        assert 'no such location' in str(error)

    def test_unresolved_reference_error_with_reason(self):
        """Test that a reason replaces the default explanation."""
        error = UnresolvedReferenceError('#foo', 'not a JSON pointer')
        assert error.reason == 'not a JSON pointer'

    def test_unsupported_reference_error(self):
        """Test UnsupportedReferenceError suggests bundling."""
        error = UnsupportedReferenceError('common.yaml#/components/schemas/Pet')
        assert isinstance(error, SchemaReferenceError)
        assert error.pointer == 'common.yaml#/components/schemas/Pet'
        assert 'bundling' in str(error)

    def test_malformed_schema_error(self):
        """Test MalformedSchemaError message format."""
        error = MalformedSchemaError('#/components/schemas/List', 'array schema has no items')
        assert error.location == '#/components/schemas/List'
        assert error.reason == 'array schema has no items'
        assert str(error) == (
            "Malformed schema at '#/components/schemas/List': array schema has no items"
        )

    def test_duplicate_identifier_error(self):
        """Test DuplicateIdentifierError keeps namespace and scope."""
        error = DuplicateIdentifierError('field', 'Pet')
        assert error.namespace == 'field'
        assert error.scope == 'Pet'
        assert error.location == 'Pet'
        assert 'field' in str(error)

    def test_build_errors_can_be_caught_together(self):
        """Test that every build failure is a BuildError."""
        errors = [
            UnresolvedReferenceError('#/a'),
            UnsupportedReferenceError('b.yaml'),
            MalformedSchemaError('#/c', 'reason'),
            DuplicateIdentifierError('type', '<global>'),
        ]
        for error in errors:
            with pytest.raises(BuildError):
                raise error


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_basic_configuration_error(self):
        """Test basic ConfigurationError."""
        error = ConfigurationError('Invalid configuration')
        assert str(error) == 'Invalid configuration'

    def test_configuration_error_with_path(self):
        """Test ConfigurationError with config path."""
        error = ConfigurationError('Invalid value', config_path='./oxapi.yml')
        assert error.config_path == './oxapi.yml'
        assert "Invalid value in './oxapi.yml'" in str(error)

    def test_configuration_error_with_field(self):
        """Test ConfigurationError with field name."""
        error = ConfigurationError('Invalid value', field='documents[0].source')
        assert error.field == 'documents[0].source'
        assert '(field: documents[0].source)' in str(error)


class TestOutputError:
    """Tests for OutputError."""

    def test_output_error_basic(self):
        """Test basic OutputError."""
        error = OutputError('./output/model.json')
        assert error.output_path == './output/model.json'
        assert './output/model.json' in str(error)

    def test_output_error_with_cause(self):
        """Test OutputError with cause."""
        cause = PermissionError('Access denied')
        error = OutputError('./output/model.json', cause=cause)
        assert error.cause == cause
        assert 'Access denied' in str(error)
