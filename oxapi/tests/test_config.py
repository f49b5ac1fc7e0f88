"""Test configuration for oxapi package."""

import json
import os
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from oxapi.config import (
    BuildOptions,
    Casing,
    CodegenConfig,
    DocumentConfig,
    EscapeStrategy,
    Namespace,
    NamingRules,
    get_config,
    load_json,
    load_yaml,
)
from oxapi.exceptions import ConfigurationError
from oxapi.keywords import PYTHON_KEYWORDS, PYTHON_RECEIVERS, RUST_KEYWORDS


class TestNamingRules:
    """Test NamingRules model."""

    def test_defaults_describe_rust(self):
        """Test the default casing and escapes."""
        rules = NamingRules()
        assert rules.casing_for(Namespace.TYPE) == Casing.PASCAL
        assert rules.casing_for(Namespace.FIELD) == Casing.SNAKE
        assert rules.casing_for(Namespace.PARAMETER) == Casing.SNAKE
        assert rules.casing_for(Namespace.METHOD) == Casing.SNAKE
        assert rules.casing_for(Namespace.VARIANT) == Casing.PASCAL
        assert rules.reserved_words == RUST_KEYWORDS
        assert rules.escape_strategy == EscapeStrategy.VERBATIM
        assert rules.verbatim_prefix == 'r#'
        assert rules.escape_suffix == '_'
        assert rules.suffix_overrides == {'self', 'Self', 'super', 'crate'}

    def test_partial_casing_is_completed(self):
        """Test that unspecified namespaces keep their default casing."""
        rules = NamingRules(casing={'variant': 'screaming_snake'})
        assert rules.casing_for(Namespace.VARIANT) == Casing.SCREAMING_SNAKE
        assert rules.casing_for(Namespace.TYPE) == Casing.PASCAL

    def test_python_preset(self):
        """Test the python preset."""
        rules = NamingRules.preset('python')
        assert rules.reserved_words == PYTHON_KEYWORDS | PYTHON_RECEIVERS
        assert rules.suffix_overrides == PYTHON_RECEIVERS
        assert rules.escape_strategy == EscapeStrategy.SUFFIX
        assert rules.casing_for(Namespace.VARIANT) == Casing.SCREAMING_SNAKE
        assert rules.is_reserved('class')
        assert rules.is_reserved('self')
        assert not rules.is_reserved('type')

    def test_preset_with_overrides(self):
        """Test that explicit keys win over the preset."""
        rules = NamingRules.preset('python', escape_suffix='_kw')
        assert rules.escape_suffix == '_kw'
        assert rules.escape_strategy == EscapeStrategy.SUFFIX

    def test_preset_from_dict(self):
        """Test selecting a preset in plain configuration data."""
        rules = NamingRules.model_validate({'preset': 'rust', 'max_disambiguation': 50})
        assert rules.reserved_words == RUST_KEYWORDS
        assert rules.max_disambiguation == 50

    def test_unknown_preset(self):
        """Test that an unknown preset is rejected."""
        with pytest.raises(ValidationError, match='Unknown naming preset'):
            NamingRules.preset('cobol')

    def test_max_disambiguation_lower_bound(self):
        """Test that at least one numeric suffix must be allowed."""
        with pytest.raises(ValidationError):
            NamingRules(max_disambiguation=1)

    def test_rules_are_frozen(self):
        """Test that rules cannot be changed after creation."""
        rules = NamingRules()
        with pytest.raises(ValidationError):
            rules.escape_suffix = '__'


class TestBuildOptions:
    """Test BuildOptions model."""

    def test_defaults(self):
        """Test default build options."""
        options = BuildOptions()
        assert options.use_parameter_aggregates is False
        assert options.client_name is None
        assert options.aggregate_suffix == 'Params'
        assert options.mutator_prefix == 'with'
        assert options.constructor_name == 'new'
        assert options.client_reserved_methods == ['new', 'with_client']
        assert options.naming == NamingRules()

    def test_nested_naming_preset(self):
        """Test selecting a naming preset inside build options."""
        options = BuildOptions.model_validate(
            {'use_parameter_aggregates': True, 'naming': {'preset': 'python'}}
        )
        assert options.use_parameter_aggregates is True
        assert options.naming.escape_strategy == EscapeStrategy.SUFFIX


class TestDocumentConfig:
    """Test DocumentConfig model."""

    def test_valid_document_config(self):
        """Test creating a valid DocumentConfig."""
        config = DocumentConfig(
            source='https://api.example.com/openapi.json', output='./model.json'
        )
        assert config.source == 'https://api.example.com/openapi.json'
        assert config.output == './model.json'
        assert config.options == BuildOptions()

    def test_output_is_optional(self):
        """Test that the output path may be omitted."""
        assert DocumentConfig(source='./openapi.yaml').output is None

    def test_document_config_validation(self):
        """Test DocumentConfig validation."""
        with pytest.raises(ValueError):
            DocumentConfig()  # missing required fields


class TestCodegenConfig:
    """Test CodegenConfig model."""

    def test_valid_codegen_config(self):
        """Test creating a valid CodegenConfig."""
        config = CodegenConfig(documents=[DocumentConfig(source='./api.yaml')])
        assert len(config.documents) == 1
        assert config.documents[0].source == './api.yaml'

    def test_documents_from_environment(self):
        """Test loading documents from the OXAPI_DOCUMENTS variable."""
        documents = json.dumps([{'source': './env-api.yaml'}])
        with patch.dict(os.environ, {'OXAPI_DOCUMENTS': documents}):
            config = CodegenConfig()
        assert config.documents[0].source == './env-api.yaml'


class TestLoaders:
    """Test the raw configuration file loaders."""

    def test_load_yaml(self):
        """Test loading a YAML file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.yaml'
            path.write_text('documents:\n  - source: ./api.yaml\n')
            assert load_yaml(path) == {'documents': [{'source': './api.yaml'}]}

    def test_load_json(self):
        """Test loading a JSON file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.json'
            path.write_text('{"documents": [{"source": "./api.json"}]}')
            assert load_json(path) == {'documents': [{'source': './api.json'}]}


class TestGetConfig:
    """Test get_config function."""

    def test_explicit_yaml_file(self):
        """Test loading config from an explicit YAML file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'custom.yaml'
            path.write_text(
                'documents:\n'
                '  - source: ./api.yaml\n'
                '    output: ./model.json\n'
                '    options:\n'
                '      use_parameter_aggregates: true\n'
                '      naming:\n'
                '        preset: python\n'
            )
            config = get_config(str(path))

        document = config.documents[0]
        assert document.source == './api.yaml'
        assert document.output == './model.json'
        assert document.options.use_parameter_aggregates is True
        assert document.options.naming.escape_strategy == EscapeStrategy.SUFFIX

    def test_explicit_json_file(self):
        """Test loading config from an explicit JSON file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'custom.json'
            path.write_text(json.dumps({'documents': [{'source': './api.json'}]}))
            config = get_config(str(path))

        assert config.documents[0].source == './api.json'

    def test_default_file_in_working_directory(self):
        """Test that oxapi.yaml in the working directory is found."""
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / 'oxapi.yaml').write_text('documents:\n  - source: ./a.yaml\n')
            with patch('os.getcwd', return_value=tmp):
                config = get_config()

        assert config.documents[0].source == './a.yaml'

    def test_yml_extension(self):
        """Test that oxapi.yml is found as well."""
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / 'oxapi.yml').write_text('documents:\n  - source: ./b.yaml\n')
            with patch('os.getcwd', return_value=tmp):
                config = get_config()

        assert config.documents[0].source == './b.yaml'

    def test_pyproject_table(self):
        """Test loading config from [tool.oxapi] in pyproject.toml."""
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / 'pyproject.toml').write_text(
                '[project]\nname = "demo"\n\n'
                '[[tool.oxapi.documents]]\nsource = "./pyproject-api.yaml"\n'
            )
            with patch('os.getcwd', return_value=tmp):
                config = get_config()

        assert config.documents[0].source == './pyproject-api.yaml'

    def test_invalid_pyproject_table(self):
        """Test that an invalid [tool.oxapi] table names the field."""
        with tempfile.TemporaryDirectory() as tmp:
            (Path(tmp) / 'pyproject.toml').write_text('[tool.oxapi]\ndocuments = 3\n')
            with patch('os.getcwd', return_value=tmp):
                with pytest.raises(ConfigurationError) as exc_info:
                    get_config()

        assert exc_info.value.field == 'tool.oxapi'

    def test_no_config_found(self):
        """Test the error when no configuration exists."""
        with tempfile.TemporaryDirectory() as tmp:
            with patch('os.getcwd', return_value=tmp):
                with pytest.raises(ConfigurationError, match='No oxapi configuration'):
                    get_config()

    def test_missing_explicit_file(self):
        """Test the error for a config file that does not exist."""
        with pytest.raises(ConfigurationError, match='not found') as exc_info:
            get_config('/nonexistent/oxapi.yaml')
        assert exc_info.value.config_path == '/nonexistent/oxapi.yaml'

    def test_invalid_content(self):
        """Test that invalid configuration content raises ConfigurationError."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'oxapi.yaml'
            path.write_text('documents:\n  - output: ./model.json\n')
            with pytest.raises(ConfigurationError):
                get_config(str(path))

    def test_empty_file(self):
        """Test that an empty file is reported as invalid."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'oxapi.yaml'
            path.write_text('')
            with pytest.raises(ConfigurationError):
                get_config(str(path))

    def test_unparsable_yaml(self):
        """Test that broken YAML raises ConfigurationError."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'oxapi.yaml'
            path.write_text('documents: [unclosed\n')
            with pytest.raises(ConfigurationError, match='Could not parse'):
                get_config(str(path))
