import json
import os
from enum import Enum
from pathlib import Path

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from oxapi.exceptions import ConfigurationError
from oxapi.keywords import (
    PYTHON_KEYWORDS,
    PYTHON_RECEIVERS,
    RUST_KEYWORDS,
    RUST_SUFFIX_ONLY,
)

DEFAULT_FILENAMES = ['oxapi.yaml', 'oxapi.yml']


class Namespace(str, Enum):
    """Identifier namespaces with their own casing and uniqueness rules."""

    TYPE = 'type'
    FIELD = 'field'
    PARAMETER = 'parameter'
    METHOD = 'method'
    VARIANT = 'variant'


class Casing(str, Enum):
    SNAKE = 'snake'
    PASCAL = 'pascal'
    CAMEL = 'camel'
    SCREAMING_SNAKE = 'screaming_snake'


class EscapeStrategy(str, Enum):
    """How a reserved word is turned into a legal identifier."""

    VERBATIM = 'verbatim'
    SUFFIX = 'suffix'


DEFAULT_CASING: dict[Namespace, Casing] = {
    Namespace.TYPE: Casing.PASCAL,
    Namespace.FIELD: Casing.SNAKE,
    Namespace.PARAMETER: Casing.SNAKE,
    Namespace.METHOD: Casing.SNAKE,
    Namespace.VARIANT: Casing.PASCAL,
}

NAMING_PRESETS: dict[str, dict] = {
    'rust': {},
    'python': {
        'casing': {Namespace.VARIANT: Casing.SCREAMING_SNAKE},
        'reserved_words': PYTHON_KEYWORDS | PYTHON_RECEIVERS,
        'escape_strategy': EscapeStrategy.SUFFIX,
        'verbatim_prefix': '',
        'suffix_overrides': PYTHON_RECEIVERS,
    },
}


class NamingRules(BaseModel):
    """Naming rules for one destination language.

    The defaults describe Rust: PascalCase types and enum cases, snake_case
    members, ``r#`` raw identifiers for keywords and a trailing underscore for
    the keywords that cannot be raw identifiers.
    """

    model_config = ConfigDict(frozen=True)

    casing: dict[Namespace, Casing] = Field(
        default_factory=lambda: dict(DEFAULT_CASING),
        description='Casing convention per identifier namespace.',
    )

    reserved_words: frozenset[str] = Field(
        RUST_KEYWORDS, description='Words that cannot be used as bare identifiers.'
    )

    escape_strategy: EscapeStrategy = Field(
        EscapeStrategy.VERBATIM,
        description='Preferred escape for reserved words.',
    )

    verbatim_prefix: str = Field(
        'r#', description='Prefix of the verbatim identifier escape.'
    )

    escape_suffix: str = Field(
        '_', description='Suffix appended when the verbatim escape is not used.'
    )

    suffix_overrides: frozenset[str] = Field(
        RUST_SUFFIX_ONLY,
        description='Reserved words that always use the suffix escape.',
    )

    max_disambiguation: int = Field(
        10_000,
        ge=2,
        description='Highest numeric suffix tried before giving up on a name.',
    )

    @model_validator(mode='before')
    @classmethod
    def _apply_preset(cls, data):
        if not isinstance(data, dict) or 'preset' not in data:
            return data
        data = dict(data)
        preset = data.pop('preset')
        if preset not in NAMING_PRESETS:
            raise ValueError(
                f"Unknown naming preset '{preset}'. "
                f'Available presets: {", ".join(sorted(NAMING_PRESETS))}'
            )
        return {**NAMING_PRESETS[preset], **data}

    @field_validator('casing', mode='after')
    @classmethod
    def _complete_casing(cls, value: dict[Namespace, Casing]) -> dict[Namespace, Casing]:
        return {**DEFAULT_CASING, **value}

    @classmethod
    def preset(cls, name: str, **overrides) -> 'NamingRules':
        """Create the rules of a named destination language preset."""
        return cls.model_validate({'preset': name, **overrides})

    def casing_for(self, namespace: Namespace) -> Casing:
        return self.casing[namespace]

    def is_reserved(self, identifier: str) -> bool:
        return identifier in self.reserved_words


class BuildOptions(BaseModel):
    """Options that shape the model built from one document."""

    naming: NamingRules = Field(
        default_factory=NamingRules, description='Identifier naming rules.'
    )

    use_parameter_aggregates: bool = Field(
        False,
        description='Bundle each operation\'s parameters into one buildable value.',
    )

    client_name: str | None = Field(
        None,
        description='Name of the client type. Derived from the API title if not set.',
    )

    aggregate_suffix: str = Field(
        'Params', description='Suffix of parameter aggregate type names.'
    )

    mutator_prefix: str = Field(
        'with', description='Prefix of aggregate mutator operation names.'
    )

    constructor_name: str = Field(
        'new', description='Name of the aggregate constructing operation.'
    )

    client_reserved_methods: list[str] = Field(
        default_factory=lambda: ['new', 'with_client'],
        description='Method names the client type already defines.',
    )


class DocumentConfig(BaseModel):
    """Represents a single document to be processed."""

    source: str = Field(..., description='Path or URL to the OpenAPI document.')

    output: str | None = Field(
        None, description='Optional path of the exported JSON model.'
    )

    options: BuildOptions = Field(
        default_factory=BuildOptions, description='Model build options.'
    )


class CodegenConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix='OXAPI_')

    documents: list[DocumentConfig] = Field(
        ..., description='List of OpenAPI documents to process.'
    )


def load_yaml(path: str | Path) -> dict:
    return yaml.safe_load(Path(path).read_text())


def load_json(path: str | Path) -> dict:
    return json.loads(Path(path).read_text())


def _load_config_file(path: str | Path) -> CodegenConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError('Configuration file not found', config_path=str(path))

    loader = load_json if path.suffix.lower() == '.json' else load_yaml
    try:
        return CodegenConfig.model_validate(loader(path) or {})
    except ValidationError as e:
        raise ConfigurationError(str(e), config_path=str(path))
    except (ValueError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f'Could not parse configuration: {e}', config_path=str(path)
        )


def get_config(path: str | None = None) -> CodegenConfig:
    """Load configuration from a file or from the project's pyproject.toml."""
    if path:
        return _load_config_file(path)

    cwd = os.getcwd()

    for filename in DEFAULT_FILENAMES:
        path = Path(cwd) / filename
        if path.exists():
            return _load_config_file(path)

    path = Path(os.getcwd()) / 'pyproject.toml'

    if path.exists():
        import tomllib

        pyproject = tomllib.loads(path.read_text())
        tools = pyproject.get('tool', {})

        if 'oxapi' in tools:
            try:
                return CodegenConfig.model_validate(tools['oxapi'])
            except ValidationError as e:
                raise ConfigurationError(str(e), config_path=str(path), field='tool.oxapi')

    raise ConfigurationError('No oxapi configuration found', config_path=cwd)
