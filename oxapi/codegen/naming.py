"""Identifier sanitizing and disambiguation.

Every name that ends up in the built model passes through
:meth:`NamingContext.sanitize`, which

1. converts the raw name to the casing of its namespace,
2. escapes destination reserved words, and
3. appends a numeric suffix (``_2``, ``_3``, ...) when the identifier is
   already taken in the same namespace and scope.

Steps 1 and 2 are pure (see :func:`sanitize_name`); step 3 depends only on the
names assigned earlier in the same context, so a build that assigns names in
a fixed order always produces the same identifiers.
"""

import logging
import re
import unicodedata

from oxapi.config import Casing, EscapeStrategy, Namespace, NamingRules
from oxapi.exceptions import DuplicateIdentifierError

__all__ = (
    'split_words',
    'convert_case',
    'escape_reserved',
    'sanitize_name',
    'sanitize',
    'NamingContext',
)

logger = logging.getLogger(__name__)

GLOBAL_SCOPE = ''

_ACRONYM_BOUNDARY = re.compile(r'([A-Z]+)([A-Z][a-z])')
_WORD_BOUNDARY = re.compile(r'([a-z\d])([A-Z])')
_NON_ALPHANUMERIC = re.compile(r'[^A-Za-z0-9]+')

_FALLBACK_NAMES = {
    Namespace.TYPE: 'unnamed type',
    Namespace.VARIANT: 'empty',
}


def remove_accents(input_str: str) -> str:
    nfkd_form = unicodedata.normalize('NFKD', input_str)
    return ''.join(c for c in nfkd_form if not unicodedata.combining(c))


def split_words(raw_name: str) -> list[str]:
    """Split a raw name into its words.

    Word boundaries are non-alphanumeric characters and camel case humps, so
    ``'getHTTPResponse'``, ``'get-http-response'`` and ``'GET_HTTP_RESPONSE'``
    all split into ``get``, ``HTTP`` and ``Response`` (in their original
    letter case).
    """
    text = remove_accents(raw_name)
    text = _ACRONYM_BOUNDARY.sub(r'\1_\2', text)
    text = _WORD_BOUNDARY.sub(r'\1_\2', text)
    return [word for word in _NON_ALPHANUMERIC.split(text) if word]


def _capitalize(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def convert_case(raw_name: str, casing: Casing) -> str:
    """Convert a raw name to a casing convention.

    The result only contains ASCII letters, digits and underscores and never
    starts with a digit. It is empty when the raw name has no letters or
    digits at all.
    """
    words = split_words(raw_name)
    if not words:
        return ''

    match casing:
        case Casing.SNAKE:
            converted = '_'.join(word.lower() for word in words)
        case Casing.SCREAMING_SNAKE:
            converted = '_'.join(word.upper() for word in words)
        case Casing.PASCAL:
            converted = ''.join(_capitalize(word) for word in words)
        case Casing.CAMEL:
            converted = words[0].lower() + ''.join(_capitalize(w) for w in words[1:])

    if converted[0].isdigit():
        converted = '_' + converted
    return converted


def escape_reserved(identifier: str, rules: NamingRules) -> str:
    """Escape an identifier that is a reserved word of the destination.

    The verbatim escape (``r#type``) is used when the rules prefer it, except
    for the words listed in ``suffix_overrides``, which always get the suffix
    escape (``self_``).
    """
    if not rules.is_reserved(identifier):
        return identifier

    if (
        rules.escape_strategy == EscapeStrategy.VERBATIM
        and rules.verbatim_prefix
        and identifier not in rules.suffix_overrides
    ):
        return f'{rules.verbatim_prefix}{identifier}'
    return f'{identifier}{rules.escape_suffix}'


def sanitize_name(raw_name: str, namespace: Namespace, rules: NamingRules) -> str:
    """Cased and escaped identifier for a raw name, without disambiguation."""
    return escape_reserved(_cased(raw_name, namespace, rules), rules)


def _cased(raw_name: str, namespace: Namespace, rules: NamingRules) -> str:
    casing = rules.casing_for(namespace)
    converted = convert_case(raw_name, casing)
    if not converted:
        converted = convert_case(_FALLBACK_NAMES.get(namespace, 'unnamed'), casing)
    return converted


class NamingContext:
    """Identifiers assigned so far in one build, by namespace and scope.

    A context is owned by exactly one build and discarded with it. Type names
    live in the global scope; field names are scoped by their owning type,
    parameter names by their operation, variant names by their enum, method
    names by the client type.

    Example:
        >>> context = NamingContext(NamingRules())
        >>> context.sanitize('type', Namespace.FIELD, 'Pet')
        'r#type'
        >>> context.sanitize('Type', Namespace.FIELD, 'Pet')
        'type_2'
    """

    def __init__(self, rules: NamingRules):
        self.rules = rules
        self._taken: dict[tuple[Namespace, str], set[str]] = {}

    def _scope(self, namespace: Namespace, scope: str) -> set[str]:
        return self._taken.setdefault((namespace, scope), set())

    def is_taken(self, identifier: str, namespace: Namespace, scope: str) -> bool:
        return identifier in self._scope(namespace, scope)

    def reserve(self, identifier: str, namespace: Namespace, scope: str) -> None:
        """Mark an identifier as taken without sanitizing it."""
        self._scope(namespace, scope).add(identifier)

    def assigned(self, namespace: Namespace, scope: str) -> frozenset[str]:
        return frozenset(self._scope(namespace, scope))

    def sanitize(
        self, raw_name: str, namespace: Namespace, scope: str = GLOBAL_SCOPE
    ) -> str:
        """Assign a unique identifier for a raw name.

        Args:
            raw_name: The name as written in the document.
            namespace: The identifier namespace.
            scope: The scope inside the namespace.

        Returns:
            An identifier that is cased, reserved-word safe and not yet taken in
            the namespace and scope. It is recorded as taken before returning.

        Raises:
            DuplicateIdentifierError: If every numeric suffix up to the rules'
                ``max_disambiguation`` is taken.
        """
        taken = self._scope(namespace, scope)
        base = _cased(raw_name, namespace, self.rules)
        candidate = escape_reserved(base, self.rules)

        if candidate in taken:
            for n in range(2, self.rules.max_disambiguation + 1):
                numbered = escape_reserved(f'{base}_{n}', self.rules)
                if numbered not in taken:
                    logger.debug(
                        'Renamed %s %r to %r in scope %r to avoid a collision',
                        namespace.value,
                        raw_name,
                        numbered,
                        scope,
                    )
                    candidate = numbered
                    break
            else:
                raise DuplicateIdentifierError(namespace.value, scope or '<global>')

        taken.add(candidate)
        return candidate


def sanitize(
    raw_name: str,
    namespace: Namespace,
    scope: str,
    rules: NamingRules,
    context: NamingContext | None = None,
) -> str:
    """Sanitize one name, optionally against an existing naming context."""
    if context is None:
        context = NamingContext(rules)
    return context.sanitize(raw_name, namespace, scope)
