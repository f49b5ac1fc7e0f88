"""Reserved-word tables for the destination languages oxapi names things for."""

import keyword

__all__ = [
    'PYTHON_KEYWORDS',
    'PYTHON_RECEIVERS',
    'RUST_KEYWORDS',
    'RUST_SUFFIX_ONLY',
]

# Strict and reserved keywords of Rust 2024. Weak keywords such as union are
# legal identifiers and stay usable.
RUST_KEYWORDS = frozenset(
    {
        'as',
        'async',
        'await',
        'break',
        'const',
        'continue',
        'crate',
        'dyn',
        'else',
        'enum',
        'extern',
        'false',
        'fn',
        'for',
        'gen',
        'if',
        'impl',
        'in',
        'let',
        'loop',
        'match',
        'mod',
        'move',
        'mut',
        'pub',
        'ref',
        'return',
        'self',
        'Self',
        'static',
        'struct',
        'super',
        'trait',
        'true',
        'type',
        'unsafe',
        'use',
        'where',
        'while',
        'abstract',
        'become',
        'box',
        'do',
        'final',
        'macro',
        'override',
        'priv',
        'try',
        'typeof',
        'unsized',
        'virtual',
        'yield',
    }
)

# Path keywords that cannot be written as raw identifiers (r#self is invalid).
RUST_SUFFIX_ONLY = frozenset({'self', 'Self', 'super', 'crate'})

# Soft keywords (match, case, type) are legal identifiers and are not reserved.
PYTHON_KEYWORDS = frozenset(keyword.kwlist)

# Conventional receivers of methods; a parameter must never shadow them.
PYTHON_RECEIVERS = frozenset({'self', 'cls'})
