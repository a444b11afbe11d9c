"""
Core module: keys, assignments and key formatting.
"""

from hybridfg.core.keys import (
    Key,
    Assignment,
    KeyFormatter,
    KeyKind,
    DiscreteKey,
    default_key_formatter,
    canonical_keys,
    union_keys,
    cardinalities,
    assignments,
    validate_assignment,
    format_keys,
)

__all__ = [
    "Key",
    "Assignment",
    "KeyFormatter",
    "KeyKind",
    "DiscreteKey",
    "default_key_formatter",
    "canonical_keys",
    "union_keys",
    "cardinalities",
    "assignments",
    "validate_assignment",
    "format_keys",
]
