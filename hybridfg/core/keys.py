"""
hybridfg/core/keys.py

Discrete and continuous keys sharing one namespace.

Key types:
- Key: any hashable, mutually orderable identifier (e.g. "x1", "m1")
- KeyKind: DISCRETE or CONTINUOUS
- DiscreteKey: (key, cardinality) pair identifying a categorical variable
- Assignment: Dict[Key, int], one value per discrete key
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from itertools import product
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, Tuple, TypeAlias

Key: TypeAlias = Hashable
Assignment: TypeAlias = Dict[Key, int]
KeyFormatter: TypeAlias = Callable[[Key], str]


class KeyKind(Enum):
    """Kind of variable a key refers to."""
    DISCRETE = 1
    CONTINUOUS = 2


def default_key_formatter(key: Key) -> str:
    return str(key)


@dataclass(frozen=True)
class DiscreteKey:
    """
    A categorical variable.

    Attributes:
        key: Identifier in the shared key namespace
        cardinality: Number of values the variable can take
    """
    key: Key
    cardinality: int

    def __post_init__(self):
        if self.cardinality < 1:
            raise ValueError(f"DiscreteKey {self.key!r}: cardinality must be >= 1, got {self.cardinality}")

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        return f"{key_formatter(self.key)}:{self.cardinality}"


def canonical_keys(keys: Iterable[DiscreteKey]) -> Tuple[DiscreteKey, ...]:
    """
    Return the canonical (sorted by key, deduplicated) ordering of discrete keys.

    Raises:
        ValueError: If the same key appears with two different cardinalities
    """
    seen: Dict[Key, DiscreteKey] = {}
    for dk in keys:
        prev = seen.get(dk.key)
        if prev is not None and prev.cardinality != dk.cardinality:
            raise ValueError(
                f"Discrete key {dk.key!r} has conflicting cardinalities "
                f"{prev.cardinality} and {dk.cardinality}"
            )
        seen[dk.key] = dk
    return tuple(seen[k] for k in sorted(seen))


def union_keys(*groups: Iterable[DiscreteKey]) -> Tuple[DiscreteKey, ...]:
    """Canonical union of several discrete key groups."""
    merged = []
    for g in groups:
        merged.extend(g)
    return canonical_keys(merged)


def cardinalities(keys: Iterable[DiscreteKey]) -> Tuple[int, ...]:
    return tuple(dk.cardinality for dk in keys)


def assignments(keys: Tuple[DiscreteKey, ...]) -> Iterator[Assignment]:
    """Enumerate every assignment to keys in row-major order (last key fastest)."""
    for values in product(*(range(dk.cardinality) for dk in keys)):
        yield {dk.key: v for dk, v in zip(keys, values)}


def validate_assignment(keys: Tuple[DiscreteKey, ...], assignment: Assignment) -> Tuple[int, ...]:
    """
    Check an assignment covers keys with in-range values.

    Returns:
        The index tuple selecting the assignment, in keys order

    Raises:
        KeyError: If a key is missing from the assignment
        ValueError: If a value is out of range for its key
    """
    index = []
    for dk in keys:
        if dk.key not in assignment:
            raise KeyError(f"Assignment is missing discrete key {dk.key!r}")
        v = int(assignment[dk.key])
        if not 0 <= v < dk.cardinality:
            raise ValueError(
                f"Assignment {dk.key!r}={v} out of range for cardinality {dk.cardinality}"
            )
        index.append(v)
    return tuple(index)


def format_keys(keys: Iterable[Any], key_formatter: KeyFormatter = default_key_formatter) -> str:
    """Format continuous or discrete keys as a space separated list."""
    parts = []
    for k in keys:
        if isinstance(k, DiscreteKey):
            parts.append(k.format(key_formatter))
        else:
            parts.append(key_formatter(k))
    return " ".join(parts)
