"""
hybridfg/tree/decision_tree.py

A DecisionTree maps every assignment of an ordered tuple of discrete keys to
a leaf value. It is the container for everything indexed by a discrete
hypothesis: per-hypothesis factor collections, conditionals, potentials.

Representation:
  - keys are held in canonical order (sorted by key)
  - leaves are stored as a flat row-major tuple, last key varying fastest,
    so a tree over keys with cardinalities (c1, ..., cn) has c1*...*cn leaves
  - a tree over no keys has exactly one leaf
  - the *empty* tree has no keys and no leaves; it stands for "nothing
    accumulated yet"

Key operations:
  - join:  pair leaves of two trees over the union of their keys
  - map:   apply a function to every leaf
  - unzip: split a tree of pairs into two trees

Trees are never mutated; every operation returns a new tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterator, Optional, Sequence, Tuple, TypeVar

import numpy as np

from hybridfg.core.keys import (
    Assignment,
    DiscreteKey,
    KeyFormatter,
    assignments,
    canonical_keys,
    cardinalities,
    default_key_formatter,
    union_keys,
    validate_assignment,
)

V = TypeVar("V")
W = TypeVar("W")


def _flat_index(index: Tuple[int, ...], shape: Tuple[int, ...]) -> int:
    flat = 0
    for i, n in zip(index, shape):
        flat = flat * n + i
    return flat


@dataclass(frozen=True, eq=False)
class DecisionTree(Generic[V]):
    """
    Immutable table of leaves indexed by discrete assignments.

    Attributes:
        keys: Canonically ordered discrete keys the tree branches on
        leaves: Row-major leaves, or None for the empty tree
    """
    keys: Tuple[DiscreteKey, ...] = ()
    leaves: Optional[Tuple[V, ...]] = None

    def __post_init__(self):
        if self.leaves is None:
            if self.keys:
                raise ValueError("The empty DecisionTree cannot carry discrete keys")
            return
        if canonical_keys(self.keys) != self.keys:
            raise ValueError(f"DecisionTree keys must be canonical, got {self.keys}")
        expected = int(np.prod(self.shape, dtype=np.int64))
        if len(self.leaves) != expected:
            raise ValueError(
                f"DecisionTree over {len(self.keys)} keys needs {expected} leaves, got {len(self.leaves)}"
            )

    # Constructors

    @staticmethod
    def empty() -> "DecisionTree[Any]":
        """The uninitialized tree."""
        return DecisionTree()

    @staticmethod
    def leaf(value: V) -> "DecisionTree[V]":
        """A single leaf broadcast over no keys."""
        return DecisionTree((), (value,))

    @staticmethod
    def from_leaves(keys: Sequence[DiscreteKey], values: Sequence[V]) -> "DecisionTree[V]":
        """
        Build a tree from leaves listed in row-major order over keys *as given*.

        The keys are canonicalized and the leaves permuted accordingly, so
        from_leaves((m2, m1), ...) lists values with m1 varying fastest.
        """
        given = tuple(keys)
        if len(set(dk.key for dk in given)) != len(given):
            raise ValueError(f"Duplicate discrete keys in {given}")
        values = tuple(values)
        given_shape = cardinalities(given)
        expected = int(np.prod(given_shape, dtype=np.int64))
        if len(values) != expected:
            raise ValueError(f"Expected {expected} leaves for keys {given}, got {len(values)}")
        canon = canonical_keys(given)
        if canon == given:
            return DecisionTree(canon, values)
        pos = {dk.key: i for i, dk in enumerate(given)}
        leaves = []
        for index in np.ndindex(*cardinalities(canon)):
            src = [0] * len(given)
            for dk, v in zip(canon, index):
                src[pos[dk.key]] = v
            leaves.append(values[_flat_index(tuple(src), given_shape)])
        return DecisionTree(canon, tuple(leaves))

    @staticmethod
    def from_function(keys: Sequence[DiscreteKey], f: Callable[[Assignment], V]) -> "DecisionTree[V]":
        """Build a tree by evaluating f on every assignment to keys."""
        canon = canonical_keys(keys)
        return DecisionTree(canon, tuple(f(a) for a in assignments(canon)))

    # Queries

    @property
    def is_empty(self) -> bool:
        return self.leaves is None

    @property
    def shape(self) -> Tuple[int, ...]:
        return cardinalities(self.keys)

    @property
    def num_leaves(self) -> int:
        return 0 if self.leaves is None else len(self.leaves)

    def get(self, assignment: Optional[Assignment] = None) -> V:
        """
        Leaf selected by an assignment.

        The assignment may carry keys the tree does not branch on; they are ignored.
        """
        if self.leaves is None:
            raise KeyError("Cannot look up a leaf in the empty DecisionTree")
        index = validate_assignment(self.keys, assignment or {})
        return self.leaves[_flat_index(index, self.shape)]

    def __call__(self, assignment: Optional[Assignment] = None) -> V:
        return self.get(assignment)

    def items(self) -> Iterator[Tuple[Assignment, V]]:
        """Iterate (assignment, leaf) pairs in row-major order."""
        if self.leaves is None:
            return iter(())
        return zip(assignments(self.keys), self.leaves)

    def values(self) -> Tuple[V, ...]:
        return () if self.leaves is None else self.leaves

    # Combinators

    def _aligned_leaves(self, target_keys: Tuple[DiscreteKey, ...]) -> Tuple[V, ...]:
        """
        Leaves re-indexed over target_keys (a superset of self.keys).

        Keys missing from self are broadcast: the same leaf is repeated
        for every value of the missing key.
        """
        if target_keys == self.keys:
            return self.leaves
        src_pos = {dk.key: i for i, dk in enumerate(self.keys)}
        for dk in self.keys:
            if dk not in target_keys:
                raise ValueError(f"Cannot align tree over {self.keys} to {target_keys}")
        shape = self.shape
        out = []
        for index in np.ndindex(*cardinalities(target_keys)):
            src = [0] * len(self.keys)
            for dk, v in zip(target_keys, index):
                if dk.key in src_pos:
                    src[src_pos[dk.key]] = v
            out.append(self.leaves[_flat_index(tuple(src), shape)])
        return tuple(out)

    def join(self, other: "DecisionTree[W]", combine: Callable[[V, W], Any]) -> "DecisionTree[Any]":
        """
        Merge two trees over the union of their keys.

        (a join b)(x) = combine(a(x restricted to a.keys), b(x restricted to b.keys))
        """
        if self.is_empty or other.is_empty:
            raise ValueError("join requires two non-empty trees")
        union = union_keys(self.keys, other.keys)
        a = self._aligned_leaves(union)
        b = other._aligned_leaves(union)
        return DecisionTree(union, tuple(combine(x, y) for x, y in zip(a, b)))

    def map(self, f: Callable[[V], W]) -> "DecisionTree[W]":
        """Apply f to every leaf. The empty tree maps to itself."""
        if self.leaves is None:
            return DecisionTree.empty()
        return DecisionTree(self.keys, tuple(f(v) for v in self.leaves))

    def unzip(self) -> Tuple["DecisionTree[Any]", "DecisionTree[Any]"]:
        """Split a tree whose leaves are pairs into two trees over the same keys."""
        if self.leaves is None:
            return DecisionTree.empty(), DecisionTree.empty()
        firsts = tuple(pair[0] for pair in self.leaves)
        seconds = tuple(pair[1] for pair in self.leaves)
        return DecisionTree(self.keys, firsts), DecisionTree(self.keys, seconds)

    def to_array(self, dtype: Any = np.float64) -> np.ndarray:
        """Leaves as a numpy array shaped by the key cardinalities."""
        if self.leaves is None:
            raise ValueError("The empty DecisionTree has no array form")
        return np.asarray(self.leaves, dtype=dtype).reshape(self.shape)

    def format(self, key_formatter: KeyFormatter = default_key_formatter,
               leaf_formatter: Callable[[V], str] = repr) -> str:
        if self.leaves is None:
            return "DecisionTree(empty)"
        lines = [f"DecisionTree over [{' '.join(dk.format(key_formatter) for dk in self.keys)}]"]
        for a, v in self.items():
            choice = ", ".join(f"{key_formatter(k)}={val}" for k, val in a.items())
            lines.append(f"  ({choice}) -> {leaf_formatter(v)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        if self.leaves is None:
            return "DecisionTree(empty)"
        return f"DecisionTree(keys={[dk.key for dk in self.keys]}, leaves={self.num_leaves})"
