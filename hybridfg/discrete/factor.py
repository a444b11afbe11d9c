"""
hybridfg/discrete/factor.py

A DecisionTreeFactor is an unnormalized, nonnegative potential over discrete
keys. It is the dense counterpart of DecisionTree[float]: one table axis per
discrete key, in canonical key order.

Key operations:
  - product:  aligned pointwise multiplication on the union of keys
  - reduce:   semiring-sum (sum or max) of a set of keys
  - divide:   pointwise division with 0/0 = 0
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np

from hybridfg.algebra.semiring import Semiring, max_product, sum_product
from hybridfg.core.keys import (
    Assignment,
    DiscreteKey,
    Key,
    KeyFormatter,
    assignments,
    canonical_keys,
    cardinalities,
    default_key_formatter,
    union_keys,
    validate_assignment,
)
from hybridfg.tree.decision_tree import DecisionTree


@dataclass(frozen=True, eq=False)
class DecisionTreeFactor:
    """
    A nonnegative potential over discrete keys.

    Attributes:
        keys: Canonically ordered discrete keys (table axes)
        table: ndarray shaped by the key cardinalities in the same order
    """
    keys: Tuple[DiscreteKey, ...]
    table: np.ndarray

    def __post_init__(self):
        if canonical_keys(self.keys) != tuple(self.keys):
            raise ValueError(f"DecisionTreeFactor keys must be canonical, got {self.keys}")
        table = np.asarray(self.table, dtype=np.float64)
        if table.shape != cardinalities(self.keys):
            raise ValueError(
                f"DecisionTreeFactor table shape {table.shape} != key cardinalities {cardinalities(self.keys)}"
            )
        if np.any(table < 0.0):
            raise ValueError("DecisionTreeFactor potentials must be nonnegative")
        object.__setattr__(self, "table", table)

    @staticmethod
    def from_table(keys: Sequence[DiscreteKey], table) -> "DecisionTreeFactor":
        """Build from a table whose axes follow keys *as given* (any order)."""
        given = tuple(keys)
        data = np.asarray(table, dtype=np.float64).reshape(cardinalities(given))
        canon = canonical_keys(given)
        if canon == given:
            return DecisionTreeFactor(canon, data)
        pos = {dk.key: i for i, dk in enumerate(given)}
        perm = [pos[dk.key] for dk in canon]
        return DecisionTreeFactor(canon, np.transpose(data, axes=perm))

    @staticmethod
    def from_tree(keys: Iterable[DiscreteKey], tree: DecisionTree[float]) -> "DecisionTreeFactor":
        """
        Potential over keys whose values come from tree.

        keys may include discrete keys the tree does not branch on; the tree's
        value is repeated along those axes.
        """
        target = union_keys(keys, tree.keys)
        aligned = tree._aligned_leaves(target)
        table = np.asarray(aligned, dtype=np.float64).reshape(cardinalities(target))
        return DecisionTreeFactor(target, table)

    @staticmethod
    def ones(keys: Iterable[DiscreteKey]) -> "DecisionTreeFactor":
        canon = canonical_keys(keys)
        return DecisionTreeFactor(canon, np.ones(cardinalities(canon)))

    @property
    def key_ids(self) -> Tuple[Key, ...]:
        return tuple(dk.key for dk in self.keys)

    def __call__(self, assignment: Optional[Assignment] = None) -> float:
        """Potential at an assignment (extra keys are ignored)."""
        index = validate_assignment(self.keys, assignment or {})
        return float(self.table[index])

    def _aligned_view(self, target_keys: Tuple[DiscreteKey, ...]) -> np.ndarray:
        """
        Broadcast view of the table over target_keys (a superset of self.keys).
        """
        src_pos = {dk.key: i for i, dk in enumerate(self.keys)}
        perm = [src_pos[dk.key] for dk in target_keys if dk.key in src_pos]
        data = np.transpose(self.table, axes=perm) if perm else self.table
        shape = []
        j = 0
        for dk in target_keys:
            if dk.key in src_pos:
                shape.append(data.shape[j])
                j += 1
            else:
                shape.append(1)
        return np.broadcast_to(data.reshape(shape), cardinalities(target_keys))

    def product(self, other: "DecisionTreeFactor") -> "DecisionTreeFactor":
        """(f * g)(x) = f(x_F) * g(x_G) on the union of keys."""
        union = union_keys(self.keys, other.keys)
        out = self._aligned_view(union) * other._aligned_view(union)
        return DecisionTreeFactor(union, out)

    def __mul__(self, other: "DecisionTreeFactor") -> "DecisionTreeFactor":
        return self.product(other)

    def divide(self, other: "DecisionTreeFactor") -> "DecisionTreeFactor":
        """Pointwise self / other on self's keys; other's keys must be a subset."""
        for dk in other.keys:
            if dk not in self.keys:
                raise ValueError(f"Cannot divide by a factor over key {dk.key!r} absent from {self.key_ids}")
        den = other._aligned_view(self.keys)
        safe = np.where(den == 0.0, 1.0, den)
        out = np.where(den == 0.0, 0.0, self.table / safe)
        return DecisionTreeFactor(self.keys, out)

    def reduce(self, eliminate: Iterable[Key], semiring: Semiring = sum_product) -> "DecisionTreeFactor":
        """
        ⊕-reduce the given keys out of the potential.

        Keys that the factor does not carry are ignored.
        """
        elim = set(eliminate)
        axes = tuple(i for i, dk in enumerate(self.keys) if dk.key in elim)
        if not axes:
            return self
        keep = tuple(dk for dk in self.keys if dk.key not in elim)
        data = np.asarray(semiring.add_reduce(self.table, axis=axes), dtype=np.float64)
        return DecisionTreeFactor(keep, data.reshape(cardinalities(keep)))

    def sum(self, eliminate: Iterable[Key]) -> "DecisionTreeFactor":
        return self.reduce(eliminate, sum_product)

    def max(self, eliminate: Iterable[Key]) -> "DecisionTreeFactor":
        return self.reduce(eliminate, max_product)

    def normalize(self, semiring: Semiring = sum_product) -> "DecisionTreeFactor":
        return DecisionTreeFactor(self.keys, semiring.normalize(self.table))

    def to_tree(self) -> DecisionTree[float]:
        return DecisionTree(self.keys, tuple(float(v) for v in self.table.reshape(-1)))

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        header = " ".join(dk.format(key_formatter) for dk in self.keys)
        lines = [f"DecisionTreeFactor [{header}]"]
        for a, v in zip(assignments(self.keys), self.table.reshape(-1)):
            choice = ", ".join(f"{key_formatter(k)}={val}" for k, val in a.items())
            lines.append(f"  ({choice}) -> {v:.6g}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"DecisionTreeFactor(keys={list(self.key_ids)}, shape={self.table.shape})"
