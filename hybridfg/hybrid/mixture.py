"""
hybridfg/hybrid/mixture.py

Continuous factors and conditionals whose numeric content depends on a
discrete assignment.

- GaussianMixtureFactor: DecisionTree[GaussianFactor | None] over discrete
  keys, touching a fixed set of continuous keys
- GaussianMixture: DecisionTree[GaussianConditional | None], the conditional
  produced by eliminating continuous keys from a mixture
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from hybridfg.core.keys import (
    Assignment,
    DiscreteKey,
    Key,
    KeyFormatter,
    canonical_keys,
    default_key_formatter,
    format_keys,
)
from hybridfg.linear.conditional import GaussianConditional
from hybridfg.linear.factors import GaussianFactor
from hybridfg.tree.decision_tree import DecisionTree


def _span(tree: DecisionTree, discrete_keys: Tuple[DiscreteKey, ...], owner: str) -> DecisionTree:
    """Re-index tree over exactly discrete_keys (which must contain tree.keys)."""
    if tree.is_empty:
        raise ValueError(f"{owner}: the decision tree of components cannot be empty")
    for dk in tree.keys:
        if dk not in discrete_keys:
            raise ValueError(f"{owner}: tree branches on {dk.key!r}, which is not a declared discrete key")
    if tree.keys == discrete_keys:
        return tree
    return DecisionTree(discrete_keys, tree._aligned_leaves(discrete_keys))


class GaussianMixtureFactor:
    """
    A Gaussian factor selected by a discrete assignment.

    Args:
        keys: Continuous keys every component touches
        discrete_keys: Discrete keys selecting the component
        factors: Tree of components; None marks an infeasible hypothesis
    """

    def __init__(
        self,
        keys: Sequence[Key],
        discrete_keys: Iterable[DiscreteKey],
        factors: DecisionTree[Optional[GaussianFactor]],
    ):
        self.keys: Tuple[Key, ...] = tuple(keys)
        self.discrete_keys: Tuple[DiscreteKey, ...] = canonical_keys(discrete_keys)
        self.factors: DecisionTree[Optional[GaussianFactor]] = _span(
            factors, self.discrete_keys, "GaussianMixtureFactor"
        )

    @staticmethod
    def from_factors(
        keys: Sequence[Key],
        discrete_keys: Sequence[DiscreteKey],
        factors: Sequence[Optional[GaussianFactor]],
    ) -> "GaussianMixtureFactor":
        """Components listed row-major over discrete_keys as given."""
        return GaussianMixtureFactor(keys, discrete_keys, DecisionTree.from_leaves(discrete_keys, factors))

    def factor(self, assignment: Assignment) -> Optional[GaussianFactor]:
        return self.factors.get(assignment)

    def error(self, values: Optional[Mapping[Key, np.ndarray]], assignment: Assignment) -> float:
        """Error of the selected component; an infeasible component has infinite error."""
        f = self.factor(assignment)
        return float("inf") if f is None else f.error(values)

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        head = (f"GaussianMixtureFactor [{format_keys(self.keys, key_formatter)}; "
                f"{format_keys(self.discrete_keys, key_formatter)}]")
        body = self.factors.format(
            key_formatter, lambda f: "nullptr" if f is None else f.format(key_formatter)
        )
        return head + "\n" + body

    def __repr__(self) -> str:
        return (f"GaussianMixtureFactor(keys={list(self.keys)}, "
                f"discrete_keys={[dk.key for dk in self.discrete_keys]})")


class GaussianMixture:
    """
    Conditional p(frontals | parents, discrete_keys).

    Args:
        nr_frontals: Number of leading continuous keys that are frontal
        keys: Frontal keys followed by continuous parents
        discrete_keys: Discrete keys selecting the component
        conditionals: Tree of Gaussian conditionals (None for infeasible)
    """

    def __init__(
        self,
        nr_frontals: int,
        keys: Sequence[Key],
        discrete_keys: Iterable[DiscreteKey],
        conditionals: DecisionTree[Optional[GaussianConditional]],
    ):
        self.nr_frontals = int(nr_frontals)
        self.keys: Tuple[Key, ...] = tuple(keys)
        if self.nr_frontals > len(self.keys):
            raise ValueError(f"GaussianMixture: {self.nr_frontals} frontals but only {len(self.keys)} keys")
        self.discrete_keys: Tuple[DiscreteKey, ...] = canonical_keys(discrete_keys)
        self.conditionals: DecisionTree[Optional[GaussianConditional]] = _span(
            conditionals, self.discrete_keys, "GaussianMixture"
        )

    @property
    def frontals(self) -> Tuple[Key, ...]:
        return self.keys[:self.nr_frontals]

    @property
    def parents(self) -> Tuple[Key, ...]:
        return self.keys[self.nr_frontals:]

    def conditional(self, assignment: Assignment) -> Optional[GaussianConditional]:
        return self.conditionals.get(assignment)

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        head = (f"GaussianMixture p({format_keys(self.frontals, key_formatter)} | "
                f"{format_keys(self.parents, key_formatter)}; "
                f"{format_keys(self.discrete_keys, key_formatter)})")
        body = self.conditionals.format(
            key_formatter, lambda c: "nullptr" if c is None else c.format(key_formatter)
        )
        return head + "\n" + body

    def __repr__(self) -> str:
        return (f"GaussianMixture(frontals={list(self.frontals)}, parents={list(self.parents)}, "
                f"discrete_keys={[dk.key for dk in self.discrete_keys]})")
