"""
hybridfg/discrete/conditional.py

Discrete conditional P(frontals | parents) stored as a table over
frontal + parent keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from hybridfg.core.keys import (
    Assignment,
    DiscreteKey,
    Key,
    KeyFormatter,
    cardinalities,
    default_key_formatter,
    format_keys,
    validate_assignment,
)
from hybridfg.discrete.factor import DecisionTreeFactor


@dataclass(frozen=True, eq=False)
class DiscreteConditional:
    """
    Conditional table over frontal and parent discrete keys.

    Attributes:
        nr_frontals: Number of leading keys that are frontal
        potential: Table over all keys (frontal and parent)
        frontals: Frontal keys in elimination order
    """
    nr_frontals: int
    potential: DecisionTreeFactor
    frontals: Tuple[DiscreteKey, ...]

    def __post_init__(self):
        if len(self.frontals) != self.nr_frontals:
            raise ValueError(f"Expected {self.nr_frontals} frontal keys, got {len(self.frontals)}")
        for dk in self.frontals:
            if dk not in self.potential.keys:
                raise ValueError(f"Frontal key {dk.key!r} not in conditional table")

    @property
    def parents(self) -> Tuple[DiscreteKey, ...]:
        frontal_ids = {dk.key for dk in self.frontals}
        return tuple(dk for dk in self.potential.keys if dk.key not in frontal_ids)

    @property
    def keys(self) -> Tuple[DiscreteKey, ...]:
        return self.frontals + self.parents

    def __call__(self, assignment: Assignment) -> float:
        return self.potential(assignment)

    def argmax(self, parent_assignment: Optional[Assignment] = None) -> Dict[Key, int]:
        """
        Most probable frontal assignment given values for the parents.

        Ties resolve to the first assignment in row-major order.
        """
        parent_assignment = parent_assignment or {}
        validate_assignment(self.parents, parent_assignment)
        index = []
        for dk in self.potential.keys:
            if dk in self.frontals:
                index.append(slice(None))
            else:
                index.append(int(parent_assignment[dk.key]))
        sub = self.potential.table[tuple(index)]
        frontal_in_table = tuple(dk for dk in self.potential.keys if dk in self.frontals)
        best = np.unravel_index(int(np.argmax(sub)), cardinalities(frontal_in_table))
        return {dk.key: int(v) for dk, v in zip(frontal_in_table, best)}

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        head = f"P( {format_keys(self.frontals, key_formatter)} | {format_keys(self.parents, key_formatter)} )"
        return head + "\n" + self.potential.format(key_formatter)

    def __repr__(self) -> str:
        return (f"DiscreteConditional(frontals={[dk.key for dk in self.frontals]}, "
                f"parents={[dk.key for dk in self.parents]})")
