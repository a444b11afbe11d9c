"""
Discrete module: potentials, conditionals and MPE elimination.
"""

from hybridfg.discrete.factor import DecisionTreeFactor
from hybridfg.discrete.conditional import DiscreteConditional
from hybridfg.discrete.elimination import eliminate_for_mpe, multiply_all

__all__ = [
    "DecisionTreeFactor",
    "DiscreteConditional",
    "eliminate_for_mpe",
    "multiply_all",
]
