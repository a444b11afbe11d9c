"""
hybridfg: Hybrid Factor Graph Elimination

Variable elimination on factor graphs mixing discrete (categorical) and
continuous (Gaussian) variables, where continuous factors may depend on a
discrete hypothesis.

Key components:
- core: Discrete keys, assignments and key formatting
- tree: Decision trees indexed by discrete assignments
- algebra: Sum-product and max-product semirings
- discrete: Discrete potentials, conditionals and MPE elimination
- linear: Gaussian factors, conditionals and Cholesky elimination
- hybrid: Mixture factors, hybrid graphs, the hybrid sum, hybrid
  elimination and discretization
"""

__version__ = "1.0.0"
__author__ = "hybridfg Team"

from hybridfg.config import EliminationConfig, DEFAULT_CONFIG
from hybridfg.errors import HybridError, TypeMismatchError, SingularSystemError, KeyMismatchError
from hybridfg.core.keys import DiscreteKey, KeyKind
from hybridfg.tree.decision_tree import DecisionTree
from hybridfg.discrete import DecisionTreeFactor, DiscreteConditional, eliminate_for_mpe
from hybridfg.linear import (
    JacobianFactor,
    HessianFactor,
    GaussianConditional,
    GaussianFactorGraph,
    eliminate_cholesky,
)
from hybridfg.hybrid import (
    GaussianMixtureFactor,
    GaussianMixture,
    FactorKind,
    HybridEntry,
    HybridFactorGraph,
    fold_plain,
    fold_mixture,
    hybrid_sum,
    eliminate_hybrid,
    to_discrete_potential,
    HybridBayesNet,
    eliminate_sequential,
)

__all__ = [
    # Configuration and errors
    "EliminationConfig",
    "DEFAULT_CONFIG",
    "HybridError",
    "TypeMismatchError",
    "SingularSystemError",
    "KeyMismatchError",
    # Keys and trees
    "DiscreteKey",
    "KeyKind",
    "DecisionTree",
    # Discrete
    "DecisionTreeFactor",
    "DiscreteConditional",
    "eliminate_for_mpe",
    # Linear
    "JacobianFactor",
    "HessianFactor",
    "GaussianConditional",
    "GaussianFactorGraph",
    "eliminate_cholesky",
    # Hybrid
    "GaussianMixtureFactor",
    "GaussianMixture",
    "FactorKind",
    "HybridEntry",
    "HybridFactorGraph",
    "fold_plain",
    "fold_mixture",
    "hybrid_sum",
    "eliminate_hybrid",
    "to_discrete_potential",
    "HybridBayesNet",
    "eliminate_sequential",
]
