"""
Linear module: Gaussian factors, conditionals and Cholesky elimination.
"""

from hybridfg.linear.factors import GaussianFactor, JacobianFactor, HessianFactor, VectorValues
from hybridfg.linear.conditional import GaussianConditional
from hybridfg.linear.graph import GaussianFactorGraph
from hybridfg.linear.elimination import EliminationResult, eliminate_cholesky

__all__ = [
    "GaussianFactor",
    "JacobianFactor",
    "HessianFactor",
    "VectorValues",
    "GaussianConditional",
    "GaussianFactorGraph",
    "EliminationResult",
    "eliminate_cholesky",
]
