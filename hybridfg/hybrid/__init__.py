"""
Hybrid module: mixtures, hybrid graphs and hybrid elimination.
"""

from hybridfg.hybrid.mixture import GaussianMixtureFactor, GaussianMixture
from hybridfg.hybrid.graph import FactorKind, HybridEntry, HybridFactorGraph
from hybridfg.hybrid.sum import Aggregate, fold_plain, fold_mixture, hybrid_sum
from hybridfg.hybrid.eliminate import eliminate_hybrid, to_discrete_potential, zero_out_nulls
from hybridfg.hybrid.bayes_net import HybridBayesNet, eliminate_sequential

__all__ = [
    "GaussianMixtureFactor",
    "GaussianMixture",
    "FactorKind",
    "HybridEntry",
    "HybridFactorGraph",
    "Aggregate",
    "fold_plain",
    "fold_mixture",
    "hybrid_sum",
    "eliminate_hybrid",
    "to_discrete_potential",
    "zero_out_nulls",
    "HybridBayesNet",
    "eliminate_sequential",
]
