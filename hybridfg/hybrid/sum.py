"""
hybridfg/hybrid/sum.py

The "sum" of a hybrid graph: a DecisionTree mapping each discrete
hypothesis to the Gaussian factors active under it.

Invariants:
  - the aggregate branches on exactly the union of the discrete keys of
    the mixture factors folded into it
  - folding a plain Gaussian factor never changes keys or leaf count
  - the empty tree means nothing continuous has been folded yet
"""

from __future__ import annotations

import logging

from hybridfg.errors import TypeMismatchError
from hybridfg.hybrid.graph import HybridFactorGraph
from hybridfg.hybrid.mixture import GaussianMixtureFactor
from hybridfg.linear.factors import GaussianFactor
from hybridfg.linear.graph import GaussianFactorGraph
from hybridfg.tree.decision_tree import DecisionTree

_logger = logging.getLogger(__name__)

Aggregate = DecisionTree[GaussianFactorGraph]


def fold_plain(aggregate: Aggregate, factor: GaussianFactor) -> Aggregate:
    """Append factor to the collection of every hypothesis."""
    if aggregate.is_empty:
        return DecisionTree.leaf(GaussianFactorGraph.of(factor))
    return aggregate.map(lambda graph: graph.push_back(factor))


def fold_mixture(aggregate: Aggregate, mixture: GaussianMixtureFactor) -> Aggregate:
    """
    Join the mixture's components into the aggregate.

    The result branches on the union of both key sets; each leaf is the
    aggregate's collection followed by the component selected by the same
    assignment. A None component is kept so the hypothesis can later be
    recognized as infeasible.
    """
    if aggregate.is_empty:
        aggregate = DecisionTree.leaf(GaussianFactorGraph())
    return aggregate.join(mixture.factors, lambda graph, factor: graph.push_back(factor))


def hybrid_sum(graph: HybridFactorGraph) -> Aggregate:
    """
    Gather all continuous factors of graph into one aggregate.

    Mixture factors are folded first, then plain Gaussian factors.

    Raises:
        TypeMismatchError: If a mixture-tagged entry does not hold a GaussianMixtureFactor
    """
    aggregate: Aggregate = DecisionTree.empty()
    for mixture in graph.mixture_factors():
        if not isinstance(mixture, GaussianMixtureFactor):
            raise TypeMismatchError(
                f"hybrid_sum can only handle GaussianMixtureFactor mixtures, got {type(mixture).__name__}"
            )
        aggregate = fold_mixture(aggregate, mixture)

    for factor in graph.gaussian_factors():
        aggregate = fold_plain(aggregate, factor)

    _logger.debug(
        "Summed %d entries into %d hypotheses over %s",
        len(graph), aggregate.num_leaves, [dk.key for dk in aggregate.keys],
    )
    return aggregate
