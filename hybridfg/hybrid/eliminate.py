"""
hybridfg/hybrid/eliminate.py

Hybrid elimination: eliminate continuous keys once per discrete hypothesis
and repackage the per-hypothesis results as mixtures.

Steps of eliminate_hybrid:
  1. Sum the graph into a DecisionTree of Gaussian collections.
  2. Nothing continuous: fall back to discrete MPE elimination.
  3. Hypotheses holding a null factor become empty collections.
  4. Eliminate every non-empty collection with Cholesky.
  5. Read the frontal and separator keys off the results.
  6. Unzip into a GaussianMixture and either a GaussianMixtureFactor on
     the separator or, with no separator left, a discrete potential
     exp(-error) per hypothesis.

The ordering is assumed to eliminate continuous keys before the discrete
keys they interact with.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Optional, Sequence, Tuple

from hybridfg.config import DEFAULT_CONFIG, EliminationConfig
from hybridfg.core.keys import Key
from hybridfg.discrete.elimination import eliminate_for_mpe
from hybridfg.discrete.factor import DecisionTreeFactor
from hybridfg.errors import KeyMismatchError, SingularSystemError
from hybridfg.hybrid.graph import HybridFactorGraph
from hybridfg.hybrid.mixture import GaussianMixture, GaussianMixtureFactor
from hybridfg.hybrid.sum import Aggregate, hybrid_sum
from hybridfg.linear.conditional import GaussianConditional
from hybridfg.linear.elimination import eliminate_cholesky
from hybridfg.linear.factors import GaussianFactor
from hybridfg.linear.graph import GaussianFactorGraph
from hybridfg.tree.decision_tree import DecisionTree

_logger = logging.getLogger(__name__)

LeafResult = Tuple[Optional[GaussianConditional], Optional[GaussianFactor]]


def zero_out_nulls(graph: GaussianFactorGraph) -> GaussianFactorGraph:
    """An infeasible collection carries no information."""
    return GaussianFactorGraph() if graph.has_null else graph


def _map_leaves(tree: DecisionTree, f: Callable[[Any], Any], config: EliminationConfig) -> DecisionTree:
    """tree.map(f), optionally across a thread pool; waits for every leaf."""
    if not config.parallel or tree.num_leaves < 2:
        return tree.map(f)
    with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
        results = list(pool.map(f, tree.values()))
    return DecisionTree(tree.keys, tuple(results))


def _leaf_eliminator(ordering: Sequence[Key], config: EliminationConfig) -> Callable[[GaussianFactorGraph], LeafResult]:
    def eliminate(graph: GaussianFactorGraph) -> LeafResult:
        if graph.is_empty:
            return None, None
        try:
            return eliminate_cholesky(graph, ordering)
        except SingularSystemError as exc:
            if not config.singular_as_infeasible:
                raise
            _logger.warning("Treating hypothesis as infeasible: %s", exc)
            return None, None
    return eliminate


def _elimination_keys(
    results: DecisionTree[LeafResult],
    ordering: Sequence[Key],
    check: bool,
) -> Tuple[Tuple[Key, ...], Tuple[Key, ...]]:
    """
    Frontal and separator keys of the first non-trivial leaf.

    With check=True every other non-trivial leaf must eliminate the same
    key sets; key order may differ between leaves.
    """
    found: Optional[Tuple[Tuple[Key, ...], Tuple[Key, ...]]] = None
    found_sets = None
    for assignment, (conditional, factor) in results.items():
        if conditional is None:
            continue
        keys = (tuple(conditional.frontals), tuple(factor.keys))
        key_sets = (frozenset(keys[0]), frozenset(keys[1]))
        if found is None:
            found, found_sets = keys, key_sets
            if not check:
                break
        elif key_sets != found_sets:
            raise KeyMismatchError(
                f"Hypothesis {assignment} eliminates onto {keys}, expected {found}"
            )
    if found is None:
        return tuple(ordering), ()
    return found


def _potential(factor: Optional[GaussianFactor]) -> float:
    if factor is None:
        return 1.0
    return math.exp(-factor.error({}))


def eliminate_hybrid(
    graph: HybridFactorGraph,
    ordering: Sequence[Key],
    config: Optional[EliminationConfig] = None,
) -> Tuple[Any, Any]:
    """
    Eliminate ordering from a hybrid factor graph.

    Args:
        graph: Factors touching the keys to eliminate
        ordering: Keys to eliminate jointly
        config: Elimination options (defaults to DEFAULT_CONFIG)

    Returns:
        (conditional, factor): either (GaussianMixture, GaussianMixtureFactor),
        (GaussianMixture, DecisionTreeFactor) when no continuous separator
        remains, or the (DiscreteConditional, DecisionTreeFactor) of the
        discrete fallback

    Raises:
        TypeMismatchError: Malformed mixture entry
        SingularSystemError: A hypothesis cannot be factored (unless configured otherwise)
        KeyMismatchError: Hypotheses disagree on keys (only when checked)
    """
    config = config or DEFAULT_CONFIG
    ordering = tuple(ordering)

    aggregate: Aggregate = hybrid_sum(graph)

    if aggregate.is_empty:
        _logger.debug("No continuous factors; MPE-eliminating %s", list(ordering))
        return eliminate_for_mpe(graph.discrete_factors(), ordering)

    aggregate = aggregate.map(zero_out_nulls)

    results = _map_leaves(aggregate, _leaf_eliminator(ordering, config), config)
    frontals, separator = _elimination_keys(results, ordering, config.check_key_consistency)

    conditionals, factors = results.unzip()
    discrete_keys = aggregate.keys
    conditional = GaussianMixture(len(ordering), frontals + separator, discrete_keys, conditionals)

    if not separator:
        potentials = factors.map(_potential)
        _logger.debug("Eliminated %s; discretized %d hypotheses", list(ordering), potentials.num_leaves)
        return conditional, DecisionTreeFactor.from_tree(discrete_keys, potentials)

    _logger.debug("Eliminated %s onto separator %s", list(ordering), list(separator))
    return conditional, GaussianMixtureFactor(separator, discrete_keys, factors)


def _leaf_score(graph: GaussianFactorGraph) -> float:
    graph = zero_out_nulls(graph)
    # Clamp round-off below zero.
    return max(0.0, graph.error(graph.optimize()))


def to_discrete_potential(graph: HybridFactorGraph) -> DecisionTreeFactor:
    """
    Collapse the continuous content of graph into a discrete potential.

    Each hypothesis is scored by the residual energy of its least-squares
    optimum (not exponentiated). The potential spans all discrete keys of
    graph.

    Raises:
        SingularSystemError: If a hypothesis's system cannot be solved
    """
    aggregate = hybrid_sum(graph)
    if aggregate.is_empty:
        return DecisionTreeFactor.from_tree(graph.discrete_keys(), DecisionTree.leaf(0.0))
    scores = aggregate.map(_leaf_score)
    return DecisionTreeFactor.from_tree(graph.discrete_keys(), scores)
