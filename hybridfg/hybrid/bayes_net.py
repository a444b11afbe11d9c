"""
hybridfg/hybrid/bayes_net.py

Sequential elimination of a hybrid factor graph into a hybrid Bayes net.

Each key in the ordering is eliminated from the entries adjacent to it;
the resulting conditional is recorded and the residual factor is put back
into the graph. Continuous keys must come before the discrete keys their
mixtures depend on.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from hybridfg.config import EliminationConfig
from hybridfg.core.keys import Assignment, Key, KeyFormatter, KeyKind, default_key_formatter
from hybridfg.discrete.conditional import DiscreteConditional
from hybridfg.discrete.factor import DecisionTreeFactor
from hybridfg.hybrid.eliminate import eliminate_hybrid
from hybridfg.hybrid.graph import FactorKind, HybridFactorGraph
from hybridfg.hybrid.mixture import GaussianMixture, GaussianMixtureFactor
from hybridfg.linear.factors import VectorValues

_logger = logging.getLogger(__name__)


class HybridBayesNet:
    """Conditionals in elimination order."""

    def __init__(self, conditionals: Optional[Sequence[Any]] = None):
        self.conditionals: List[Any] = list(conditionals or ())

    def push_back(self, conditional: Any) -> None:
        self.conditionals.append(conditional)

    def __len__(self) -> int:
        return len(self.conditionals)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.conditionals)

    def __getitem__(self, i: int) -> Any:
        return self.conditionals[i]

    def optimize(self) -> Tuple[Assignment, VectorValues]:
        """
        Back-substitute in reverse elimination order.

        Discrete conditionals pick their most probable value, mixtures
        solve the component selected by the discrete values found so far.

        An infeasible hypothesis contributes potential 1.0 during
        elimination, while a feasible one contributes exp(-error) <= 1.0,
        so the discrete argmax can land on an infeasible hypothesis unless
        discrete factors rule it out.

        Raises:
            ValueError: If the selected mixture component is infeasible
        """
        discrete: Dict[Key, int] = {}
        continuous: VectorValues = {}
        for conditional in reversed(self.conditionals):
            if isinstance(conditional, DiscreteConditional):
                discrete.update(conditional.argmax(discrete))
            elif isinstance(conditional, GaussianMixture):
                component = conditional.conditional(discrete)
                if component is None:
                    raise ValueError(f"Hypothesis {discrete} is infeasible for {conditional!r}")
                continuous.update(component.solve(continuous))
            else:
                raise TypeError(f"Unknown conditional type {type(conditional).__name__}")
        return discrete, continuous

    def dump(self, title: str = "", key_formatter: KeyFormatter = default_key_formatter) -> str:
        lines = [title] if title else []
        lines.append(f"HybridBayesNet: {len(self.conditionals)} conditionals")
        for i, c in enumerate(self.conditionals):
            lines.append(f"conditional {i}: " + c.format(key_formatter).replace("\n", "\n  "))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"HybridBayesNet(size={len(self.conditionals)})"


def _put_back(graph: HybridFactorGraph, factor: Any) -> None:
    if isinstance(factor, DecisionTreeFactor):
        graph.add_discrete(factor)
    elif isinstance(factor, GaussianMixtureFactor):
        if factor.discrete_keys:
            graph.add_mixture(factor)
        else:
            plain = factor.factors.get({})
            if plain is not None:
                graph.add_gaussian(plain)
    else:
        graph.add(factor)


def eliminate_sequential(
    graph: HybridFactorGraph,
    ordering: Sequence[Key],
    config: Optional[EliminationConfig] = None,
) -> HybridBayesNet:
    """
    Eliminate every key of ordering, one at a time.

    Args:
        graph: Input graph (not modified)
        ordering: Continuous keys first, then discrete keys
        config: Options forwarded to eliminate_hybrid

    Returns:
        HybridBayesNet with one conditional per key

    Raises:
        KeyError: If an ordering key is not in the graph
        ValueError: If a discrete key is eliminated while a mixture still depends on it
    """
    current = HybridFactorGraph(graph.entries)
    bayes_net = HybridBayesNet()

    for key in ordering:
        kind = current.key_kind(key)
        involved = current.factors_containing(key)
        if kind == KeyKind.DISCRETE and any(
            current.entries[i].kind == FactorKind.MIXTURE for i in involved
        ):
            raise ValueError(
                f"Cannot eliminate discrete key {key!r} while mixture factors depend on it; "
                "eliminate continuous keys first"
            )

        chosen = set(involved)
        sub = current.subgraph(involved)
        conditional, residual = eliminate_hybrid(sub, [key], config)
        bayes_net.push_back(conditional)

        current = HybridFactorGraph(e for i, e in enumerate(current.entries) if i not in chosen)
        _put_back(current, residual)
        _logger.debug("Eliminated %r (%s) from %d factors", key, kind.name.lower(), len(involved))

    return bayes_net

