"""
hybridfg/hybrid/graph.py

Hybrid factor graph: discrete potentials, plain Gaussian factors and
Gaussian mixture factors sharing one key namespace.

Every entry is tagged with its FactorKind when it is added, so consumers
switch on the tag instead of inspecting types. A key is either discrete or
continuous for the lifetime of the graph.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import networkx as nx

from hybridfg.core.keys import (
    DiscreteKey,
    Key,
    KeyFormatter,
    KeyKind,
    canonical_keys,
    default_key_formatter,
)
from hybridfg.discrete.factor import DecisionTreeFactor
from hybridfg.hybrid.mixture import GaussianMixtureFactor
from hybridfg.linear.factors import GaussianFactor


class FactorKind(Enum):
    """Tag of a hybrid graph entry."""
    DISCRETE = 1
    GAUSSIAN = 2
    MIXTURE = 3


@dataclass(frozen=True)
class HybridEntry:
    """A tagged factor."""
    kind: FactorKind
    factor: Any

    @property
    def continuous_keys(self) -> Tuple[Key, ...]:
        if self.kind == FactorKind.DISCRETE:
            return ()
        return tuple(self.factor.keys)

    @property
    def discrete_keys(self) -> Tuple[DiscreteKey, ...]:
        if self.kind == FactorKind.DISCRETE:
            return tuple(self.factor.keys)
        if self.kind == FactorKind.MIXTURE:
            # Payload validity is checked when the graph is summed.
            return tuple(getattr(self.factor, "discrete_keys", ()))
        return ()


def _var_node(key: Key) -> Tuple[str, Key]:
    return ("var", key)


def _factor_node(index: int) -> Tuple[str, int]:
    return ("factor", index)


class HybridFactorGraph:
    """
    Collection of tagged discrete, Gaussian and mixture factors.

    Maintains:
    - Entries in insertion order
    - Kind (discrete or continuous) of every key
    """

    def __init__(self, entries: Optional[Iterable[HybridEntry]] = None):
        self.entries: List[HybridEntry] = []
        self.key_kinds: Dict[Key, KeyKind] = {}
        self._cardinality: Dict[Key, int] = {}
        for e in entries or ():
            self.push_back(e)

    def _register(self, key: Key, kind: KeyKind) -> None:
        prev = self.key_kinds.setdefault(key, kind)
        if prev != kind:
            raise ValueError(f"Key {key!r} used as both {prev.name} and {kind.name}")

    def push_back(self, entry: HybridEntry) -> None:
        """Add a tagged entry, registering its keys."""
        for k in entry.continuous_keys:
            self._register(k, KeyKind.CONTINUOUS)
        for dk in entry.discrete_keys:
            self._register(dk.key, KeyKind.DISCRETE)
            card = self._cardinality.setdefault(dk.key, dk.cardinality)
            if card != dk.cardinality:
                raise ValueError(
                    f"Discrete key {dk.key!r} has cardinality {card} and {dk.cardinality} in different factors"
                )
        self.entries.append(entry)

    def add_discrete(self, factor: DecisionTreeFactor) -> None:
        self.push_back(HybridEntry(FactorKind.DISCRETE, factor))

    def add_gaussian(self, factor: GaussianFactor) -> None:
        self.push_back(HybridEntry(FactorKind.GAUSSIAN, factor))

    def add_mixture(self, factor: GaussianMixtureFactor) -> None:
        self.push_back(HybridEntry(FactorKind.MIXTURE, factor))

    def add(self, factor: Any) -> None:
        """Add a factor, tagging it by its type."""
        if isinstance(factor, GaussianMixtureFactor):
            self.add_mixture(factor)
        elif isinstance(factor, GaussianFactor):
            self.add_gaussian(factor)
        elif isinstance(factor, DecisionTreeFactor):
            self.add_discrete(factor)
        else:
            raise TypeError(f"Cannot add {type(factor).__name__} to a HybridFactorGraph")

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[HybridEntry]:
        return iter(self.entries)

    def of_kind(self, kind: FactorKind) -> List[HybridEntry]:
        return [e for e in self.entries if e.kind == kind]

    def discrete_factors(self) -> List[DecisionTreeFactor]:
        return [e.factor for e in self.of_kind(FactorKind.DISCRETE)]

    def gaussian_factors(self) -> List[GaussianFactor]:
        return [e.factor for e in self.of_kind(FactorKind.GAUSSIAN)]

    def mixture_factors(self) -> List[Any]:
        """Payloads of MIXTURE-tagged entries (not type checked)."""
        return [e.factor for e in self.of_kind(FactorKind.MIXTURE)]

    def discrete_keys(self) -> Tuple[DiscreteKey, ...]:
        """All discrete keys, canonically ordered."""
        return canonical_keys(DiscreteKey(k, c) for k, c in self._cardinality.items())

    def continuous_keys(self) -> Tuple[Key, ...]:
        return tuple(k for k, kind in self.key_kinds.items() if kind == KeyKind.CONTINUOUS)

    def key_kind(self, key: Key) -> KeyKind:
        if key not in self.key_kinds:
            raise KeyError(f"Key {key!r} is not in the graph")
        return self.key_kinds[key]

    def structure(self) -> nx.Graph:
        """
        Bipartite factor/variable graph.

        Factor nodes are ("factor", entry index), variable nodes ("var", key).
        """
        G = nx.Graph()
        for k, kind in self.key_kinds.items():
            G.add_node(_var_node(k), bipartite=1, kind=kind)
        for i, e in enumerate(self.entries):
            G.add_node(_factor_node(i), bipartite=0, kind=e.kind)
            for k in e.continuous_keys:
                G.add_edge(_factor_node(i), _var_node(k))
            for dk in e.discrete_keys:
                G.add_edge(_factor_node(i), _var_node(dk.key))
        return G

    def factors_containing(self, key: Key, structure: Optional[nx.Graph] = None) -> List[int]:
        """Indices of entries touching key, in insertion order."""
        G = self.structure() if structure is None else structure
        node = _var_node(key)
        if node not in G:
            return []
        return sorted(n[1] for n in G.neighbors(node))

    def subgraph(self, indices: Iterable[int]) -> "HybridFactorGraph":
        return HybridFactorGraph(self.entries[i] for i in indices)

    def dump(self, title: str = "", key_formatter: KeyFormatter = default_key_formatter) -> str:
        """Textual dump of the graph structure, for debugging."""
        G = self.structure()
        counts = {kind: len(self.of_kind(kind)) for kind in FactorKind}
        lines = [title] if title else []
        lines.append(
            f"HybridFactorGraph: {len(self.entries)} factors "
            f"({counts[FactorKind.DISCRETE]} discrete, {counts[FactorKind.GAUSSIAN]} gaussian, "
            f"{counts[FactorKind.MIXTURE]} mixture), {nx.number_connected_components(G) if len(G) else 0} components"
        )
        for i, e in enumerate(self.entries):
            f = e.factor
            text = f.format(key_formatter) if hasattr(f, "format") else repr(f)
            lines.append(f"factor {i} ({e.kind.name.lower()}): " + text.replace("\n", "\n  "))
        return "\n".join(lines)

    def print_graph(self, title: str = "", key_formatter: KeyFormatter = default_key_formatter) -> None:
        print(self.dump(title, key_formatter))

    def __repr__(self) -> str:
        return (f"HybridFactorGraph(factors={len(self.entries)}, "
                f"discrete_keys={len(self._cardinality)}, continuous_keys={len(self.continuous_keys())})")
