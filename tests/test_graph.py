"""
Tests for HybridFactorGraph bookkeeping, structure and dumps.
"""

import networkx as nx
import pytest

from hybridfg.core.keys import DiscreteKey, KeyKind
from hybridfg.discrete.factor import DecisionTreeFactor
from hybridfg.hybrid import FactorKind, GaussianMixtureFactor, HybridFactorGraph
from hybridfg.linear import JacobianFactor


M = DiscreteKey("m", 2)


@pytest.fixture
def mixed_graph():
    graph = HybridFactorGraph()
    graph.add(JacobianFactor({"x": [[1.0]]}, [0.0]))
    graph.add(GaussianMixtureFactor.from_factors(
        ["x", "y"], [M],
        [JacobianFactor({"x": [[-1.0]], "y": [[1.0]]}, [1.0]), None],
    ))
    graph.add(DecisionTreeFactor.from_table((M,), [0.4, 0.6]))
    return graph


class TestBookkeeping:
    """Entry tagging and key registry."""

    def test_add_tags_by_type(self, mixed_graph):
        graph = mixed_graph
        assert [e.kind for e in graph] == [FactorKind.GAUSSIAN, FactorKind.MIXTURE, FactorKind.DISCRETE]
        assert len(graph.gaussian_factors()) == 1
        assert len(graph.mixture_factors()) == 1
        assert len(graph.discrete_factors()) == 1

    def test_add_unknown_type_raises(self):
        with pytest.raises(TypeError):
            HybridFactorGraph().add("not a factor")

    def test_keys(self, mixed_graph):
        graph = mixed_graph
        assert graph.discrete_keys() == (M,)
        assert set(graph.continuous_keys()) == {"x", "y"}
        assert graph.key_kind("m") == KeyKind.DISCRETE
        assert graph.key_kind("x") == KeyKind.CONTINUOUS

    def test_unknown_key_raises(self, mixed_graph):
        with pytest.raises(KeyError):
            mixed_graph.key_kind("z")

    def test_key_kind_conflict_raises(self):
        graph = HybridFactorGraph()
        graph.add_gaussian(JacobianFactor({"m": [[1.0]]}, [0.0]))
        with pytest.raises(ValueError):
            graph.add_discrete(DecisionTreeFactor.from_table((M,), [1.0, 1.0]))

    def test_cardinality_conflict_raises(self):
        graph = HybridFactorGraph()
        graph.add_discrete(DecisionTreeFactor.from_table((M,), [1.0, 1.0]))
        with pytest.raises(ValueError):
            graph.add_discrete(DecisionTreeFactor.from_table((DiscreteKey("m", 3),), [1.0, 1.0, 1.0]))


class TestStructure:
    """Bipartite factor and variable structure."""

    def test_bipartite(self, mixed_graph):
        G = mixed_graph.structure()
        assert nx.is_bipartite(G)
        assert G.number_of_nodes() == 3 + 3
        assert G.number_of_edges() == 1 + 3 + 1

    def test_factors_containing(self, mixed_graph):
        graph = mixed_graph
        assert graph.factors_containing("x") == [0, 1]
        assert graph.factors_containing("y") == [1]
        assert graph.factors_containing("m") == [1, 2]
        assert graph.factors_containing("z") == []

    def test_subgraph(self, mixed_graph):
        sub = mixed_graph.subgraph([1, 2])
        assert len(sub) == 2
        assert sub.discrete_keys() == (M,)


def test_dump(mixed_graph):
    text = mixed_graph.dump("hybrid graph")
    assert text.startswith("hybrid graph")
    assert "3 factors" in text
    assert "1 mixture" in text
    assert "nullptr" in text
