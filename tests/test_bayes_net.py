"""
Tests for sequential elimination into a HybridBayesNet.
"""

import pytest

from hybridfg.core.keys import DiscreteKey
from hybridfg.discrete import DecisionTreeFactor, DiscreteConditional
from hybridfg.hybrid import GaussianMixture, GaussianMixtureFactor, HybridFactorGraph, eliminate_sequential
from hybridfg.linear import JacobianFactor


M = DiscreteKey("m", 2)


def _switching_graph(prior=(0.5, 0.5), components=None):
    components = components or [
        JacobianFactor({"x": [[1.0]]}, [0.0]),
        JacobianFactor({"x": [[1.0], [1.0]]}, [2.0, -2.0]),
    ]
    graph = HybridFactorGraph()
    graph.add_mixture(GaussianMixtureFactor.from_factors(["x"], [M], components))
    graph.add_discrete(DecisionTreeFactor.from_table((M,), list(prior)))
    return graph


class TestEliminateSequential:
    """Eliminate x then m on a mode-switching measurement."""

    def test_conditional_types(self):
        bn = eliminate_sequential(_switching_graph(), ["x", "m"])
        assert len(bn) == 2
        assert isinstance(bn[0], GaussianMixture)
        assert isinstance(bn[1], DiscreteConditional)

    def test_prefers_consistent_hypothesis(self):
        discrete, continuous = eliminate_sequential(_switching_graph(), ["x", "m"]).optimize()
        assert discrete == {"m": 0}
        assert continuous["x"] == pytest.approx([0.0])

    def test_prior_breaks_tie(self):
        graph = _switching_graph(
            prior=(0.3, 0.7),
            components=[JacobianFactor({"x": [[1.0]]}, [0.0]), JacobianFactor({"x": [[1.0]]}, [5.0])],
        )
        discrete, continuous = eliminate_sequential(graph, ["x", "m"]).optimize()
        assert discrete == {"m": 1}
        assert continuous["x"] == pytest.approx([5.0])

    def test_input_graph_unchanged(self):
        graph = _switching_graph()
        eliminate_sequential(graph, ["x", "m"])
        assert len(graph) == 2

    def test_discrete_before_continuous_raises(self):
        with pytest.raises(ValueError):
            eliminate_sequential(_switching_graph(), ["m", "x"])

    def test_unknown_key_raises(self):
        with pytest.raises(KeyError):
            eliminate_sequential(_switching_graph(), ["z"])

    def test_plain_chain(self):
        graph = HybridFactorGraph()
        graph.add_gaussian(JacobianFactor({"x1": [[1.0]]}, [1.0]))
        graph.add_gaussian(JacobianFactor({"x1": [[-1.0]], "x2": [[1.0]]}, [2.0]))
        discrete, continuous = eliminate_sequential(graph, ["x1", "x2"]).optimize()
        assert discrete == {}
        assert continuous["x1"] == pytest.approx([1.0])
        assert continuous["x2"] == pytest.approx([3.0])


def test_infeasible_selection_raises():
    graph = _switching_graph(
        prior=(0.9, 0.1),
        components=[None, JacobianFactor({"x": [[1.0]]}, [0.0])],
    )
    bn = eliminate_sequential(graph, ["x", "m"])
    with pytest.raises(ValueError):
        bn.optimize()


def test_dump():
    bn = eliminate_sequential(_switching_graph(), ["x", "m"])
    text = bn.dump("net")
    assert "HybridBayesNet: 2 conditionals" in text
    assert "GaussianMixture" in text


def test_discrete_prior_rules_out_infeasible_hypothesis():
    graph = _switching_graph(
        prior=(0.0, 1.0),
        components=[None, JacobianFactor({"x": [[1.0], [1.0]]}, [2.0, -2.0])],
    )
    discrete, continuous = eliminate_sequential(graph, ["x", "m"]).optimize()
    assert discrete == {"m": 1}
    assert continuous["x"] == pytest.approx([0.0])
