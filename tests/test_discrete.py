"""
Tests for discrete potentials, conditionals and MPE elimination.
"""

import numpy as np
import pytest

from hybridfg.algebra.semiring import MaxProductSemiring, ProbSemiring
from hybridfg.core.keys import DiscreteKey
from hybridfg.discrete import DecisionTreeFactor, DiscreteConditional, eliminate_for_mpe
from hybridfg.tree.decision_tree import DecisionTree


A = DiscreteKey("a", 2)
B = DiscreteKey("b", 2)
C = DiscreteKey("c", 3)


class TestSemirings:
    """Sum-product and max-product reductions."""

    def test_prob_reduce(self):
        sr = ProbSemiring()
        assert np.allclose(sr.add_reduce(np.array([[1.0, 2.0], [3.0, 4.0]]), axis=1), [3.0, 7.0])

    def test_max_product_reduce(self):
        sr = MaxProductSemiring()
        assert np.allclose(sr.add_reduce(np.array([[1.0, 2.0], [3.0, 4.0]]), axis=0), [3.0, 4.0])
        assert sr.mul(0.5, 0.5) == pytest.approx(0.25)

    def test_max_product_normalize(self):
        sr = MaxProductSemiring()
        assert np.allclose(sr.normalize(np.array([1.0, 4.0])), [0.25, 1.0])


class TestDecisionTreeFactor:
    """Products, reductions and division of potentials."""

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError):
            DecisionTreeFactor((A,), np.ones(3))

    def test_negative_raises(self):
        with pytest.raises(ValueError):
            DecisionTreeFactor((A,), np.array([1.0, -1.0]))

    def test_from_table_reorders_axes(self):
        table = np.arange(6, dtype=float).reshape(3, 2)  # (c, a)
        f = DecisionTreeFactor.from_table((C, A), table)
        assert f.keys == (A, C)
        assert f({"a": 1, "c": 2}) == table[2, 1]

    def test_product_disjoint(self):
        fa = DecisionTreeFactor.from_table((A,), [2.0, 3.0])
        fb = DecisionTreeFactor.from_table((B,), [4.0, 5.0])
        f = fa * fb
        assert f.keys == (A, B)
        assert np.allclose(f.table, np.outer([2.0, 3.0], [4.0, 5.0]))

    def test_product_shared(self):
        fab = DecisionTreeFactor.from_table((A, B), [[1.0, 2.0], [3.0, 4.0]])
        fb = DecisionTreeFactor.from_table((B,), [10.0, 100.0])
        f = fab * fb
        assert np.allclose(f.table, [[10.0, 200.0], [30.0, 400.0]])

    def test_sum_and_max(self):
        f = DecisionTreeFactor.from_table((A, B), [[1.0, 2.0], [3.0, 4.0]])
        assert np.allclose(f.sum(["b"]).table, [3.0, 7.0])
        assert np.allclose(f.max(["a"]).table, [3.0, 4.0])
        assert f.sum(["a", "b"]).keys == ()
        assert float(f.sum(["a", "b"]).table) == pytest.approx(10.0)

    def test_divide(self):
        f = DecisionTreeFactor.from_table((A, B), [[1.0, 2.0], [0.0, 0.0]])
        g = f.divide(f.sum(["b"]))
        assert np.allclose(g.table, [[1 / 3, 2 / 3], [0.0, 0.0]])

    def test_from_tree_broadcasts_extra_keys(self):
        tree = DecisionTree.from_leaves((A,), [1.0, 2.0])
        f = DecisionTreeFactor.from_tree((A, B), tree)
        assert f.keys == (A, B)
        assert np.allclose(f.table, [[1.0, 1.0], [2.0, 2.0]])

    def test_to_tree(self):
        f = DecisionTreeFactor.from_table((A, B), [[1.0, 2.0], [3.0, 4.0]])
        t = f.to_tree()
        assert t.keys == (A, B)
        assert t.get({"a": 1, "b": 0}) == pytest.approx(3.0)


class TestEliminateForMPE:
    """Max-product elimination on a two-variable model."""

    @pytest.fixture
    def factors(self):
        prior = DecisionTreeFactor.from_table((A,), [0.2, 0.8])
        pairwise = DecisionTreeFactor.from_table((A, B), [[0.9, 0.1], [0.3, 0.7]])
        return [prior, pairwise]

    def test_max_marginal(self, factors):
        conditional, factor = eliminate_for_mpe(factors, ["b"])
        assert factor.keys == (A,)
        assert np.allclose(factor.table, [0.18, 0.56])

    def test_conditional(self, factors):
        conditional, _ = eliminate_for_mpe(factors, ["b"])
        assert isinstance(conditional, DiscreteConditional)
        assert conditional.frontals == (B,)
        assert conditional.parents == (A,)
        assert conditional({"a": 1, "b": 0}) == pytest.approx(0.24 / 0.56)
        assert conditional.argmax({"a": 0}) == {"b": 0}
        assert conditional.argmax({"a": 1}) == {"b": 1}

    def test_eliminate_all(self, factors):
        conditional, factor = eliminate_for_mpe(factors, ["a", "b"])
        assert factor.keys == ()
        assert float(factor.table) == pytest.approx(0.56)
        assert conditional.argmax() == {"a": 1, "b": 1}

    def test_missing_key_raises(self, factors):
        with pytest.raises(ValueError):
            eliminate_for_mpe(factors, ["z"])
