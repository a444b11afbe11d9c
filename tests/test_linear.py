"""
Tests for Gaussian factors, collections and Cholesky elimination.
"""

import numpy as np
import pytest

from hybridfg.errors import SingularSystemError
from hybridfg.linear import (
    GaussianConditional,
    GaussianFactorGraph,
    HessianFactor,
    JacobianFactor,
    eliminate_cholesky,
)


def _chain():
    # x = 1 and y - x = 2
    prior = JacobianFactor({"x": [[1.0]]}, [1.0])
    between = JacobianFactor({"x": [[-1.0]], "y": [[1.0]]}, [2.0])
    return GaussianFactorGraph.of(prior, between)


class TestJacobianFactor:
    """Whitened least-squares factor errors."""

    def test_error(self):
        f = JacobianFactor({"x": [[1.0]]}, [2.0])
        assert f.error({"x": [0.0]}) == pytest.approx(2.0)
        assert f.error({"x": [2.0]}) == pytest.approx(0.0)

    def test_missing_values_are_zero(self):
        f = JacobianFactor({"x": [[1.0]]}, [2.0])
        assert f.error() == pytest.approx(2.0)

    def test_sigmas_whiten(self):
        f = JacobianFactor({"x": [[1.0]]}, [2.0], sigmas=[2.0])
        assert f.error({"x": [0.0]}) == pytest.approx(0.5)

    def test_row_mismatch_raises(self):
        with pytest.raises(ValueError):
            JacobianFactor({"x": [[1.0], [1.0]]}, [1.0])

    def test_wrong_value_dimension_raises(self):
        f = JacobianFactor({"x": [[1.0, 0.0]]}, [1.0])
        with pytest.raises(ValueError):
            f.error({"x": [1.0]})

    def test_hessian_matches_jacobian(self):
        j = JacobianFactor({"x": [[1.0, 2.0], [0.0, 1.0]], "y": [[3.0], [1.0]]}, [1.0, -1.0])
        h = HessianFactor.from_jacobian(j)
        values = {"x": np.array([0.3, -0.2]), "y": np.array([1.5])}
        assert h.keys == j.keys
        assert h.dims == {"x": 2, "y": 1}
        assert h.error(values) == pytest.approx(j.error(values))
        assert h.constant_term == pytest.approx(2.0)


class TestGaussianFactorGraph:
    """Collections with null entries, on the chain x = 1, y - x = 2."""

    def test_push_back_is_persistent(self):
        g = GaussianFactorGraph()
        g2 = g.push_back(JacobianFactor({"x": [[1.0]]}, [0.0]))
        assert len(g) == 0
        assert len(g2) == 1

    def test_keys_in_first_appearance_order(self):
        assert _chain().keys() == ("x", "y")

    def test_error_skips_nulls(self):
        g = _chain().push_back(None)
        assert g.has_null
        assert g.error({"x": [1.0], "y": [3.0]}) == pytest.approx(0.0)

    def test_information_of_null_graph_raises(self):
        with pytest.raises(ValueError):
            _chain().push_back(None).augmented_information()

    def test_dimension_conflict_raises(self):
        g = GaussianFactorGraph.of(
            JacobianFactor({"x": [[1.0]]}, [0.0]),
            JacobianFactor({"x": [[1.0, 1.0]]}, [0.0]),
        )
        with pytest.raises(ValueError):
            g.dims()

    def test_optimize(self):
        x = _chain().optimize()
        assert x["x"] == pytest.approx([1.0])
        assert x["y"] == pytest.approx([3.0])

    def test_optimize_empty(self):
        assert GaussianFactorGraph().optimize() == {}

    def test_optimize_singular_raises(self):
        g = GaussianFactorGraph.of(JacobianFactor({"x": [[0.0]]}, [1.0]))
        with pytest.raises(SingularSystemError):
            g.optimize()

    def test_format_marks_nulls(self):
        text = GaussianFactorGraph.of(None).format()
        assert "nullptr" in text


class TestEliminateCholesky:
    """Cholesky elimination of x from the chain."""

    def test_keys(self):
        conditional, factor = eliminate_cholesky(_chain(), ["x"])
        assert conditional.frontals == ("x",)
        assert conditional.parents == ("y",)
        assert factor.keys == ("y",)

    def test_residual_is_min_over_frontals(self):
        _, factor = eliminate_cholesky(_chain(), ["x"])
        assert factor.error({"y": [3.0]}) == pytest.approx(0.0, abs=1e-12)
        # min_x 0.5 * ((x - 1)^2 + (x + 2)^2) at x = -0.5
        assert factor.error({"y": [0.0]}) == pytest.approx(2.25)

    def test_conditional_solve(self):
        conditional, _ = eliminate_cholesky(_chain(), ["x"])
        assert conditional.solve({"y": [3.0]})["x"] == pytest.approx([1.0])
        assert conditional.solve({"y": [5.0]})["x"] == pytest.approx([2.0])

    def test_eliminate_all_keys(self):
        conditional, factor = eliminate_cholesky(_chain(), ["x", "y"])
        assert conditional.frontals == ("x", "y")
        assert factor.keys == ()
        assert factor.error({}) == pytest.approx(0.0, abs=1e-12)

    def test_empty_ordering_raises(self):
        with pytest.raises(ValueError):
            eliminate_cholesky(_chain(), [])

    def test_unknown_key_raises(self):
        with pytest.raises(ValueError):
            eliminate_cholesky(_chain(), ["z"])

    def test_singular_raises(self):
        g = GaussianFactorGraph.of(JacobianFactor({"x": [[0.0]], "y": [[1.0]]}, [1.0]))
        with pytest.raises(SingularSystemError):
            eliminate_cholesky(g, ["x"])


class TestGaussianConditional:
    """Square-root conditional solve and error."""

    def test_shape_validation(self):
        with pytest.raises(ValueError):
            GaussianConditional(["x"], [], {"x": 2}, np.eye(1), np.zeros((1, 0)), [0.0])

    def test_error_zero_at_solution(self):
        c = GaussianConditional(["x"], ["y"], {"x": 1, "y": 1}, [[2.0]], [[1.0]], [4.0])
        x = c.solve({"y": [2.0]})
        assert x["x"] == pytest.approx([1.0])
        assert c.error({"x": x["x"], "y": [2.0]}) == pytest.approx(0.0)
