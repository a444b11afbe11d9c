"""
hybridfg/linear/elimination.py

Cholesky-based elimination of a block of continuous keys.

With the joint augmented information laid out as

    Λ = [[H_FF, H_FS, g_F],
         [H_SF, H_SS, g_S],
         [g_Fᵀ, g_Sᵀ, f  ]]

and H_FF = Rᵀ R, we get  S = R⁻ᵀ H_FS,  d = R⁻ᵀ g_F,  and the separator
factor is the Schur complement  Λ_SS - [S d]ᵀ [S d].
"""

from __future__ import annotations

import logging
from typing import Sequence, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cholesky, solve_triangular

from hybridfg.core.keys import Key
from hybridfg.errors import SingularSystemError
from hybridfg.linear.conditional import GaussianConditional
from hybridfg.linear.factors import HessianFactor
from hybridfg.linear.graph import GaussianFactorGraph

_logger = logging.getLogger(__name__)

EliminationResult = Tuple[GaussianConditional, HessianFactor]


def eliminate_cholesky(graph: GaussianFactorGraph, ordering: Sequence[Key]) -> EliminationResult:
    """
    Eliminate the ordering keys from a Gaussian factor graph.

    Args:
        graph: Non-empty collection without null factors
        ordering: Frontal keys, eliminated jointly in this order

    Returns:
        (conditional p(frontals | separator), factor on the separator)

    Raises:
        ValueError: If ordering is empty or names keys absent from graph
        SingularSystemError: If the frontal information block is not positive definite
    """
    ordering = tuple(ordering)
    if not ordering:
        raise ValueError("eliminate_cholesky: ordering must name at least one key")

    keys, dims, info = graph.augmented_information(ordering)
    separator = keys[len(ordering):]
    nf = sum(dims[k] for k in ordering)

    try:
        R = cholesky(info[:nf, :nf], lower=False)
    except LinAlgError as exc:
        raise SingularSystemError(
            f"Cannot eliminate {list(ordering)}: frontal block is not positive definite"
        ) from exc

    # Rows [S | d] of the conditional, as R⁻ᵀ applied to the frontal rows of Λ.
    Sd = solve_triangular(R, info[:nf, nf:], trans="T", lower=False)
    S = Sd[:, :-1]
    d = Sd[:, -1]

    conditional = GaussianConditional(ordering, separator, dims, R, S, d)
    remaining = info[nf:, nf:] - Sd.T @ Sd
    factor = HessianFactor(separator, {k: dims[k] for k in separator}, remaining)

    _logger.debug(
        "Cholesky eliminated %s (dim %d) onto separator %s", list(ordering), nf, list(separator)
    )
    return conditional, factor
