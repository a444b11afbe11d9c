"""
hybridfg/discrete/elimination.py

Most-probable-explanation elimination over purely discrete factors.

Given factors φ_i and frontal keys F:
    τ(x_S)        = max_{x_F} ∏_i φ_i(x_F, x_S)
    P(x_F | x_S)  = ∏_i φ_i(x_F, x_S) / τ(x_S)
"""

from __future__ import annotations

import logging
from typing import Iterable, Sequence, Tuple

from hybridfg.algebra.semiring import max_product
from hybridfg.core.keys import Key
from hybridfg.discrete.conditional import DiscreteConditional
from hybridfg.discrete.factor import DecisionTreeFactor

_logger = logging.getLogger(__name__)


def multiply_all(factors: Iterable[DecisionTreeFactor]) -> DecisionTreeFactor:
    """Product of all factors on the union of their keys (unit if none)."""
    product = DecisionTreeFactor.ones(())
    for f in factors:
        product = product * f
    return product


def eliminate_for_mpe(
    factors: Iterable[DecisionTreeFactor],
    ordering: Sequence[Key],
) -> Tuple[DiscreteConditional, DecisionTreeFactor]:
    """
    Eliminate the ordering keys with max-product.

    Args:
        factors: Discrete potentials
        ordering: Keys to eliminate (frontals of the resulting conditional)

    Returns:
        (conditional over ordering given the remaining keys, max-marginal factor)

    Raises:
        ValueError: If an ordering key is not carried by any factor
    """
    factors = list(factors)
    product = multiply_all(factors)
    by_id = {dk.key: dk for dk in product.keys}
    missing = [k for k in ordering if k not in by_id]
    if missing:
        raise ValueError(f"eliminate_for_mpe: keys {missing} not found in discrete factors")

    frontals = tuple(by_id[k] for k in ordering)
    max_factor = product.reduce(ordering, max_product)
    conditional = DiscreteConditional(len(frontals), product.divide(max_factor), frontals)
    _logger.debug("MPE eliminated %s from %d discrete factors", list(ordering), len(factors))
    return conditional, max_factor
