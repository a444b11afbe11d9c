"""
Algebra module: semirings for discrete potentials.
"""

from hybridfg.algebra.semiring import (
    Semiring,
    ProbSemiring,
    MaxProductSemiring,
    sum_product,
    max_product,
)

__all__ = [
    "Semiring",
    "ProbSemiring",
    "MaxProductSemiring",
    "sum_product",
    "max_product",
]
