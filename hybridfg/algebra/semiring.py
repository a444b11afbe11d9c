"""
hybridfg/algebra/semiring.py

Semirings used to combine and reduce discrete potentials.

A commutative semiring (S, ⊕, ⊗, 0, 1) provides:
- add (⊕): semiring addition, used when a variable is eliminated
- mul (⊗): semiring multiplication, used when potentials are combined
- zero (0): additive identity
- one (1): multiplicative identity

Sum-product (ProbSemiring) marginalizes; max-product (MaxProductSemiring)
keeps the most probable explanation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Tuple, Union
import numpy as np

Axis = Optional[Union[int, Tuple[int, ...]]]


class Semiring(Protocol):
    """Protocol for semiring operations on nonnegative tables."""
    name: str
    zero: Any
    one: Any

    def add(self, a: Any, b: Any) -> Any: ...
    def mul(self, a: Any, b: Any) -> Any: ...
    def add_reduce(self, x: np.ndarray, axis: Axis = None) -> np.ndarray: ...
    def normalize(self, x: np.ndarray, axis: Axis = None) -> np.ndarray: ...


@dataclass(frozen=True)
class ProbSemiring:
    """Nonnegative reals: add=+, mul=*."""
    name: str = "PROB"
    zero: float = 0.0
    one: float = 1.0

    def add(self, a: Any, b: Any) -> Any:
        return np.add(a, b)

    def mul(self, a: Any, b: Any) -> Any:
        return np.multiply(a, b)

    def add_reduce(self, x: np.ndarray, axis: Axis = None) -> np.ndarray:
        return np.sum(x, axis=axis)

    def normalize(self, x: np.ndarray, axis: Axis = None) -> np.ndarray:
        s = np.sum(x, axis=axis, keepdims=True)
        s = np.where(s == 0.0, 1.0, s)
        return x / s


@dataclass(frozen=True)
class MaxProductSemiring:
    """Nonnegative reals: add=max, mul=*."""
    name: str = "MAXPROD"
    zero: float = 0.0
    one: float = 1.0

    def add(self, a: Any, b: Any) -> Any:
        return np.maximum(a, b)

    def mul(self, a: Any, b: Any) -> Any:
        return np.multiply(a, b)

    def add_reduce(self, x: np.ndarray, axis: Axis = None) -> np.ndarray:
        return np.max(x, axis=axis)

    def normalize(self, x: np.ndarray, axis: Axis = None) -> np.ndarray:
        # Scale so the best entry along axis is one.
        m = np.max(x, axis=axis, keepdims=True)
        m = np.where(m == 0.0, 1.0, m)
        return x / m


sum_product = ProbSemiring()
max_product = MaxProductSemiring()
