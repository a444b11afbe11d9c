"""
hybridfg/linear/factors.py

Linear Gaussian factors over continuous keys.

Two equivalent parameterizations are provided:
  - JacobianFactor: whitened rows  ||Σ_k A_k x_k - b||²
  - HessianFactor:  augmented information matrix [[G, g], [gᵀ, f]]

Both report error(x) = 0.5 * ||A x - b||² = 0.5 * (xᵀGx - 2xᵀg + f).
Continuous values missing from `values` are taken to be zero.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from hybridfg.core.keys import Key, KeyFormatter, default_key_formatter, format_keys

VectorValues = Dict[Key, np.ndarray]


def stack_values(keys: Sequence[Key], dims: Mapping[Key, int], values: Optional[Mapping[Key, np.ndarray]]) -> np.ndarray:
    """Concatenate per-key vectors in keys order, zero-filling missing keys."""
    values = values or {}
    parts = []
    for k in keys:
        if k in values:
            v = np.asarray(values[k], dtype=np.float64).reshape(-1)
            if v.shape[0] != dims[k]:
                raise ValueError(f"Value for key {k!r} has dimension {v.shape[0]}, expected {dims[k]}")
            parts.append(v)
        else:
            parts.append(np.zeros(dims[k]))
    return np.concatenate(parts) if parts else np.zeros(0)


class GaussianFactor(ABC):
    """Base class of linear Gaussian factors."""

    @property
    @abstractmethod
    def keys(self) -> Tuple[Key, ...]: ...

    @property
    @abstractmethod
    def dims(self) -> Dict[Key, int]: ...

    @abstractmethod
    def error(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> float: ...

    @abstractmethod
    def augmented_information(self) -> np.ndarray:
        """[[G, g], [gᵀ, f]] with blocks in self.keys order."""

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        return f"{type(self).__name__}[{format_keys(self.keys, key_formatter)}]"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(keys={list(self.keys)})"


class JacobianFactor(GaussianFactor):
    """
    Whitened linear least-squares factor.

    Args:
        blocks: Map (or sequence of pairs) from key to its m x d_k matrix A_k
        b: Right-hand side, length m
        sigmas: Optional per-row standard deviations used to whiten A and b

    Example:
        >>> f = JacobianFactor({"x1": [[1.0]]}, [2.0])
        >>> f.error({"x1": [0.0]})
        2.0
    """

    def __init__(
        self,
        blocks: Union[Mapping[Key, np.ndarray], Sequence[Tuple[Key, np.ndarray]]],
        b,
        sigmas=None,
    ):
        pairs = list(blocks.items()) if isinstance(blocks, Mapping) else list(blocks)
        rhs = np.asarray(b, dtype=np.float64).reshape(-1)
        m = rhs.shape[0]
        if sigmas is None:
            inv_sigma = np.ones(m)
        else:
            sig = np.asarray(sigmas, dtype=np.float64).reshape(-1)
            if sig.shape[0] != m:
                raise ValueError(f"JacobianFactor: {sig.shape[0]} sigmas for {m} rows")
            if np.any(sig <= 0.0):
                raise ValueError("JacobianFactor: sigmas must be positive")
            inv_sigma = 1.0 / sig

        keys = []
        mats: Dict[Key, np.ndarray] = {}
        for key, A in pairs:
            if key in mats:
                raise ValueError(f"JacobianFactor: duplicate key {key!r}")
            A = np.atleast_2d(np.asarray(A, dtype=np.float64))
            if A.shape[0] != m:
                raise ValueError(f"JacobianFactor: block for {key!r} has {A.shape[0]} rows, b has {m}")
            keys.append(key)
            mats[key] = A * inv_sigma[:, None]

        self._keys = tuple(keys)
        self._blocks = mats
        self._b = rhs * inv_sigma

    @property
    def keys(self) -> Tuple[Key, ...]:
        return self._keys

    @property
    def dims(self) -> Dict[Key, int]:
        return {k: self._blocks[k].shape[1] for k in self._keys}

    @property
    def rows(self) -> int:
        return self._b.shape[0]

    @property
    def b(self) -> np.ndarray:
        return self._b

    def block(self, key: Key) -> np.ndarray:
        return self._blocks[key]

    def matrix(self) -> np.ndarray:
        """Whitened A with blocks concatenated in keys order."""
        if not self._keys:
            return np.zeros((self.rows, 0))
        return np.hstack([self._blocks[k] for k in self._keys])

    def residual(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> np.ndarray:
        x = stack_values(self._keys, self.dims, values)
        return self.matrix() @ x - self._b

    def error(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> float:
        r = self.residual(values)
        return 0.5 * float(r @ r)

    def augmented_information(self) -> np.ndarray:
        Ab = np.hstack([self.matrix(), self._b[:, None]])
        return Ab.T @ Ab


class HessianFactor(GaussianFactor):
    """
    Factor in information form.

    Args:
        keys: Ordered continuous keys
        dims: Dimension of each key
        info: Symmetric (D+1) x (D+1) augmented information matrix, D = Σ dims
    """

    def __init__(self, keys: Sequence[Key], dims: Mapping[Key, int], info):
        self._keys = tuple(keys)
        self._dims = {k: int(dims[k]) for k in self._keys}
        info = np.asarray(info, dtype=np.float64)
        n = sum(self._dims.values()) + 1
        if info.shape != (n, n):
            raise ValueError(f"HessianFactor: info shape {info.shape} != {(n, n)}")
        self._info = 0.5 * (info + info.T)

    @staticmethod
    def from_jacobian(factor: JacobianFactor) -> "HessianFactor":
        return HessianFactor(factor.keys, factor.dims, factor.augmented_information())

    @property
    def keys(self) -> Tuple[Key, ...]:
        return self._keys

    @property
    def dims(self) -> Dict[Key, int]:
        return dict(self._dims)

    @property
    def information(self) -> np.ndarray:
        return self._info[:-1, :-1]

    @property
    def linear_term(self) -> np.ndarray:
        return self._info[:-1, -1]

    @property
    def constant_term(self) -> float:
        return float(self._info[-1, -1])

    def error(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> float:
        x = stack_values(self._keys, self._dims, values)
        G, g, f = self.information, self.linear_term, self.constant_term
        return 0.5 * float(x @ G @ x - 2.0 * x @ g + f)

    def augmented_information(self) -> np.ndarray:
        return self._info.copy()
