"""
hybridfg/linear/conditional.py

Gaussian conditional density on frontal keys given parent keys,
in square-root form:  R x_F + S x_P = d.
"""

from __future__ import annotations

from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.linalg import solve_triangular

from hybridfg.core.keys import Key, KeyFormatter, default_key_formatter, format_keys
from hybridfg.linear.factors import VectorValues, stack_values


class GaussianConditional:
    """
    Args:
        frontals: Eliminated keys
        parents: Separator keys the frontals depend on
        dims: Dimension of every frontal and parent key
        R: Upper triangular n_F x n_F matrix
        S: n_F x n_P matrix
        d: Right-hand side of length n_F
    """

    def __init__(self, frontals: Sequence[Key], parents: Sequence[Key], dims: Mapping[Key, int], R, S, d):
        self.frontals: Tuple[Key, ...] = tuple(frontals)
        self.parents: Tuple[Key, ...] = tuple(parents)
        self.dims: Dict[Key, int] = {k: int(dims[k]) for k in self.frontals + self.parents}
        self.R = np.asarray(R, dtype=np.float64)
        self.S = np.asarray(S, dtype=np.float64)
        self.d = np.asarray(d, dtype=np.float64).reshape(-1)

        nf = sum(self.dims[k] for k in self.frontals)
        npar = sum(self.dims[k] for k in self.parents)
        if self.R.shape != (nf, nf):
            raise ValueError(f"GaussianConditional: R shape {self.R.shape} != {(nf, nf)}")
        if self.S.shape != (nf, npar):
            raise ValueError(f"GaussianConditional: S shape {self.S.shape} != {(nf, npar)}")
        if self.d.shape != (nf,):
            raise ValueError(f"GaussianConditional: d length {self.d.shape[0]} != {nf}")

    @property
    def nr_frontals(self) -> int:
        return len(self.frontals)

    @property
    def keys(self) -> Tuple[Key, ...]:
        return self.frontals + self.parents

    def solve(self, parent_values: Optional[Mapping[Key, np.ndarray]] = None) -> VectorValues:
        """Most likely frontal values given the parents (missing parents are zero)."""
        xp = stack_values(self.parents, self.dims, parent_values)
        rhs = self.d - self.S @ xp if self.parents else self.d
        xf = solve_triangular(self.R, rhs, lower=False)
        out: VectorValues = {}
        offset = 0
        for k in self.frontals:
            out[k] = xf[offset:offset + self.dims[k]]
            offset += self.dims[k]
        return out

    def error(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> float:
        xf = stack_values(self.frontals, self.dims, values)
        xp = stack_values(self.parents, self.dims, values)
        r = self.R @ xf + self.S @ xp - self.d
        return 0.5 * float(r @ r)

    def format(self, key_formatter: KeyFormatter = default_key_formatter) -> str:
        return (f"GaussianConditional p({format_keys(self.frontals, key_formatter)} | "
                f"{format_keys(self.parents, key_formatter)})")

    def __repr__(self) -> str:
        return f"GaussianConditional(frontals={list(self.frontals)}, parents={list(self.parents)})"
