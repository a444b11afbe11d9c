"""
hybridfg/linear/graph.py

An ordered, immutable collection of Gaussian factors.

Entries may be None: a factor that is infeasible (or not materialized)
under the discrete hypothesis the collection belongs to.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from hybridfg.core.keys import Key, KeyFormatter, default_key_formatter
from hybridfg.errors import SingularSystemError
from hybridfg.linear.factors import GaussianFactor, VectorValues

MaybeFactor = Optional[GaussianFactor]


@dataclass(frozen=True, eq=False)
class GaussianFactorGraph:
    """
    Attributes:
        factors: Ordered factors, possibly containing None entries
    """
    factors: Tuple[MaybeFactor, ...] = ()

    @staticmethod
    def of(*factors: MaybeFactor) -> "GaussianFactorGraph":
        return GaussianFactorGraph(tuple(factors))

    def push_back(self, factor: MaybeFactor) -> "GaussianFactorGraph":
        """New collection with factor appended."""
        return GaussianFactorGraph(self.factors + (factor,))

    def __len__(self) -> int:
        return len(self.factors)

    def __iter__(self) -> Iterator[MaybeFactor]:
        return iter(self.factors)

    def __getitem__(self, i: int) -> MaybeFactor:
        return self.factors[i]

    @property
    def is_empty(self) -> bool:
        return not self.factors

    @property
    def has_null(self) -> bool:
        return any(f is None for f in self.factors)

    def keys(self) -> Tuple[Key, ...]:
        """Continuous keys in order of first appearance."""
        seen: Dict[Key, None] = {}
        for f in self.factors:
            if f is not None:
                for k in f.keys:
                    seen.setdefault(k, None)
        return tuple(seen)

    def dims(self) -> Dict[Key, int]:
        """
        Dimension of every key.

        Raises:
            ValueError: If two factors disagree on a key's dimension
        """
        out: Dict[Key, int] = {}
        for f in self.factors:
            if f is None:
                continue
            for k, d in f.dims.items():
                if out.setdefault(k, d) != d:
                    raise ValueError(f"Key {k!r} has dimension {out[k]} and {d} in different factors")
        return out

    def augmented_information(self, ordering: Optional[Sequence[Key]] = None) -> Tuple[Tuple[Key, ...], Dict[Key, int], np.ndarray]:
        """
        Sum of the factors' augmented information matrices.

        Args:
            ordering: Keys to place first; remaining keys follow in
                order of first appearance

        Returns:
            (keys, dims, Λ) with Λ blocks laid out in keys order

        Raises:
            ValueError: If the graph contains None or an ordering key is absent
        """
        if self.has_null:
            raise ValueError("Cannot form the information matrix of a graph with null factors")
        dims = self.dims()
        ordering = tuple(ordering or ())
        missing = [k for k in ordering if k not in dims]
        if missing:
            raise ValueError(f"Keys {missing} are not involved in any factor")
        keys = ordering + tuple(k for k in self.keys() if k not in set(ordering))

        offsets: Dict[Key, int] = {}
        total = 0
        for k in keys:
            offsets[k] = total
            total += dims[k]

        info = np.zeros((total + 1, total + 1))
        for f in self.factors:
            local = f.augmented_information()
            idx: List[int] = []
            for k in f.keys:
                idx.extend(range(offsets[k], offsets[k] + dims[k]))
            idx.append(total)
            info[np.ix_(idx, idx)] += local
        return keys, dims, info

    def optimize(self) -> VectorValues:
        """
        Least-squares minimizer of the collection.

        Raises:
            SingularSystemError: If the normal equations are not positive definite
        """
        if self.is_empty:
            return {}
        keys, dims, info = self.augmented_information()
        if not keys:
            return {}
        G = info[:-1, :-1]
        g = info[:-1, -1]
        try:
            factor = cho_factor(G, lower=False)
        except LinAlgError as exc:
            raise SingularSystemError(f"Cannot solve system over keys {list(keys)}: {exc}") from exc
        x = cho_solve(factor, g)
        out: VectorValues = {}
        offset = 0
        for k in keys:
            out[k] = x[offset:offset + dims[k]]
            offset += dims[k]
        return out

    def error(self, values: Optional[Mapping[Key, np.ndarray]] = None) -> float:
        """Total residual energy; None entries contribute nothing."""
        return float(sum(f.error(values) for f in self.factors if f is not None))

    def format(self, title: str = "GaussianFactorGraph", key_formatter: KeyFormatter = default_key_formatter) -> str:
        lines = [f"{title}: size {len(self.factors)}"]
        for i, f in enumerate(self.factors):
            lines.append(f"  factor {i}: {'nullptr' if f is None else f.format(key_formatter)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"GaussianFactorGraph(size={len(self.factors)}, nulls={sum(f is None for f in self.factors)})"
