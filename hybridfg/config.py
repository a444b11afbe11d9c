"""
hybridfg/config.py

Configuration for hybrid elimination.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EliminationConfig:
    """
    Options controlling how per-hypothesis elimination is carried out.

    Attributes:
        max_workers: Number of threads used to eliminate hypotheses.
            1 runs the leaves sequentially.
        check_key_consistency: Verify that every feasible hypothesis
            eliminates onto the same frontal and separator keys, raising
            KeyMismatchError otherwise.
        singular_as_infeasible: Treat a hypothesis whose system cannot be
            factored as infeasible instead of aborting the whole call.
    """
    max_workers: int = 1
    check_key_consistency: bool = False
    singular_as_infeasible: bool = False

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @property
    def parallel(self) -> bool:
        return self.max_workers > 1


DEFAULT_CONFIG = EliminationConfig()
