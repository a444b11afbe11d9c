"""
Tree module: decision trees indexed by discrete assignments.
"""

from hybridfg.tree.decision_tree import DecisionTree

__all__ = [
    "DecisionTree",
]
