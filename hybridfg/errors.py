"""
hybridfg/errors.py

Exception types raised during hybrid elimination.

Each exception also derives from the builtin a caller would naturally
catch, so `except ValueError` keeps working around construction errors.
"""

from __future__ import annotations


class HybridError(Exception):
    """Base class for all hybridfg errors."""


class TypeMismatchError(HybridError, TypeError):
    """A graph entry tagged as a mixture factor does not hold one."""


class SingularSystemError(HybridError, RuntimeError):
    """The frontal block of a Gaussian system is not positive definite."""


class KeyMismatchError(HybridError, ValueError):
    """Hypotheses disagree on the frontal or separator keys of an elimination."""
