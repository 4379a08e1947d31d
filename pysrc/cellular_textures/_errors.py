# _errors.py
"""Exceptions raised by the spatial index."""

from __future__ import annotations


class InvalidInputError(ValueError):
    """The index was asked to build from an unusable point set (e.g. empty)."""


class InvariantViolationError(RuntimeError):
    """
    The tree arena contradicts its structural invariants.

    This signals a builder defect or a corrupted arena. Queries abort rather
    than return an answer that cannot be trusted.
    """
