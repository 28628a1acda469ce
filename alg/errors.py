"""Exceptions raised by the dense algebra types.

Shape mismatches are caller bugs: they are raised immediately and never
coerced. A singular matrix under inversion is not an error; see
:meth:`alg.matrix.Matrix.inverse`.
"""
from __future__ import annotations


class DimensionError(ValueError):
    """Operand dimensions are incompatible with the requested operation."""


class NotSquareError(DimensionError):
    """A square matrix was required."""
