"""Dense vectors and matrices over an arbitrary numeric element type."""

from .errors import DimensionError, NotSquareError
from .matrix import Matrix
from .vector import Vector

__all__ = [
    "Vector",
    "Matrix",
    "DimensionError",
    "NotSquareError",
]
