"""Dense one-dimensional vectors.

A :class:`Vector` is a fixed-length sequence of elements of any type that
supports the arithmetic an operation needs: ``+`` for sums, ``*`` for scaling
and dot products, ``/`` for scalar division. Python's ``0`` is used as the
additive identity when folding sums, which works for ``int``, ``float``,
``complex``, :class:`fractions.Fraction` and :class:`decimal.Decimal` alike.

All operators are pure and return new vectors. The only mutating operations
are element assignment and :meth:`Vector.add_in_place` (also reachable via
``+=``).
"""
from __future__ import annotations

from functools import reduce
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterable, Iterator, List, TypeVar
import math
import operator

from .errors import DimensionError

if TYPE_CHECKING:
    from .matrix import Matrix

T = TypeVar("T")
U = TypeVar("U")


def _sum(values: Iterable[Any]) -> Any:
    """Left-to-right sum seeded with the additive identity."""
    return reduce(operator.add, values, 0)


def _is_algebraic(value: Any) -> bool:
    from .matrix import Matrix

    return isinstance(value, (Vector, Matrix))


class Vector(Generic[T]):
    """Dense vector owning its backing list."""

    __slots__ = ("_data",)

    # Keep numpy scalars from broadcasting over us; they defer to __rmul__.
    __array_ufunc__ = None

    def __init__(self, data: List[T]) -> None:
        self._data = data

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, n: int, f: Callable[[int], T]) -> "Vector[T]":
        """Build a vector of length ``n`` whose ``i``-th element is ``f(i)``."""
        return cls([f(i) for i in range(n)])

    @classmethod
    def from_copies(cls, n: int, model: T) -> "Vector[T]":
        return cls([model] * n)

    @classmethod
    def zero(cls, n: int, zero: Any = 0) -> "Vector[Any]":
        return cls([zero] * n)

    @classmethod
    def from_list(cls, data: List[T]) -> "Vector[T]":
        """Adopt ``data`` as the backing storage without copying it."""
        return cls(data)

    @classmethod
    def from_iter(cls, values: Iterable[T]) -> "Vector[T]":
        return cls(list(values))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def dim(self) -> int:
        return len(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def _check_index(self, i: int) -> None:
        if not 0 <= i < len(self._data):
            raise IndexError(f"index {i} out of range for vector of dimension {len(self._data)}")

    def __getitem__(self, i: int) -> T:
        self._check_index(i)
        return self._data[i]

    def __setitem__(self, i: int, value: T) -> None:
        self._check_index(i)
        self._data[i] = value

    def __iter__(self) -> Iterator[T]:
        return iter(self._data)

    def to_list(self) -> List[T]:
        return list(self._data)

    def copy(self) -> "Vector[T]":
        return Vector(list(self._data))

    def map(self, f: Callable[[T], U]) -> "Vector[U]":
        """Apply ``f`` to every element (a new vector)."""
        return Vector([f(a) for a in self._data])

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def _require_same_dim(self, other: "Vector[Any]", op: str) -> None:
        if len(self._data) != len(other._data):
            raise DimensionError(
                f"{op}: dimension mismatch ({len(self._data)} vs {len(other._data)})"
            )

    def __add__(self, other: "Vector[T]") -> "Vector[T]":
        if not isinstance(other, Vector):
            return NotImplemented
        self._require_same_dim(other, "add")
        return Vector([a + b for a, b in zip(self._data, other._data)])

    def __sub__(self, other: "Vector[T]") -> "Vector[T]":
        if not isinstance(other, Vector):
            return NotImplemented
        self._require_same_dim(other, "sub")
        return Vector([a - b for a, b in zip(self._data, other._data)])

    def __neg__(self) -> "Vector[T]":
        return Vector([-a for a in self._data])

    def __mul__(self, scalar: Any) -> "Vector[T]":
        if _is_algebraic(scalar):
            return NotImplemented
        return Vector([a * scalar for a in self._data])

    def __rmul__(self, scalar: Any) -> "Vector[T]":
        if _is_algebraic(scalar):
            return NotImplemented
        return Vector([scalar * a for a in self._data])

    def __truediv__(self, scalar: Any) -> "Vector[T]":
        if _is_algebraic(scalar):
            return NotImplemented
        return Vector([a / scalar for a in self._data])

    def dot(self, other: "Vector[T]") -> T:
        """Sum of elementwise products, accumulated left to right."""
        self._require_same_dim(other, "dot")
        return _sum(a * b for a, b in zip(self._data, other._data))

    def norm_sq(self) -> T:
        return self.dot(self)

    def norm(self) -> float:
        return math.sqrt(self.norm_sq())

    def outer_product(self, other: "Vector[T]") -> "Matrix[T]":
        """Column-times-row product ``self · otherᵀ``.

        The result has ``other.dim()`` columns and ``self.dim()`` rows, with
        cell ``(x, y)`` equal to ``self[y] * other[x]``.
        """
        from .matrix import Matrix

        return Matrix.new(len(other._data), len(self._data), lambda x, y: self._data[y] * other._data[x])

    def add_in_place(self, other: "Vector[T]") -> None:
        self._require_same_dim(other, "add_in_place")
        data = self._data
        for i, b in enumerate(other._data):
            data[i] = data[i] + b

    def __iadd__(self, other: "Vector[T]") -> "Vector[T]":
        if not isinstance(other, Vector):
            return NotImplemented
        self.add_in_place(other)
        return self

    # ------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def is_close(self, other: "Vector[Any]", rel_tol: float = 1e-9, abs_tol: float = 0.0) -> bool:
        """Elementwise :func:`math.isclose`; vectors of different length are never close."""
        if len(self._data) != len(other._data):
            return False
        return all(
            math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)
            for a, b in zip(self._data, other._data)
        )

    def __repr__(self) -> str:
        return f"Vector({self._data!r})"
