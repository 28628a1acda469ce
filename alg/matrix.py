"""Dense matrices, their algebra and decompositions.

Storage layout
--------------
A :class:`Matrix` has ``n`` columns and ``m`` rows. Cells are addressed as
``(x, y)`` with ``x`` the column and ``y`` the row, and stored column-major in
a single list of length ``n * m``::

    index(x, y) = y + x * m

Each column is therefore a contiguous slice of the backing list, which makes
:meth:`Matrix.col`, :meth:`Matrix.keep_cols`, :meth:`Matrix.append_cols` and
:meth:`Matrix.swap_cols` slice operations, while :meth:`Matrix.row` strides
across the list.

Mutation
--------
Element writes, row/column swaps, :meth:`keep_cols` and :meth:`append_cols`
mutate in place. Everything else (``+``, ``-``, scalar ``*`` and ``/``,
matrix products, :meth:`transpose`) returns a new matrix. The two
decompositions exist in a destructive form (:meth:`invert_in_place`,
:meth:`cholesky_in_place`) and an allocating form (:meth:`inverse`,
:meth:`cholesky`) that runs the same body on a copy.

Decompositions
--------------
- Gauss-Jordan inversion augments ``A`` with the identity to ``[A | I]`` and
  reduces the left half to ``I``; the right half is then ``A⁻¹``. A column
  without a usable pivot means ``A`` is singular, reported as ``None``.
- Cholesky produces lower-triangular ``L`` with ``L Lᵀ = A`` for symmetric
  positive-definite ``A``. Positive-definiteness is not checked; violating it
  fails inside ``math.sqrt`` or the reciprocal, or propagates NaN.
"""
from __future__ import annotations

from functools import reduce
from itertools import permutations
from typing import Any, Callable, Generic, Iterator, List, Optional, Sequence, Tuple, TypeVar
import math
import operator

from .errors import DimensionError, NotSquareError
from .vector import Vector, _sum

T = TypeVar("T")
U = TypeVar("U")

Cell = Tuple[int, int]

# Pivots of inexact matrices at or below this fraction of the largest
# magnitude count as zero.
PIVOT_RTOL = 1e-12


def _parity(perm: Sequence[int]) -> int:
    """Return 1 for odd permutations and 0 for even ones (inversion count)."""
    inversions = 0
    for i in range(len(perm)):
        for j in range(i + 1, len(perm)):
            if perm[i] > perm[j]:
                inversions += 1
    return inversions % 2


def _pivot_tolerance(values: Sequence[Any]) -> Any:
    if not any(isinstance(a, (float, complex)) for a in values):
        return 0
    return PIVOT_RTOL * max((abs(a) for a in values), default=0.0)


class Matrix(Generic[T]):
    """Dense column-major matrix with ``n`` columns and ``m`` rows."""

    __slots__ = ("n", "m", "_data")

    __array_ufunc__ = None

    def __init__(self, n: int, m: int, data: List[T]) -> None:
        if len(data) != n * m:
            raise DimensionError(f"backing list has {len(data)} cells, expected {n} x {m} = {n * m}")
        self.n = n
        self.m = m
        self._data = data

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def new(cls, n: int, m: int, f: Callable[[int, int], T]) -> "Matrix[T]":
        """Build an ``n`` x ``m`` matrix, calling ``f(x, y)`` once per cell."""
        return cls(n, m, [f(x, y) for x in range(n) for y in range(m)])

    @classmethod
    def zero(cls, n: int, m: int, zero: Any = 0) -> "Matrix[Any]":
        return cls(n, m, [zero] * (n * m))

    @classmethod
    def empty(cls) -> "Matrix[Any]":
        return cls(0, 0, [])

    @classmethod
    def diagonal(cls, values: Vector[T], zero: Any = 0) -> "Matrix[T]":
        n = values.dim()
        return cls.new(n, n, lambda x, y: values[x] if x == y else zero)

    @classmethod
    def scalar(cls, n: int, value: T, zero: Any = 0) -> "Matrix[T]":
        return cls.new(n, n, lambda x, y: value if x == y else zero)

    @classmethod
    def identity(cls, n: int, one: Any = 1, zero: Any = 0) -> "Matrix[Any]":
        return cls.scalar(n, one, zero)

    @classmethod
    def from_cols(cls, cols: Sequence[Vector[T]]) -> "Matrix[T]":
        if not cols:
            return cls.empty()
        m = cols[0].dim()
        data: List[T] = []
        for x, col in enumerate(cols):
            if col.dim() != m:
                raise DimensionError(f"column {x} has length {col.dim()}, expected {m}")
            data.extend(col)
        return cls(len(cols), m, data)

    @classmethod
    def from_rows(cls, rows: Sequence[Vector[T]]) -> "Matrix[T]":
        if not rows:
            return cls.empty()
        n = rows[0].dim()
        for y, row in enumerate(rows):
            if row.dim() != n:
                raise DimensionError(f"row {y} has length {row.dim()}, expected {n}")
        return cls.new(n, len(rows), lambda x, y: rows[y][x])

    @classmethod
    def from_col(cls, v: Vector[T]) -> "Matrix[T]":
        return cls(1, v.dim(), v.to_list())

    @classmethod
    def from_row(cls, v: Vector[T]) -> "Matrix[T]":
        return cls(v.dim(), 1, v.to_list())

    def copy(self) -> "Matrix[T]":
        return Matrix(self.n, self.m, list(self._data))

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    @property
    def shape(self) -> Tuple[int, int]:
        """``(columns, rows)``."""
        return (self.n, self.m)

    def is_square(self) -> bool:
        return self.n == self.m

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.n and 0 <= y < self.m):
            raise IndexError(f"cell ({x}, {y}) out of range for {self.n} x {self.m} matrix")
        return y + x * self.m

    def __getitem__(self, cell: Cell) -> T:
        x, y = cell
        return self._data[self._index(x, y)]

    def __setitem__(self, cell: Cell, value: T) -> None:
        x, y = cell
        self._data[self._index(x, y)] = value

    def _check_col(self, x: int) -> None:
        if not 0 <= x < self.n:
            raise IndexError(f"column {x} out of range for {self.n} x {self.m} matrix")

    def col(self, x: int) -> Vector[T]:
        self._check_col(x)
        start = x * self.m
        return Vector(self._data[start:start + self.m])

    def row(self, y: int) -> Vector[T]:
        if not 0 <= y < self.m:
            raise IndexError(f"row {y} out of range for {self.n} x {self.m} matrix")
        return Vector(self._data[y::self.m] if self.m else [])

    def cols(self) -> Iterator[Vector[T]]:
        return (self.col(x) for x in range(self.n))

    def rows(self) -> Iterator[Vector[T]]:
        return (self.row(y) for y in range(self.m))

    def map(self, f: Callable[[T], U]) -> "Matrix[U]":
        return Matrix(self.n, self.m, [f(a) for a in self._data])

    def to_vector(self) -> Vector[T]:
        """Flatten a single-row or single-column matrix into a vector."""
        if self.n == 1 or self.m == 1:
            return Vector(list(self._data))
        raise DimensionError(f"{self.n} x {self.m} matrix is not single-row or single-column")

    # ------------------------------------------------------------------
    # Shape mutation
    # ------------------------------------------------------------------

    def swap(self, a: Cell, b: Cell) -> None:
        i = self._index(*a)
        j = self._index(*b)
        if i != j:
            self._data[i], self._data[j] = self._data[j], self._data[i]

    def swap_rows(self, a: int, b: int) -> None:
        if a == b:
            return
        for x in range(self.n):
            self.swap((x, a), (x, b))

    def swap_cols(self, a: int, b: int) -> None:
        self._check_col(a)
        self._check_col(b)
        if a == b:
            return
        m = self.m
        ia, ib = a * m, b * m
        data = self._data
        data[ia:ia + m], data[ib:ib + m] = data[ib:ib + m], data[ia:ia + m]

    def keep_cols(self, cols: range) -> None:
        """Truncate in place to the contiguous column range ``cols``."""
        if cols.step != 1 or not (0 <= cols.start <= cols.stop <= self.n):
            raise IndexError(f"column range {cols} is not a contiguous range within 0..{self.n}")
        self._data = self._data[cols.start * self.m:cols.stop * self.m]
        self.n = len(cols)

    def append_cols(self, other: "Matrix[T]") -> None:
        if self.m != other.m:
            raise DimensionError(f"append_cols: row counts differ ({self.m} vs {other.m})")
        self._data.extend(other._data)
        self.n += other.n

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def transpose(self) -> "Matrix[T]":
        return Matrix.new(self.m, self.n, lambda x, y: self._data[x + y * self.m])

    def _require_same_shape(self, other: "Matrix[Any]", op: str) -> None:
        if self.shape != other.shape:
            raise DimensionError(f"{op}: shape mismatch ({self.n} x {self.m} vs {other.n} x {other.m})")

    def __add__(self, other: "Matrix[T]") -> "Matrix[T]":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._require_same_shape(other, "add")
        return Matrix(self.n, self.m, [a + b for a, b in zip(self._data, other._data)])

    def __sub__(self, other: "Matrix[T]") -> "Matrix[T]":
        if not isinstance(other, Matrix):
            return NotImplemented
        self._require_same_shape(other, "sub")
        return Matrix(self.n, self.m, [a - b for a, b in zip(self._data, other._data)])

    def __neg__(self) -> "Matrix[T]":
        return Matrix(self.n, self.m, [-a for a in self._data])

    def __matmul__(self, other: Any) -> Any:
        if isinstance(other, Matrix):
            return self._mul_matrix(other)
        if isinstance(other, Vector):
            return self._mul_vector(other)
        return NotImplemented

    def __mul__(self, other: Any) -> Any:
        if isinstance(other, (Matrix, Vector)):
            return self @ other
        return Matrix(self.n, self.m, [a * other for a in self._data])

    def __rmul__(self, other: Any) -> "Matrix[T]":
        if isinstance(other, (Matrix, Vector)):
            return NotImplemented
        return Matrix(self.n, self.m, [other * a for a in self._data])

    def __truediv__(self, other: Any) -> "Matrix[T]":
        if isinstance(other, (Matrix, Vector)):
            return NotImplemented
        return Matrix(self.n, self.m, [a / other for a in self._data])

    def _mul_matrix(self, other: "Matrix[T]") -> "Matrix[T]":
        if self.n != other.m:
            raise DimensionError(
                f"matrix product: {self.n} x {self.m} times {other.n} x {other.m} (inner dimensions differ)"
            )
        a, b = self._data, other._data
        m, k = self.m, self.n
        # Cell (x, y) is row y of self dotted with column x of other.
        return Matrix.new(
            other.n,
            m,
            lambda x, y: _sum(a[y + i * m] * b[i + x * k] for i in range(k)),
        )

    def _mul_vector(self, v: Vector[T]) -> Vector[T]:
        if self.n != v.dim():
            raise DimensionError(f"matrix-vector product: {self.n} columns vs vector of dimension {v.dim()}")
        a, m = self._data, self.m
        values = v.to_list()
        return Vector.new(m, lambda y: _sum(a[y + i * m] * values[i] for i in range(self.n)))

    # ------------------------------------------------------------------
    # Determinant
    # ------------------------------------------------------------------

    def _leibniz(self, signed: bool) -> T:
        total: Any = 0
        for perm in permutations(range(self.n)):
            term = reduce(operator.mul, (self[i, perm[i]] for i in range(self.n)), 1)
            if signed and _parity(perm):
                term = -term
            total = total + term
        return total

    def determinant(self) -> T:
        """Leibniz expansion; ``0`` for non-square matrices.

        O(n!): intended for small matrices only.
        """
        if not self.is_square():
            return 0  # type: ignore[return-value]
        return self._leibniz(signed=True)

    def permanent(self) -> T:
        """Sign-free Leibniz sum over all permutations; ``0`` if not square."""
        if not self.is_square():
            return 0  # type: ignore[return-value]
        return self._leibniz(signed=False)

    # ------------------------------------------------------------------
    # Gauss-Jordan inversion
    # ------------------------------------------------------------------

    def _require_square(self, op: str) -> None:
        if not self.is_square():
            raise NotSquareError(f"{op} requires a square matrix, got {self.n} x {self.m}")

    def invert_in_place(self) -> Optional["Matrix[T]"]:
        """Replace ``self`` by its inverse and return it, or ``None`` if singular.

        Exact element types (``int``, :class:`~fractions.Fraction`) are
        singular only on an exactly zero pivot. For ``float`` and ``complex``
        a pivot within ``PIVOT_RTOL`` of the largest magnitude in ``self``
        also counts as zero, since rounding rarely cancels it exactly.
        A singular receiver is left unchanged.
        """
        self._require_square("inversion")
        n = self.n
        original = list(self._data)
        tolerance = _pivot_tolerance(original)
        self.append_cols(Matrix.identity(n))
        for k in range(n):
            pivot_row = max(range(k, n), key=lambda y: abs(self[k, y]))
            pivot = self[k, pivot_row]
            if abs(pivot) <= tolerance:
                self._data = original
                self.n = n
                return None
            self.swap_rows(k, pivot_row)
            # Columns left of k are already zero in the pivot row.
            for x in range(k, 2 * n):
                self[x, k] = self[x, k] / pivot
            for y in range(n):
                if y == k:
                    continue
                factor = self[k, y]
                if factor == 0:
                    continue
                for x in range(k, 2 * n):
                    self[x, y] = self[x, y] - factor * self[x, k]
        self.keep_cols(range(n, 2 * n))
        return self

    def inverse(self) -> Optional["Matrix[T]"]:
        """Inverse as a new matrix, or ``None`` if ``self`` is singular."""
        self._require_square("inversion")
        return self.copy().invert_in_place()

    # ------------------------------------------------------------------
    # Cholesky
    # ------------------------------------------------------------------

    def cholesky_in_place(self) -> "Matrix[float]":
        """Overwrite ``self`` with its lower-triangular Cholesky factor."""
        self._require_square("cholesky")
        for x in range(self.n):
            for y in range(x):
                self[x, y] = 0
            diag = math.sqrt(self[x, x] - _sum(self[i, x] * self[i, x] for i in range(x)))
            self[x, x] = diag
            inv = 1 / diag
            for y in range(x + 1, self.n):
                self[x, y] = (self[x, y] - _sum(self[i, x] * self[i, y] for i in range(x))) * inv
        return self  # type: ignore[return-value]

    def cholesky(self) -> "Matrix[float]":
        self._require_square("cholesky")
        return self.copy().cholesky_in_place()

    # ------------------------------------------------------------------
    # Comparison and display
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matrix):
            return NotImplemented
        return self.shape == other.shape and self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def is_close(self, other: "Matrix[Any]", rel_tol: float = 1e-9, abs_tol: float = 0.0) -> bool:
        if self.shape != other.shape:
            return False
        return all(
            math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)
            for a, b in zip(self._data, other._data)
        )

    def __repr__(self) -> str:
        return f"Matrix({self.n}, {self.m}, {self._data!r})"

    def __str__(self) -> str:
        lines = [f"[{self.n} x {self.m}]"]
        for y in range(self.m):
            lines.append("[" + ", ".join(str(self[x, y]) for x in range(self.n)) + "]")
        return "\n".join(lines)
