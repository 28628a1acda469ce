"""
Determinant, Gauss-Jordan inversion and Cholesky factorisation.
"""

from fractions import Fraction

import pytest

from alg import Matrix, NotSquareError, Vector


def _rows(*rows):
    return Matrix.from_rows([Vector(list(r)) for r in rows])


@pytest.mark.parametrize("n", range(0, 6))
def test_identity_determinant_is_one(n):
    assert Matrix.identity(n).determinant() == 1


def test_determinant_is_signed():
    assert _rows((1, 2), (3, 4)).determinant() == -2
    assert _rows((6, 1, 1), (4, -2, 5), (2, 8, 7)).determinant() == -306


def test_permanent_is_the_unsigned_sum():
    assert _rows((1, 2), (3, 4)).permanent() == 10
    assert Matrix.identity(4).permanent() == 1


def test_determinant_of_non_square_is_zero():
    assert Matrix.new(3, 2, lambda x, y: x + y + 1).determinant() == 0


def test_inverse_times_matrix_is_identity():
    a = _rows((2.0, -1.0, 0.0), (-1.0, 2.0, -1.0), (0.0, -1.0, 2.0))

    inv = a.inverse()
    assert inv is not None
    identity = Matrix.identity(3, 1.0, 0.0)
    assert (a @ inv).is_close(identity, abs_tol=1e-12)
    assert (inv @ a).is_close(identity, abs_tol=1e-12)


def test_inverse_needs_pivoting():
    # Zero in the top-left corner: the first pivot must come from a row swap.
    a = _rows((0.0, 1.0), (1.0, 0.0))
    inv = a.inverse()
    assert inv is not None
    assert inv.is_close(a)


def test_inverse_of_known_matrix():
    a = _rows((4.0, 7.0), (2.0, 6.0))
    inv = a.inverse()
    assert inv is not None
    assert inv.is_close(_rows((0.6, -0.7), (-0.2, 0.4)), abs_tol=1e-12)
    # The allocating form leaves the receiver alone.
    assert a == _rows((4.0, 7.0), (2.0, 6.0))


def test_inverse_is_exact_for_fractions():
    a = _rows((Fraction(2), Fraction(1)), (Fraction(7), Fraction(4)))
    inv = a.inverse()
    assert inv is not None
    assert inv == _rows((4, -1), (-7, 2))
    assert a @ inv == Matrix.identity(2)


def test_singular_matrix_has_no_inverse():
    assert _rows((1.0, 2.0), (2.0, 4.0)).inverse() is None
    assert Matrix.zero(3, 3, 0.0).inverse() is None


def test_invert_in_place_replaces_receiver():
    a = _rows((4.0, 7.0), (2.0, 6.0))
    result = a.invert_in_place()
    assert result is a
    assert a.shape == (2, 2)
    assert a.is_close(_rows((0.6, -0.7), (-0.2, 0.4)), abs_tol=1e-12)


def test_inversion_requires_square():
    with pytest.raises(NotSquareError):
        Matrix.zero(2, 3).inverse()
    with pytest.raises(NotSquareError):
        Matrix.zero(2, 3).invert_in_place()


def test_cholesky_known_factor():
    a = _rows((4.0, 12.0, -16.0), (12.0, 37.0, -43.0), (-16.0, -43.0, 98.0))

    lower = a.cholesky()

    assert lower.is_close(_rows((2.0, 0.0, 0.0), (6.0, 1.0, 0.0), (-8.0, 5.0, 3.0)))
    assert (lower @ lower.transpose()).is_close(a)


def test_cholesky_is_lower_triangular_and_reconstructs():
    b = Matrix.new(4, 4, lambda x, y: float((x + 1) * (y + 2) % 5) - 2.0)
    a = b @ b.transpose() + Matrix.identity(4, 4.0, 0.0)

    lower = a.cholesky()

    for x in range(4):
        for y in range(x):
            assert lower[x, y] == 0
    assert (lower @ lower.transpose()).is_close(a, rel_tol=1e-9, abs_tol=1e-9)


def test_cholesky_in_place():
    a = _rows((4.0, 2.0), (2.0, 2.0))
    result = a.cholesky_in_place()
    assert result is a
    assert a.is_close(_rows((2.0, 0.0), (1.0, 1.0)))


def test_cholesky_requires_square():
    with pytest.raises(NotSquareError):
        Matrix.zero(3, 2, 0.0).cholesky()


def test_cholesky_of_indefinite_matrix_fails_in_sqrt():
    with pytest.raises(ValueError):
        _rows((1.0, 2.0), (2.0, 1.0)).cholesky()


def test_numerically_singular_float_matrix_has_no_inverse():
    # Rounding leaves a tiny, not zero, pivot in the last column.
    a = _rows((1.0, 2.0, 3.0), (4.0, 5.0, 6.0), (7.0, 8.0, 9.0))
    assert a.inverse() is None


def test_singular_invert_in_place_leaves_receiver_unchanged():
    a = _rows((1.0, 2.0), (2.0, 4.0))
    before = a.copy()

    assert a.invert_in_place() is None
    assert a.shape == (2, 2)
    assert a == before


def test_exact_matrices_use_exact_pivots():
    # Tiny but nonzero pivots are fine when the arithmetic is exact.
    tiny = Fraction(1, 10 ** 20)
    a = _rows((tiny, Fraction(0)), (Fraction(0), Fraction(1)))
    inv = a.inverse()
    assert inv is not None
    assert inv[0, 0] == 10 ** 20
