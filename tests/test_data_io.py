"""
CSV reading and the regression workflow on top of it.
"""

import pytest

from alg import Vector
from data_io import read_labelled_csv
from ml.linear import LinearRegression


def _write(tmp_path, text):
    path = tmp_path / "data.csv"
    path.write_text(text)
    return path


def test_reads_pairs_skipping_comments_and_blanks(tmp_path):
    path = _write(tmp_path, "# x, y\n0.0,1.0\n\n1.5, 4.0\n  # trailing note\n2,5\n")

    samples, labels = read_labelled_csv(path)

    assert samples == [Vector([0.0, 1.0]), Vector([1.5, 1.0]), Vector([2.0, 1.0])]
    assert labels == [1.0, 4.0, 5.0]


def test_non_affine_samples(tmp_path):
    path = _write(tmp_path, "3,7\n")
    samples, labels = read_labelled_csv(path, affine=False)
    assert samples == [Vector([3.0])]
    assert labels == [7.0]


@pytest.mark.parametrize("text,line", [("1,2\n3\n", 2), ("1,2\n\nfoo,1\n", 3)])
def test_malformed_rows_name_the_line(tmp_path, text, line):
    path = _write(tmp_path, text)
    with pytest.raises(ValueError, match=f":{line}:"):
        read_labelled_csv(path)


def test_regression_on_csv_data(tmp_path):
    rows = "\n".join(f"{x},{3 * x - 2}" for x in range(6))
    path = _write(tmp_path, "# x,y\n" + rows + "\n")

    samples, labels = read_labelled_csv(path)
    model = LinearRegression(2)
    model.train(samples, labels)

    assert model.model.is_close(Vector([3.0, -2.0]), abs_tol=1e-9)
    assert model.classify(Vector([10.0, 1.0])) == pytest.approx(28.0)
