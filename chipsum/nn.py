"""Neural-network layers acting in place on dense matrices."""

from __future__ import annotations

import numpy as np

from chipsum.dense import DenseMatrix
from chipsum.vector import Vector

_LEAKY_SLOPE = 0.01


def _array(m: DenseMatrix) -> np.ndarray:
    return np.array(m.to_rows(), dtype=np.float64).reshape(m.nrow, m.ncol)


def _store(m: DenseMatrix, data: np.ndarray) -> None:
    for i, row in enumerate(data):
        m.set_row(i, Vector(row))


def _transpose_flag(value: str, name: str) -> bool:
    if not value or value[0].upper() not in "NTC":
        raise ValueError(f"invalid {name} flag: {value!r}")
    return value[0].upper() != "N"


def softmax(matrix: DenseMatrix, log: bool = False) -> None:
    """Apply softmax (or log-softmax) to every row of ``matrix`` in place."""
    if matrix.ncol == 0:
        return
    a = _array(matrix)
    shifted = a - a.max(axis=1, keepdims=True)
    sums = np.exp(shifted).sum(axis=1, keepdims=True)
    result = shifted - np.log(sums) if log else np.exp(shifted) / sums
    _store(matrix, result)


def argmax(matrix: DenseMatrix) -> int:
    """Return the column of the largest value in the first row.

    On ties the last such column wins.
    """
    if matrix.nrow == 0 or matrix.ncol == 0:
        raise ValueError("argmax of an empty matrix")
    row = matrix.row(0)
    best_pos = 0
    best = row[0]
    for i, v in enumerate(row):
        if v >= best:
            best, best_pos = v, i
    return best_pos


def dense(inputs: DenseMatrix, weight: DenseMatrix, out: DenseMatrix,
          bias: Vector | None = None, trans_a: str = "N",
          trans_b: str = "N") -> None:
    """Store ``op(inputs) @ op(weight)`` plus ``bias`` on every row in ``out``."""
    a = _array(inputs)
    w = _array(weight)
    if _transpose_flag(trans_a, "trans_a"):
        a = a.T
    if _transpose_flag(trans_b, "trans_b"):
        w = w.T
    if a.shape[1] != w.shape[0]:
        raise ValueError("inner matrix dimensions differ")
    if (out.nrow, out.ncol) != (a.shape[0], w.shape[1]):
        raise ValueError("result has the wrong shape")
    result = a @ w
    if bias is not None:
        if len(bias) != out.ncol:
            raise ValueError(f"bias needs {out.ncol} values, got {len(bias)}")
        result += np.fromiter(bias, dtype=np.float64, count=len(bias))
    _store(out, result)


def normalize(matrix: DenseMatrix) -> None:
    """Divide every element by the sum of all elements, in place."""
    a = _array(matrix)
    total = float(a.sum())
    if total == 0.0:
        raise ZeroDivisionError("matrix elements sum to zero")
    _store(matrix, a / total)


def _rectify(matrix: DenseMatrix, slope: float) -> None:
    a = _array(matrix)
    _store(matrix, np.where(a > 0, a, slope * a))


def relu(matrix: DenseMatrix) -> None:
    """Replace every non-positive element by zero, in place."""
    _rectify(matrix, 0.0)


def leaky_relu(matrix: DenseMatrix) -> None:
    """Scale every non-positive element by 0.01, in place."""
    _rectify(matrix, _LEAKY_SLOPE)