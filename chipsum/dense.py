"""Dense row-major matrices of doubles with BLAS/LAPACK-style operations."""

from __future__ import annotations

import math
import numbers
import sys
from typing import Iterable, TextIO

import numpy as np

from chipsum.vector import Scalar, Vector


class SingularMatrixError(ArithmeticError):
    """Raised when a factorisation or solve meets a zero pivot."""

    def __init__(self, message: str, index: int | None = None) -> None:
        super().__init__(message)
        self.index = index


def _is_coefficient(value: object) -> bool:
    return isinstance(value, (numbers.Real, Scalar)) and not isinstance(value, bool)


def _vec_array(v: Vector) -> np.ndarray:
    return np.fromiter(v, dtype=np.float64, count=len(v))


def _flag(value: str, allowed: str, name: str) -> str:
    if not value:
        raise ValueError(f"{name} flag must not be empty")
    c = value[0].upper()
    if c not in allowed:
        raise ValueError(f"invalid {name} flag: {value!r}")
    return c


def _householder(x: np.ndarray) -> tuple[np.ndarray, float, float]:
    """Return (v, tau, beta) with (I - tau v v^T) x = beta e1 and v[0] = 1."""
    v = x.copy()
    alpha = float(x[0])
    sigma = float(np.linalg.norm(x[1:])) if len(x) > 1 else 0.0
    if sigma == 0.0:
        v[0] = 1.0
        v[1:] = 0.0
        return v, 0.0, alpha
    beta = -math.copysign(math.hypot(alpha, sigma), alpha)
    v[0] = 1.0
    v[1:] = x[1:] / (alpha - beta)
    tau = (beta - alpha) / beta
    return v, tau, beta


class DenseMatrix:
    """An ``nrow`` by ``ncol`` matrix of doubles stored row by row."""

    __slots__ = ("_data",)

    def __init__(self, nrow: int, ncol: int,
                 values: Iterable[float] | None = None) -> None:
        if nrow < 0 or ncol < 0:
            raise ValueError("matrix dimensions must not be negative")
        if values is None:
            self._data = np.zeros((nrow, ncol), dtype=np.float64)
            return
        flat = np.array(values if isinstance(values, np.ndarray) else list(values),
                        dtype=np.float64).reshape(-1)
        if flat.size != nrow * ncol:
            raise ValueError(
                f"expected {nrow * ncol} values for a {nrow}x{ncol} matrix, "
                f"got {flat.size}"
            )
        self._data = flat.reshape(nrow, ncol).copy()

    @classmethod
    def _wrap(cls, data: np.ndarray) -> "DenseMatrix":
        mat = cls.__new__(cls)
        mat._data = data
        return mat

    @property
    def nrow(self) -> int:
        """Number of rows."""
        return self._data.shape[0]

    @property
    def ncol(self) -> int:
        """Number of columns."""
        return self._data.shape[1]

    def _index(self, index) -> tuple[int, int]:
        if not (isinstance(index, tuple) and len(index) == 2):
            raise TypeError("matrix index must be a pair (row, column)")
        return index

    def __getitem__(self, index) -> float:
        i, j = self._index(index)
        return float(self._data[i, j])

    def __setitem__(self, index, value) -> None:
        i, j = self._index(index)
        self._data[i, j] = float(value)

    def __repr__(self) -> str:
        return f"DenseMatrix({self.nrow}, {self.ncol}, {self._data.ravel().tolist()!r})"

    def to_rows(self) -> list[list[float]]:
        """Return the matrix as a list of rows."""
        return [[float(v) for v in row] for row in self._data]

    def set_row(self, i: int, x: Vector) -> None:
        """Overwrite row ``i`` with the elements of ``x``."""
        if len(x) != self.ncol:
            raise ValueError(f"row needs {self.ncol} values, got {len(x)}")
        self._data[i, :] = _vec_array(x)

    def set_col(self, j: int, x: Vector) -> None:
        """Overwrite column ``j`` with the elements of ``x``."""
        if len(x) != self.nrow:
            raise ValueError(f"column needs {self.nrow} values, got {len(x)}")
        self._data[:, j] = _vec_array(x)

    def row(self, i: int) -> Vector:
        """Return a copy of row ``i``."""
        return Vector(self._data[i, :].copy())

    def col(self, j: int) -> Vector:
        """Return a copy of column ``j``."""
        return Vector(self._data[:, j].copy())

    def row_slice(self, i: int, start: int, stop: int) -> Vector:
        """Return a copy of row ``i`` from column ``start`` up to ``stop``."""
        if not 0 <= start <= stop <= self.ncol:
            raise IndexError(f"column range [{start}, {stop}) out of range")
        return Vector(self._data[i, start:stop].copy())

    def col_slice(self, j: int, start: int, stop: int) -> Vector:
        """Return a copy of column ``j`` from row ``start`` up to ``stop``."""
        if not 0 <= start <= stop <= self.nrow:
            raise IndexError(f"row range [{start}, {stop}) out of range")
        return Vector(self._data[start:stop, j].copy())

    def block(self, top: int, left: int, bottom: int, right: int) -> "DenseMatrix":
        """Return a copy of rows ``top:bottom`` and columns ``left:right``."""
        if not (0 <= top <= bottom <= self.nrow and 0 <= left <= right <= self.ncol):
            raise IndexError("block out of range")
        return DenseMatrix._wrap(self._data[top:bottom, left:right].copy())

    def __matmul__(self, other):
        if isinstance(other, DenseMatrix):
            if self.ncol != other.nrow:
                raise ValueError("inner matrix dimensions differ")
            return DenseMatrix._wrap(self._data @ other._data)
        if isinstance(other, Vector):
            if self.ncol != len(other):
                raise ValueError("matrix and vector dimensions differ")
            return Vector(self._data @ _vec_array(other))
        return NotImplemented

    def gemm(self, b: "DenseMatrix", c: "DenseMatrix",
             alpha: float = 1.0, beta: float = 0.0) -> None:
        """Update ``c`` in place to ``alpha * self @ b + beta * c``."""
        if self.ncol != b.nrow or c.nrow != self.nrow or c.ncol != b.ncol:
            raise ValueError("matrix dimensions do not agree for gemm")
        result = float(alpha) * (self._data @ b._data)
        if float(beta) != 0.0:
            result += float(beta) * c._data
        c._data[:, :] = result

    def gemv(self, x: Vector, y: Vector,
             alpha: float = 1.0, beta: float = 0.0) -> None:
        """Update ``y`` in place to ``alpha * self @ x + beta * y``."""
        if len(x) != self.ncol or len(y) != self.nrow:
            raise ValueError("matrix and vector dimensions do not agree for gemv")
        result = float(alpha) * (self._data @ _vec_array(x))
        if float(beta) != 0.0:
            result += float(beta) * _vec_array(y)
        y[:] = result

    def __mul__(self, alpha):
        if not _is_coefficient(alpha):
            return NotImplemented
        return DenseMatrix._wrap(self._data * float(alpha))

    def __imul__(self, alpha):
        if not _is_coefficient(alpha):
            return NotImplemented
        self._data *= float(alpha)
        return self

    def __itruediv__(self, alpha):
        if not _is_coefficient(alpha):
            return NotImplemented
        self._data *= 1.0 / float(alpha)
        return self

    def lu(self, tiny: float = 0.0) -> None:
        """Factor in place without pivoting into unit-lower L and upper U.

        A pivot whose magnitude is below a non-zero ``tiny`` is replaced by
        ``tiny`` with the pivot's sign.
        """
        a = self._data
        for k in range(min(a.shape)):
            p = float(a[k, k])
            if tiny and abs(p) < tiny:
                p = math.copysign(float(tiny), p)
                a[k, k] = p
            if p == 0.0:
                raise SingularMatrixError(f"zero pivot at row {k}", k)
            a[k + 1:, k] /= p
            a[k + 1:, k + 1:] -= np.outer(a[k + 1:, k], a[k, k + 1:])

    def qr(self) -> Vector:
        """Householder QR in place; R above the diagonal, reflectors below.

        Returns the reflector coefficients ``tau``.
        """
        a = self._data
        m, n = a.shape
        k = min(m, n)
        tau = np.zeros(k, dtype=np.float64)
        for j in range(k):
            v, t, beta = _householder(a[j:, j])
            tau[j] = t
            if t != 0.0:
                sub = a[j:, j + 1:]
                sub -= t * np.outer(v, v @ sub)
            a[j, j] = beta
            a[j + 1:, j] = v[1:]
        return Vector(tau)

    def hessenberg(self) -> Vector:
        """Reduce a square matrix in place to upper Hessenberg form.

        The reflectors are kept below the first subdiagonal; returns ``tau``.
        """
        a = self._data
        n, m = a.shape
        if n != m:
            raise ValueError("Hessenberg reduction needs a square matrix")
        tau = np.zeros(max(n - 1, 0), dtype=np.float64)
        for j in range(n - 2):
            v, t, beta = _householder(a[j + 1:, j])
            tau[j] = t
            if t != 0.0:
                left = a[j + 1:, j + 1:]
                left -= t * np.outer(v, v @ left)
                right = a[:, j + 1:]
                right -= t * np.outer(right @ v, v)
            a[j + 1, j] = beta
            a[j + 2:, j] = v[1:]
        return Vector(tau)

    def _triangle(self, uplo: str, trans: str, diag: str) -> np.ndarray:
        if self.nrow != self.ncol:
            raise ValueError("a triangular matrix must be square")
        upper = _flag(uplo, "UL", "uplo") == "U"
        op = _flag(trans, "NTC", "trans")
        unit = _flag(diag, "UN", "diag") == "U"
        tri = np.triu(self._data) if upper else np.tril(self._data)
        if unit:
            np.fill_diagonal(tri, 1.0)
        return tri.T if op != "N" else tri

    def trsm(self, a: "DenseMatrix", alpha: float, side: str, uplo: str,
             trans: str = "N", diag: str = "N") -> None:
        """Overwrite self (B) with X solving op(A) X = alpha B or X op(A) = alpha B."""
        left = _flag(side, "LR", "side") == "L"
        op_a = a._triangle(uplo, trans, diag)
        need = self.nrow if left else self.ncol
        if op_a.shape[0] != need:
            raise ValueError("matrix dimensions do not agree for trsm")
        zeros = np.flatnonzero(np.diag(op_a) == 0.0)
        if zeros.size:
            raise SingularMatrixError(
                f"zero diagonal element at {zeros[0] + 1}", int(zeros[0]) + 1
            )
        rhs = float(alpha) * self._data
        if left:
            self._data[:, :] = np.linalg.solve(op_a, rhs)
        else:
            self._data[:, :] = np.linalg.solve(op_a.T, rhs.T).T

    def trmm(self, a: "DenseMatrix", alpha: float, side: str, uplo: str,
             trans: str = "N", diag: str = "N") -> None:
        """Overwrite self (B) with alpha op(A) B or alpha B op(A)."""
        left = _flag(side, "LR", "side") == "L"
        op_a = a._triangle(uplo, trans, diag)
        need = self.nrow if left else self.ncol
        if op_a.shape[0] != need:
            raise ValueError("matrix dimensions do not agree for trmm")
        if left:
            self._data[:, :] = float(alpha) * (op_a @ self._data)
        else:
            self._data[:, :] = float(alpha) * (self._data @ op_a)

    def trtri(self, uplo: str, diag: str = "N") -> None:
        """Invert a triangular matrix in place; the other triangle is kept.

        Raises SingularMatrixError carrying the 1-based index of the first
        zero diagonal element.
        """
        tri = self._triangle(uplo, "N", diag)
        zeros = np.flatnonzero(np.diag(tri) == 0.0)
        if zeros.size:
            raise SingularMatrixError(
                f"zero diagonal element at {zeros[0] + 1}", int(zeros[0]) + 1
            )
        inv = np.linalg.inv(tri)
        upper = _flag(uplo, "UL", "uplo") == "U"
        offset = 1 if _flag(diag, "UN", "diag") == "U" else 0
        n = self.nrow
        mask = (np.triu(np.ones((n, n), dtype=bool), offset) if upper
                else np.tril(np.ones((n, n), dtype=bool), -offset))
        self._data[mask] = inv[mask]

    def print(self, out: TextIO | None = None) -> None:
        """Write the matrix, one row per line, to ``out`` (stdout by default)."""
        stream = sys.stdout if out is None else out
        for row in self.to_rows():
            stream.write(f"{row!r}\n")