"""Sparse matrices in compressed-row (CSR) and coordinate (COO) form."""

from __future__ import annotations

import heapq
import os
import sys
from enum import Enum
from typing import Iterable, TextIO, Union

import numpy as np

from chipsum.dense import DenseMatrix, SingularMatrixError
from chipsum.imaging import flip_bmp, write_bmp, write_png
from chipsum.mtx import read_coo
from chipsum.vector import Vector

PathLike = Union[str, "os.PathLike[str]"]


class SparseFormat(Enum):
    """Storage layouts for sparse matrices."""

    CSR = "csr"
    CSC = "csc"
    COO = "coo"


def _vec_array(v: Vector) -> np.ndarray:
    return np.fromiter(v, dtype=np.float64, count=len(v))


def _dense_array(m: DenseMatrix) -> np.ndarray:
    return np.array(m.to_rows(), dtype=np.float64).reshape(m.nrow, m.ncol)


class CsrMatrix:
    """An ``nrow`` by ``ncol`` sparse matrix in compressed-row storage."""

    format = SparseFormat.CSR

    __slots__ = ("_nrow", "_ncol", "_row_map", "_cols", "_vals")

    def __init__(self, nrow: int, ncol: int, row_map: Iterable[int],
                 col_idx: Iterable[int], values: Iterable[float]) -> None:
        if nrow < 0 or ncol < 0:
            raise ValueError("matrix dimensions must not be negative")
        rm = np.array(list(row_map) if not isinstance(row_map, np.ndarray) else row_map,
                      dtype=np.int64).reshape(-1)
        if len(rm) != nrow + 1:
            raise ValueError(f"row map needs {nrow + 1} entries, got {len(rm)}")
        if rm[0] != 0 or np.any(np.diff(rm) < 0):
            raise ValueError("row map must start at 0 and never decrease")
        nnz = int(rm[-1])
        cols = np.array(list(col_idx) if not isinstance(col_idx, np.ndarray) else col_idx,
                        dtype=np.int64).reshape(-1)
        vals = np.array(list(values) if not isinstance(values, np.ndarray) else values,
                        dtype=np.float64).reshape(-1)
        if len(cols) < nnz or len(vals) < nnz:
            raise ValueError(f"expected {nnz} column indices and values")
        cols = cols[:nnz].copy()
        vals = vals[:nnz].copy()
        if nnz and (cols.min() < 0 or cols.max() >= ncol):
            raise ValueError("column index out of range")
        self._nrow = nrow
        self._ncol = ncol
        self._row_map = rm
        self._cols = cols
        self._vals = vals

    @classmethod
    def _from_rows(cls, nrow: int, ncol: int, rows: list[dict]) -> "CsrMatrix":
        row_map = [0]
        cols: list[int] = []
        vals: list[float] = []
        for entries in rows:
            for c, v in entries.items():
                cols.append(c)
                vals.append(v)
            row_map.append(len(cols))
        return cls(nrow, ncol, row_map, cols, vals)

    @classmethod
    def from_file(cls, path: PathLike) -> "CsrMatrix":
        """Read a Matrix Market coordinate file into CSR form."""
        return CooMatrix.from_file(path).to_csr()

    @property
    def nrow(self) -> int:
        """Number of rows."""
        return self._nrow

    @property
    def ncol(self) -> int:
        """Number of columns."""
        return self._ncol

    @property
    def nnz(self) -> int:
        """Number of stored entries."""
        return len(self._vals)

    @property
    def row_map(self) -> list[int]:
        """Row offsets into the column and value arrays."""
        return [int(v) for v in self._row_map]

    @property
    def col_idx(self) -> list[int]:
        """Column index of every stored entry."""
        return [int(v) for v in self._cols]

    @property
    def values(self) -> list[float]:
        """Value of every stored entry."""
        return [float(v) for v in self._vals]

    def _row(self, i: int) -> zip:
        lo, hi = self._row_map[i], self._row_map[i + 1]
        return zip((int(c) for c in self._cols[lo:hi]),
                   (float(v) for v in self._vals[lo:hi]))

    def _row_dicts(self) -> list[dict]:
        rows = []
        for i in range(self._nrow):
            entries: dict[int, float] = {}
            for c, v in self._row(i):
                entries[c] = entries.get(c, 0.0) + v
            rows.append(entries)
        return rows

    def _apply(self, x: np.ndarray) -> np.ndarray:
        rows = np.repeat(np.arange(self._nrow), np.diff(self._row_map))
        if x.ndim == 1:
            return np.bincount(rows, weights=self._vals * x[self._cols],
                               minlength=self._nrow).astype(np.float64)
        out = np.zeros((self._nrow, x.shape[1]), dtype=np.float64)
        np.add.at(out, rows, self._vals[:, None] * x[self._cols])
        return out

    def to_dense(self) -> DenseMatrix:
        """Return the matrix as a dense matrix."""
        data = np.zeros((self._nrow, self._ncol), dtype=np.float64)
        rows = np.repeat(np.arange(self._nrow), np.diff(self._row_map))
        np.add.at(data, (rows, self._cols), self._vals)
        return DenseMatrix(self._nrow, self._ncol, data)

    def __matmul__(self, other):
        if isinstance(other, Vector):
            if len(other) != self._ncol:
                raise ValueError("matrix and vector dimensions differ")
            return Vector(self._apply(_vec_array(other)))
        if isinstance(other, DenseMatrix):
            if other.nrow != self._ncol:
                raise ValueError("inner matrix dimensions differ")
            result = self._apply(_dense_array(other))
            return DenseMatrix(self._nrow, other.ncol, result)
        return NotImplemented

    def spmv(self, x, y, alpha: float = 1.0, beta: float = 0.0) -> None:
        """Update ``y`` in place to ``alpha * self @ x + beta * y``.

        ``x`` and ``y`` are both vectors or both dense matrices.
        """
        if isinstance(x, Vector) and isinstance(y, Vector):
            if len(x) != self._ncol or len(y) != self._nrow:
                raise ValueError("matrix and vector dimensions do not agree for spmv")
            result = float(alpha) * self._apply(_vec_array(x))
            if float(beta) != 0.0:
                result += float(beta) * _vec_array(y)
            y[:] = result
            return
        if isinstance(x, DenseMatrix) and isinstance(y, DenseMatrix):
            if x.nrow != self._ncol or y.nrow != self._nrow or y.ncol != x.ncol:
                raise ValueError("matrix dimensions do not agree for spmv")
            result = float(alpha) * self._apply(_dense_array(x))
            if float(beta) != 0.0:
                result += float(beta) * _dense_array(y)
            for i, row in enumerate(result):
                y.set_row(i, Vector(row))
            return
        raise TypeError("spmv needs two vectors or two dense matrices")

    def spgemm(self, other: "CsrMatrix") -> "CsrMatrix":
        """Return the sparse product ``self @ other``."""
        if self._ncol != other._nrow:
            raise ValueError("inner matrix dimensions differ")
        other_rows = other._row_dicts()
        rows = []
        for i in range(self._nrow):
            acc: dict[int, float] = {}
            for k, a_ik in self._row(i):
                for j, b_kj in other_rows[k].items():
                    acc[j] = acc.get(j, 0.0) + a_ik * b_kj
            rows.append(dict(sorted(acc.items())))
        return CsrMatrix._from_rows(self._nrow, other._ncol, rows)

    def spilu(self, fill_level: int = 2) -> tuple["CsrMatrix", "CsrMatrix"]:
        """Incomplete LU factorisation with level-of-fill ``fill_level``.

        Returns ``(L, U)``: L unit lower triangular with its ones stored,
        U upper triangular including the diagonal.
        """
        if self._nrow != self._ncol:
            raise ValueError("ILU needs a square matrix")
        if fill_level < 0:
            raise ValueError("fill level must not be negative")
        n = self._nrow
        a_rows = self._row_dicts()
        u_rows: list[dict[int, float]] = []
        u_levels: list[dict[int, int]] = []
        l_rows: list[dict[int, float]] = []
        for i in range(n):
            w = dict(a_rows[i])
            lev = {c: 0 for c in w}
            heap = [c for c in w if c < i]
            heapq.heapify(heap)
            done: set[int] = set()
            while heap:
                k = heapq.heappop(heap)
                if k in done:
                    continue
                done.add(k)
                factor = w[k] / u_rows[k][k]
                w[k] = factor
                for j, u_kj in u_rows[k].items():
                    if j <= k:
                        continue
                    new_level = lev[k] + u_levels[k][j] + 1
                    if j in w:
                        w[j] -= factor * u_kj
                        lev[j] = min(lev[j], new_level)
                    elif new_level <= fill_level:
                        w[j] = -factor * u_kj
                        lev[j] = new_level
                        if j < i:
                            heapq.heappush(heap, j)
            if w.get(i, 0.0) == 0.0:
                raise SingularMatrixError(f"zero pivot at row {i}", i)
            lower = {c: v for c, v in sorted(w.items()) if c < i}
            lower[i] = 1.0
            l_rows.append(lower)
            u_rows.append({c: v for c, v in sorted(w.items()) if c >= i})
            u_levels.append({c: lev[c] for c in w if c >= i})
        return (CsrMatrix._from_rows(n, n, l_rows),
                CsrMatrix._from_rows(n, n, u_rows))

    def add(self, other: "CsrMatrix", alpha: float = 1.0, beta: float = 1.0,
            sort_rows: bool = False) -> "CsrMatrix":
        """Return ``alpha * self + beta * other``.

        Without ``sort_rows`` each row keeps this matrix's entries first and
        then the other's new columns; with it, columns are in ascending order.
        """
        if self._nrow != other._nrow or self._ncol != other._ncol:
            raise ValueError("matrix dimensions differ")
        rows = []
        for i in range(self._nrow):
            acc: dict[int, float] = {}
            for c, v in self._row(i):
                acc[c] = acc.get(c, 0.0) + float(alpha) * v
            for c, v in other._row(i):
                acc[c] = acc.get(c, 0.0) + float(beta) * v
            rows.append(dict(sorted(acc.items())) if sort_rows else acc)
        return CsrMatrix._from_rows(self._nrow, self._ncol, rows)

    def sptrsv(self, b: Vector, lower: bool = False) -> Vector:
        """Solve the triangular system ``self @ x = b`` and return ``x``."""
        if self._nrow != self._ncol:
            raise ValueError("a triangular solve needs a square matrix")
        if len(b) != self._nrow:
            raise ValueError("matrix and vector dimensions differ")
        n = self._nrow
        rhs = _vec_array(b)
        x = np.zeros(n, dtype=np.float64)
        order = range(n) if lower else range(n - 1, -1, -1)
        for i in order:
            s = float(rhs[i])
            diag = 0.0
            for c, v in self._row(i):
                if c == i:
                    diag += v
                elif (c > i) if lower else (c < i):
                    raise ValueError(f"entry ({i}, {c}) lies outside the triangle")
                else:
                    s -= v * x[c]
            if diag == 0.0:
                raise SingularMatrixError(f"zero diagonal element at row {i}", i)
            x[i] = s / diag
        return Vector(x)

    def pattern(self) -> str:
        """Return the sparsity pattern: '*' for a stored entry, '.' elsewhere."""
        grid = [["."] * self._ncol for _ in range(self._nrow)]
        for i in range(self._nrow):
            for c, _ in self._row(i):
                grid[i][c] = "*"
        return "\n".join("".join(row) for row in grid)

    def save_pattern_figure(self, filename: PathLike) -> None:
        """Save the sparsity pattern as an image, one pixel per element.

        Stored entries are black, others white. A ``.bmp`` name gives a BMP
        file; any other name gives a PNG file.
        """
        h, w = self._nrow, self._ncol
        pixels = np.full((h, w, 3), 255, dtype=np.uint8)
        rows = np.repeat(np.arange(h), np.diff(self._row_map))
        pixels[rows, self._cols] = 0
        raw = pixels.tobytes()
        if os.fspath(filename).lower().endswith(".bmp"):
            flipped = flip_bmp(w, h, raw)
            stride = (w * 3 + 3) // 4 * 4
            pad = b"\x00" * (stride - 3 * w)
            padded = b"".join(flipped[i * 3 * w:(i + 1) * 3 * w] + pad
                              for i in range(h))
            write_bmp(w, h, padded, filename)
        else:
            write_png(w, h, raw, filename)

    def print(self, out: TextIO | None = None) -> None:
        """Write the matrix row by row to ``out`` (standard output by default)."""
        stream = sys.stdout if out is None else out
        stream.write(f"{self._nrow} x {self._ncol}, nnz = {self.nnz}\n")
        for i in range(self._nrow):
            entries = " ".join(f"({c}, {v!r})" for c, v in self._row(i))
            stream.write(f"row {i}: {entries}\n")

    def __repr__(self) -> str:
        return (f"CsrMatrix({self._nrow}, {self._ncol}, {self.row_map!r}, "
                f"{self.col_idx!r}, {self.values!r})")


class CooMatrix:
    """An ``nrow`` by ``ncol`` sparse matrix held as coordinate triplets."""

    format = SparseFormat.COO

    __slots__ = ("_nrow", "_ncol", "_rows", "_cols", "_vals")

    def __init__(self, nrow: int, ncol: int, rows: Iterable[int],
                 cols: Iterable[int], values: Iterable[float]) -> None:
        if nrow < 0 or ncol < 0:
            raise ValueError("matrix dimensions must not be negative")
        self._nrow = nrow
        self._ncol = ncol
        self._rows: list[int] = []
        self._cols: list[int] = []
        self._vals: list[float] = []
        rows, cols, values = list(rows), list(cols), list(values)
        if not len(rows) == len(cols) == len(values):
            raise ValueError("rows, columns and values differ in length")
        for r, c, v in zip(rows, cols, values):
            self.insert(r, c, v)

    @classmethod
    def from_file(cls, path: PathLike) -> "CooMatrix":
        """Read a Matrix Market coordinate file; indices become 0-based."""
        data = read_coo(path)
        return cls(data.nrows, data.ncols,
                   [r - 1 for r in data.rows],
                   [c - 1 for c in data.cols],
                   data.values)

    @property
    def nrow(self) -> int:
        """Number of rows."""
        return self._nrow

    @property
    def ncol(self) -> int:
        """Number of columns."""
        return self._ncol

    @property
    def nnz(self) -> int:
        """Number of stored triplets."""
        return len(self._vals)

    def insert(self, row: int, col: int, value: float) -> None:
        """Append the entry ``(row, col) = value``."""
        row, col = int(row), int(col)
        if not (0 <= row < self._nrow and 0 <= col < self._ncol):
            raise IndexError(f"entry ({row}, {col}) out of range")
        self._rows.append(row)
        self._cols.append(col)
        self._vals.append(float(value))

    def csr_arrays(self) -> tuple[list[int], list[int], list[float]]:
        """Return CSR ``(row_map, col_idx, values)``, sorted, duplicates summed."""
        merged: dict[tuple[int, int], float] = {}
        for r, c, v in zip(self._rows, self._cols, self._vals):
            merged[(r, c)] = merged.get((r, c), 0.0) + v
        counts = [0] * self._nrow
        col_idx: list[int] = []
        values: list[float] = []
        for (r, c), v in sorted(merged.items()):
            counts[r] += 1
            col_idx.append(c)
            values.append(v)
        row_map = [0]
        for count in counts:
            row_map.append(row_map[-1] + count)
        return row_map, col_idx, values

    def to_csr(self) -> CsrMatrix:
        """Return the matrix in CSR form."""
        return CsrMatrix(self._nrow, self._ncol, *self.csr_arrays())

    def print(self, out: TextIO | None = None) -> None:
        """Write the triplets to ``out`` (standard output by default)."""
        stream = sys.stdout if out is None else out
        stream.write(f"{self._nrow} x {self._ncol}, nnz = {self.nnz}\n")
        for r, c, v in zip(self._rows, self._cols, self._vals):
            stream.write(f"({r}, {c}) {v!r}\n")

    def __repr__(self) -> str:
        return (f"CooMatrix({self._nrow}, {self._ncol}, {self._rows!r}, "
                f"{self._cols!r}, {self._vals!r})")