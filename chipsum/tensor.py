"""Batched three- and four-dimensional tensors of doubles."""

from __future__ import annotations

import sys
from typing import Iterable, Iterator, Sequence, TextIO

import numpy as np

from chipsum.dense import DenseMatrix


class Tensor:
    """A tensor whose last two dimensions form a batch of matrices.

    A three-dimensional tensor has shape ``(batch, rows, cols)``; a
    four-dimensional one has shape ``(num, batch, rows, cols)``.
    """

    __slots__ = ("_data",)

    def __init__(self, shape: Sequence[int],
                 values: Iterable[float] | None = None) -> None:
        dims = tuple(int(s) for s in shape)
        if len(dims) not in (3, 4):
            raise ValueError("a tensor must have three or four dimensions")
        if any(s < 0 for s in dims):
            raise ValueError("tensor dimensions must not be negative")
        if values is None:
            self._data = np.zeros(dims, dtype=np.float64)
            return
        flat = np.array(values if isinstance(values, np.ndarray) else list(values),
                        dtype=np.float64).reshape(-1)
        size = int(np.prod(dims))
        if flat.size != size:
            raise ValueError(
                f"expected {size} values for shape {dims}, got {flat.size}"
            )
        self._data = flat.reshape(dims).copy()

    @property
    def shape(self) -> tuple[int, ...]:
        """The size of every dimension."""
        return tuple(int(s) for s in self._data.shape)

    @property
    def ndim(self) -> int:
        """Number of dimensions."""
        return self._data.ndim

    def extent(self, dim: int) -> int:
        """Return the size of dimension ``dim``."""
        if not 0 <= dim < self.ndim:
            raise IndexError(f"dimension {dim} out of range")
        return int(self._data.shape[dim])

    def _index(self, index) -> tuple[int, ...]:
        if not (isinstance(index, tuple) and len(index) == self.ndim):
            raise TypeError(f"tensor index must be a tuple of {self.ndim} integers")
        return index

    def __getitem__(self, index) -> float:
        return float(self._data[self._index(index)])

    def __setitem__(self, index, value) -> None:
        self._data[self._index(index)] = float(value)

    def __repr__(self) -> str:
        return f"Tensor({self.shape!r}, {self._data.ravel().tolist()!r})"

    def to_list(self) -> list:
        """Return the elements as nested lists."""
        return self._data.tolist()

    def _batches(self) -> Iterator[tuple[int, ...]]:
        return np.ndindex(*self._data.shape[:-2])

    def _check_batch(self, other: "Tensor", name: str) -> None:
        if other.ndim != self.ndim or other.shape[:-2] != self.shape[:-2]:
            raise ValueError(f"batch dimensions of {name} do not agree")

    def gemm(self, other: "Tensor", out: "Tensor") -> None:
        """Store the batched product ``self @ other`` in ``out``."""
        self._check_batch(other, "operand")
        self._check_batch(out, "result")
        m, k = self.shape[-2:]
        if other.shape[-2] != k:
            raise ValueError("inner matrix dimensions differ")
        if out.shape[-2:] != (m, other.shape[-1]):
            raise ValueError("result has the wrong shape")
        out._data[...] = np.matmul(self._data, other._data)

    def gemv(self, x: "Tensor", out: "Tensor") -> None:
        """Store the batched matrix-vector product ``self @ x`` in ``out``.

        ``x`` and ``out`` hold one column vector per batch entry.
        """
        self._check_batch(x, "vector")
        self._check_batch(out, "result")
        m, n = self.shape[-2:]
        if x.shape[-2:] != (n, 1):
            raise ValueError("vector has the wrong shape")
        if out.shape[-2:] != (m, 1):
            raise ValueError("result has the wrong shape")
        out._data[...] = np.matmul(self._data, x._data)

    def lu(self, tiny: float = 0.0) -> None:
        """Factor every matrix of the batch in place, as ``DenseMatrix.lu``."""
        m, n = self.shape[-2:]
        for idx in self._batches():
            mat = DenseMatrix(m, n, self._data[idx])
            mat.lu(tiny)
            self._data[idx] = mat.to_rows()

    def qr(self) -> DenseMatrix:
        """Householder QR of every matrix in place, as ``DenseMatrix.qr``.

        Returns a matrix holding each batch entry's ``tau`` as one row.
        """
        m, n = self.shape[-2:]
        taus: list[list[float]] = []
        for idx in self._batches():
            mat = DenseMatrix(m, n, self._data[idx])
            taus.append(mat.qr().to_list())
            self._data[idx] = mat.to_rows()
        k = min(m, n)
        return DenseMatrix(len(taus), k, [v for row in taus for v in row])

    def print(self, out: TextIO | None = None) -> None:
        """Write the shape and every matrix to ``out`` (stdout by default)."""
        stream = sys.stdout if out is None else out
        stream.write(f"Tensor{self.shape!r}\n")
        for idx in self._batches():
            stream.write(f"{list(idx)!r}:\n")
            for row in self._data[idx].tolist():
                stream.write(f"  {row!r}\n")