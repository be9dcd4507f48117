"""Dense vectors of floats and a mutable scalar holder."""

from __future__ import annotations

import math
import numbers
import sys
from typing import Iterable, Iterator, TextIO, Union

import numpy as np


class Scalar:
    """A mutable floating-point value, used as a target for reductions."""

    __slots__ = ("_value",)

    def __init__(self, value: float = 0.0) -> None:
        self._value = float(value)

    def __call__(self) -> float:
        return self._value

    def __float__(self) -> float:
        return self._value

    def assign(self, value: float) -> "Scalar":
        """Replace the held value and return this scalar."""
        self._value = float(value)
        return self

    def print(self, out: TextIO | None = None) -> None:
        """Write the value on one line to ``out`` (standard output by default)."""
        stream = sys.stdout if out is None else out
        stream.write(f"{self._value!r}\n")

    def __repr__(self) -> str:
        return f"Scalar({self._value!r})"


Coefficient = Union[float, int, Scalar]


def _is_coefficient(value: object) -> bool:
    return isinstance(value, (numbers.Real, Scalar)) and not isinstance(value, bool)


class Vector:
    """A one-dimensional vector of double-precision values."""

    __slots__ = ("_data",)

    def __init__(self, values: Iterable[float] = ()) -> None:
        data = np.array(list(values) if not isinstance(values, np.ndarray) else values,
                        dtype=np.float64)
        if data.ndim != 1:
            raise ValueError("a vector must be one-dimensional")
        self._data = data

    @classmethod
    def zeros(cls, size: int) -> "Vector":
        """Return a vector of ``size`` zeros."""
        return cls.full(size, 0.0)

    @classmethod
    def full(cls, size: int, value: Coefficient) -> "Vector":
        """Return a vector of ``size`` copies of ``value``."""
        if size < 0:
            raise ValueError("vector size must not be negative")
        return cls(np.full(size, float(value), dtype=np.float64))

    @classmethod
    def _wrap(cls, data: np.ndarray) -> "Vector":
        vec = cls.__new__(cls)
        vec._data = data
        return vec

    def _check_size(self, other: "Vector") -> None:
        if len(self._data) != len(other._data):
            raise ValueError(
                f"vector sizes differ: {len(self._data)} and {len(other._data)}"
            )

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[float]:
        return (float(v) for v in self._data)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return Vector._wrap(self._data[index].copy())
        return float(self._data[index])

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice) and isinstance(value, Vector):
            self._data[index] = value._data
        else:
            self._data[index] = value

    def __repr__(self) -> str:
        return f"Vector({self.to_list()!r})"

    def to_list(self) -> list[float]:
        """Return the elements as a list of floats."""
        return [float(v) for v in self._data]

    def copy(self) -> "Vector":
        """Return an independent copy."""
        return Vector._wrap(self._data.copy())

    def copy_to(self, other: "Vector") -> None:
        """Copy this vector's elements into ``other``."""
        self._check_size(other)
        other._data[:] = self._data

    def dot(self, other: "Vector") -> float:
        """Return the dot product with ``other``."""
        self._check_size(other)
        return float(np.dot(self._data, other._data))

    def __mul__(self, alpha):
        if not _is_coefficient(alpha):
            return NotImplemented
        return Vector._wrap(self._data * float(alpha))

    def __rmul__(self, alpha):
        return self.__mul__(alpha)

    def __imul__(self, alpha):
        if not _is_coefficient(alpha):
            return NotImplemented
        self._data *= float(alpha)
        return self

    def __add__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_size(other)
        return Vector._wrap(self._data + other._data)

    def __iadd__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_size(other)
        self._data += other._data
        return self

    def __sub__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_size(other)
        return Vector._wrap(self._data - other._data)

    def __isub__(self, other):
        if not isinstance(other, Vector):
            return NotImplemented
        self._check_size(other)
        self._data -= other._data
        return self

    def __neg__(self) -> "Vector":
        return Vector._wrap(-self._data)

    def scale_into(self, alpha: Coefficient, out: "Vector") -> None:
        """Store ``alpha * self`` in ``out``."""
        self._check_size(out)
        np.multiply(self._data, float(alpha), out=out._data)

    def subtract_into(self, other: "Vector", out: "Vector") -> None:
        """Store ``self - other`` in ``out``."""
        self._check_size(other)
        self._check_size(out)
        np.subtract(self._data, other._data, out=out._data)

    def axpby(self, y: "Vector", alpha: Coefficient = 1.0,
              beta: Coefficient = 1.0) -> None:
        """Update ``y`` in place to ``alpha * self + beta * y``."""
        self._check_size(y)
        y._data *= float(beta)
        y._data += float(alpha) * self._data

    def get_slice(self, start: int, stop: int) -> "Vector":
        """Return a copy of the elements from ``start`` up to ``stop``."""
        if not 0 <= start <= stop <= len(self._data):
            raise IndexError(f"slice [{start}, {stop}) out of range")
        return Vector._wrap(self._data[start:stop].copy())

    def norm1(self) -> float:
        """Return the sum of absolute values."""
        return float(np.sum(np.abs(self._data)))

    def norm2(self) -> float:
        """Return the Euclidean norm."""
        return math.sqrt(float(np.dot(self._data, self._data)))

    def norm_inf(self) -> float:
        """Return the largest absolute value, 0 for an empty vector."""
        if len(self._data) == 0:
            return 0.0
        return float(np.max(np.abs(self._data)))

    def fill(self, value: Coefficient) -> None:
        """Set every element to ``value``."""
        self._data.fill(float(value))

    def iamax(self) -> int:
        """Return the smallest index of the element with the largest absolute value."""
        if len(self._data) == 0:
            raise ValueError("iamax of an empty vector")
        return int(np.argmax(np.abs(self._data)))

    def reciprocal(self) -> "Vector":
        """Return the element-wise reciprocal."""
        with np.errstate(divide="ignore"):
            return Vector._wrap(1.0 / self._data)

    def sum(self) -> float:
        """Return the sum of the elements."""
        return float(np.sum(self._data))

    def print(self, out: TextIO | None = None) -> None:
        """Write the elements on one line to ``out`` (standard output by default)."""
        stream = sys.stdout if out is None else out
        stream.write(f"{self.to_list()!r}\n")