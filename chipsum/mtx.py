"""Reading sparse matrices stored in Matrix Market coordinate form."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Union


class MatrixMarketError(ValueError):
    """Raised when a Matrix Market file cannot be read."""


@dataclass
class CooData:
    """Coordinate-format triplets with the matrix shape, indices as stored."""

    nrows: int
    ncols: int
    nnz: int
    rows: list[int] = field(default_factory=list)
    cols: list[int] = field(default_factory=list)
    values: list[float] = field(default_factory=list)


def _check_banner(line: str) -> None:
    if len(line) < 2 or not line.startswith("%%"):
        raise MatrixMarketError("Invalid file. Line-1")
    if "matrix" not in line or "coordinate" not in line:
        raise MatrixMarketError("Invalid file. Line-1")


def parse_coo(lines: Iterable[str]) -> CooData:
    """Parse Matrix Market coordinate text given as an iterable of lines."""
    it: Iterator[str] = (line.rstrip("\r\n") for line in lines)
    banner = next(it, None)
    if banner is None:
        raise MatrixMarketError("Invalid file. Line-1")
    _check_banner(banner)

    for line in it:
        if not line.startswith("%"):
            size_line = line
            break
    else:
        raise MatrixMarketError("missing size line")

    tokens = size_line.split()
    if len(tokens) < 3:
        raise MatrixMarketError(f"invalid size line: {size_line!r}")
    try:
        nrows, ncols, nnz = (int(t) for t in tokens[:3])
    except ValueError as exc:
        raise MatrixMarketError(f"invalid size line: {size_line!r}") from exc
    if nnz < 0:
        raise MatrixMarketError("negative number of entries")

    data = CooData(nrows, ncols, nnz)
    for count in range(nnz):
        line = next(it, None)
        if line is None:
            raise MatrixMarketError(
                f"expected {nnz} entries, found {count}"
            )
        parts = line.split()
        if len(parts) < 3:
            raise MatrixMarketError(f"invalid entry line: {line!r}")
        try:
            data.rows.append(int(parts[0]))
            data.cols.append(int(parts[1]))
            data.values.append(float(parts[2]))
        except ValueError as exc:
            raise MatrixMarketError(f"invalid entry line: {line!r}") from exc
    return data


def read_coo(path: Union[str, "os.PathLike[str]"]) -> CooData:
    """Read a Matrix Market coordinate file."""
    try:
        with open(path, encoding="utf-8") as fp:
            return parse_coo(fp)
    except OSError as exc:
        raise MatrixMarketError("File cannot be opened") from exc