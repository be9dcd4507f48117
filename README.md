# chipsum

Numerical linear algebra building blocks on top of numpy.

## Modules

- `chipsum.vector`: `Vector`, a one-dimensional array of doubles with `dot`, `norm1`, `norm2`, `norm_inf`, `axpby` (updates `y` to `alpha * x + beta * y`), `get_slice`, `fill`, `iamax`, `reciprocal`, `sum` and the arithmetic operators; `Scalar`, a mutable float holder.
- `chipsum.dense`: `DenseMatrix`, a row-major matrix with `gemm`, `gemv`, the `@` operator, row and column access (`row`, `col`, `set_row`, `set_col`, `row_slice`, `col_slice`, `block`), `lu` (no pivoting), Householder `qr` and `hessenberg` (both return the `tau` coefficients), `trsm`, `trmm` and `trtri`. Zero pivots raise `SingularMatrixError`.
- `chipsum.sparse`: `CsrMatrix` and `CooMatrix`. `CsrMatrix` offers `spmv`, the `@` operator with vectors and dense matrices, `spgemm`, `spilu` (level-of-fill incomplete LU returning `(L, U)`), `add`, `sptrsv` (returns the solution vector), `to_dense`, `pattern` and `save_pattern_figure`. `CooMatrix` supports `insert`, `csr_arrays` and `to_csr`. Both can be loaded with `from_file`.
- `chipsum.tensor`: `Tensor`, a 3-D `(batch, rows, cols)` or 4-D `(num, batch, rows, cols)` array with batched `gemm`, `gemv`, `lu` and `qr`.
- `chipsum.nn`: in-place layer kernels on dense matrices: `dense`, `relu`, `leaky_relu`, `softmax` (or log-softmax), `normalize` and `argmax`.
- `chipsum.mtx`: a Matrix Market coordinate reader (`read_coo`, `parse_coo`) returning `CooData`; bad input raises `MatrixMarketError`.
- `chipsum.imaging`: 24-bit BMP and uncompressed PNG writers (`bmp_bytes`, `write_bmp`, `flip_bmp`, `png_bytes`, `write_png`).

## Installation

```
pip install .
```

To run the tests as well:

```
pip install .[test]
pytest
```

## Example

```python
from chipsum.vector import Vector
from chipsum.sparse import CsrMatrix

a = Vector([0.0, 1.0, 2.0, 3.0, 4.0])
b = Vector([0.0, 1.0, 2.0, 3.0, 4.0])
a += b                      # [0, 2, 4, 6, 8]
print(a.norm1(), a.norm2())

#  | 1 0 2 3 0 |
#  | 0 4 0 5 0 |
#  | 2 0 6 0 7 |
#  | 3 5 0 8 0 |
#  | 0 0 7 0 9 |
A = CsrMatrix(
    5, 5,
    [0, 3, 5, 8, 11, 13],
    [0, 2, 3, 1, 3, 0, 2, 4, 0, 1, 3, 2, 4],
    [1, 2, 3, 4, 5, 2, 6, 7, 3, 5, 8, 7, 9],
)
y = A @ Vector.full(5, 1.0)
print(y.to_list())          # [6.0, 9.0, 15.0, 16.0, 16.0]
```

`CsrMatrix.from_file(path)` loads a Matrix Market coordinate file (1-based indices become 0-based). `save_pattern_figure(filename)` draws stored entries black on white, one pixel per element: a name ending in `.bmp` gives a BMP file, any other name a PNG file.

## What it does not do

- There is no command-line program; everything is used as a library.
- There are no iterative solvers (CG, BiCG, GMRES); build them from `spmv`, `dot` and `axpby`.
- Everything runs in a single process on the CPU through numpy; there is no distributed or GPU execution.