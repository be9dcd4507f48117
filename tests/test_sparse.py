import io

import pytest

from chipsum.dense import DenseMatrix, SingularMatrixError
from chipsum.imaging import png_bytes
from chipsum.mtx import MatrixMarketError
from chipsum.sparse import CooMatrix, CsrMatrix, SparseFormat
from chipsum.vector import Vector


def example_matrix():
    row_map = [0, 3, 5, 8, 11, 13]
    col_map = [0, 2, 3, 1, 3, 0, 2, 4, 0, 1, 3, 2, 4]
    values = [1, 2, 3, 4, 5, 2, 6, 7, 3, 5, 8, 7, 9]
    return CsrMatrix(5, 5, row_map, col_map, values)


EXAMPLE_DENSE = [
    [1, 0, 2, 3, 0],
    [0, 4, 0, 5, 0],
    [2, 0, 6, 0, 7],
    [3, 5, 0, 8, 0],
    [0, 0, 7, 0, 9],
]


def ilu_matrix():
    row_map = [0, 3, 5, 6, 9, 11, 13, 15, 18, 21]
    entries = [0, 2, 5, 1, 6, 2, 0, 3, 4, 0, 4, 1, 5, 2, 6, 3, 4, 7, 3, 4, 8]
    values = [10, 0.3, 0.6, 11, 0.7, 12, 5, 13, 1, 4, 14, 3, 15, 7, 16,
              6, 5, 17, 2, 2.5, 18]
    return CsrMatrix(9, 9, row_map, entries, values)


def test_format():
    assert example_matrix().format is SparseFormat.CSR
    assert CooMatrix(1, 1, [], [], []).format is SparseFormat.COO


def test_shape_and_nnz():
    a = example_matrix()
    assert (a.nrow, a.ncol, a.nnz) == (5, 5, 13)


def test_to_dense():
    assert example_matrix().to_dense().to_rows() == EXAMPLE_DENSE


def test_spmv_ones():
    a = example_matrix()
    y = Vector.zeros(5)
    a.spmv(Vector.full(5, 1.0), y)
    assert y.to_list() == [6, 9, 15, 16, 16]


def test_matmul_vector():
    a = example_matrix()
    b = Vector([0, 1, 2, 3, 4])
    assert (a @ b).to_list() == [13, 19, 40, 29, 50]


def test_spmv_alpha_beta():
    a = example_matrix()
    y = Vector.full(5, 1.0)
    a.spmv(Vector.full(5, 1.0), y, 2.0, -1.0)
    assert y.to_list() == [11, 17, 29, 31, 31]


def test_matmul_dense_identity():
    a = example_matrix()
    eye = DenseMatrix(5, 5, [1.0 if i == j else 0.0
                             for i in range(5) for j in range(5)])
    assert (a @ eye).to_rows() == EXAMPLE_DENSE


def test_spmv_dense():
    a = example_matrix()
    x = DenseMatrix(5, 1, [1, 1, 1, 1, 1])
    y = DenseMatrix(5, 1)
    a.spmv(x, y)
    assert y.to_rows() == [[6], [9], [15], [16], [16]]


def test_spmv_dimension_error():
    with pytest.raises(ValueError):
        example_matrix().spmv(Vector.zeros(4), Vector.zeros(5))


def test_spgemm_matches_dense():
    a = example_matrix()
    dense = a.to_dense()
    assert a.spgemm(a).to_dense().to_rows() == (dense @ dense).to_rows()


def test_add_sorted():
    row_map = [0, 2, 4, 6, 8]
    a = CsrMatrix(4, 4, row_map, [0, 2] * 4, [1] * 8)
    b = CsrMatrix(4, 4, row_map, [1, 3] * 4, [2] * 8)
    c = a.add(b, 2.0, 1.0, True)
    assert c.row_map == [0, 4, 8, 12, 16]
    assert c.col_idx == [0, 1, 2, 3] * 4
    assert c.values == [2.0] * 16


def test_add_unsorted_keeps_order():
    row_map = [0, 2, 4, 6, 8]
    a = CsrMatrix(4, 4, row_map, [0, 2] * 4, [1] * 8)
    b = CsrMatrix(4, 4, row_map, [1, 3] * 4, [2] * 8)
    c = a.add(b)
    assert c.col_idx[:4] == [0, 2, 1, 3]
    assert c.values[:4] == [1.0, 1.0, 2.0, 2.0]


def test_add_shape_mismatch():
    with pytest.raises(ValueError):
        example_matrix().add(CsrMatrix(2, 2, [0, 0, 0], [], []))


def test_sptrsv_upper():
    a = CsrMatrix(5, 5, [0, 2, 4, 7, 9, 10],
                  [0, 2, 1, 4, 2, 3, 4, 3, 4, 4], [1] * 10)
    x = a.sptrsv(Vector.full(5, 1.0), False)
    assert x.to_list() == [1, 0, 0, 0, 1]


def test_sptrsv_lower():
    a = CsrMatrix(5, 5, [0, 1, 2, 4, 6, 10],
                  [0, 1, 0, 2, 2, 3, 1, 2, 3, 4], [1] * 10)
    x = a.sptrsv(Vector.full(5, 1.0), True)
    assert x.to_list() == [1, 1, 0, 1, -2]


def test_sptrsv_not_triangular():
    with pytest.raises(ValueError):
        example_matrix().sptrsv(Vector.full(5, 1.0), True)


def test_sptrsv_zero_diagonal():
    a = CsrMatrix(2, 2, [0, 1, 2], [1, 1], [1.0, 1.0])
    with pytest.raises(SingularMatrixError):
        a.sptrsv(Vector.full(2, 1.0))


def test_spilu_full_fill_is_exact():
    a = ilu_matrix()
    lower, upper = a.spilu(9)
    product = lower.spgemm(upper).to_dense().to_rows()
    expected = a.to_dense().to_rows()
    for prow, erow in zip(product, expected):
        assert prow == pytest.approx(erow, abs=1e-12)


def test_spilu_factors_are_triangular():
    lower, upper = ilu_matrix().spilu(2)
    ld = lower.to_dense().to_rows()
    ud = upper.to_dense().to_rows()
    for i in range(9):
        assert ld[i][i] == 1.0
        assert all(ld[i][j] == 0.0 for j in range(i + 1, 9))
        assert all(ud[i][j] == 0.0 for j in range(i))


def test_spilu_level_zero_keeps_pattern():
    a = ilu_matrix()
    lower, upper = a.spilu(0)
    pattern = {(i, c) for i in range(9)
               for c in a.col_idx[a.row_map[i]:a.row_map[i + 1]]}
    got = set()
    for m in (lower, upper):
        for i in range(9):
            got |= {(i, c) for c in m.col_idx[m.row_map[i]:m.row_map[i + 1]]}
    assert got == pattern


def test_spilu_zero_pivot():
    a = CsrMatrix(2, 2, [0, 1, 2], [1, 0], [1.0, 1.0])
    with pytest.raises(SingularMatrixError):
        a.spilu()


def test_coo_insert_and_csr():
    coo = CooMatrix(5, 5, [0, 1, 2, 3, 4], [0, 1, 2, 3, 4], [1, 2, 3, 4, 5])
    coo.insert(1, 2, 7.0)
    assert coo.nnz == 6
    row_map, cols, vals = coo.csr_arrays()
    assert row_map == [0, 1, 3, 4, 5, 6]
    assert cols == [0, 1, 2, 2, 3, 4]
    assert vals == [1, 2, 7, 3, 4, 5]
    assert coo.to_csr().to_dense().to_rows()[1] == [0, 2, 7, 0, 0]


def test_coo_duplicates_summed():
    coo = CooMatrix(2, 2, [0, 0], [1, 1], [1.5, 2.5])
    assert coo.csr_arrays() == ([0, 1, 1], [1], [4.0])


def test_coo_insert_out_of_range():
    coo = CooMatrix(2, 2, [], [], [])
    with pytest.raises(IndexError):
        coo.insert(2, 0, 1.0)


def test_from_file(tmp_path):
    path = tmp_path / "a.mtx"
    path.write_text(
        "%%MatrixMarket matrix coordinate real general\n"
        "% comment\n"
        "3 3 4\n"
        "1 1 2.0\n"
        "3 2 -1.0\n"
        "2 2 5.0\n"
        "1 3 4.0\n"
    )
    a = CsrMatrix.from_file(path)
    assert a.to_dense().to_rows() == [[2, 0, 4], [0, 5, 0], [0, -1, 0]]
    assert CooMatrix.from_file(path).nnz == 4


def test_from_file_missing(tmp_path):
    with pytest.raises(MatrixMarketError):
        CsrMatrix.from_file(tmp_path / "missing.mtx")


def test_invalid_row_map():
    with pytest.raises(ValueError):
        CsrMatrix(3, 3, [0, 1], [0], [1.0])


def test_invalid_column():
    with pytest.raises(ValueError):
        CsrMatrix(1, 2, [0, 1], [5], [1.0])


def test_conjugate_gradient_with_spmv():
    n = 5
    row_map, cols, vals = [0], [], []
    for i in range(n):
        for j in (i - 1, i, i + 1):
            if 0 <= j < n:
                cols.append(j)
                vals.append(2.0 if i == j else -1.0)
        row_map.append(len(cols))
    a = CsrMatrix(n, n, row_map, cols, vals)
    b = Vector.full(n, 1.0)
    x = Vector.zeros(n)
    r = Vector.zeros(n)
    a.spmv(x, r)
    b.axpby(r, 1.0, -1.0)
    p = r.copy()
    ap = Vector.zeros(n)
    for _ in range(20):
        rr = r.dot(r)
        if rr < 1e-24:
            break
        a.spmv(p, ap)
        alpha = rr / p.dot(ap)
        p.axpby(x, alpha)
        ap.axpby(r, -alpha, 1.0)
        r.axpby(p, 1.0, r.dot(r) / rr)
        p.axpby(p, 0.0, 1.0)
        beta_p = p
        assert beta_p is p
    err = Vector.zeros(n)
    a.spmv(x, err)
    b.axpby(err, 1.0, -1.0)
    assert err.norm2() < 1e-10
    assert x.to_list() == pytest.approx([2.5, 4.0, 4.5, 4.0, 2.5])


def test_pattern():
    a = CsrMatrix(2, 3, [0, 2, 3], [0, 2, 1], [1, 1, 1])
    assert a.pattern() == "*.*\n.*."


def test_print():
    a = CsrMatrix(2, 2, [0, 1, 2], [0, 1], [1.0, 2.0])
    out = io.StringIO()
    a.print(out)
    assert out.getvalue() == "2 x 2, nnz = 2\nrow 0: (0, 1.0)\nrow 1: (1, 2.0)\n"


def test_save_pattern_png(tmp_path):
    a = CsrMatrix(2, 2, [0, 1, 2], [0, 1], [1.0, 2.0])
    path = tmp_path / "p.png"
    a.save_pattern_figure(path)
    expected_pixels = bytes([0, 0, 0, 255, 255, 255, 255, 255, 255, 0, 0, 0])
    assert path.read_bytes() == png_bytes(2, 2, expected_pixels)


def test_save_pattern_bmp(tmp_path):
    a = CsrMatrix(2, 1, [0, 1, 1], [0], [1.0])
    path = tmp_path / "p.bmp"
    a.save_pattern_figure(path)
    data = path.read_bytes()
    assert data[:2] == b"BM"
    assert len(data) == 54 + 4 * 2
    assert data[54:58] == bytes([255, 255, 255, 0])
    assert data[58:62] == bytes([0, 0, 0, 0])