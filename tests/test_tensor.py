import io

import pytest

from chipsum.dense import DenseMatrix, SingularMatrixError
from chipsum.tensor import Tensor

K, B, N, M = 2, 2, 5, 3


def test_new_tensor_is_zero():
    tmp = Tensor((2, 2, 2))
    assert tmp.to_list() == [[[0.0, 0.0], [0.0, 0.0]], [[0.0, 0.0], [0.0, 0.0]]]


def test_extent_and_host_index():
    a = Tensor((B, N, N), [1.0] * (B * N * N))
    a[0, 0, 1] = 100
    assert a.extent(2) == 5
    assert a[0, 0, 1] == 100.0
    assert a[0, 0, 0] == 1.0


def test_extent_out_of_range():
    a = Tensor((B, N, N))
    with pytest.raises(IndexError):
        a.extent(3)


def test_batched_gemm():
    a = Tensor((B, N, N), [1.0] * (B * N * N))
    a1 = Tensor((B, N, 1), [2.0] * (B * N))
    a2 = Tensor((B, N, 1), [0.0] * (B * N))
    a[0, 0, 1] = 100
    a.gemm(a1, a2)
    assert a2[0, 0, 0] == 208.0
    assert [a2[0, i, 0] for i in range(1, N)] == [10.0] * (N - 1)
    assert [a2[1, i, 0] for i in range(N)] == [10.0] * N


def test_batched_gemv_four_dimensional():
    bt = Tensor((K, B, N, M), [1.0] * (K * B * N * M))
    bt4 = Tensor((K, B, M, 1), [4.0] * (K * B * M))
    bt5 = Tensor((K, B, N, 1), [5.0] * (K * B * N))
    bt.gemv(bt4, bt5)
    flat = [v for a in bt5.to_list() for b in a for row in b for v in row]
    assert flat == [12.0] * (K * B * N)


def test_four_dimensional_gemm():
    bt = Tensor((K, B, N, M), [1.0] * (K * B * N * M))
    bt1 = Tensor((K, B, M, N), [2.0] * (K * B * M * N))
    bt2 = Tensor((K, B, N, N))
    bt.gemm(bt1, bt2)
    flat = [v for a in bt2.to_list() for b in a for row in b for v in row]
    assert flat == [6.0] * (K * B * N * N)


def test_gemm_shape_mismatch():
    a = Tensor((B, N, N))
    with pytest.raises(ValueError):
        a.gemm(Tensor((B, M, 1)), Tensor((B, N, 1)))
    with pytest.raises(ValueError):
        a.gemm(Tensor((B + 1, N, 1)), Tensor((B + 1, N, 1)))


def test_gemv_shape_mismatch():
    a = Tensor((B, N, M))
    with pytest.raises(ValueError):
        a.gemv(Tensor((B, N, 1)), Tensor((B, N, 1)))


def test_bad_shape_and_values():
    with pytest.raises(ValueError):
        Tensor((2, 2))
    with pytest.raises(ValueError):
        Tensor((2, 2, 2), [1.0, 2.0])


def test_batched_lu_matches_dense_lu():
    values = [4.0, 3.0, 1.0, 6.0, 3.0, 2.0, 1.0, 5.0, 7.0]
    t = Tensor((3, 3, 3), values * 3)
    t.lu(0.0)
    mat = DenseMatrix(3, 3, values)
    mat.lu()
    for batch in t.to_list():
        assert batch == pytest.approx(mat.to_rows())


def test_batched_lu_singular():
    t = Tensor((1, 2, 2), [0.0, 1.0, 1.0, 0.0])
    with pytest.raises(SingularMatrixError):
        t.lu()


def test_batched_qr_matches_dense_qr():
    values = [float(i + 1) for i in range(25)]
    t = Tensor((3, 5, 5), values * 3)
    tau = t.qr()
    mat = DenseMatrix(5, 5, values)
    expected_tau = mat.qr().to_list()
    assert tau.nrow == 3 and tau.ncol == 5
    for row in tau.to_rows():
        assert row == pytest.approx(expected_tau)
    for batch in t.to_list():
        assert batch == pytest.approx(mat.to_rows())


def test_print_lists_every_batch():
    t = Tensor((2, 1, 2), [1.0, 2.0, 3.0, 4.0])
    buf = io.StringIO()
    t.print(buf)
    text = buf.getvalue()
    assert "[1.0, 2.0]" in text
    assert "[3.0, 4.0]" in text