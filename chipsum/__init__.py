"""Vectors, dense and sparse matrices, batched tensors, neural-network kernels, Matrix Market reading and image writing."""

__version__ = "1.0.0"

__all__ = ["dense", "imaging", "mtx", "nn", "sparse", "tensor", "vector"]