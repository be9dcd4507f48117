[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chipsum"
version = "1.0.0"
description = "Vectors, dense and sparse matrices, batched tensors and small neural-network kernels for numerical linear algebra"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = [
    "linear-algebra",
    "sparse-matrix",
    "csr",
    "coo",
    "blas",
    "lu",
    "qr",
    "ilu",
    "tensor",
    "matrix-market",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["chipsum"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
