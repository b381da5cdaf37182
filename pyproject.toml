[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "zkboo"
version = "0.1.0"
description = "Non-interactive zero-knowledge proofs of knowledge of a SHA-256 preimage using MPC-in-the-head"
requires-python = ">=3.10"
dependencies = [
    "cryptography",
]
keywords = ["zero-knowledge", "zkboo", "sha256", "mpc", "proof"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
zkboo-prove = "zkboo.prover:main"
zkboo-verify = "zkboo.verifier:main"

[tool.setuptools.packages.find]
include = ["zkboo*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
