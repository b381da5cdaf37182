"""Zero-knowledge proofs of knowledge of a SHA-256 preimage: prover, verifier and proof file format."""

__version__ = "0.1.0"