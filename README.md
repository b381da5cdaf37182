# zkboo

Prove that you know a message whose SHA-256 digest is a given value,
without revealing the message.

The prover evaluates SHA-256 as a simulated three-party computation over
XOR-shared inputs, commits to every party's view, and then opens two of
the three views in each round. The challenged pair of each round is
derived from a hash of the claimed digest and all commitments, so the
proof is non-interactive. 136 rounds are run by default.

Messages are limited to 55 bytes (one SHA-256 block).

## Installation

```
pip install .
```

## Command line

Create a proof. Give the message as an argument, or leave it out and
the program asks for it on standard input. The proof is written to
`out136.bin` in the current directory:

```
zkboo-prove "hello world"
zkboo-prove
```

Options:

- `--rounds N` – number of rounds (default 136); the file is then named
  `outN.bin`.
- `--directory DIR` – where the proof file is written (default `.`).

Check the proof and print the digest it proves:

```
zkboo-verify
```

`zkboo-verify` takes the same `--rounds` and `--directory` options. It
prints `Verified well !` and exits with status 0 when every round checks
out; otherwise it prints `Not Verified i` for each failed round and
exits with status 1.

## Library use

```python
from zkboo.prover import generate_proof, sha256
from zkboo.verifier import verify_proof, VerificationError

commitments, responses = generate_proof(b"hello world", 136)

try:
    words = verify_proof(commitments, responses)
except VerificationError as exc:
    print("proof rejected:", exc, "rounds:", exc.rounds)
else:
    print("".join(f"{w:08x}" for w in words))
    assert bytes.fromhex("".join(f"{w:08x}" for w in words)) == sha256(b"hello world")
```

`verify_proof` returns the proven digest as a list of eight 32-bit words
and raises `VerificationError` (with the failed round numbers in
`.rounds`) if any round fails. A single round is checked with
`zkboo.verifier.verify(commitment, e, response)`.

Proofs can be stored and loaded with `zkboo.core.write_proof` and
`zkboo.core.read_proof`; `zkboo.core.proof_path(num_rounds, directory)`
gives the file name the command-line tools use.

## Running the tests

```
pip install .[test]
pytest
```