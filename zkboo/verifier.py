"""Verifier: checks a proof that a SHA-256 digest was computed from a hidden message."""

from __future__ import annotations

import argparse
import struct
import sys
from typing import Iterable, Sequence

from .core import (
    H_A,
    K,
    MASK32,
    NUM_ROUNDS,
    Y_SIZE,
    Commitment,
    RandomTape,
    Response,
    challenges,
    get_all_randomness,
    proof_path,
    read_proof,
    reconstruct,
    rotr,
    view_hash,
)

Pair = tuple[int, int]

_BLOCK_WORDS = struct.Struct(">16I")


class VerificationError(Exception):
    """A proof, or one round of it, failed to verify."""

    def __init__(self, message: str, rounds: Iterable[int] = ()) -> None:
        super().__init__(message)
        self.rounds = tuple(rounds)


def _xor2(x: Pair, y: Pair) -> Pair:
    return x[0] ^ y[0], x[1] ^ y[1]


def _rotr2(x: Pair, n: int) -> Pair:
    return rotr(x[0], n), rotr(x[1], n)


def _shr2(x: Pair, n: int) -> Pair:
    return x[0] >> n, x[1] >> n


class _PairChecker:
    """Replays the gates of the two opened parties against their recorded views."""

    def __init__(self, response: Response) -> None:
        self.tapes = (
            RandomTape(get_all_randomness(response.ke)),
            RandomTape(get_all_randomness(response.ke1)),
        )
        self.ve = response.ve.y
        self.ve1 = response.ve1.y
        self.count = 0

    def _random_words(self) -> Pair:
        return self.tapes[0].next_word(), self.tapes[1].next_word()

    def _recorded(self) -> Pair:
        if self.count >= Y_SIZE:
            raise VerificationError("view holds too few words")
        return self.ve[self.count], self.ve1[self.count]

    def and_gate(self, x: Pair, y: Pair, step: str) -> Pair:
        r0, r1 = self._random_words()
        c0, c1 = self._recorded()
        t = ((x[0] & y[1]) ^ (x[1] & y[0]) ^ (x[0] & y[0]) ^ r0 ^ r1) & MASK32
        if c0 != t:
            raise VerificationError(f"AND gate does not match the view at {step}")
        self.count += 1
        return t, c1

    def add(self, x: Pair, y: Pair, step: str) -> Pair:
        r0, r1 = self._random_words()
        c0, c1 = self._recorded()
        for i in range(31):
            a0 = ((x[0] ^ c0) >> i) & 1
            a1 = ((x[1] ^ c1) >> i) & 1
            b0 = ((y[0] ^ c0) >> i) & 1
            b1 = ((y[1] ^ c1) >> i) & 1
            t = (a0 & b1) ^ (a1 & b0) ^ ((r1 >> i) & 1)
            expected = t ^ (a0 & b0) ^ ((c0 >> i) & 1) ^ ((r0 >> i) & 1)
            if ((c0 >> (i + 1)) & 1) != expected:
                raise VerificationError(f"adder carry does not match the view at {step}")
        self.count += 1
        return (x[0] ^ y[0] ^ c0) & MASK32, (x[1] ^ y[1] ^ c1) & MASK32

    def maj(self, a: Pair, b: Pair, c: Pair, step: str) -> Pair:
        z = self.and_gate(_xor2(a, b), _xor2(a, c), step)
        return _xor2(z, a)

    def ch(self, e: Pair, f: Pair, g: Pair, step: str) -> Pair:
        t0 = self.and_gate(e, _xor2(f, g), step)
        return _xor2(t0, g)


def verify(commitment: Commitment, e: int, response: Response) -> None:
    """Check one round for challenge ``e``; raises :class:`VerificationError` on failure."""
    if e not in (0, 1, 2):
        raise ValueError(f"challenge must be 0, 1 or 2, got {e}")
    n = (e + 1) % 3

    if view_hash(response.ke, response.ve, response.re) != commitment.h[e]:
        raise VerificationError(f"commitment to view {e} does not match")
    if view_hash(response.ke1, response.ve1, response.re1) != commitment.h[n]:
        raise VerificationError(f"commitment to view {n} does not match")
    if response.ve.output() != commitment.yp[e]:
        raise VerificationError(f"output share {e} does not match")
    if response.ve1.output() != commitment.yp[n]:
        raise VerificationError(f"output share {n} does not match")

    check = _PairChecker(response)

    w: list[Pair] = list(
        zip(_BLOCK_WORDS.unpack(response.ve.x), _BLOCK_WORDS.unpack(response.ve1.x))
    )
    for j in range(16, 64):
        step = f"message schedule word {j}"
        s0 = _xor2(_xor2(_rotr2(w[j - 15], 7), _rotr2(w[j - 15], 18)), _shr2(w[j - 15], 3))
        s1 = _xor2(_xor2(_rotr2(w[j - 2], 17), _rotr2(w[j - 2], 19)), _shr2(w[j - 2], 10))
        t1 = check.add(w[j - 16], s0, step)
        t1 = check.add(w[j - 7], t1, step)
        w.append(check.add(t1, s1, step))

    a, b, c, d, e_, f, g, h = ((v, v) for v in H_A)
    for i, (ki, wi) in enumerate(zip(K, w)):
        step = f"compression round {i}"
        s1 = _xor2(_xor2(_rotr2(e_, 6), _rotr2(e_, 11)), _rotr2(e_, 25))
        t0 = check.add(h, s1, step)
        t1 = check.ch(e_, f, g, step)
        t1 = check.add(t0, t1, step)
        t1 = check.add(t1, (ki, ki), step)
        temp1 = check.add(t1, wi, step)
        s0 = _xor2(_xor2(_rotr2(a, 2), _rotr2(a, 13)), _rotr2(a, 22))
        maj = check.maj(a, b, c, step)
        temp2 = check.add(s0, maj, step)
        h, g, f = g, f, e_
        e_ = check.add(d, temp1, step)
        d, c, b = c, b, a
        a = check.add(temp1, temp2, step)

    for v, x in zip(H_A, (a, b, c, d, e_, f, g, h)):
        check.add((v, v), x, "final addition")


def verify_proof(commitments: Sequence[Commitment], responses: Sequence[Response]) -> list[int]:
    """Verify every round; returns the proven digest as eight words.

    Raises :class:`VerificationError` naming the rounds that failed.
    """
    if len(commitments) != len(responses):
        raise ValueError("commitments and responses differ in number")
    if not commitments:
        raise ValueError("a proof needs at least one round")

    y = reconstruct(*commitments[0].yp)
    es = challenges(y, commitments, len(commitments))
    failed = []
    for index, (commitment, e, response) in enumerate(zip(commitments, es, responses)):
        try:
            verify(commitment, e, response)
        except VerificationError:
            failed.append(index)
    if failed:
        listed = ", ".join(str(i) for i in failed)
        raise VerificationError(f"rounds not verified: {listed}", failed)
    return y


def main(argv: Sequence[str] | None = None) -> int:
    """Read the proof file and verify it."""
    parser = argparse.ArgumentParser(
        prog="zkboo-verify", description="Verify a proof of a SHA-256 preimage."
    )
    parser.add_argument("--rounds", type=int, default=NUM_ROUNDS, help="number of rounds")
    parser.add_argument("--directory", default=".", help="where the proof file is read from")
    args = parser.parse_args(argv)

    print(f"Iterations of SHA: {args.rounds}")

    try:
        commitments, responses = read_proof(proof_path(args.rounds, args.directory), args.rounds)
    except OSError:
        print("Unable to open file!", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    y = reconstruct(*commitments[0].yp)
    print("Proof for hash: " + "".join(f"{v:08X}" for v in y))
    print("Loading files")
    print("Generating E")

    try:
        verify_proof(commitments, responses)
    except VerificationError as exc:
        for index in exc.rounds:
            print(f"Not Verified {index}")
        return 1
    print("Verified well !")
    return 0


if __name__ == "__main__":
    sys.exit(main())