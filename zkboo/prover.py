"""Prover: runs SHA-256 as a three-party computation and packs the proof."""

from __future__ import annotations

import argparse
import secrets
import struct
import sys
from typing import Iterable, Sequence

from .core import (
    H_A,
    INPUT_BYTES,
    K,
    KEY_BYTES,
    MASK32,
    NUM_ROUNDS,
    R_BYTES,
    Y_SIZE,
    Commitment,
    RandomTape,
    Response,
    View,
    challenges,
    get_all_randomness,
    proof_path,
    reconstruct,
    rotr,
    view_hash,
    write_proof,
)

Shares = tuple[int, int, int]

MAX_INPUT_BITS = 447
_BLOCK_WORDS = struct.Struct(">16I")
_DIGEST_WORDS = struct.Struct(">8I")
# Each party j is paired with party (j + 1) % 3.
_PAIRS = ((0, 1), (1, 2), (2, 0))


class MpcContext:
    """Random tapes and views of the three parties during one evaluation."""

    def __init__(self, randomness: Sequence[bytes], views: Sequence[View] | None = None) -> None:
        if len(randomness) != 3:
            raise ValueError("exactly three random tapes are required")
        self.tapes = [RandomTape(bytes(tape)) for tape in randomness]
        self.views = list(views) if views is not None else [View() for _ in range(3)]
        if len(self.views) != 3:
            raise ValueError("exactly three views are required")
        self.count_y = 0

    def random_words(self) -> Shares:
        """Take the next 32-bit word from each party's tape."""
        first, second, third = (tape.next_word() for tape in self.tapes)
        return first, second, third

    def record(self, values: Iterable[int]) -> None:
        """Append one word to each party's view."""
        values = tuple(values)
        if len(values) != 3:
            raise ValueError("one value per party is required")
        if self.count_y >= Y_SIZE:
            raise IndexError("views are full")
        for view, value in zip(self.views, values):
            view.y[self.count_y] = value & MASK32
        self.count_y += 1


def _pad_block(data: bytes) -> bytes:
    num_bits = len(data) * 8
    if num_bits > MAX_INPUT_BITS:
        raise ValueError("Input too long, aborting!")
    block = bytearray(INPUT_BYTES)
    block[: len(data)] = data
    block[len(data)] = 0x80
    block[62] = (num_bits >> 8) & 0xFF
    block[63] = num_bits & 0xFF
    return bytes(block)


def _rotr3(x: Shares, n: int) -> Shares:
    return tuple(rotr(v, n) for v in x)  # type: ignore[return-value]


def _shr3(x: Shares, n: int) -> Shares:
    return tuple(v >> n for v in x)  # type: ignore[return-value]


def mpc_xor(x: Sequence[int], y: Sequence[int]) -> Shares:
    """XOR of two shared words, computed locally by each party."""
    return tuple(a ^ b for a, b in zip(x, y, strict=True))  # type: ignore[return-value]


def mpc_and(x: Sequence[int], y: Sequence[int], ctx: MpcContext) -> Shares:
    """AND of two shared words; the result shares go into the views."""
    r = ctx.random_words()
    z = tuple(
        ((x[j] & y[n]) ^ (x[n] & y[j]) ^ (x[j] & y[j]) ^ r[j] ^ r[n]) & MASK32
        for j, n in _PAIRS
    )
    ctx.record(z)
    return z  # type: ignore[return-value]


def mpc_add(x: Sequence[int], y: Sequence[int], ctx: MpcContext) -> Shares:
    """Addition modulo 2**32 of two shared words; the carry shares go into the views."""
    r = ctx.random_words()
    carry = [0, 0, 0]
    for i in range(31):
        a = [((xv ^ cv) >> i) & 1 for xv, cv in zip(x, carry)]
        b = [((yv ^ cv) >> i) & 1 for yv, cv in zip(y, carry)]
        for j, n in _PAIRS:
            bit = (
                (a[j] & b[n])
                ^ (a[n] & b[j])
                ^ (a[j] & b[j])
                ^ ((carry[j] >> i) & 1)
                ^ ((r[j] >> i) & 1)
                ^ ((r[n] >> i) & 1)
            )
            carry[j] |= bit << (i + 1)
    z = tuple((xv ^ yv ^ cv) & MASK32 for xv, yv, cv in zip(x, y, carry))
    ctx.record(carry)
    return z  # type: ignore[return-value]


def mpc_add_constant(x: Sequence[int], k: int, ctx: MpcContext) -> Shares:
    """Add a public constant to a shared word."""
    k &= MASK32
    return mpc_add(x, (k, k, k), ctx)


def mpc_maj(a: Sequence[int], b: Sequence[int], c: Sequence[int], ctx: MpcContext) -> Shares:
    """Bitwise majority of three shared words."""
    z = mpc_and(mpc_xor(a, b), mpc_xor(a, c), ctx)
    return mpc_xor(z, a)


def mpc_ch(e: Sequence[int], f: Sequence[int], g: Sequence[int], ctx: MpcContext) -> Shares:
    """Bitwise choice: bits of ``f`` where ``e`` is set, of ``g`` elsewhere."""
    t0 = mpc_and(e, mpc_xor(f, g), ctx)
    return mpc_xor(t0, g)


def sha256(data: bytes) -> bytes:
    """SHA-256 of a message that fits in a single 512-bit block."""
    w = list(_BLOCK_WORDS.unpack(_pad_block(bytes(data))))
    for i in range(16, 64):
        s0 = rotr(w[i - 15], 7) ^ rotr(w[i - 15], 18) ^ (w[i - 15] >> 3)
        s1 = rotr(w[i - 2], 17) ^ rotr(w[i - 2], 19) ^ (w[i - 2] >> 10)
        w.append((w[i - 16] + s0 + w[i - 7] + s1) & MASK32)

    a, b, c, d, e, f, g, h = H_A
    for ki, wi in zip(K, w):
        s1 = rotr(e, 6) ^ rotr(e, 11) ^ rotr(e, 25)
        ch = (e & f) ^ (~e & g)
        temp1 = (h + s1 + ch + ki + wi) & MASK32
        s0 = rotr(a, 2) ^ rotr(a, 13) ^ rotr(a, 22)
        maj = (a & (b ^ c)) ^ (b & c)
        temp2 = (s0 + maj) & MASK32
        h, g, f, e = g, f, e, (d + temp1) & MASK32
        d, c, b, a = c, b, a, (temp1 + temp2) & MASK32

    state = (a, b, c, d, e, f, g, h)
    return _DIGEST_WORDS.pack(*((x + y) & MASK32 for x, y in zip(H_A, state)))


def mpc_sha256(inputs: Sequence[bytes], ctx: MpcContext) -> list[bytes]:
    """Evaluate SHA-256 on three XOR shares; returns the three output shares."""
    inputs = [bytes(share) for share in inputs]
    if len(inputs) != 3:
        raise ValueError("exactly three input shares are required")
    if len({len(share) for share in inputs}) != 1:
        raise ValueError("input shares differ in length")
    blocks = [_pad_block(share) for share in inputs]
    for view, block in zip(ctx.views, blocks):
        view.x = block

    w: list[Shares] = list(zip(*(_BLOCK_WORDS.unpack(block) for block in blocks)))
    for j in range(16, 64):
        s0 = mpc_xor(mpc_xor(_rotr3(w[j - 15], 7), _rotr3(w[j - 15], 18)), _shr3(w[j - 15], 3))
        s1 = mpc_xor(mpc_xor(_rotr3(w[j - 2], 17), _rotr3(w[j - 2], 19)), _shr3(w[j - 2], 10))
        t1 = mpc_add(w[j - 16], s0, ctx)
        t1 = mpc_add(w[j - 7], t1, ctx)
        w.append(mpc_add(t1, s1, ctx))

    a, b, c, d, e, f, g, h = ((v, v, v) for v in H_A)
    for ki, wi in zip(K, w):
        s1 = mpc_xor(mpc_xor(_rotr3(e, 6), _rotr3(e, 11)), _rotr3(e, 25))
        t0 = mpc_add(h, s1, ctx)
        t1 = mpc_ch(e, f, g, ctx)
        t1 = mpc_add(t0, t1, ctx)
        t1 = mpc_add_constant(t1, ki, ctx)
        temp1 = mpc_add(t1, wi, ctx)
        s0 = mpc_xor(mpc_xor(_rotr3(a, 2), _rotr3(a, 13)), _rotr3(a, 22))
        maj = mpc_maj(a, b, c, ctx)
        temp2 = mpc_add(s0, maj, ctx)
        h, g, f = g, f, e
        e = mpc_add(d, temp1, ctx)
        d, c, b = c, b, a
        a = mpc_add(temp1, temp2, ctx)

    final = [mpc_add((v, v, v), x, ctx) for v, x in zip(H_A, (a, b, c, d, e, f, g, h))]
    return [_DIGEST_WORDS.pack(*(word[party] for word in final)) for party in range(3)]


def secret_share(data: bytes) -> list[bytes]:
    """Split ``data`` into three random shares whose XOR is ``data``."""
    data = bytes(data)
    first = secrets.token_bytes(len(data))
    second = secrets.token_bytes(len(data))
    third = bytes(d ^ x ^ y for d, x, y in zip(data, first, second))
    return [first, second, third]


def commit(shares: Sequence[bytes], randomness: Sequence[bytes]) -> tuple[Commitment, list[View]]:
    """Run the computation on the shares; returns output shares and the parties' views.

    The view commitments of the returned :class:`Commitment` are left zero.
    """
    ctx = MpcContext(randomness)
    digests = mpc_sha256(shares, ctx)
    for words in zip(*(_DIGEST_WORDS.unpack(digest) for digest in digests)):
        ctx.record(words)
    return Commitment(yp=[view.output() for view in ctx.views]), ctx.views


def prove(
    e: int, keys: Sequence[bytes], rs: Sequence[bytes], views: Sequence[View]
) -> Response:
    """Open parties ``e`` and ``e + 1`` for challenge ``e``."""
    if e not in (0, 1, 2):
        raise ValueError(f"challenge must be 0, 1 or 2, got {e}")
    n = (e + 1) % 3
    return Response(keys[e], keys[n], views[e], views[n], rs[e], rs[n])


def generate_proof(
    message: bytes, num_rounds: int = NUM_ROUNDS
) -> tuple[list[Commitment], list[Response]]:
    """Prove knowledge of ``message`` hashing to its SHA-256 digest."""
    message = bytes(message)
    if num_rounds < 1:
        raise ValueError("at least one round is required")
    _pad_block(message)

    commitments: list[Commitment] = []
    openings: list[tuple[list[bytes], list[bytes], list[View]]] = []
    for _ in range(num_rounds):
        keys = [secrets.token_bytes(KEY_BYTES) for _ in range(3)]
        rs = [secrets.token_bytes(R_BYTES) for _ in range(3)]
        partial, views = commit(secret_share(message), [get_all_randomness(k) for k in keys])
        hashes = [view_hash(k, v, r) for k, v, r in zip(keys, views, rs)]
        commitments.append(Commitment(yp=partial.yp, h=hashes))
        openings.append((keys, rs, views))

    y = reconstruct(*commitments[0].yp)
    es = challenges(y, commitments, num_rounds)
    responses = [prove(e, keys, rs, views) for e, (keys, rs, views) in zip(es, openings)]
    return commitments, responses


def main(argv: Sequence[str] | None = None) -> int:
    """Read a message, prove knowledge of it and write the proof file."""
    parser = argparse.ArgumentParser(
        prog="zkboo-prove", description="Prove knowledge of a SHA-256 preimage."
    )
    parser.add_argument("message", nargs="?", help="message to hash (read from stdin if absent)")
    parser.add_argument("--rounds", type=int, default=NUM_ROUNDS, help="number of rounds")
    parser.add_argument("--directory", default=".", help="where the proof file is written")
    args = parser.parse_args(argv)

    if args.message is None:
        print("Enter the string to be hashed (Max 55 characters): ", end="", flush=True)
        text = sys.stdin.readline().rstrip("\r\n")
    else:
        text = args.message
    message = text.encode("utf-8")

    print(f"String length: {len(message)}")
    print(f"Iterations of SHA: {args.rounds}")

    try:
        commitments, responses = generate_proof(message, args.rounds)
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    try:
        write_proof(proof_path(args.rounds, args.directory), commitments, responses)
    except OSError:
        print("Unable to open file!", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())