"""Shared data structures, constants and hashing helpers for the SHA-256 proof system."""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

MASK32 = 0xFFFFFFFF

H_A: tuple[int, ...] = (
    0x6A09E667, 0xBB67AE85, 0x3C6EF372, 0xA54FF53A,
    0x510E527F, 0x9B05688C, 0x1F83D9AB, 0x5BE0CD19,
)

K: tuple[int, ...] = (
    0x428A2F98, 0x71374491, 0xB5C0FBCF, 0xE9B5DBA5, 0x3956C25B, 0x59F111F1, 0x923F82A4, 0xAB1C5ED5,
    0xD807AA98, 0x12835B01, 0x243185BE, 0x550C7DC3, 0x72BE5D74, 0x80DEB1FE, 0x9BDC06A7, 0xC19BF174,
    0xE49B69C1, 0xEFBE4786, 0x0FC19DC6, 0x240CA1CC, 0x2DE92C6F, 0x4A7484AA, 0x5CB0A9DC, 0x76F988DA,
    0x983E5152, 0xA831C66D, 0xB00327C8, 0xBF597FC7, 0xC6E00BF3, 0xD5A79147, 0x06CA6351, 0x14292967,
    0x27B70A85, 0x2E1B2138, 0x4D2C6DFC, 0x53380D13, 0x650A7354, 0x766A0ABB, 0x81C2C92E, 0x92722C85,
    0xA2BFE8A1, 0xA81A664B, 0xC24B8B70, 0xC76C51A3, 0xD192E819, 0xD6990624, 0xF40E3585, 0x106AA070,
    0x19A4C116, 0x1E376C08, 0x2748774C, 0x34B0BCB5, 0x391C0CB3, 0x4ED8AA4A, 0x5B9CCA4F, 0x682E6FF3,
    0x748F82EE, 0x78A5636F, 0x84C87814, 0x8CC70208, 0x90BEFFFA, 0xA4506CEB, 0xBEF9A3F7, 0xC67178F2,
)

Y_SIZE = 736
INPUT_BYTES = 64
KEY_BYTES = 16
R_BYTES = 4
RANDOMNESS_BYTES = 2912
DIGEST_BYTES = 32
NUM_ROUNDS = 136

_AES_IV = b"0123456789012345"
_AES_PLAINTEXT_BLOCK = b"0000000000000000"

VIEW_SIZE = INPUT_BYTES + 4 * Y_SIZE
COMMITMENT_SIZE = 3 * 8 * 4 + 3 * DIGEST_BYTES
RESPONSE_SIZE = 2 * KEY_BYTES + 2 * VIEW_SIZE + 2 * R_BYTES

_Y_STRUCT = struct.Struct(f"<{Y_SIZE}I")
_WORDS8 = struct.Struct("<8I")


def rotr(x: int, n: int) -> int:
    """Rotate a 32-bit word right by ``n`` bits."""
    x &= MASK32
    return ((x >> n) | (x << (32 - n))) & MASK32


def _bit(x: int, i: int) -> int:
    return (x >> i) & 1


def _check_length(name: str, data: bytes, size: int) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise ValueError(f"{name} must be {size} bytes, got {len(data)}")
    return data


@dataclass
class View:
    """One party's view: its padded input block and the words it produced."""

    x: bytes = bytes(INPUT_BYTES)
    y: list[int] = field(default_factory=lambda: [0] * Y_SIZE)

    def __post_init__(self) -> None:
        self.x = _check_length("view input", self.x, INPUT_BYTES)
        self.y = [v & MASK32 for v in self.y]
        if len(self.y) != Y_SIZE:
            raise ValueError(f"view must hold {Y_SIZE} words, got {len(self.y)}")

    def to_bytes(self) -> bytes:
        return self.x + _Y_STRUCT.pack(*self.y)

    @classmethod
    def from_bytes(cls, data: bytes) -> View:
        data = _check_length("view", data, VIEW_SIZE)
        return cls(data[:INPUT_BYTES], list(_Y_STRUCT.unpack(data[INPUT_BYTES:])))

    def output(self) -> list[int]:
        """The party's output share: the final eight words of the view."""
        return self.y[Y_SIZE - 8:]


@dataclass
class Commitment:
    """Output shares and view commitments of the three parties for one round."""

    yp: list[list[int]] = field(default_factory=lambda: [[0] * 8 for _ in range(3)])
    h: list[bytes] = field(default_factory=lambda: [bytes(DIGEST_BYTES)] * 3)

    def __post_init__(self) -> None:
        if len(self.yp) != 3 or any(len(row) != 8 for row in self.yp):
            raise ValueError("yp must be three rows of eight words")
        if len(self.h) != 3:
            raise ValueError("h must hold three digests")
        self.yp = [[v & MASK32 for v in row] for row in self.yp]
        self.h = [_check_length("digest", d, DIGEST_BYTES) for d in self.h]

    def to_bytes(self) -> bytes:
        return b"".join(_WORDS8.pack(*row) for row in self.yp) + b"".join(self.h)

    @classmethod
    def from_bytes(cls, data: bytes) -> Commitment:
        data = _check_length("commitment", data, COMMITMENT_SIZE)
        yp = [list(_WORDS8.unpack_from(data, 32 * i)) for i in range(3)]
        base = 96
        h = [data[base + 32 * i: base + 32 * (i + 1)] for i in range(3)]
        return cls(yp, h)


@dataclass
class Response:
    """What the prover opens for a round: two keys, two views and two salts."""

    ke: bytes
    ke1: bytes
    ve: View
    ve1: View
    re: bytes
    re1: bytes

    def __post_init__(self) -> None:
        self.ke = _check_length("key", self.ke, KEY_BYTES)
        self.ke1 = _check_length("key", self.ke1, KEY_BYTES)
        self.re = _check_length("salt", self.re, R_BYTES)
        self.re1 = _check_length("salt", self.re1, R_BYTES)

    def to_bytes(self) -> bytes:
        return (
            self.ke + self.ke1 + self.ve.to_bytes() + self.ve1.to_bytes() + self.re + self.re1
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> Response:
        data = _check_length("response", data, RESPONSE_SIZE)
        pos = 0

        def take(n: int) -> bytes:
            nonlocal pos
            chunk = data[pos:pos + n]
            pos += n
            return chunk

        ke = take(KEY_BYTES)
        ke1 = take(KEY_BYTES)
        ve = View.from_bytes(take(VIEW_SIZE))
        ve1 = View.from_bytes(take(VIEW_SIZE))
        re = take(R_BYTES)
        re1 = take(R_BYTES)
        return cls(ke, ke1, ve, ve1, re, re1)


@dataclass
class RandomTape:
    """Sequential reader of 32-bit words from a party's random tape."""

    data: bytes
    offset: int = 0

    def next_word(self) -> int:
        word = get_random32(self.data, self.offset)
        self.offset += 4
        return word


def get_all_randomness(key: bytes) -> bytes:
    """Expand a 16-byte key into the party's 2912-byte random tape with AES-128-CTR."""
    key = _check_length("key", key, KEY_BYTES)
    encryptor = Cipher(algorithms.AES(key), modes.CTR(_AES_IV)).encryptor()
    blocks = RANDOMNESS_BYTES // len(_AES_PLAINTEXT_BLOCK)
    return encryptor.update(_AES_PLAINTEXT_BLOCK * blocks) + encryptor.finalize()


def get_random32(randomness: bytes, offset: int) -> int:
    """Read a little-endian 32-bit word from ``randomness`` at ``offset``."""
    chunk = randomness[offset:offset + 4]
    if offset < 0 or len(chunk) != 4:
        raise IndexError(f"random tape exhausted at offset {offset}")
    return int.from_bytes(chunk, "little")


def view_hash(key: bytes, view: View, r: bytes) -> bytes:
    """Commitment to a view: SHA-256 over key, view and salt."""
    return hashlib.sha256(bytes(key) + view.to_bytes() + bytes(r)).digest()


def challenges(y: Sequence[int], commitments: Sequence[Commitment], count: int) -> list[int]:
    """Derive ``count`` challenges in {0, 1, 2} from the output and the commitments."""
    if len(y) != 8:
        raise ValueError("output must be eight words")
    if len(commitments) < count:
        raise ValueError(f"need {count} commitments, got {len(commitments)}")
    hasher = hashlib.sha256(_WORDS8.pack(*(v & MASK32 for v in y)))
    for commitment in commitments[:count]:
        hasher.update(commitment.to_bytes())
    digest = hasher.digest()

    result: list[int] = []
    tracker = 0
    while len(result) < count:
        if tracker >= DIGEST_BYTES * 8:
            digest = hashlib.sha256(digest).digest()
            tracker = 0
        b1 = _bit(digest[tracker // 8], tracker % 8)
        b2 = _bit(digest[(tracker + 1) // 8], (tracker + 1) % 8)
        tracker += 2
        if (b1, b2) != (1, 1):
            result.append(2 * b1 + b2)
    return result


def reconstruct(y0: Iterable[int], y1: Iterable[int], y2: Iterable[int]) -> list[int]:
    """Combine three output shares into the output."""
    return [a ^ b ^ c for a, b, c in zip(y0, y1, y2, strict=True)]


def proof_path(num_rounds: int = NUM_ROUNDS, directory: str | Path = ".") -> Path:
    """The file a proof with ``num_rounds`` rounds is stored in."""
    return Path(directory) / f"out{num_rounds}.bin"


def write_proof(
    path: str | Path, commitments: Sequence[Commitment], responses: Sequence[Response]
) -> None:
    """Write all commitments followed by all responses to ``path``."""
    if len(commitments) != len(responses):
        raise ValueError("commitments and responses differ in number")
    with open(path, "wb") as handle:
        for commitment in commitments:
            handle.write(commitment.to_bytes())
        for response in responses:
            handle.write(response.to_bytes())


def read_proof(
    path: str | Path, num_rounds: int = NUM_ROUNDS
) -> tuple[list[Commitment], list[Response]]:
    """Read ``num_rounds`` commitments and responses from ``path``."""
    data = Path(path).read_bytes()
    needed = num_rounds * (COMMITMENT_SIZE + RESPONSE_SIZE)
    if len(data) < needed:
        raise ValueError(f"proof file holds {len(data)} bytes, expected {needed}")
    commitments = [
        Commitment.from_bytes(data[i * COMMITMENT_SIZE:(i + 1) * COMMITMENT_SIZE])
        for i in range(num_rounds)
    ]
    base = num_rounds * COMMITMENT_SIZE
    responses = [
        Response.from_bytes(data[base + i * RESPONSE_SIZE: base + (i + 1) * RESPONSE_SIZE])
        for i in range(num_rounds)
    ]
    return commitments, responses