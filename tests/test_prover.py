import hashlib
import io
import random
import struct

import pytest

from zkboo.core import (
    MASK32,
    RANDOMNESS_BYTES,
    Y_SIZE,
    get_all_randomness,
    challenges,
    read_proof,
    reconstruct,
    view_hash,
)
from zkboo.prover import (
    MpcContext,
    commit,
    generate_proof,
    main,
    mpc_add,
    mpc_add_constant,
    mpc_and,
    mpc_ch,
    mpc_maj,
    mpc_sha256,
    mpc_xor,
    prove,
    secret_share,
    sha256,
)


def _tapes():
    return [get_all_randomness(bytes([i + 1]) * 16) for i in range(3)]


def _ctx():
    return MpcContext(_tapes())


def _share(value, rng):
    a = rng.getrandbits(32)
    b = rng.getrandbits(32)
    return (a, b, value ^ a ^ b)


def _open(shares):
    return shares[0] ^ shares[1] ^ shares[2]


@pytest.mark.parametrize("message", [b"", b"abc", b"hello world", b"x" * 55])
def test_sha256_matches_standard(message):
    assert sha256(message) == hashlib.sha256(message).digest()


def test_sha256_rejects_long_input():
    with pytest.raises(ValueError):
        sha256(b"x" * 56)


def test_mpc_xor():
    assert mpc_xor((1, 2, 3), (3, 2, 1)) == (2, 0, 2)


def test_mpc_and_reconstructs_and_records():
    rng = random.Random(1)
    ctx = _ctx()
    x_val, y_val = rng.getrandbits(32), rng.getrandbits(32)
    z = mpc_and(_share(x_val, rng), _share(y_val, rng), ctx)
    assert _open(z) == x_val & y_val
    assert ctx.count_y == 1
    assert [view.y[0] for view in ctx.views] == list(z)


@pytest.mark.parametrize("seed", range(5))
def test_mpc_add_is_modular_sum(seed):
    rng = random.Random(seed)
    ctx = _ctx()
    x_val, y_val = rng.getrandbits(32), rng.getrandbits(32)
    z = mpc_add(_share(x_val, rng), _share(y_val, rng), ctx)
    assert _open(z) == (x_val + y_val) & MASK32
    assert ctx.count_y == 1
    assert ctx.tapes[0].offset == 4


def test_mpc_add_overflow():
    rng = random.Random(9)
    z = mpc_add(_share(MASK32, rng), _share(1, rng), _ctx())
    assert _open(z) == 0


def test_mpc_add_constant():
    rng = random.Random(3)
    x_val = rng.getrandbits(32)
    z = mpc_add_constant(_share(x_val, rng), 0x428A2F98, _ctx())
    assert _open(z) == (x_val + 0x428A2F98) & MASK32


def test_mpc_maj_and_ch():
    rng = random.Random(4)
    a, b, c = (rng.getrandbits(32) for _ in range(3))
    ctx = _ctx()
    maj = mpc_maj(_share(a, rng), _share(b, rng), _share(c, rng), ctx)
    ch = mpc_ch(_share(a, rng), _share(b, rng), _share(c, rng), ctx)
    assert _open(maj) == (a & b) ^ (a & c) ^ (b & c)
    assert _open(ch) == ((a & b) ^ (~a & c)) & MASK32
    assert ctx.count_y == 2


def test_context_requires_three_tapes():
    with pytest.raises(ValueError):
        MpcContext(_tapes()[:2])


def test_record_fails_when_full():
    ctx = _ctx()
    ctx.count_y = Y_SIZE
    with pytest.raises(IndexError):
        ctx.record((1, 2, 3))


def test_secret_share_reconstructs():
    data = b"secret message"
    shares = secret_share(data)
    assert len(shares) == 3
    assert all(len(s) == len(data) for s in shares)
    assert bytes(a ^ b ^ c for a, b, c in zip(*shares)) == data


def test_mpc_sha256_reconstructs_digest():
    message = b"abc"
    ctx = _ctx()
    results = mpc_sha256(secret_share(message), ctx)
    combined = bytes(a ^ b ^ c for a, b, c in zip(*results))
    assert combined == hashlib.sha256(message).digest()
    assert ctx.count_y == 728
    assert all(tape.offset == RANDOMNESS_BYTES for tape in ctx.tapes)
    block = bytes(a ^ b ^ c for a, b, c in zip(*(v.x for v in ctx.views)))
    assert block[:4] == b"abc\x80"
    assert block[63] == 24


def test_mpc_sha256_rejects_unequal_shares():
    with pytest.raises(ValueError):
        mpc_sha256([b"ab", b"ab", b"a"], _ctx())


def test_commit_outputs_digest():
    message = b"hello"
    commitment, views = commit(secret_share(message), _tapes())
    words = reconstruct(*commitment.yp)
    assert struct.pack(">8I", *words) == hashlib.sha256(message).digest()
    assert commitment.yp == [view.output() for view in views]


def test_prove_selects_parties():
    _, views = commit(secret_share(b"a"), _tapes())
    keys = [bytes([i]) * 16 for i in range(3)]
    rs = [bytes([i]) * 4 for i in range(3)]
    response = prove(2, keys, rs, views)
    assert response.ke == keys[2]
    assert response.ke1 == keys[0]
    assert response.re == rs[2]
    assert response.re1 == rs[0]
    assert response.ve is views[2]
    assert response.ve1 is views[0]


def test_prove_rejects_bad_challenge():
    with pytest.raises(ValueError):
        prove(3, [b"\0" * 16] * 3, [b"\0" * 4] * 3, [None] * 3)


def test_generate_proof_consistent():
    message = b"abc"
    commitments, responses = generate_proof(message, 3)
    assert len(commitments) == len(responses) == 3
    y = reconstruct(*commitments[0].yp)
    assert struct.pack(">8I", *y) == hashlib.sha256(message).digest()
    es = challenges(y, commitments, 3)
    for e, commitment, response in zip(es, commitments, responses):
        assert commitment.h[e] == view_hash(response.ke, response.ve, response.re)
        assert commitment.h[(e + 1) % 3] == view_hash(response.ke1, response.ve1, response.re1)
        assert commitment.yp[e] == response.ve.output()


def test_generate_proof_rejects_long_message():
    with pytest.raises(ValueError):
        generate_proof(b"x" * 56, 1)


def test_main_writes_proof(tmp_path):
    assert main(["abc", "--rounds", "2", "--directory", str(tmp_path)]) == 0
    commitments, responses = read_proof(tmp_path / "out2.bin", 2)
    assert len(responses) == 2
    y = reconstruct(*commitments[0].yp)
    assert struct.pack(">8I", *y) == hashlib.sha256(b"abc").digest()


def test_main_reads_stdin(tmp_path, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("hi\n"))
    assert main(["--rounds", "1", "--directory", str(tmp_path)]) == 0
    commitments, _ = read_proof(tmp_path / "out1.bin", 1)
    y = reconstruct(*commitments[0].yp)
    assert struct.pack(">8I", *y) == hashlib.sha256(b"hi").digest()


def test_main_rejects_long_message(tmp_path):
    assert main(["x" * 60, "--rounds", "1", "--directory", str(tmp_path)]) == 1
    assert not (tmp_path / "out1.bin").exists()