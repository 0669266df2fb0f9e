import hashlib
import hmac
from pathlib import Path
import sys

import pytest

# Add repo root so we can import hdschnorr.*
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from hdschnorr import core
from hdschnorr.core import (
    MASTER_CHAIN_CODE,
    SECP256K1_ORDER,
    build_derivation_path,
    derive_child_private,
    derive_child_public,
    master_key,
    public_key_from_private,
)
from hdschnorr.errors import DerivationFailure

SEED = b"\x01" * 64


def _public(seed, path):
    master = master_key(seed)
    return derive_child_public(public_key_from_private(master.key), path, master.chain_code)


def _private(seed, path):
    master = master_key(seed)
    return derive_child_private(master.key, path, master.chain_code)


def test_master_key_is_left_half_of_hmac_with_zero_chain_code():
    expected = hmac.new(b"Bitcoin seed", SEED, hashlib.sha512).digest()[:32]

    master = master_key(SEED)

    assert master.key == expected
    assert master.chain_code == MASTER_CHAIN_CODE == b"\x00" * 32


def test_master_key_rejects_bad_seed_length():
    with pytest.raises(DerivationFailure):
        master_key(b"\x01" * 8)


def test_derivation_is_deterministic():
    path = build_derivation_path(b"abc", [bytes([1, 2, 3, 4])])

    assert _private(SEED, path) == _private(SEED, path)
    assert _public(SEED, path) == _public(SEED, path)


@pytest.mark.parametrize(
    "path",
    [
        [b"abc"],
        [b"abc", bytes([1, 2, 3, 4])],
        [b"tenant", b"", b"\x00" * 100, b"x"],
    ],
)
def test_public_and_private_derivation_agree(path):
    pub = _public(SEED, path)
    priv = _private(SEED, path)

    assert len(pub.key) == 33
    assert len(priv.key) == 32
    assert public_key_from_private(priv.key) == pub.key
    assert pub.chain_code == priv.chain_code


def test_empty_path_returns_master():
    master = master_key(SEED)
    pub = _public(SEED, [])

    assert pub.key == public_key_from_private(master.key)
    assert pub.chain_code == MASTER_CHAIN_CODE


def test_tenant_segment_comes_first():
    path = build_derivation_path(b"abc", [b"\x01", b"\x02"])
    assert path == [b"abc", b"\x01", b"\x02"]


def test_tenants_are_separated():
    extra = [bytes([1, 2, 3, 4])]
    a = _public(SEED, build_derivation_path(b"tenant-a", extra))
    b = _public(SEED, build_derivation_path(b"tenant-b", extra))

    assert a.key != b.key
    assert a.chain_code != b.chain_code


def test_segment_boundaries_matter():
    assert _public(SEED, [b"abc"]).key != _public(SEED, [b"ab", b"c"]).key


def test_different_seeds_give_different_keys():
    path = [b"abc"]
    assert _public(SEED, path).key != _public(b"\x02" * 64, path).key


def test_tweak_out_of_range_fails(monkeypatch):
    master = master_key(SEED)
    master_pub = public_key_from_private(master.key)

    monkeypatch.setattr(core, "hmac_sha512", lambda key, data: b"\xff" * 64)

    with pytest.raises(DerivationFailure):
        derive_child_public(master_pub, [b"abc"])
    with pytest.raises(DerivationFailure):
        derive_child_private(master.key, [b"abc"])


def test_child_at_infinity_fails(monkeypatch):
    master = master_key(SEED)
    master_pub = public_key_from_private(master.key)

    # IL = n - k cancels the parent key exactly.
    cancel = (SECP256K1_ORDER - int.from_bytes(master.key, "big")).to_bytes(32, "big")
    monkeypatch.setattr(core, "hmac_sha512", lambda key, data: cancel + b"\x00" * 32)

    with pytest.raises(DerivationFailure):
        derive_child_public(master_pub, [b"abc"])
    with pytest.raises(DerivationFailure):
        derive_child_private(master.key, [b"abc"])


def test_malformed_inputs_fail():
    with pytest.raises(DerivationFailure):
        derive_child_public(b"\x05" + b"\x00" * 32, [b"abc"])
    with pytest.raises(DerivationFailure):
        derive_child_private(b"\x00" * 32, [b"abc"])
    with pytest.raises(DerivationFailure):
        derive_child_private(master_key(SEED).key, [b"abc"], chain_code=b"\x00" * 16)


# BIP32 test vector 2: chain m and m/0.
BIP32_SEED = bytes.fromhex(
    "fffcf9f6f3f0edeae7e4e1dedbd8d5d2cfccc9c6c3c0bdbab7b4b1aeaba8a5a2"
    "9f9c999693908d8a8784817e7b7875726f6c696663605d5a5754514e4b484542"
)
BIP32_M_CHAIN_CODE = bytes.fromhex("60499f801b896d83179a4374aeb7822aaeaceaa0db1f85ee3e904c4defbd9689")


def test_bip32_vector_2_master():
    master = master_key(BIP32_SEED)

    assert master.key.hex() == "4b03d6fc340455b363f51020ad3ecca4f0850280cf436c70c727923f6db46c3e"
    assert public_key_from_private(master.key).hex() == (
        "03cbcaa9c98c877a26977d00825c956a238e8dddfbd322cce4f74b0b5bd6ace4a7"
    )
    assert hmac.new(b"Bitcoin seed", BIP32_SEED, hashlib.sha512).digest()[32:] == BIP32_M_CHAIN_CODE


def test_bip32_vector_2_first_child():
    master = master_key(BIP32_SEED)
    index = b"\x00\x00\x00\x00"

    pub = derive_child_public(
        public_key_from_private(master.key), [index], chain_code=BIP32_M_CHAIN_CODE
    )
    priv = derive_child_private(master.key, [index], chain_code=BIP32_M_CHAIN_CODE)

    assert pub.key.hex() == "02fc9e5af0ac8d9b3cecfe2a888e2117ba3d089d8585886c9c826b6b22a98d12ea"
    assert pub.chain_code.hex() == "f0909affaa7ee7abe5dd4e100598d4dc53cd709d5a5c2cac40e7412f232f7c9c"
    assert priv.key.hex() == "abe74a98f6c7eabee0428f53798f0ab8aa1bd37873999041703c742f15ac7e1e"
    assert priv.chain_code == pub.chain_code
